"""
Engine configuration: dataclass defaults, optional TOML file, env overrides.

Lookup order (later wins):
    1. EngineConfig defaults
    2. ``[engine]`` table of the TOML file named by ENGINE_CONFIG_TOML
       (or the path passed to ``load_config``), when the file exists
    3. ENGINE_SEARCH_DEPTH for quick depth experiments

Example config.toml:

    [engine]
    max_depth = 8
    evaluator = "material"
    verify_keys = true
    log_level = "DEBUG"
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields

from searchcore.constants import MAX_DEPTH, MOVE_OVERHEAD_MS, TT_MAX_ENTRIES

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "ENGINE_CONFIG_TOML"
DEPTH_ENV = "ENGINE_SEARCH_DEPTH"


@dataclass
class EngineConfig:
    max_depth: int = MAX_DEPTH
    evaluator: str = "pesto"
    use_table: bool = True
    verify_keys: bool = False
    table_max_entries: int | None = TT_MAX_ENTRIES
    shuffle_seed: int | None = None
    move_overhead_ms: int = MOVE_OVERHEAD_MS
    log_level: str = "INFO"


def load_config(path: str | None = None) -> EngineConfig:
    """
    Build an EngineConfig from defaults, an optional TOML file and the environment.

    A missing file is not an error. Unknown keys are logged and ignored.
    A malformed file raises ``tomllib.TOMLDecodeError``; a non-integer
    ENGINE_SEARCH_DEPTH raises ``ValueError``.
    """
    cfg = EngineConfig()
    path = path or os.environ.get(CONFIG_PATH_ENV, "config.toml")

    if os.path.exists(path):
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        known = {f.name for f in fields(EngineConfig)}
        for key, value in raw.get("engine", {}).items():
            if key in known:
                setattr(cfg, key, value)
            else:
                logger.warning("config %s: ignoring unknown key engine.%s", path, key)

    override_depth = os.environ.get(DEPTH_ENV)
    if override_depth:
        cfg.max_depth = int(override_depth)

    return cfg
