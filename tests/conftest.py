"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

import chess
import pytest

from searchcore.engine import Engine
from searchcore.evaluate import material_evaluator


@pytest.fixture
def start_board() -> chess.Board:
    return chess.Board()


@pytest.fixture
def material_engine() -> Engine:
    """Deterministic engine: material evaluator, MVV-LVA ordering, no shuffle."""
    return Engine(evaluator=material_evaluator)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep a developer's config file and env overrides out of the tests."""
    monkeypatch.delenv("ENGINE_CONFIG_TOML", raising=False)
    monkeypatch.delenv("ENGINE_SEARCH_DEPTH", raising=False)
    monkeypatch.chdir(tmp_path)
