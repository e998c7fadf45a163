"""
UCI (Universal Chess Interface) protocol handler.

UCI is the standard text-based protocol that allows chess GUIs and testing
tools (like cutechess-cli) to communicate with chess engines. The engine
reads commands from stdin and writes responses to stdout. All output lines
must be flushed immediately — GUI programs won't block waiting for a newline.

Protocol overview:
    GUI → Engine: uci, isready, ucinewgame, setoption, position, go, stop, quit
    Engine → GUI: id name, id author, option, uciok, readyok, info, bestmove

Threading model:
    The UCI loop runs on the main thread and must never block on the search.
    When the GUI sends "go", we spawn a daemon thread to run the search.
    The main thread continues reading stdin so it can handle "stop" at any time.
    A threading.Event (stop_event) signals the search thread to terminate early;
    the search then answers with the deepest iteration it completed.

Critical rule: NEVER print to stdout except for valid UCI responses.
Diagnostics go through the logging module, which is configured to stderr.

Run with ``python -m interface.uci`` or the ``chess-search-uci`` script.
"""

import logging
import sys
import threading
import time
from collections.abc import Iterable

import chess

from searchcore.config import EngineConfig, load_config
from searchcore.deepening import IterationInfo
from searchcore.engine import Engine
from searchcore.evaluate import EVALUATORS, get_evaluator
from searchcore.timecontrol import TimeControl

logger = logging.getLogger(__name__)

ENGINE_NAME = "SearchCore"
ENGINE_AUTHOR = "Chess Search Core Project"


def _send(line: str) -> None:
    """
    Write a line to stdout and flush immediately.

    UCI requires every output line to be flushed right away. GUIs read
    line-by-line; if the buffer is not flushed, the GUI will hang waiting
    for output that is already in the buffer.
    """
    print(line, flush=True)


def format_info(info: IterationInfo) -> str:
    """Render a completed iteration as a UCI ``info`` line."""
    elapsed_ms = max(1, info.elapsed_ms)
    nps = info.nodes * 1000 // elapsed_ms
    line = (
        f"info depth {info.depth} score {info.score.uci()} "
        f"nodes {info.nodes} nps {nps} time {info.elapsed_ms}"
    )
    if info.pv:
        line += " pv " + " ".join(move.uci() for move in info.pv)
    return line


_GO_INT_PARAMS = ("movetime", "wtime", "btime", "winc", "binc", "movestogo", "depth")


def parse_go(tokens: list[str]) -> TimeControl:
    """
    Extract the search limits from "go" command tokens.

    Supports:
        depth <plies>
        movetime <ms>
        wtime <ms> btime <ms> [winc <ms>] [binc <ms>] [movestogo <n>]
        infinite

    Unparseable values are logged and skipped; unknown tokens are ignored.
    """
    tc = TimeControl()
    i = 0
    while i < len(tokens):
        key = tokens[i]
        if key == "infinite":
            tc.infinite = True
            i += 1
        elif key in _GO_INT_PARAMS and i + 1 < len(tokens):
            try:
                setattr(tc, key, int(tokens[i + 1]))
            except ValueError:
                logger.warning("uci: bad value for go %s: %r", key, tokens[i + 1])
            i += 2
        else:
            i += 1
    return tc


class UciHandler:
    """
    Stateful handler for the UCI protocol.

    Holds the current board position, the engine session (and with it the
    transposition table, which survives between moves of the same game), and
    the search thread lifecycle.

    Attributes:
        board:         The current board position, updated by "position" commands.
        engine:        The engine session answering "go" commands.
        search_thread: The active search thread, or None if no search is running.
        stop_event:    Threading event shared with the search thread. Set to
                       signal the search to stop.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self.engine = Engine.from_config(self.config)
        self.board: chess.Board = chess.Board()
        self.search_thread: threading.Thread | None = None
        self.stop_event: threading.Event = threading.Event()

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    def handle_uci(self) -> None:
        """Identify the engine, list its options and finish with "uciok"."""
        _send(f"id name {ENGINE_NAME}")
        _send(f"id author {ENGINE_AUTHOR}")
        choices = " ".join(f"var {name}" for name in sorted(EVALUATORS))
        _send(f"option name Evaluator type combo default {self.config.evaluator} {choices}")
        _send("option name Clear Hash type button")
        _send("uciok")

    def handle_isready(self) -> None:
        """Synchronization barrier: answer as soon as we can accept commands."""
        _send("readyok")

    def handle_ucinewgame(self) -> None:
        """
        Start a new game: stop any running search, reset the board and clear
        the transposition table (positions from the last game are stale).
        """
        self._stop_search()
        self.board = chess.Board()
        self.engine.new_game()

    def handle_setoption(self, tokens: list[str]) -> None:
        """
        Apply "setoption name <id> [value <x>]".

        Supported: ``Evaluator`` (material | pesto) and ``Clear Hash``.
        Option names may contain spaces, so the name runs up to "value".
        """
        if not tokens or tokens[0] != "name":
            logger.warning("uci: malformed setoption: %s", " ".join(tokens))
            return
        if "value" in tokens:
            value_idx = tokens.index("value")
            name = " ".join(tokens[1:value_idx])
            value = " ".join(tokens[value_idx + 1:])
        else:
            name = " ".join(tokens[1:])
            value = ""

        option = name.lower()
        if option == "evaluator":
            try:
                evaluator = get_evaluator(value)
            except ValueError as e:
                logger.warning("uci: %s", e)
                return
            if evaluator is not self.engine.evaluator:
                # Table scores were computed with the old evaluator.
                self.engine.evaluator = evaluator
                self.engine.new_game()
            self.config.evaluator = value
        elif option == "clear hash":
            self.engine.new_game()
        else:
            logger.info("uci: ignoring unsupported option %r", name)

    def handle_position(self, tokens: list[str]) -> None:
        """
        Parse and apply a "position" command.

        Command formats:
            position startpos
            position startpos moves e2e4 e7e5 ...
            position fen <FEN>
            position fen <FEN> moves e2e4 e7e5 ...

        An invalid FEN leaves the current board untouched; an illegal move
        stops the replay at the last legal move.

        Args:
            tokens: The command tokens with "position" already stripped.
                    tokens[0] is "startpos" or "fen".
        """
        if not tokens:
            return

        if tokens[0] == "startpos":
            board = chess.Board()
            move_tokens = tokens[2:] if len(tokens) > 1 and tokens[1] == "moves" else []
        elif tokens[0] == "fen":
            # FEN strings have 6 space-separated fields; find where "moves" appears
            if "moves" in tokens:
                moves_idx = tokens.index("moves")
                fen = " ".join(tokens[1:moves_idx])
                move_tokens = tokens[moves_idx + 1:]
            else:
                fen = " ".join(tokens[1:])
                move_tokens = []
            try:
                board = chess.Board(fen)
            except ValueError as e:
                logger.warning("uci: invalid FEN %r: %s", fen, e)
                return
        else:
            logger.warning("uci: unknown position type: %s", tokens[0])
            return

        # Replay the move list. python-chess tracks castling rights, en passant
        # and the move stack, which repetition detection during search relies on.
        for uci_move in move_tokens:
            try:
                move = chess.Move.from_uci(uci_move)
            except ValueError:
                logger.warning("uci: malformed move in position command: %s", uci_move)
                break
            if move not in board.legal_moves:
                logger.warning("uci: illegal move in position command: %s", uci_move)
                break
            board.push(move)

        self.board = board

    def handle_go(self, tokens: list[str]) -> None:
        """
        Parse a "go" command and start the search in a background thread.

        The budget comes from the time controls (see ``parse_go`` and
        ``TimeControl.budget_ms``); the depth limit from "go depth" or the
        configured maximum. "go infinite" searches until "stop".

        Args:
            tokens: The command tokens with "go" already stripped.
        """
        self._stop_search()

        tc = parse_go(tokens)
        budget_ms = tc.budget_ms(self.board.turn == chess.WHITE, self.config.move_overhead_ms)
        max_depth = tc.depth if tc.depth is not None and tc.depth > 0 else self.config.max_depth

        self.stop_event = threading.Event()

        # Copy the board so the search thread has its own state.
        # The main thread may receive the next "position" command while the
        # search is still running; copying prevents a data race.
        board_copy = self.board.copy()
        stop_event = self.stop_event
        engine = self.engine

        def search_and_reply() -> None:
            """Run the search, stream info lines, and always answer bestmove."""
            try:
                start = time.monotonic()
                result = engine.find_best_move(
                    board_copy,
                    max_depth=max_depth,
                    time_budget_ms=budget_ms,
                    stop_event=stop_event,
                    on_iteration=lambda info: _send(format_info(info)),
                )
                logger.debug(
                    "search finished: depth %d nodes %d in %.0fms",
                    result.depth, result.nodes, (time.monotonic() - start) * 1000,
                )
                if tc.infinite:
                    # "go infinite" must not answer before "stop", even when
                    # the search ran out of depth or found a mate.
                    stop_event.wait()
                if result.move is not None:
                    _send(f"bestmove {result.move.uci()}")
                else:
                    # No legal moves: UCI still requires a bestmove response.
                    _send("bestmove (none)")

            except Exception:
                logger.exception("search error")
                _send("bestmove (none)")

        self.search_thread = threading.Thread(target=search_and_reply, daemon=True)
        self.search_thread.start()

    def handle_stop(self) -> None:
        """Signal the search thread to stop and wait for its bestmove."""
        self._stop_search()

    def handle_quit(self) -> None:
        """Stop the search and exit the process. No reply is expected."""
        self._stop_search()
        sys.exit(0)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _stop_search(self) -> None:
        """
        Signal the current search thread to stop and wait for it to exit.

        The search polls the stop event at every node, so the join normally
        returns almost immediately; the timeout keeps the loop responsive if
        an evaluator misbehaves.
        """
        self.stop_event.set()
        if self.search_thread is not None and self.search_thread.is_alive():
            self.search_thread.join(timeout=2.0)
        self.search_thread = None

    def dispatch(self, line: str) -> None:
        """Route one input line to its handler."""
        tokens = line.split()
        if not tokens:
            return
        command, args = tokens[0], tokens[1:]

        if command == "uci":
            self.handle_uci()
        elif command == "isready":
            self.handle_isready()
        elif command == "ucinewgame":
            self.handle_ucinewgame()
        elif command == "setoption":
            self.handle_setoption(args)
        elif command == "position":
            self.handle_position(args)
        elif command == "go":
            self.handle_go(args)
        elif command == "stop":
            self.handle_stop()
        elif command == "quit":
            self.handle_quit()
        else:
            # Unknown commands are ignored per the UCI specification.
            logger.debug("uci: ignoring unknown command: %r", command)


def run_uci_loop(lines: Iterable[str] | None = None) -> None:
    """
    Main UCI protocol loop.

    Reads lines (stdin by default) and dispatches each command to the
    UciHandler until "quit" or end of input.

    Error handling:
        Each command is wrapped in a try/except so that a bug in one
        command handler does not crash the engine. Errors are logged to
        stderr and the loop continues. This is important for tournament
        play where crashes lose the game.
    """
    config = load_config()
    logging.basicConfig(
        stream=sys.stderr,
        level=config.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    handler = UciHandler(config)

    for raw_line in lines if lines is not None else sys.stdin:
        line = raw_line.strip()
        if not line:
            continue
        try:
            handler.dispatch(line)
        except Exception:
            logger.exception("uci: unhandled error for command %r", line)

    # End of input without "quit": the GUI is gone. Stop the search so it
    # flushes its bestmove instead of running on (possibly forever).
    handler.handle_stop()


if __name__ == "__main__":
    run_uci_loop()
