"""Minimax move selection for 3x3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable
import random
import time

from ttt_board import O, X, Terminal, board_key
from ttt_telemetry import (
    NullTelemetrySink,
    SearchEndEvent,
    SearchStartEvent,
    TelemetrySink,
    emit_dataclass_event,
)

WIN_SCORE = 100
DRAW_SCORE = 0
CUTOFF_SCORE = 0
UNLIMITED_DEPTH = -1


class InvalidBoardArgument(TypeError):
    """Raised when the board passed to the search does not behave like a Board."""


@runtime_checkable
class BoardLike(Protocol):
    state: Sequence[str]

    def is_terminal(self) -> Optional[Terminal]:
        ...

    def get_available_moves(self) -> List[int]:
        ...

    def insert(self, mark: str, index: int) -> None:
        ...


@dataclass(frozen=True)
class SearchResult:
    best_move: int
    score: int
    root_scores: List[Tuple[int, int]]
    tied_moves: List[int]
    nodes: int
    max_ply: int
    elapsed_ms: int


@dataclass
class _SearchContext:
    max_depth: int
    nodes: int = 0
    max_ply: int = 0


def terminal_score(board: BoardLike, depth: int) -> Optional[int]:
    """Score a finished game seen ``depth`` plies below the root, or None if it is still running.

    Wins lose one point per ply so that quicker wins and slower losses rank higher.
    """
    outcome = board.is_terminal()
    if not outcome:
        return None
    if outcome.winner == X:
        return WIN_SCORE - depth
    if outcome.winner == O:
        return -WIN_SCORE + depth
    return DRAW_SCORE


def _check_board(board: object) -> None:
    if not isinstance(board, BoardLike):
        raise InvalidBoardArgument(
            "the board argument must provide state, is_terminal(), get_available_moves() and insert()"
        )


def _child(board: BoardLike, mark: str, index: int) -> BoardLike:
    child = type(board)(list(board.state))
    child.insert(mark, index)
    return child


class Player:
    """Computer player that picks moves by full minimax search.

    ``max_depth`` limits the search to that many plies below the root;
    positions still undecided at the limit count as a draw. The default
    searches to the end of the game.
    """

    def __init__(
        self,
        max_depth: int = UNLIMITED_DEPTH,
        rng: Optional[random.Random] = None,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> None:
        if max_depth != UNLIMITED_DEPTH and max_depth < 1:
            raise ValueError("max_depth must be -1 (unlimited) or a positive number of plies")
        self.max_depth = max_depth
        self._rng = rng if rng is not None else random.Random()
        self._telemetry_sink: TelemetrySink = telemetry_sink if telemetry_sink is not None else NullTelemetrySink()
        self.last_result: Optional[SearchResult] = None

    def get_best_move(
        self,
        board: BoardLike,
        maximizing: bool = True,
        callback: Optional[Callable[[int], None]] = None,
    ) -> int:
        """Return the index of the best move for the side to move.

        Moves sharing the best score are picked from uniformly at random.
        ``callback`` is called once with the chosen index before it is
        returned.
        """
        _check_board(board)
        self._check_playable(board)

        start = time.perf_counter()
        emit_dataclass_event(
            self._telemetry_sink,
            "search_start",
            SearchStartEvent(
                board_key=board_key(board),
                maximizing=maximizing,
                max_depth=self.max_depth,
            ),
        )

        context = _SearchContext(max_depth=self.max_depth)
        best, root_scores = self._search_root(board, maximizing, context)
        tied = [index for index, value in root_scores if value == best]
        move = tied[self._rng.randrange(len(tied))]

        result = SearchResult(
            best_move=move,
            score=best,
            root_scores=root_scores,
            tied_moves=tied,
            nodes=context.nodes,
            max_ply=context.max_ply,
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        )
        self.last_result = result
        emit_dataclass_event(
            self._telemetry_sink,
            "search_end",
            SearchEndEvent(
                best_move=result.best_move,
                score=result.score,
                tied_moves=list(result.tied_moves),
                root_scores=list(result.root_scores),
                nodes=result.nodes,
                max_ply=result.max_ply,
                elapsed_ms=result.elapsed_ms,
            ),
        )

        if callback is not None:
            callback(move)
        return move

    def score_moves(self, board: BoardLike, maximizing: bool = True) -> List[Tuple[int, int]]:
        """Return the root's (index, score) pairs in enumeration order, without a callback or random draw."""
        _check_board(board)
        self._check_playable(board)
        context = _SearchContext(max_depth=self.max_depth)
        _, root_scores = self._search_root(board, maximizing, context)
        return root_scores

    def _check_playable(self, board: BoardLike) -> None:
        if board.is_terminal() or not board.get_available_moves():
            raise ValueError("board is already terminal; check is_terminal() before asking for a move")

    def _search_root(
        self,
        board: BoardLike,
        maximizing: bool,
        context: _SearchContext,
    ) -> Tuple[int, List[Tuple[int, int]]]:
        context.nodes += 1
        mark = X if maximizing else O
        root_scores: List[Tuple[int, int]] = []
        best = -WIN_SCORE if maximizing else WIN_SCORE
        for index in board.get_available_moves():
            value = self._minimax(_child(board, mark, index), not maximizing, 1, context)
            best = max(best, value) if maximizing else min(best, value)
            root_scores.append((index, value))
        return best, root_scores

    def _minimax(self, board: BoardLike, maximizing: bool, depth: int, context: _SearchContext) -> int:
        context.nodes += 1
        if depth > context.max_ply:
            context.max_ply = depth

        score = terminal_score(board, depth)
        if score is not None:
            return score
        if depth == context.max_depth:
            return CUTOFF_SCORE

        if maximizing:
            best = -WIN_SCORE
            for index in board.get_available_moves():
                best = max(best, self._minimax(_child(board, X, index), False, depth + 1, context))
            return best

        best = WIN_SCORE
        for index in board.get_available_moves():
            best = min(best, self._minimax(_child(board, O, index), True, depth + 1, context))
        return best


def best_move(
    board: BoardLike,
    maximizing: bool = True,
    callback: Optional[Callable[[int], None]] = None,
    max_depth: int = UNLIMITED_DEPTH,
    rng: Optional[random.Random] = None,
) -> int:
    return Player(max_depth=max_depth, rng=rng).get_best_move(board, maximizing, callback)
