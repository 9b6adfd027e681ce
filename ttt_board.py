"""Board model for 3x3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

X = "x"
O = "o"
EMPTY = ""

MARKS = (X, O)
CELLS = 9
SIZE = 3

EMPTY_KEY_CHARS = {".", "-", "_"}

ROWS: Tuple[Tuple[int, int, int], ...] = ((0, 1, 2), (3, 4, 5), (6, 7, 8))
COLUMNS: Tuple[Tuple[int, int, int], ...] = ((0, 3, 6), (1, 4, 7), (2, 5, 8))
DIAGONALS: Tuple[Tuple[int, int, int], ...] = ((0, 4, 8), (2, 4, 6))


@dataclass(frozen=True)
class Terminal:
    winner: Optional[str]
    direction: Optional[str] = None
    line: Optional[int] = None


class Board:
    def __init__(self, state: Optional[Sequence[str]] = None) -> None:
        if state is None:
            state = [EMPTY] * CELLS
        cells = list(state)
        if len(cells) != CELLS:
            raise ValueError(f"board must have {CELLS} cells, got {len(cells)}")
        for cell in cells:
            if cell != EMPTY and cell not in MARKS:
                raise ValueError(f"invalid cell value: {cell!r}")
        self.state: List[str] = cells

    def __repr__(self) -> str:
        return f"Board({board_key(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.state == other.state

    def copy(self) -> "Board":
        return Board(self.state)

    def is_empty(self) -> bool:
        return all(cell == EMPTY for cell in self.state)

    def is_full(self) -> bool:
        return all(cell != EMPTY for cell in self.state)

    def is_terminal(self) -> Optional[Terminal]:
        """Return the outcome if the game is over, otherwise None.

        Lines are checked rows first, then columns, then diagonals; a full
        board with no completed line is a draw (``winner`` is None).
        """
        if self.is_empty():
            return None
        s = self.state
        for direction, lines in (("H", ROWS), ("V", COLUMNS), ("D", DIAGONALS)):
            for number, (a, b, c) in enumerate(lines, start=1):
                if s[a] != EMPTY and s[a] == s[b] == s[c]:
                    return Terminal(s[a], direction, number)
        if self.is_full():
            return Terminal(None)
        return None

    def get_available_moves(self) -> List[int]:
        return [i for i, cell in enumerate(self.state) if cell == EMPTY]

    def insert(self, mark: str, index: int) -> None:
        if mark not in MARKS:
            raise ValueError(f"mark must be {X!r} or {O!r}")
        if index < 0 or index >= CELLS:
            raise ValueError("cell index must be 0..8")
        if self.state[index] != EMPTY:
            raise ValueError("illegal move: cell is occupied")
        self.state[index] = mark


def board_key(board: Board) -> str:
    return "".join(cell if cell else "." for cell in board.state)


def key_to_board(key: str) -> Optional[Board]:
    raw = key.strip().lower()
    if len(raw) != CELLS:
        return None
    cells: List[str] = []
    for ch in raw:
        if ch in MARKS:
            cells.append(ch)
        elif ch in EMPTY_KEY_CHARS:
            cells.append(EMPTY)
        else:
            return None
    return Board(cells)


def side_to_move(board: Board) -> str:
    return X if board.state.count(X) == board.state.count(O) else O


def pretty_print(board: Board) -> str:
    """
    Render the board as a 3x3 grid.

    Occupied cells show their mark in upper case; empty cells show their
    index so the output doubles as a move map.
    """

    def cell(i: int) -> str:
        value = board.state[i]
        return value.upper() if value else str(i)

    rows = []
    for r in range(SIZE):
        rows.append(" " + " | ".join(cell(r * SIZE + c) for c in range(SIZE)) + " ")
    return "\n---+---+---\n".join(rows)
