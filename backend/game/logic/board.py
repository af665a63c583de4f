"""
Pure board rules for tic-tac-toe.

The board is a 9-tuple in row-major order; each cell is None or a Mark.
Functions here never mutate their input and hold no state. Win detection
lives only in this module.
"""

from game.logic.enums import Mark
from game.logic.exceptions import IllegalMoveError

BOARD_SIZE = 9

type Cell = Mark | None
type Board = tuple[Cell, ...]

# 3 rows, 3 columns, 2 diagonals
WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def empty_board() -> Board:
    return (None,) * BOARD_SIZE


def apply_move(board: Board, cell_index: int, mark: Mark) -> Board:
    """
    Return a new board with mark placed at cell_index.

    Raises:
        IllegalMoveError: If cell_index is outside 0-8 or the cell is occupied

    """
    if not (0 <= cell_index < BOARD_SIZE):
        raise IllegalMoveError(f"Cell index must be between 0 and {BOARD_SIZE - 1}, got {cell_index}")
    if board[cell_index] is not None:
        raise IllegalMoveError(f"Cell {cell_index} is not empty")
    cells = list(board)
    cells[cell_index] = mark
    return tuple(cells)


def check_win(board: Board, mark: Mark) -> bool:
    """Check whether any winning line is fully occupied by mark."""
    return any(all(board[i] == mark for i in line) for line in WIN_LINES)


def is_full(board: Board) -> bool:
    return all(cell is not None for cell in board)
