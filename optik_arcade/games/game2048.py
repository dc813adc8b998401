"""
game2048.py - 2048 sliding tile puzzle.

Moves are input-driven, so ``tick`` does nothing for this engine. Merged
tile values are added to the score; a new tile appears only when a move
actually changed the board.
"""

from typing import List, Tuple

from optik_arcade.games.base import GameEngine

BOARD_SIZE = 4
FOUR_PROBABILITY = 0.1
DIRECTIONS = ("up", "down", "left", "right")

Board = List[List[int]]


def slide_row(row: List[int]) -> Tuple[List[int], int]:
    """Slide a row toward index 0, merging equal neighbours once.

    Returns (new_row, points gained).
    """
    tiles = [v for v in row if v]
    merged: List[int] = []
    gained = 0
    i = 0
    while i < len(tiles):
        if i + 1 < len(tiles) and tiles[i] == tiles[i + 1]:
            merged.append(tiles[i] * 2)
            gained += tiles[i] * 2
            i += 2
        else:
            merged.append(tiles[i])
            i += 1
    merged.extend([0] * (len(row) - len(merged)))
    return merged, gained


def apply_move(board: Board, direction: str) -> Tuple[Board, int]:
    if direction not in DIRECTIONS:
        raise ValueError(f"unknown direction {direction!r}")
    n = len(board)
    new_board = [row[:] for row in board]
    gained = 0
    for idx in range(n):
        if direction in ("left", "right"):
            line = new_board[idx][:]
        else:
            line = [new_board[r][idx] for r in range(n)]
        reverse = direction in ("right", "down")
        if reverse:
            line.reverse()
        line, points = slide_row(line)
        gained += points
        if reverse:
            line.reverse()
        if direction in ("left", "right"):
            new_board[idx] = line
        else:
            for r in range(n):
                new_board[r][idx] = line[r]
    return new_board, gained


def has_moves(board: Board) -> bool:
    n = len(board)
    for i in range(n):
        for j in range(n):
            current = board[i][j]
            if current == 0:
                return True
            if j < n - 1 and current == board[i][j + 1]:
                return True
            if i < n - 1 and current == board[i + 1][j]:
                return True
    return False


class Game2048(GameEngine):
    game_id = "2048"

    def _reset_session(self):
        self.board: Board = [[0] * BOARD_SIZE for _ in range(BOARD_SIZE)]
        self.moves = 0
        self._add_tile()
        self._add_tile()

    def _step(self):
        pass

    def _add_tile(self):
        empty = [(i, j) for i in range(BOARD_SIZE) for j in range(BOARD_SIZE) if self.board[i][j] == 0]
        if not empty:
            return
        i, j = self._rng.choice(empty)
        self.board[i][j] = 4 if self._rng.random() < FOUR_PROBABILITY else 2

    def move(self, direction: str) -> bool:
        """Apply a move. Returns False when it was ignored or changed nothing."""
        if not self.is_playing or direction not in DIRECTIONS:
            return False
        new_board, gained = apply_move(self.board, direction)
        if new_board == self.board:
            return False
        self.board = new_board
        self.score += gained
        self.moves += 1
        self._add_tile()
        if not has_moves(self.board):
            self._finish()
        return True
