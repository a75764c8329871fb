from __future__ import annotations

import random
import threading
from dataclasses import replace
from typing import Dict, Optional

from sudoku_engine import (
    Coord,
    GenerationInProgress,
    Grid,
    InvalidArgument,
    PuzzleResult,
    Solution,
    Strategy,
    SudokuSpec,
    copy_grid,
    generate_one_puzzle,
    validate_coord,
)


# -----------------------------------------------------------------------------
# Simple logger hook (mirrors sudoku_engine)
# -----------------------------------------------------------------------------
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


# -----------------------------------------------------------------------------
# Answer ledger
# -----------------------------------------------------------------------------
def parse_digit(value_text) -> Optional[int]:
    """
    Integer 1..9 from what the player typed, or None for anything else
    (blank, letters, 0, 10, ...).
    """
    try:
        value = int(str(value_text).strip())
    except (TypeError, ValueError):
        return None
    if not 1 <= value <= 9:
        return None
    return value


class AnswerLedger:
    """
    What the player currently has in each blanked cell, keyed by (row, col)
    like the solution ledger so the two compare directly.
    """

    def __init__(self) -> None:
        self._answers: Dict[Coord, int] = {}

    def record(self, coord: Coord, value_text) -> Optional[int]:
        """
        Store the digit typed at coord and return it. Bad input clears the
        entry and returns None; the UI should then blank the cell.
        """
        key = validate_coord(coord)
        value = parse_digit(value_text)
        if value is None:
            self._answers.pop(key, None)
        else:
            self._answers[key] = value
        return value

    def clear(self) -> None:
        self._answers.clear()

    def get(self, coord: Coord) -> Optional[int]:
        return self._answers.get(tuple(coord))

    def as_dict(self) -> Dict[Coord, int]:
        return dict(self._answers)

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, coord) -> bool:
        return tuple(coord) in self._answers

    def is_complete(self, solution: Solution) -> bool:
        """Every blank has an entry. Says nothing about whether they are right."""
        return len(self._answers) == len(solution)

    def check(self, solution: Solution) -> bool:
        """All answers match the removed digits, with nothing missing or extra."""
        return self._answers == dict(solution)


# -----------------------------------------------------------------------------
# Game session (what the UI talks to)
# -----------------------------------------------------------------------------
class SudokuGame:
    """
    One playable puzzle at a time: generate, take answers, validate,
    show the answer. new_puzzle() is single-flight.
    """

    def __init__(self, spec: Optional[SudokuSpec] = None, rng: Optional[random.Random] = None) -> None:
        self.spec = spec or SudokuSpec()
        self.rng = rng
        self.result: Optional[PuzzleResult] = None
        self.answers = AnswerLedger()
        self._busy = threading.Lock()

    @property
    def generating(self) -> bool:
        return self._busy.locked()

    def new_puzzle(self, level: Optional[int] = None, strategy: Optional[Strategy] = None) -> PuzzleResult:
        """
        Throw away the current puzzle and answers and build a new one.
        Raises GenerationInProgress if another call has not finished yet.
        """
        if not self._busy.acquire(blocking=False):
            raise GenerationInProgress("a puzzle is already being generated")
        try:
            self.answers.clear()
            self.result = None
            # work on a copy; the caller's spec is never written to
            spec = replace(self.spec)
            if level is not None:
                spec.level = level
            if strategy is not None:
                spec.strategy = strategy
            self.result = generate_one_puzzle(spec, self.rng)
            self.spec = spec
            return self.result
        finally:
            self._busy.release()

    def _require_result(self) -> PuzzleResult:
        if self.result is None:
            raise InvalidArgument("no puzzle yet; call new_puzzle() first")
        return self.result

    @property
    def solution(self) -> Solution:
        return self._require_result().solution

    def enter(self, coord: Coord, value_text) -> Optional[int]:
        """Record the player's input for a blank cell. Givens cannot be edited."""
        result = self._require_result()
        key = validate_coord(coord)
        if result.is_given(key):
            raise InvalidArgument(f"cell {key} is a given and cannot be edited")
        return self.answers.record(key, value_text)

    @property
    def ready_to_check(self) -> bool:
        return self.result is not None and self.answers.is_complete(self.result.solution)

    def check(self) -> bool:
        passed = self.answers.check(self._require_result().solution)
        if passed:
            _log("[check] solved")
        return passed

    def show_answer(self) -> Grid:
        return copy_grid(self._require_result().grid)

    def board(self) -> Grid:
        """The puzzle with the player's current entries filled in."""
        out = copy_grid(self._require_result().puzzle)
        for (r, c), v in self.answers.as_dict().items():
            out[r][c] = v
        return out
