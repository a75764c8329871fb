from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import List, Tuple, Optional, Dict, Literal, Sequence

# Fraction of cells blanked, indexed by difficulty level 0..7
DIFFICULTY_RATIOS = (0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)

DIGITS = tuple(range(1, 10))

# Hand-checked complete grid. Only ever read; relabeled by generate_by_template.
SEED_TEMPLATE = (
    (3, 4, 1, 2, 9, 7, 6, 8, 5),
    (2, 5, 6, 8, 3, 4, 9, 7, 1),
    (9, 8, 7, 1, 5, 6, 3, 2, 4),
    (1, 9, 2, 6, 7, 5, 8, 4, 3),
    (8, 7, 5, 4, 2, 3, 1, 9, 6),
    (6, 3, 4, 9, 1, 8, 2, 5, 7),
    (5, 6, 3, 7, 8, 9, 4, 1, 2),
    (4, 1, 9, 5, 6, 2, 7, 3, 8),
    (7, 2, 8, 3, 4, 1, 5, 6, 9),
)


# -----------------------------------------------------------------------------
# Simple logger hook
# -----------------------------------------------------------------------------
# app.py can call set_logger(my_ui_logger). If you do nothing, we print().
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    """Log to UI if available; otherwise print. Keep messages simple."""
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------
class SudokuError(Exception):
    """Base class for everything the engine raises on purpose."""


class InvalidArgument(SudokuError, ValueError):
    """Input that is not a well-formed grid, ratio, coordinate or option."""


class GenerationTimedOut(SudokuError, RuntimeError):
    """One exhaustive grid attempt ran past its time budget. Retry it."""


class GenerationInProgress(SudokuError, RuntimeError):
    """A new puzzle was requested while the previous one is still being built."""


# -----------------------------------------------------------------------------
# Data shapes used across the app
# -----------------------------------------------------------------------------
Strategy = Literal["template", "search"]
Cell = Optional[int]                  # digit 1..9, or None when empty/blanked
Grid = List[List[Cell]]
Coord = Tuple[int, int]               # (row, col), both 0..8
Solution = Dict[Coord, int]           # digits removed by masking


@dataclass
class SudokuSpec:
    """
    Everything needed to generate a single puzzle.
    Keep this explicit and simple so it is easy to build in app.py.
    """
    level: int = 0
    strategy: Strategy = "template"
    seed: Optional[str] = None

    # Exhaustive generator only
    time_budget: float = 1.0              # seconds per grid attempt
    max_attempts: Optional[int] = None    # None = keep retrying


@dataclass
class PuzzleResult:
    """
    The outcome of the generator. This is what the game and the renderer need.
    """
    grid: Grid                           # complete grid (the answer)
    puzzle: Grid                         # masked grid, None where blanked
    solution: Solution                   # blanked coord -> removed digit
    ratio: float
    level: int = 0
    strategy: Strategy = "template"
    attempts: int = 1                    # grid attempts used by the generator
    elapsed_ms: float = 0.0

    @property
    def blanks(self) -> List[Coord]:
        """Blanked coordinates in row-major order."""
        return sorted(self.solution)

    def is_given(self, coord: Coord) -> bool:
        r, c = coord
        return self.puzzle[r][c] is not None


# -----------------------------------------------------------------------------
# Grid helpers
# -----------------------------------------------------------------------------
def _empty_grid() -> Grid:
    return [[None for _ in range(9)] for _ in range(9)]


def copy_grid(grid: Sequence[Sequence[Cell]]) -> Grid:
    return [list(row) for row in grid]


def _block_of(col: int) -> int:
    return col // 3


def _units(grid: Sequence[Sequence[Cell]]):
    """Yield every row, column and 3x3 block as a list of cells."""
    for r in range(9):
        yield list(grid[r])
    for c in range(9):
        yield [grid[r][c] for r in range(9)]
    for br in range(0, 9, 3):
        for bc in range(0, 9, 3):
            yield [grid[r][c] for r in range(br, br + 3) for c in range(bc, bc + 3)]


def _is_well_formed(grid) -> bool:
    """9 rows of 9 cells, every cell an int digit 1..9."""
    if not isinstance(grid, (list, tuple)) or len(grid) != 9:
        return False
    for row in grid:
        if not isinstance(row, (list, tuple)) or len(row) != 9:
            return False
        for v in row:
            # bool is an int subclass; True is not a digit
            if isinstance(v, bool) or not isinstance(v, int) or not 1 <= v <= 9:
                return False
    return True


def is_valid_grid(grid) -> bool:
    """
    True for a complete grid where every row, column and block is a
    permutation of 1..9.
    """
    if not _is_well_formed(grid):
        return False
    need = list(DIGITS)
    return all(sorted(unit) == need for unit in _units(grid))


def validate_grid(grid) -> None:
    """Raise InvalidArgument unless grid is a complete valid grid."""
    if not _is_well_formed(grid):
        raise InvalidArgument("expected a 9x9 grid of digits 1..9")
    if not is_valid_grid(grid):
        raise InvalidArgument("grid repeats a digit in a row, column or block")


def validate_coord(coord) -> Coord:
    """Return coord as a (row, col) tuple, or raise InvalidArgument."""
    try:
        r, c = coord
    except (TypeError, ValueError):
        raise InvalidArgument(f"coordinate must be a (row, col) pair, got {coord!r}") from None
    for v in (r, c):
        if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= 8:
            raise InvalidArgument(f"coordinate out of range: {coord!r}")
    return (r, c)


# -----------------------------------------------------------------------------
# Template permutation generator
# -----------------------------------------------------------------------------
def random_permutation(rng: Optional[random.Random] = None) -> List[int]:
    """
    The nine digits in random order. Draw a digit, keep it if it is new,
    otherwise draw again.
    """
    r = rng if rng is not None else random.Random()
    seq: List[int] = []
    while len(seq) < 9:
        d = r.randint(1, 9)
        if d not in seq:
            seq.append(d)
    return seq


def generate_by_template(rng: Optional[random.Random] = None) -> Grid:
    """
    Relabel the seed template: each digit becomes the one that follows it in
    a random permutation (wrapping from last to first). The mapping is a
    bijection on 1..9, so the result is always a valid grid.
    """
    seq = random_permutation(rng)
    position = {d: k for k, d in enumerate(seq)}
    return [[seq[(position[v] + 1) % 9] for v in row] for row in SEED_TEMPLATE]


# -----------------------------------------------------------------------------
# Exhaustive placement generator
# -----------------------------------------------------------------------------
def _now() -> float:
    return time.monotonic()


def _available_columns(row: List[Cell], k: int, chosen: List[int]) -> List[int]:
    """
    Columns where the current digit may go in row k, given the columns
    already chosen for it by rows 0..k-1 (chosen[i] is row i's column).
    """
    out: List[int] = []
    for m in range(9):
        if row[m] is not None or m in chosen:
            continue
        if k % 3 >= 1 and _block_of(m) == _block_of(chosen[k - 1]):
            continue
        if k % 3 == 2 and _block_of(m) == _block_of(chosen[k - 2]):
            continue
        out.append(m)
    return out


def _place_digit(grid: Grid, rng: random.Random) -> Optional[List[int]]:
    """
    One randomized pass for a single digit: a column per row, or None when
    some row is left without a legal column.
    """
    chosen: List[int] = []
    for k in range(9):
        avail = _available_columns(grid[k], k, chosen)
        if not avail:
            return None
        chosen.append(rng.choice(avail))
    return chosen


def generate_by_search(rng: Optional[random.Random] = None, time_budget: float = 1.0) -> Grid:
    """
    Fill the grid digit by digit: 1 goes into every row, then 2, and so on.
    A digit that paints itself into a corner is re-drawn from scratch for all
    nine rows; earlier digits stay. Once time_budget seconds have passed since
    the start of this attempt, GenerationTimedOut is raised and the caller
    should start over.
    """
    r = rng if rng is not None else random.Random()
    grid = _empty_grid()
    started = _now()

    for d in DIGITS:
        tries = 0
        while True:
            if _now() - started > time_budget:
                raise GenerationTimedOut(
                    f"gave up on digit {d} after {tries} tries ({time_budget:.2f}s budget)"
                )
            tries += 1
            chosen = _place_digit(grid, r)
            if chosen is not None:
                break
        for k, col in enumerate(chosen):
            grid[k][col] = d
    return grid


def generate_until_complete(
    rng: Optional[random.Random] = None,
    time_budget: float = 1.0,
    max_attempts: Optional[int] = None,
) -> Tuple[Grid, int]:
    """
    Keep calling generate_by_search until one attempt finishes.
    Returns (grid, attempts). max_attempts=None means no limit.
    """
    attempts = 0
    while True:
        attempts += 1
        try:
            return generate_by_search(rng, time_budget), attempts
        except GenerationTimedOut as e:
            _log(f"[search] attempt {attempts} timed out: {e}")
            if max_attempts is not None and attempts >= max_attempts:
                raise


# -----------------------------------------------------------------------------
# Masking
# -----------------------------------------------------------------------------
def difficulty_ratio(level: int) -> float:
    """Map a difficulty level to its blank ratio, clamping into 0..7."""
    try:
        level = int(level)
    except (TypeError, ValueError):
        raise InvalidArgument(f"difficulty level must be an integer, got {level!r}") from None
    if level < 0:
        return DIFFICULTY_RATIOS[0]
    if level > len(DIFFICULTY_RATIOS) - 1:
        return DIFFICULTY_RATIOS[-1]
    return DIFFICULTY_RATIOS[level]


def shelter(
    grid: Grid,
    ratio: float = 0.1,
    rng: Optional[random.Random] = None,
) -> Tuple[Grid, Solution]:
    """
    Blank each cell independently with probability `ratio`.
    Returns (puzzle, solution) where solution maps every blanked (row, col)
    to the digit that was there. The input grid is left untouched.
    """
    validate_grid(grid)
    if isinstance(ratio, bool) or not isinstance(ratio, (int, float)) or not 0 <= ratio <= 1:
        raise InvalidArgument(f"ratio must be a number in [0, 1], got {ratio!r}")

    r = rng if rng is not None else random.Random()
    solution: Solution = {}
    puzzle: Grid = []
    for i, row in enumerate(grid):
        out_row: List[Cell] = []
        for j, v in enumerate(row):
            if r.random() < ratio:
                solution[(i, j)] = v
                out_row.append(None)
            else:
                out_row.append(v)
        puzzle.append(out_row)
    return puzzle, solution


def reunite(puzzle: Grid, solution: Solution) -> Grid:
    """Put the removed digits back into a masked puzzle."""
    out = copy_grid(puzzle)
    for (r, c), v in solution.items():
        out[r][c] = v
    return out


# ---------------------------------------------------------------------------
# High-level API
# ---------------------------------------------------------------------------
def generate_grid(spec: SudokuSpec, rng: random.Random) -> Tuple[Grid, int]:
    """Complete grid using spec.strategy. Returns (grid, attempts)."""
    if spec.strategy == "template":
        return generate_by_template(rng), 1
    if spec.strategy == "search":
        return generate_until_complete(rng, spec.time_budget, spec.max_attempts)
    raise InvalidArgument(f"unknown strategy: {spec.strategy!r}")


def generate_one_puzzle(spec: SudokuSpec, rng: Optional[random.Random] = None) -> PuzzleResult:
    """
    Orchestrator:
      - build a grid with the chosen strategy
      - clamp the level to a blank ratio
      - mask it (consumes the same rng, so a seed reproduces the whole puzzle)
    """
    # If rng is provided (batch builds) keep consuming it; do not reseed.
    seed = str(spec.seed).strip() if spec.seed is not None else ""
    _rng = rng if rng is not None else random.Random(seed or None)
    if not seed:
        _log("seed: none (non-deterministic)")
    else:
        _log(f"seed: {seed}")

    t0 = time.perf_counter()
    grid, attempts = generate_grid(spec, _rng)
    ratio = difficulty_ratio(spec.level)
    puzzle, solution = shelter(grid, ratio, _rng)
    elapsed_ms = (time.perf_counter() - t0) * 1000.0

    _log(
        f"[{spec.strategy}] level {spec.level} (ratio {ratio:.1f}): "
        f"{len(solution)} blanks, {attempts} attempt(s), {elapsed_ms:.1f} ms"
    )
    return PuzzleResult(
        grid=grid,
        puzzle=puzzle,
        solution=solution,
        ratio=ratio,
        level=spec.level,
        strategy=spec.strategy,
        attempts=attempts,
        elapsed_ms=elapsed_ms,
    )


def render_preview_ascii(grid: Grid) -> str:
    """
    Simple ASCII for quick debugging. Blanks show as '.'.
    """
    lines = []
    for r, row in enumerate(grid):
        if r and r % 3 == 0:
            lines.append("------+-------+------")
        cells = [str(v) if v is not None else "." for v in row]
        lines.append(" | ".join(" ".join(cells[b:b + 3]) for b in (0, 3, 6)))
    return "\n".join(lines)
