# tests/test_sudoku_engine.py
import itertools
import random

import pytest

import sudoku_engine as eng
from sudoku_engine import GenerationTimedOut, InvalidArgument


def test_seed_template_is_valid():
    assert eng.is_valid_grid(eng.SEED_TEMPLATE)


def test_random_permutation_uses_each_digit_once():
    rng = random.Random(7)
    for _ in range(20):
        assert sorted(eng.random_permutation(rng)) == list(range(1, 10))


def test_template_generator_always_valid():
    rng = random.Random(1234)
    for _ in range(50):
        assert eng.is_valid_grid(eng.generate_by_template(rng))


def test_template_generator_is_a_relabeling_of_the_template():
    grid = eng.generate_by_template(random.Random(3))
    mapping = {}
    for r in range(9):
        for c in range(9):
            src = eng.SEED_TEMPLATE[r][c]
            mapping.setdefault(src, grid[r][c])
            assert mapping[src] == grid[r][c]
    assert sorted(mapping.values()) == list(range(1, 10))


def test_template_constant_is_not_modified():
    before = [list(row) for row in eng.SEED_TEMPLATE]
    eng.generate_by_template(random.Random(5))
    assert [list(row) for row in eng.SEED_TEMPLATE] == before


def test_search_generator_returns_valid_grid():
    rng = random.Random(42)
    for _ in range(3):
        grid, attempts = eng.generate_until_complete(rng, time_budget=0.5)
        assert attempts >= 1
        assert eng.is_valid_grid(grid)


def test_search_attempt_times_out(monkeypatch):
    # every clock read is 5s after the previous one
    clock = itertools.count(0.0, 5.0)
    monkeypatch.setattr(eng, "_now", lambda: next(clock))
    with pytest.raises(GenerationTimedOut):
        eng.generate_by_search(random.Random(0), time_budget=1.0)


def test_search_retries_after_timeout(monkeypatch, quiet_logs):
    # first attempt sees a jump past its budget, later attempts a slow clock
    clock = itertools.chain([0.0, 100.0], itertools.count(100.0, 1e-4))
    monkeypatch.setattr(eng, "_now", lambda: next(clock))
    grid, attempts = eng.generate_until_complete(random.Random(9), time_budget=1.0)
    assert attempts >= 2
    assert eng.is_valid_grid(grid)
    assert any("attempt 1 timed out" in line for line in quiet_logs)


def test_search_gives_up_after_max_attempts(monkeypatch, quiet_logs):
    clock = itertools.count(0.0, 10.0)
    monkeypatch.setattr(eng, "_now", lambda: next(clock))
    with pytest.raises(GenerationTimedOut):
        eng.generate_until_complete(random.Random(0), time_budget=1.0, max_attempts=3)
    assert len([line for line in quiet_logs if "timed out" in line]) == 3


def test_available_columns_respects_blocks():
    row = [None] * 9
    # second row of a band: previous row took column 1 (block 0)
    assert eng._available_columns(row, 1, [1]) == [3, 4, 5, 6, 7, 8]
    # third row: previous rows in blocks 0 and 2
    assert eng._available_columns(row, 2, [7, 1]) == [3, 4, 5]
    # first row of the next band only avoids used columns
    assert eng._available_columns(row, 3, [0, 3, 6]) == [1, 2, 4, 5, 7, 8]


def test_place_digit_reports_dead_end():
    grid = [[5] * 9 for _ in range(9)]
    # row 0 can only take column 0, row 1 only column 1 (same block)
    grid[0][0] = None
    grid[1][1] = None
    assert eng._place_digit(grid, random.Random(0)) is None


def test_dead_end_redraws_only_the_current_digit(monkeypatch):
    real = eng._place_digit
    seen = []

    def flaky(grid, rng):
        snapshot = [row[:] for row in grid]
        filled = sum(v is not None for row in grid for v in row)
        seen.append(snapshot)
        if filled == 9 and len([s for s in seen if _filled(s) == 9]) == 1:
            return None
        return real(grid, rng)

    monkeypatch.setattr(eng, "_place_digit", flaky)
    grid = eng.generate_by_search(random.Random(8), time_budget=30.0)

    after_one = [s for s in seen if _filled(s) == 9]
    assert len(after_one) >= 2
    # the retry for digit 2 starts from the same digit-1 placements
    assert after_one[0] == after_one[1]
    ones = {(r, c) for r in range(9) for c in range(9) if after_one[0][r][c] == 1}
    assert ones == {(r, c) for r in range(9) for c in range(9) if grid[r][c] == 1}
    assert eng.is_valid_grid(grid)


def _filled(grid):
    return sum(v is not None for row in grid for v in row)


def test_shelter_round_trip(solved_grid):
    rng = random.Random(11)
    for ratio in (0.0, 0.1, 0.5, 0.9, 1.0):
        puzzle, solution = eng.shelter(solved_grid, ratio, rng)
        assert eng.reunite(puzzle, solution) == solved_grid
        for (r, c), v in solution.items():
            assert puzzle[r][c] is None
            assert solved_grid[r][c] == v


def test_shelter_extremes(solved_grid):
    puzzle, solution = eng.shelter(solved_grid, 0)
    assert puzzle == solved_grid
    assert solution == {}

    puzzle, solution = eng.shelter(solved_grid, 1)
    assert all(v is None for row in puzzle for v in row)
    assert len(solution) == 81


def test_shelter_blank_count_tracks_ratio(solved_grid):
    rng = random.Random(2024)
    runs = 200
    total = sum(len(eng.shelter(solved_grid, 0.5, rng)[1]) for _ in range(runs))
    assert abs(total / runs - 40.5) < 2


def test_shelter_does_not_touch_input(solved_grid):
    before = [row[:] for row in solved_grid]
    eng.shelter(solved_grid, 0.7, random.Random(1))
    assert solved_grid == before


@pytest.mark.parametrize(
    "grid",
    [
        None,
        "not a grid",
        [[1, 2, 3]],
        [[1] * 9 for _ in range(9)],
        [[None] * 9 for _ in range(9)],
        [[0] * 9 for _ in range(9)],
    ],
)
def test_shelter_rejects_malformed_grid(grid):
    with pytest.raises(InvalidArgument):
        eng.shelter(grid, 0.5)


@pytest.mark.parametrize("ratio", [-0.1, 1.5, "0.5", None])
def test_shelter_rejects_bad_ratio(solved_grid, ratio):
    with pytest.raises(InvalidArgument):
        eng.shelter(solved_grid, ratio)


def test_difficulty_clamps():
    assert eng.difficulty_ratio(-3) == eng.difficulty_ratio(0) == 0.2
    assert eng.difficulty_ratio(99) == eng.difficulty_ratio(7) == 0.9
    assert eng.difficulty_ratio(3) == 0.5


def test_difficulty_accepts_integral_values():
    assert eng.difficulty_ratio(2.0) == 0.4
    assert eng.difficulty_ratio("5") == 0.7


@pytest.mark.parametrize("level", ["hard", None, [1]])
def test_difficulty_rejects_non_numeric_level(level):
    with pytest.raises(InvalidArgument):
        eng.difficulty_ratio(level)


def test_same_seed_same_puzzle():
    a = eng.generate_one_puzzle(eng.SudokuSpec(level=4, seed="abc"))
    b = eng.generate_one_puzzle(eng.SudokuSpec(level=4, seed="abc"))
    assert a.grid == b.grid
    assert a.puzzle == b.puzzle
    assert a.solution == b.solution
    assert a.ratio == 0.6


def test_seed_is_stripped():
    a = eng.generate_one_puzzle(eng.SudokuSpec(level=4, seed="abc"))
    b = eng.generate_one_puzzle(eng.SudokuSpec(level=4, seed="  abc "))
    assert a.grid == b.grid
    assert a.solution == b.solution


def test_blank_seed_is_non_deterministic(quiet_logs):
    eng.generate_one_puzzle(eng.SudokuSpec(seed="   "))
    assert "seed: none (non-deterministic)" in quiet_logs
    assert not any(line.startswith("seed:   ") for line in quiet_logs)


def test_generate_one_puzzle_honours_max_attempts(monkeypatch, quiet_logs):
    clock = itertools.count(0.0, 10.0)
    monkeypatch.setattr(eng, "_now", lambda: next(clock))
    spec = eng.SudokuSpec(strategy="search", seed="s", time_budget=1.0, max_attempts=2)
    with pytest.raises(GenerationTimedOut):
        eng.generate_one_puzzle(spec)
    assert len([line for line in quiet_logs if "timed out" in line]) == 2


def test_generate_one_puzzle_by_search():
    res = eng.generate_one_puzzle(
        eng.SudokuSpec(level=2, strategy="search", seed="s", time_budget=0.5)
    )
    assert eng.is_valid_grid(res.grid)
    assert res.strategy == "search"
    assert eng.reunite(res.puzzle, res.solution) == res.grid


def test_unknown_strategy_is_rejected():
    with pytest.raises(InvalidArgument):
        eng.generate_one_puzzle(eng.SudokuSpec(strategy="magic"))


def test_validate_coord():
    assert eng.validate_coord([2, 3]) == (2, 3)
    for bad in [(9, 0), (0, -1), (1,), "ab", (True, 0), None]:
        with pytest.raises(InvalidArgument):
            eng.validate_coord(bad)


def test_ascii_preview_marks_blanks(solved_grid):
    puzzle, _ = eng.shelter(solved_grid, 1)
    text = eng.render_preview_ascii(puzzle)
    lines = text.splitlines()
    assert len(lines) == 11
    assert "1" not in text
    assert lines[0].count(".") == 9
