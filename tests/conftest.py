# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Add project root to sys.path so the flat modules can be imported in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import sudoku_engine  # noqa: E402
import sudoku_game  # noqa: E402
import svg_renderer  # noqa: E402

_MODULES = (sudoku_engine, sudoku_game, svg_renderer)


@pytest.fixture(autouse=True)
def quiet_logs():
    """Collect engine log lines instead of printing them."""
    lines = []
    for mod in _MODULES:
        mod.set_logger(lines.append)
    yield lines
    for mod in _MODULES:
        mod.set_logger(None)


@pytest.fixture
def solved_grid():
    return [list(row) for row in sudoku_engine.SEED_TEMPLATE]
