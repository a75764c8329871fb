from __future__ import annotations

from dataclasses import dataclass

from typing import Optional, List, Sequence

# Import shapes for type hints only
from sudoku_engine import PuzzleResult, Grid, Cell




# -----------------------------------------------------------------------------
# Simple logger hook (optional; mirrors sudoku_engine)
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


@dataclass
class Appearance:
    """
    Visual settings used by the SVG renderer.
    Keep this in sync with your UI fields.
    """
    # Grid
    cell_bg_color: str = "#FFFFFF"
    cell_line_color: str = "#000000"
    cell_line_thickness: float = 1.0
    # Lines between the 3x3 blocks
    block_line_thickness: float = 3.0

    # Digits
    grid_font_family: str = "Arial"
    grid_font_size: int = 24
    grid_font_bold: bool = False
    grid_font_color: str = "#000000"
    # Player entries on the board view
    answer_font_color: str = "#1F5FBF"

    # Caption under the grid ("Level 3 - 40 blanks")
    caption_font_family: str = "Arial"
    caption_font_size: int = 14
    caption_font_color: str = "#000000"
    show_caption: bool = True

    # --- Solution marking options ---
    solution_mark_style: str = "highlight"     # "highlight" | "none"
    solution_mark_color: str = "#FFF2A8"
    solution_font_color: str = "#D94242"

    # Border
    add_border: bool = False
    border_thickness: float = 2.0
    border_color: str = "#000000"
    # Distance of border rectangle to the grid (px)
    border_distance: float = 2.0


# -----------------------------------------------------------------------------
# Tiny helper to build safe SVG text (no external lib, very basic)
# -----------------------------------------------------------------------------
def _esc(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _caption_for(result: PuzzleResult) -> str:
    blanks = len(result.solution)
    return f"Level {result.level} - {blanks} blanks"


def _layout(appearance: Appearance, caption: str):
    """Shared size math: (cell, pad, grid_px, caption_h, total_w, total_h)."""
    # cell becomes font_size * 1.6, with some padding
    cell = max(12, int(appearance.grid_font_size * 1.6))
    pad = int(cell * 0.4)
    grid_px = 9 * cell
    caption_h = 0
    if caption and appearance.show_caption:
        caption_h = max(12, int(appearance.caption_font_size * 1.4)) + pad
    return cell, pad, grid_px, caption_h, grid_px + pad * 2, grid_px + caption_h + pad * 2


def _draw_frame(out: List[str], appearance: Appearance, cell: int, pad: int, grid_px: int) -> None:
    """Optional border and the grid background."""
    if appearance.add_border:
        d = float(appearance.border_distance or 0.0)
        out.append(
            f'<rect x="{pad - d}" y="{pad - d}" width="{grid_px + 2 * d}" height="{grid_px + 2 * d}" '
            f'stroke="{appearance.border_color}" stroke-width="{appearance.border_thickness}" fill="none" />'
        )
    out.append(
        f'<rect x="{pad}" y="{pad}" width="{grid_px}" height="{grid_px}" '
        f'fill="{appearance.cell_bg_color}" stroke="none" />'
    )


def _draw_lines(out: List[str], appearance: Appearance, cell: int, pad: int, grid_px: int) -> None:
    stroke = appearance.cell_line_color
    for i in range(10):
        sw = appearance.block_line_thickness if i % 3 == 0 else appearance.cell_line_thickness
        p = pad + i * cell
        out.append(f'<line x1="{p}" y1="{pad}" x2="{p}" y2="{pad + grid_px}" stroke="{stroke}" stroke-width="{sw}" />')
        out.append(f'<line x1="{pad}" y1="{p}" x2="{pad + grid_px}" y2="{p}" stroke="{stroke}" stroke-width="{sw}" />')


def _draw_digits(
    out: List[str],
    appearance: Appearance,
    cell: int,
    pad: int,
    grid: Sequence[Sequence[Cell]],
    colors: Optional[Sequence[Sequence[Optional[str]]]] = None,
) -> None:
    """Digits centered in their cells. colors[r][c] overrides the font color."""
    font_weight = "bold" if appearance.grid_font_bold else "normal"
    out.append(
        f'<g font-family="{_esc(appearance.grid_font_family)}" font-size="{appearance.grid_font_size}" '
        f'font-weight="{font_weight}" fill="{appearance.grid_font_color}">'
    )
    txt_dy = int(appearance.grid_font_size * 0.35)
    for r in range(9):
        for c in range(9):
            v = grid[r][c]
            if v is None:
                continue
            x = pad + c * cell + cell // 2
            y = pad + r * cell + cell // 2 + txt_dy
            color = colors[r][c] if colors else None
            if color:
                out.append(f'<text x="{x}" y="{y}" text-anchor="middle" fill="{_esc(color)}">{v}</text>')
            else:
                out.append(f'<text x="{x}" y="{y}" text-anchor="middle">{v}</text>')
    out.append('</g>')


def _draw_caption(out: List[str], appearance: Appearance, pad: int, grid_px: int, caption: str) -> None:
    if not (caption and appearance.show_caption):
        return
    line_h = max(12, int(appearance.caption_font_size * 1.4))
    out.append(
        f'<text x="{pad + 4}" y="{pad + grid_px + pad + line_h}" '
        f'font-family="{_esc(appearance.caption_font_family)}" font-size="{appearance.caption_font_size}" '
        f'fill="{appearance.caption_font_color}" text-anchor="start">{_esc(caption)}</text>'
    )


def _svg_open(total_w: int, total_h: int) -> str:
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{total_w}" height="{total_h}" '
        f'viewBox="0 0 {total_w} {total_h}">'
    )


# -----------------------------------------------------------------------------
# Core renderers
# -----------------------------------------------------------------------------
def render_puzzle_svg(result: PuzzleResult, appearance: Appearance) -> str:
    """
    The masked puzzle: givens drawn, blanks left empty.
    """
    caption = _caption_for(result)
    cell, pad, grid_px, _, total_w, total_h = _layout(appearance, caption)

    out = [_svg_open(total_w, total_h)]
    _draw_frame(out, appearance, cell, pad, grid_px)
    _draw_lines(out, appearance, cell, pad, grid_px)
    _draw_digits(out, appearance, cell, pad, result.puzzle)
    _draw_caption(out, appearance, pad, grid_px, caption)
    out.append('</svg>')
    return "\n".join(out)


def render_solution_svg(result: PuzzleResult, appearance: Appearance) -> str:
    """
    Solution SVG:
      - Draw the complete grid.
      - Cells that were blanked get the solution font color and, with
        the "highlight" style, a soft rect behind the digit.
    """
    caption = _caption_for(result)
    cell, pad, grid_px, _, total_w, total_h = _layout(appearance, caption)

    out = [_svg_open(total_w, total_h)]
    _draw_frame(out, appearance, cell, pad, grid_px)

    # --- Highlights behind digits ---
    mark_style = (appearance.solution_mark_style or "highlight").lower()
    if mark_style == "highlight":
        hi_fill = appearance.solution_mark_color or "#FFF2A8"
        for (r, c) in result.blanks:
            x = pad + c * cell + 1
            y = pad + r * cell + 1
            out.append(
                f'<rect x="{x}" y="{y}" width="{cell-2}" height="{cell-2}" '
                f'fill="{hi_fill}" fill-opacity="0.8" stroke="none" />'
            )

    _draw_lines(out, appearance, cell, pad, grid_px)

    colors = [[None] * 9 for _ in range(9)]
    for (r, c) in result.solution:
        colors[r][c] = appearance.solution_font_color
    _draw_digits(out, appearance, cell, pad, result.grid, colors)
    _draw_caption(out, appearance, pad, grid_px, caption)
    out.append('</svg>')
    return "\n".join(out)


def render_board_svg(result: PuzzleResult, board: Grid, appearance: Appearance) -> str:
    """
    The player's current board: givens in the grid color, entries in the
    answer color. `board` is what SudokuGame.board() returns.
    """
    cell, pad, grid_px, _, total_w, total_h = _layout(appearance, "")

    out = [_svg_open(total_w, total_h)]
    _draw_frame(out, appearance, cell, pad, grid_px)
    _draw_lines(out, appearance, cell, pad, grid_px)

    colors = [[None] * 9 for _ in range(9)]
    for (r, c) in result.solution:
        colors[r][c] = appearance.answer_font_color
    _draw_digits(out, appearance, cell, pad, board, colors)
    out.append('</svg>')
    return "\n".join(out)


def save_svg(svg_text: str, path: str) -> None:
    """Write an SVG string to disk."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(svg_text)
    _log(f"svg: wrote {path}")
