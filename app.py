import io, zipfile, random
import re
from pathlib import Path

import streamlit as st

import sudoku_engine as eng
import sudoku_game
import svg_renderer as svg



def load_css(path: str | Path) -> None:
    css_path = Path(path)
    css = css_path.read_text(encoding="utf-8")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)





# ---- preview helper: scale an SVG to a target pixel width (keeps aspect) ----

def _scale_svg_for_preview(svg_text: str, target_width_px: int) -> tuple[str, int]:
    """
    Returns (scaled_svg_text, new_height_px).
    Only used for UI preview; original SVGs stay full size for ZIP/PNG/PDF.
    """
    s = svg_text
    m = re.search(r'viewBox="0\s+0\s+([\d.]+)\s+([\d.]+)"', s)
    if not m:
        return s, 600  # fallback
    vw, vh = float(m.group(1)), float(m.group(2))

    scale = max(0.05, float(target_width_px) / max(1.0, vw))
    new_h = max(50, int(round(vh * scale)))

    # rewrite width/height only on the <svg ...> tag
    s = re.sub(r'(<svg\b[^>]*\bwidth=")[^"]+(")',  rf'\g<1>{int(target_width_px)}\g<2>', s, count=1)
    s = re.sub(r'(<svg\b[^>]*\bheight=")[^"]+(")', rf'\g<1>{new_h}\g<2>',            s, count=1)
    if 'preserveAspectRatio' not in s[:400]:
        s = re.sub(r'<svg\b', '<svg preserveAspectRatio="xMidYMid meet"', s, count=1)
    return s, new_h


def _show_svg(svg_text: str, width_px: int) -> None:
    scaled, h = _scale_svg_for_preview(svg_text, width_px)
    st.components.v1.html(scaled, height=h + 6, scrolling=False)


# ---- engine log -> page ----

def _ui_log(msg: str) -> None:
    st.session_state.setdefault("log", []).append(msg)
    del st.session_state["log"][:-50]


def _cell_key(coord: tuple[int, int]) -> str:
    return f"cell_{st.session_state.puzzle_id}_{coord[0]}_{coord[1]}"


def _on_cell_change(coord: tuple[int, int]) -> None:
    game: sudoku_game.SudokuGame = st.session_state.game
    st.session_state.passed = False
    key = _cell_key(coord)
    value = game.enter(coord, st.session_state.get(key, ""))
    if value is None:
        # invalid or empty input: blank the box again
        st.session_state[key] = ""


def _regenerate(level: int, strategy: str, seed: str, time_budget: float, max_attempts: int) -> None:
    game: sudoku_game.SudokuGame = st.session_state.game
    game.spec = eng.SudokuSpec(
        level=level, strategy=strategy, seed=seed or None,
        time_budget=time_budget, max_attempts=max_attempts,
    )
    game.rng = None
    with st.spinner("Generating..."):
        game.new_puzzle()
    st.session_state.puzzle_id += 1
    st.session_state.show_answer = False
    st.session_state.passed = False


st.set_page_config(page_title="Sudoku", layout="wide")
# If styles.css is next to app.py:
load_css(Path(__file__).with_name("styles.css"))
st.title("Sudoku")

for _mod in (eng, sudoku_game, svg):
    _mod.set_logger(_ui_log)

if "game" not in st.session_state:
    st.session_state.game = sudoku_game.SudokuGame()
    st.session_state.puzzle_id = 0
    st.session_state.show_answer = False
    st.session_state.passed = False




# --- Controls in the sidebar (clean + compact) ---
with st.sidebar:
    tab_create, tab_print, tab_settings = st.tabs(["Play", "Print sheets", "Settings"])

    # ---------------------------
    # TAB 1: Play
    # ---------------------------
    with tab_create:
        level = st.slider("Difficulty", 0, len(eng.DIFFICULTY_RATIOS) - 1, 0)
        st.caption(f"About {int(eng.difficulty_ratio(level) * 100)}% of the cells are blanked")
        strategy = st.selectbox(
            "Generator", ["template", "search"],
            format_func=lambda s: {"template": "Template (fast)", "search": "Exhaustive search"}[s],
        )
        seed = st.text_input("Seed (optional)", "")
        time_budget = st.number_input("Search time budget (s)", 0.1, 10.0, 1.0, step=0.1)
        max_attempts = st.number_input("Search attempts", 1, 200, 20, format="%d")

        regen = st.button(
            "Regenerate", type="primary", use_container_width=True,
            disabled=st.session_state.game.generating,
        )

    # ---------------------------
    # TAB 2: Print sheets
    # ---------------------------
    with tab_print:
        n_puzzles = st.number_input("# puzzles", 1, 100, 6, format="%d")
        print_level = st.slider("Sheet difficulty", 0, len(eng.DIFFICULTY_RATIOS) - 1, 3)
        print_seed = st.text_input("Sheet seed (optional)", "")
        go = st.button("Generate sheets", use_container_width=True)

    # ---------------------------
    # TAB 3: Settings
    # ---------------------------
    with tab_settings:
        st.caption("Output formats")
        make_png  = st.checkbox("Also make PNG", value=True)
        make_pdf  = st.checkbox("Also make PDF", value=False)
        make_pptx = st.checkbox("Also make PPTX (simple insert)", value=False)

        st.caption("Preview")
        size_label = st.select_slider("Preview size", options=["Small","Medium","Large"], value="Medium")
        PREVIEW_W = {"Small": 420, "Medium": 560, "Large": 720}[size_label]


look = svg.Appearance(grid_font_family="Arial", grid_font_size=24)

try:
    if regen or st.session_state.game.result is None:
        _regenerate(level, strategy, seed, float(time_budget), int(max_attempts))
except eng.GenerationInProgress:
    st.info("Still generating the previous puzzle...")
except eng.GenerationTimedOut as e:
    st.warning(f"No grid within {int(max_attempts)} search attempts ({e}). Raise the budget or try again.")
    st.stop()
except Exception as e:
    st.error("Puzzle generation failed")
    st.exception(e)
    st.stop()


game: sudoku_game.SudokuGame = st.session_state.game
result = game.result

tab_play, tab_answer = st.tabs(["Puzzle", "Answer"])

with tab_play:
    if result is None:
        st.info("Generating...")
    else:
        for r in range(9):
            cols = st.columns(9)
            for c in range(9):
                given = result.puzzle[r][c]
                with cols[c]:
                    if given is not None:
                        st.text_input(
                            f"r{r}c{c}", value=str(given), disabled=True,
                            key=f"given_{st.session_state.puzzle_id}_{r}_{c}",
                            label_visibility="collapsed",
                        )
                    else:
                        st.text_input(
                            f"r{r}c{c}", key=_cell_key((r, c)), max_chars=2,
                            on_change=_on_cell_change, args=((r, c),),
                            label_visibility="collapsed",
                        )

        st.caption(f"{len(game.answers)} of {len(result.solution)} blanks filled")

        b1, b2 = st.columns(2)
        with b1:
            if st.button("Check", disabled=not game.ready_to_check, use_container_width=True):
                # no feedback when it fails
                if game.check():
                    st.session_state.passed = True
        with b2:
            if st.button("Show answer", use_container_width=True):
                st.session_state.show_answer = True

        if st.session_state.passed:
            st.success("Solved!")

with tab_answer:
    if result is None:
        st.info("No puzzle yet.")
    elif st.session_state.show_answer:
        _show_svg(svg.render_solution_svg(result, look), PREVIEW_W)
    else:
        _show_svg(svg.render_board_svg(result, game.board(), look), PREVIEW_W)

with st.expander("Log"):
    st.code("\n".join(st.session_state.get("log", [])) or "(empty)")




if go:
    try:
        from cairosvg import svg2png, svg2pdf
    except Exception as e:
        if make_png or make_pdf or make_pptx:
            st.error("cairosvg not installed or failed to import")
            st.exception(e)
            st.stop()

    try:
        from pptx import Presentation
        from pptx.util import Inches
    except Exception as e:
        if make_pptx:
            st.error("python-pptx failed to import")
            st.exception(e)
            st.stop()
        else:
            Presentation = None  # not used

    svgs = []
    imgs_for_pptx = []
    first_puz_svg = None
    first_sol_svg = None

    # one rng for the whole batch so a seed reproduces every sheet
    rng = random.Random(print_seed or None)
    sheet_spec = eng.SudokuSpec(level=print_level, strategy="template", seed=print_seed or None)

    try:
        for idx in range(1, int(n_puzzles) + 1):
            res = eng.generate_one_puzzle(sheet_spec, rng)
            puz_svg = svg.render_puzzle_svg(res, look)
            sol_svg = svg.render_solution_svg(res, look)

            svgs.append((f"puzzle_{idx:03d}.svg", puz_svg))
            svgs.append((f"solution_{idx:03d}.svg", sol_svg))

            if first_puz_svg is None:
                first_puz_svg = puz_svg
                first_sol_svg = sol_svg
    except Exception as e:
        st.error("Puzzle generation/rendering failed")
        st.exception(e)
        st.stop()

    # --- Previews (tabs) ---
    tab_puz, tab_sol = st.tabs(["Preview — Puzzle", "Preview — Solution"])

    with tab_puz:
        if first_puz_svg:
            _show_svg(first_puz_svg, PREVIEW_W)
        else:
            st.info("No preview available.")

    with tab_sol:
        if first_sol_svg:
            _show_svg(first_sol_svg, PREVIEW_W)
        else:
            st.info("No preview available.")

    # --- ZIP outputs ---
    try:
        mem = io.BytesIO()
        with zipfile.ZipFile(mem, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, s in svgs:
                zf.writestr(name, s)

            if make_png or make_pdf or make_pptx:
                for name, s in svgs:
                    try:
                        if make_png:
                            zf.writestr(name.replace(".svg", ".png"),
                                        svg2png(bytestring=s.encode("utf-8")))
                    except Exception as e:
                        zf.writestr(name.replace(".svg", ".PNG_ERROR.txt"),
                                    (f"PNG conversion failed for {name}:\n{e}").encode("utf-8"))

                    try:
                        if make_pdf:
                            zf.writestr(name.replace(".svg", ".pdf"),
                                        svg2pdf(bytestring=s.encode("utf-8")))
                    except Exception as e:
                        zf.writestr(name.replace(".svg", ".PDF_ERROR.txt"),
                                    (f"PDF conversion failed for {name}:\n{e}").encode("utf-8"))

                    try:
                        if make_pptx and name.startswith("puzzle_"):
                            imgs_for_pptx.append(svg2png(bytestring=s.encode("utf-8")))
                    except Exception as e:
                        zf.writestr(name.replace(".svg", ".PPTX_IMAGE_ERROR.txt"),
                                    (f"PPTX image prep failed for {name}:\n{e}").encode("utf-8"))

            if make_pptx and imgs_for_pptx:
                prs = Presentation()
                blank = prs.slide_layouts[6]
                for png in imgs_for_pptx:
                    slide = prs.slides.add_slide(blank)
                    stream = io.BytesIO(png)
                    slide.shapes.add_picture(stream, Inches(0.5), Inches(0.5), height=Inches(6.5))
                out = io.BytesIO(); prs.save(out)
                zf.writestr("puzzles.pptx", out.getvalue())

        mem.seek(0)
        st.download_button("Download ZIP", data=mem.read(), file_name="sudoku_sheets.zip", mime="application/zip")
    except Exception as e:
        st.error("Failed to package outputs")
        st.exception(e)
        st.stop()
