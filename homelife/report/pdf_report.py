from __future__ import annotations

from pathlib import Path

import pandas as pd
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from homelife.core.pipeline import HomeEvaluation


def _fmt_money(x) -> str:
    try:
        return f"${int(x):,}"
    except (TypeError, ValueError):
        return "N/A"


def _fmt_pct(x) -> str:
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return "N/A"
    try:
        return f"{float(x) * 100:.0f}%"
    except (TypeError, ValueError):
        return "N/A"


def _wrap_lines(c: canvas.Canvas, text: str, max_width: float, font_name: str, font_size: int) -> list[str]:
    c.setFont(font_name, font_size)
    words = (text or "").split()
    if not words:
        return [""]

    lines: list[str] = []
    current = words[0]
    for w in words[1:]:
        test = f"{current} {w}"
        if c.stringWidth(test, font_name, font_size) <= max_width:
            current = test
        else:
            lines.append(current)
            current = w
    lines.append(current)
    return lines


def _draw_wrapped(
    c: canvas.Canvas,
    x: float,
    y: float,
    text: str,
    max_width: float,
    line_height: int = 13,
    font_name: str = "Helvetica",
    font_size: int = 10,
) -> float:
    lines = _wrap_lines(c, text, max_width, font_name, font_size)
    c.setFont(font_name, font_size)
    for line in lines:
        c.drawString(x, y, line)
        y -= line_height
    return y


def _draw_window_bar(
    c: canvas.Canvas,
    x: float,
    y: float,
    w: float,
    start_year: int,
    end_year: int,
    early: int,
    likely: int,
    late: int,
) -> None:
    """
    Draw the early..late replacement band on a shared year axis, with a tick at the likely year.
    y is the current text baseline.
    """
    span = max(end_year - start_year, 1)

    def px(year: int) -> float:
        return x + w * (min(max(year, start_year), end_year) - start_year) / span

    y0 = y + 2
    c.setLineWidth(0.3)
    c.line(x, y0, x + w, y0)
    c.setLineWidth(3)
    c.line(px(early), y0, px(late), y0)
    c.setLineWidth(0.8)
    c.line(px(likely), y0 - 4, px(likely), y0 + 4)
    c.setLineWidth(1)


def _draw_footer(
    c: canvas.Canvas,
    page_w: float,
    y: float,
    text: str,
    left: float,
    right: float,
) -> None:
    c.setFont("Helvetica", 8)
    c.drawRightString(page_w - right, y, text)
    c.drawString(left, y, "HomeLife · Capital Outlook")


def write_pdf_report(
    out_path: str | Path,
    ev: HomeEvaluation,
    delta_lines: list[str] | None,
    generated_at: str | None,
    notes: list[str] | None = None,
    run_config: dict[str, str] | None = None,
) -> Path:

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(out_path), pagesize=letter)
    page_w, page_h = letter

    left = 34
    right = 44
    max_width = page_w - left - right

    # Column widths sum to 530 (max_width is 534).
    COL_W = {
        "system": 92,
        "installed": 120,
        "window": 84,
        "bar": 70,
        "p12": 36,
        "conf": 36,
        "risk": 48,
        "action": 44,
    }
    order = ["system", "installed", "window", "bar", "p12", "conf", "risk", "action"]
    X = {}
    x = left
    for k in order:
        X[k] = x
        x += COL_W[k]

    outlook = ev.outlook
    footer = f"Generated {generated_at}" if generated_at else ""

    # ======================
    # PAGE 1 — HOME OUTLOOK
    # ======================
    y = page_h - 60
    c.setFont("Helvetica-Bold", 18)
    c.drawString(left, y, "HomeLife — Systems Outlook")
    y -= 26

    c.setFont("Helvetica", 10)
    if generated_at:
        c.drawString(left, y, f"Generated: {generated_at}")
        y -= 14
    c.drawString(left, y, f"Home: {ev.home_id} | As of: {ev.as_of.isoformat()} | Climate: {ev.region_ctx.label}")
    y -= 14

    if run_config:
        parts = []
        for k, label in [("version", "Version"), ("schema", "Schema"), ("hazard_model", "Model"), ("advisor_state", "Advisor")]:
            if run_config.get(k):
                parts.append(f"{label}: {run_config[k]}")
        if parts:
            y = _draw_wrapped(c, left, y, " | ".join(parts), max_width, line_height=12, font_name="Helvetica", font_size=10)
    y -= 10

    # ------------------------
    # Key Changes Since Last Report
    # ------------------------
    if delta_lines is not None:
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left, y, "Key Changes Since Last Report")
        y -= 16
        for line in delta_lines:
            y = _draw_wrapped(c, left, y, f"• {line}", max_width, line_height=14, font_name="Helvetica", font_size=11)
            y -= 2
        y -= 10

    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, y, f"Home Verdict (health {ev.health_score:.1f})")
    y -= 16
    y = _draw_wrapped(c, left, y, ev.verdict, max_width, line_height=14, font_name="Helvetica", font_size=11)
    y -= 8

    narrative = ev.narrative
    focus = narrative.dominant_system_name or "your home"
    y = _draw_wrapped(
        c, left, y,
        f"Focus: {narrative.priority.value.title()} ({focus}). Lifecycle position: {ev.position.label}.",
        max_width, line_height=14, font_name="Helvetica", font_size=11,
    )
    if narrative.recommended_action is not None:
        act = narrative.recommended_action
        y = _draw_wrapped(
            c, left, y,
            f"{act.soft_framing} {act.action_label} ({act.impact_label}).",
            max_width, line_height=14, font_name="Helvetica", font_size=11,
        )
    for sig in narrative.secondary_signals:
        y = _draw_wrapped(c, left + 12, y, f"- {sig.message}", max_width - 12, line_height=13, font_name="Helvetica", font_size=10)
    y -= 12

    # Systems table
    c.setFont("Helvetica-Bold", 9)
    c.drawString(X["system"], y, "System")
    c.drawString(X["installed"], y, "Installed")
    c.drawString(X["window"], y, "Window")
    c.drawString(X["bar"], y, "Timeline")
    c.drawString(X["p12"], y, "12mo")
    c.drawString(X["conf"], y, "Conf")
    c.drawString(X["risk"], y, "Risk")
    c.drawString(X["action"], y, "Step")
    y -= 14

    c.setFont("Helvetica", 9)

    if outlook.empty:
        c.drawString(left, y, "No home systems on record yet.")
        y -= 14
    else:
        axis_start = ev.as_of.year
        axis_end = max(int(outlook["late_year"].max()), axis_start + 1)

        for _, r in outlook.iterrows():
            if y < 36 + 60:
                _draw_footer(c, page_w, 24, footer, left, right)
                c.showPage()
                y = page_h - 60
                c.setFont("Helvetica-Bold", 12)
                c.drawString(left, y, "HomeLife — Systems Outlook (cont.)")
                y -= 24
                c.setFont("Helvetica", 9)

            risk = str(r["risk"])
            if risk == "HIGH":
                c.setFont("Helvetica-Bold", 9)
                y_sys = _draw_wrapped(c, X["system"], y, f"! {r['display_name']}", COL_W["system"] - 4,
                                      line_height=11, font_name="Helvetica-Bold", font_size=9)
                c.setFont("Helvetica", 9)
            else:
                y_sys = _draw_wrapped(c, X["system"], y, str(r["display_name"]), COL_W["system"] - 4,
                                      line_height=11, font_name="Helvetica", font_size=9)

            y_inst = _draw_wrapped(c, X["installed"], y, str(r["installed"]), COL_W["installed"] - 4,
                                   line_height=10, font_name="Helvetica", font_size=8)

            c.setFont("Helvetica", 9)
            c.drawString(X["window"], y, f"{r['early_year']}–{r['late_year']} ({r['likely_year']})")
            _draw_window_bar(
                c, X["bar"], y, COL_W["bar"] - 8,
                axis_start, axis_end,
                int(r["early_year"]), int(r["likely_year"]), int(r["late_year"]),
            )
            c.setFont("Helvetica", 9)
            c.drawString(X["p12"], y, _fmt_pct(r["p12"]))
            c.drawString(X["conf"], y, _fmt_pct(r["confidence"]))
            c.drawString(X["risk"], y, risk)

            y_act = _draw_wrapped(c, X["action"], y, str(r["action"]), COL_W["action"] - 2,
                                  line_height=10, font_name="Helvetica", font_size=7)

            y = min(y_sys, y_inst, y_act) - 8

    _draw_footer(c, page_w, 24, footer, left, right)

    # ==========================
    # PAGE 2 — CAPITAL EXPOSURE
    # ==========================
    c.showPage()
    y = page_h - 60

    c.setFont("Helvetica-Bold", 18)
    c.drawString(left, y, "HomeLife — Capital Exposure")
    y -= 34

    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, y, "Expected replacement spend")
    y -= 18

    c.setFont("Helvetica", 11)
    for h in ev.exposure.horizons:
        c.drawString(left, y, f"Next {h.years} years (through {h.cutoff_year}):")
        c.drawString(left + 200, y, f"{_fmt_money(h.low)} – {_fmt_money(h.high)}")
        y -= 16
    y -= 6
    y = _draw_wrapped(c, left, y, ev.exposure.methodology_note, max_width, line_height=12, font_name="Helvetica", font_size=9)
    y -= 16

    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, y, "What drives each estimate")
    y -= 18

    for w in ev.windows:
        if y < 140:
            _draw_footer(c, page_w, 24, footer, left, right)
            c.showPage()
            y = page_h - 60

        c.setFont("Helvetica-Bold", 10)
        c.drawString(
            left, y,
            f"{w.display_name}  {w.early_year}–{w.late_year}  ({w.uncertainty} band, {_fmt_pct(w.confidence)} confidence)",
        )
        y -= 14
        for d in w.drivers:
            y = _draw_wrapped(
                c, left + 20, y, f"{d.description} [{d.severity}]", max_width - 20,
                line_height=13, font_name="Helvetica", font_size=10,
            )
        y = _draw_wrapped(
            c, left + 20, y,
            f"Failure probability: 12mo {_fmt_pct(w.failure_probability_12mo)} | "
            f"24mo {_fmt_pct(w.failure_probability_24mo)} | 36mo {_fmt_pct(w.failure_probability_36mo)}",
            max_width - 20, line_height=13, font_name="Helvetica", font_size=10,
        )

        c.setLineWidth(0.3)
        c.line(left, y + 10, page_w - right, y + 10)
        y -= 18

    if notes:
        if y < 120:
            _draw_footer(c, page_w, 24, footer, left, right)
            c.showPage()
            y = page_h - 60
        y -= 6
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left, y, "Data Notes")
        y -= 14
        for n in notes:
            y = _draw_wrapped(c, left, y, f"- {n}", max_width, line_height=13, font_name="Helvetica", font_size=10)

    _draw_footer(
        c,
        page_w,
        24,
        f"Version {run_config.get('version', '')}" if run_config else footer,
        left,
        right,
    )

    c.save()
    return out_path
