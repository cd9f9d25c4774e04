"""Render minutes-of-meeting summaries into paginated, word-wrapped PDFs.

The pipeline is split into three steps so the text handling can be tested
without a PDF backend:

1. :func:`normalize_summary` turns model output into display lines.
2. :func:`wrap_text` / :func:`layout_pages` place those lines on fixed-size
   pages using an injected width-measurement function.
3. :func:`render_minutes_pdf` draws the placed lines with reportlab.
"""

from __future__ import annotations

import io
import re
from collections.abc import Callable
from dataclasses import dataclass

from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from src.ingestion.models import format_timestamp
from src.pipeline_config import PageLayout

BULLET = "•"
DOCUMENT_TITLE = "Meeting Minutes"

_NUMBERED_RE = re.compile(r"^\d+\.")

# Width of a string in points at the layout's font size.
MeasureFn = Callable[[str], float]


@dataclass(frozen=True)
class PlacedLine:
    """A wrapped line segment and the baseline position it is drawn at."""

    text: str
    x: float
    y: float


def _normalize_line(raw_line: str) -> str:
    line = raw_line.strip()
    if not line:
        return ""
    if line.startswith("- ") or line.startswith("* "):
        return f"{BULLET} {line[2:]}"
    if line.startswith(BULLET) or _NUMBERED_RE.match(line):
        return line
    return line.replace("**", "")


def normalize_summary(summary: str, call_id: str, generated_at: str) -> list[str]:
    """Prefix the header block and clean up each summary line for display.

    Markdown dash/star bullets become bullet glyphs, numbered and existing
    bullet lines pass through, bold markers are stripped from everything else,
    and blank lines are kept as empty strings so they still take up a line.
    """
    header = [
        DOCUMENT_TITLE,
        f"Call ID: {call_id}",
        f"Generated: {format_timestamp(generated_at)}",
        "",
    ]
    body = [_normalize_line(line) for line in summary.replace("\r\n", "\n").split("\n")]
    return header + body


def wrap_text(text: str, max_width: float, measure: MeasureFn) -> list[str]:
    """Greedily wrap ``text`` on spaces so each segment fits ``max_width``.

    A word wider than ``max_width`` is placed on its own line unsplit.
    An empty string yields a single empty segment.
    """
    lines: list[str] = []
    current = ""
    for word in text.split(" "):
        tentative = f"{current} {word}" if current else word
        if measure(tentative) <= max_width:
            current = tentative
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    if not lines:
        lines.append("")
    return lines


def layout_pages(
    lines: list[str],
    measure: MeasureFn,
    layout: PageLayout = PageLayout(),
) -> list[list[PlacedLine]]:
    """Wrap every line and assign it a page and baseline.

    The cursor starts at the top margin; once it reaches the bottom margin the
    next segment starts a new page.
    """
    pages: list[list[PlacedLine]] = [[]]
    cursor_y = layout.top
    for line in lines:
        for segment in wrap_text(line, layout.max_line_width, measure):
            if cursor_y <= layout.margin:
                pages.append([])
                cursor_y = layout.top
            pages[-1].append(PlacedLine(text=segment, x=layout.margin, y=cursor_y))
            cursor_y -= layout.line_height
    return pages


def font_measure(layout: PageLayout = PageLayout()) -> MeasureFn:
    """Measurement function backed by reportlab's metrics for the layout font."""

    def measure(text: str) -> float:
        return float(stringWidth(text, layout.font_name, layout.font_size))

    return measure


def render_minutes_pdf(
    summary: str,
    call_id: str,
    generated_at: str,
    layout: PageLayout = PageLayout(),
) -> bytes:
    """Render a summary into PDF bytes.

    Canvas invariant mode pins timestamps and document IDs, so identical input
    produces identical bytes.
    """
    lines = normalize_summary(summary, call_id, generated_at)
    pages = layout_pages(lines, font_measure(layout), layout)

    buffer = io.BytesIO()
    pdf = canvas.Canvas(
        buffer,
        pagesize=(layout.width, layout.height),
        invariant=1,
    )
    pdf.setTitle(f"{DOCUMENT_TITLE} {call_id}")
    for page in pages:
        pdf.setFont(layout.font_name, layout.font_size)
        for placed in page:
            pdf.drawString(placed.x, placed.y, placed.text)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()
