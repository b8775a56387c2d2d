"""
PDF rendering for document-intent chat replies.

Completion text is mostly markdown. Only a small subset is interpreted:
# headings, - / * bullets, numbered items, fenced code blocks and **bold**.
Everything else is set as plain paragraphs.
"""

import logging
import re
from pathlib import Path
from uuid import uuid4
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    HRFlowable,
    ListFlowable,
    ListItem,
    Paragraph,
    Preformatted,
    SimpleDocTemplate,
    Spacer,
)

from core.models.chat import PdfDocument

logger = logging.getLogger(__name__)

PDF_URL_PATH = "/generated_pdfs"

_HEADING = re.compile(r"^(#{1,3})\s+(.*)$")
_BULLET = re.compile(r"^\s*[-*]\s+(.*)$")
_NUMBERED = re.compile(r"^\s*\d+[.)]\s+(.*)$")
_BOLD = re.compile(r"\*\*(.+?)\*\*")


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so the footer can show the page count."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, total: int) -> None:
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(A4[0] / 2, 12 * mm, f"Page {self._pageNumber} of {total}")


def _inline(text: str) -> str:
    """Escape markup characters, then turn **bold** into <b>."""
    return _BOLD.sub(r"<b>\1</b>", escape(text))


class PdfService:
    """Writes chat replies to A4 PDFs in a served directory."""

    def __init__(self, output_dir: str, public_base_url: str = ""):
        self.output_dir = Path(output_dir)
        self._public_base_url = public_base_url.rstrip("/")

        styles = getSampleStyleSheet()
        self._styles = {
            "title": ParagraphStyle("DocTitle", parent=styles["Title"], alignment=TA_CENTER),
            "h1": styles["Heading1"],
            "h2": styles["Heading2"],
            "h3": styles["Heading3"],
            "body": ParagraphStyle("Body", parent=styles["BodyText"], leading=15),
            "code": ParagraphStyle(
                "CodeBlock",
                parent=styles["Code"],
                backColor=colors.HexColor("#f4f4f4"),
                borderPadding=4,
            ),
        }

    def render(self, title: str, body: str) -> PdfDocument:
        """
        Render title and body to a new file.

        Returns:
            PdfDocument with the public URL and generated filename
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = f"response_{uuid4()}.pdf"
        path = self.output_dir / filename

        doc = SimpleDocTemplate(
            str(path),
            pagesize=A4,
            title=title,
            leftMargin=20 * mm,
            rightMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=22 * mm,
        )
        story = [
            Paragraph(escape(title), self._styles["title"]),
            HRFlowable(width="100%", thickness=1, color=colors.grey, spaceAfter=8),
        ]
        story.extend(self._body_flowables(body))
        doc.build(story, canvasmaker=_NumberedCanvas)

        logger.info(f"Generated PDF {filename} ({path.stat().st_size} bytes)")

        return PdfDocument(
            url=f"{self._public_base_url}{PDF_URL_PATH}/{filename}",
            filename=filename,
            title=title,
        )

    def _body_flowables(self, body: str) -> list:
        flowables = []
        paragraph: list[str] = []
        items: list[str] = []
        ordered = False
        code: list[str] | None = None

        def flush_paragraph():
            if paragraph:
                flowables.append(Paragraph(_inline(" ".join(paragraph)), self._styles["body"]))
                paragraph.clear()

        def flush_list():
            if items:
                flowables.append(ListFlowable(
                    [ListItem(Paragraph(_inline(item), self._styles["body"])) for item in items],
                    bulletType="1" if ordered else "bullet",
                ))
                items.clear()

        for line in body.splitlines():
            stripped = line.strip()

            if stripped.startswith("```"):
                if code is None:
                    flush_paragraph()
                    flush_list()
                    code = []
                else:
                    flowables.append(Preformatted("\n".join(code), self._styles["code"]))
                    flowables.append(Spacer(1, 6))
                    code = None
                continue

            if code is not None:
                code.append(line)
                continue

            if not stripped:
                flush_paragraph()
                flush_list()
                continue

            heading = _HEADING.match(stripped)
            if heading:
                flush_paragraph()
                flush_list()
                level = len(heading.group(1))
                flowables.append(Paragraph(_inline(heading.group(2)), self._styles[f"h{level}"]))
                continue

            bullet = _BULLET.match(line)
            numbered = _NUMBERED.match(line)
            if bullet or numbered:
                flush_paragraph()
                is_numbered = numbered is not None
                if items and is_numbered != ordered:
                    flush_list()
                ordered = is_numbered
                items.append((numbered or bullet).group(1))
                continue

            flush_list()
            paragraph.append(stripped)

        # Unterminated fence: keep what was collected
        if code:
            flowables.append(Preformatted("\n".join(code), self._styles["code"]))
        flush_paragraph()
        flush_list()

        return flowables
