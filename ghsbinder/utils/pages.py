import logging
import re
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

log = logging.getLogger(__name__)

DEFAULT_COLOR = "#2c3e50"

BOLD = re.compile(r"\*\*(.+?)\*\*")


def brand_color(value: str) -> colors.Color:
    try:
        return colors.HexColor(value)
    except (TypeError, ValueError):
        log.warning("Unusable brand color %r, falling back to %s", value, DEFAULT_COLOR)
        return colors.HexColor(DEFAULT_COLOR)


def binder_styles(color: colors.Color, centered: bool = False):
    styles = getSampleStyleSheet()
    alignment = TA_CENTER if centered else TA_LEFT
    styles.add(ParagraphStyle("BinderTitle", parent=styles["Title"], fontSize=22,
                              spaceAfter=12, textColor=color))
    styles.add(ParagraphStyle("BinderHeading", parent=styles["Heading1"], fontSize=16,
                              spaceAfter=8, textColor=color, alignment=alignment))
    styles.add(ParagraphStyle("BinderSubheading", parent=styles["Heading2"], fontSize=12,
                              spaceAfter=4, alignment=alignment))
    styles.add(ParagraphStyle("BinderBody", parent=styles["Normal"], fontSize=10.5,
                              leading=14, alignment=alignment))
    styles.add(ParagraphStyle("BinderBullet", parent=styles["BinderBody"], leftIndent=14))
    return styles


def inline(text: str) -> str:
    # Markup characters in customer data must not reach the paragraph parser
    return BOLD.sub(r"<b>\1</b>", escape(text))


def markdown_to_paragraphs(markdown: str, styles) -> list:
    """Maps the small markdown subset used by the binder page templates onto flowables."""
    flowables = []
    for line in markdown.split("\n"):
        line = line.strip()
        if not line:
            flowables.append(Spacer(1, 6))
        elif line.startswith("# "):
            flowables.append(Paragraph(inline(line[2:].strip()), styles["BinderTitle"]))
            flowables.append(Spacer(1, 12))
        elif line.startswith("## "):
            flowables.append(Paragraph(inline(line[3:].strip()), styles["BinderHeading"]))
        elif line.startswith("### "):
            flowables.append(Paragraph(inline(line[4:].strip()), styles["BinderSubheading"]))
        elif line.startswith("- "):
            flowables.append(Paragraph(f"• {inline(line[2:].strip())}", styles["BinderBullet"]))
        elif line.startswith("*") and line.endswith("*") and not line.startswith("**"):
            flowables.append(Paragraph(f"<i>{inline(line[1:-1].strip())}</i>", styles["BinderBody"]))
        else:
            flowables.append(Paragraph(inline(line), styles["BinderBody"]))
    return flowables


def render_pdf(markdown: str, color: colors.Color, centered: bool = False) -> BytesIO:
    output = BytesIO()
    doc = SimpleDocTemplate(output, pagesize=letter,
                            rightMargin=72, leftMargin=72,
                            topMargin=72, bottomMargin=54)
    doc.build(markdown_to_paragraphs(markdown, binder_styles(color, centered)))
    output.seek(0)
    return output
