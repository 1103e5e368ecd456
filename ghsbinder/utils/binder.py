import logging
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional

from PyPDF2 import PdfMerger, PdfReader

from ghsbinder.constants import PDFS_DIR
from ghsbinder.models import DOCUMENT_LABELS, CustomerConfig
from ghsbinder.utils import pages
from ghsbinder.utils.templater import Templater

log = logging.getLogger(__name__)

Section = tuple[str, BytesIO]


@dataclass
class AssembledBinder:
    pdf: BytesIO
    chemicals: int
    documents: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    pages: int = 0

    @property
    def size(self) -> int:
        return len(self.pdf.getbuffer())


def binder_path(config: CustomerConfig, pdfs_dir: Path = PDFS_DIR) -> Path:
    """Local home of a customer's complete binder; the PDF directory itself is shared."""
    return Path(pdfs_dir) / config.slug / config.site_settings.complete_binder.filename


def page_count(pdf: BytesIO) -> int:
    count = len(PdfReader(pdf).pages)
    pdf.seek(0)
    return count


def merge_pdf(pdfs: list[Section]) -> BytesIO:
    bytesio = BytesIO()
    merger = PdfMerger()
    for title, pdf in pdfs:
        merger.append(pdf, outline_item=title)
    merger.write(bytesio)
    merger.close()
    bytesio.seek(0)
    return bytesio


def assemble(config: CustomerConfig, pdfs_dir: Path = PDFS_DIR,
             templater: Optional[Templater] = None,
             generated_at: Optional[datetime] = None) -> AssembledBinder:
    """Builds the complete binder of a customer.

    Generated cover, contents and compliance pages come first, then one numbered
    chapter per active chemical (a divider page followed by its literature and SDS),
    then the contact and disclaimer pages. Every section gets an outline entry.
    """
    templater = templater or Templater()
    color = pages.brand_color(config.customer_info.branding.primary_color)

    def render(name: str, centered: bool = False, **context) -> BytesIO:
        markdown = templater.render_binder_page(name, config, generated_at, **context)
        return pages.render_pdf(markdown, color, centered)

    chemicals = config.active_chemicals()
    chapters, documents, missing = [], [], []
    for number, chemical in enumerate(chemicals, start=1):
        parts, absent = [], []
        for kind, document in chemical.documents():
            path = Path(pdfs_dir) / document.filename
            if not path.is_file():
                log.warning("%s PDF not found, leaving it out of the binder: %s",
                            DOCUMENT_LABELS[kind], path)
                absent.append(document.filename)
                continue
            parts.append((f"{chemical.name} - {DOCUMENT_LABELS[kind]}", BytesIO(path.read_bytes())))
            documents.append(document.filename)

        divider = render(
            "chemical",
            chemical=chemical,
            number=number,
            documents=[(DOCUMENT_LABELS[kind], document) for kind, document in chemical.documents()],
            missing=absent,
        )
        chapters.append([(f"Chemical {number}: {chemical.name}", divider), *parts])
        missing.extend(absent)

    cover = render("cover", centered=True)
    compliance = render("compliance")
    contact = render("contact")
    disclaimer = render("disclaimer")

    def contents(length: int) -> BytesIO:
        page = page_count(cover) + length + 1
        entries = [{"title": "1. Compliance Information", "page": page, "level": 0}]
        page += page_count(compliance)
        entries.append({"title": "2. Chemical Safety Documentation", "page": page, "level": 0})
        for number, (chemical, chapter) in enumerate(zip(chemicals, chapters), start=1):
            entries.append({"title": f"{number}. {chemical.name}", "page": page, "level": 1})
            page += sum(page_count(pdf) for _, pdf in chapter)
        entries.append({"title": "3. Contact Information", "page": page, "level": 0})
        page += page_count(contact)
        entries.append({"title": "4. Legal Disclaimers", "page": page, "level": 0})
        return render("contents", entries=entries)

    # Page numbers shift when the contents run past one page
    toc = contents(1)
    if page_count(toc) != 1:
        toc = contents(page_count(toc))

    sections = [
        ("Cover", cover),
        ("Table of Contents", toc),
        ("OSHA Compliance Information", compliance),
        *(section for chapter in chapters for section in chapter),
        ("Contact Information", contact),
        ("Legal Disclaimers", disclaimer),
    ]
    total = sum(page_count(pdf) for _, pdf in sections)
    return AssembledBinder(pdf=merge_pdf(sections), chemicals=len(chemicals),
                           documents=documents, missing=missing, pages=total)


def write(config: CustomerConfig, pdfs_dir: Path = PDFS_DIR,
          templater: Optional[Templater] = None) -> tuple[Path, AssembledBinder]:
    binder = assemble(config, pdfs_dir, templater)
    path = binder_path(config, pdfs_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(binder.pdf.getvalue())
    log.info("Complete binder generated: %s (%d documents, %d pages, %d KB)",
             path, len(binder.documents), binder.pages, binder.size // 1024)
    return path, binder
