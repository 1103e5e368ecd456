from datetime import datetime
from io import BytesIO

import pytest
from PyPDF2 import PdfReader

from ghsbinder.utils import binder, pages
from ghsbinder.utils.templater import Templater
from tests.conftest import blank_pdf, chemical_record

OUTLINE = [
    "Cover",
    "Table of Contents",
    "OSHA Compliance Information",
    "Chemical 1: Acetone",
    "Acetone - Literature",
    "Acetone - SDS",
    "Chemical 2: Toluene",
    "Toluene - SDS",
    "Contact Information",
    "Legal Disclaimers",
]


@pytest.fixture
def config(store, dirs):
    config = store.create({
        "name": "Acme Chemical",
        "slug": "acme",
        "phone": "555-0100",
        "emergency": "1-800-424-9300",
    })
    config.chemicals = [
        chemical_record("Acetone", "acetone_lit.pdf", "acetone_sds.pdf"),
        chemical_record("Toluene", "toluene_lit.pdf", "toluene_sds.pdf"),
        chemical_record("Xylene", "xylene_lit.pdf", "xylene_sds.pdf", active=False),
    ]
    (dirs["pdfs"] / "acetone_lit.pdf").write_bytes(blank_pdf())
    (dirs["pdfs"] / "acetone_sds.pdf").write_bytes(blank_pdf(pages=2))
    (dirs["pdfs"] / "toluene_sds.pdf").write_bytes(blank_pdf())
    (dirs["pdfs"] / "xylene_sds.pdf").write_bytes(blank_pdf())
    return config


def page_text(reader, index):
    return reader.pages[index].extract_text()


def test_merge_pdf_adds_outline_items():
    merged = binder.merge_pdf([("First", BytesIO(blank_pdf())), ("Second", BytesIO(blank_pdf()))])

    reader = PdfReader(merged)
    assert len(reader.pages) == 2
    assert [item.title for item in reader.outline] == ["First", "Second"]


def test_assemble_merges_active_documents(config, dirs):
    assembled = binder.assemble(config, dirs["pdfs"])

    assert assembled.chemicals == 2
    assert assembled.documents == ["acetone_lit.pdf", "acetone_sds.pdf", "toluene_sds.pdf"]
    assert assembled.missing == ["toluene_lit.pdf"]
    assert assembled.size > 0

    reader = PdfReader(assembled.pdf)
    # Cover, contents, compliance, two dividers, four document pages, contact, disclaimers
    assert len(reader.pages) == 11
    assert assembled.pages == 11
    assert [item.title for item in reader.outline] == OUTLINE


def test_generated_pages_carry_customer_details(config, dirs):
    assembled = binder.assemble(config, dirs["pdfs"], Templater(), datetime(2025, 3, 14))
    reader = PdfReader(assembled.pdf)

    cover = page_text(reader, 0)
    assert "GHS Safety Data Binder" in cover
    assert "Acme Chemical" in cover
    assert "1-800-424-9300" in cover
    assert "March 14, 2025" in cover

    assert "29 CFR 1910.1200" in page_text(reader, 2)

    divider = page_text(reader, 7)
    assert "Chemical 2" in divider
    assert "Toluene" in divider
    assert "toluene_lit.pdf" in divider

    contact = page_text(reader, 9)
    assert "555-0100" in contact
    assert "Not specified" in contact

    assert "Acme Chemical is solely responsible" in page_text(reader, 10)


def test_contents_page_numbers(config, dirs):
    reader = PdfReader(binder.assemble(config, dirs["pdfs"]).pdf)

    contents = page_text(reader, 1)
    assert "Table of Contents" in contents
    assert "(page 3)" in contents
    assert "Acetone (page 4)" in contents
    assert "Toluene (page 8)" in contents
    assert "(page 10)" in contents
    assert "(page 11)" in contents


def test_customer_text_is_not_parsed_as_markup(config, dirs):
    config.customer_info.name = "Smith & <Sons>"
    config.customer_info.branding.primary_color = "not-a-colour"

    reader = PdfReader(binder.assemble(config, dirs["pdfs"]).pdf)

    assert "Smith & <Sons>" in page_text(reader, 0)


def test_binder_without_chemicals(store, dirs):
    config = store.create({"name": "Empty Co", "slug": "empty"})

    assembled = binder.assemble(config, dirs["pdfs"])

    assert assembled.documents == []
    assert [item.title for item in PdfReader(assembled.pdf).outline] == [
        "Cover",
        "Table of Contents",
        "OSHA Compliance Information",
        "Contact Information",
        "Legal Disclaimers",
    ]


def test_write_stores_binder_per_customer(config, dirs):
    path, assembled = binder.write(config, dirs["pdfs"])

    assert path == dirs["pdfs"] / "acme" / "complete_ghs_binder.pdf"
    assert path.read_bytes() == assembled.pdf.getvalue()
    assert len(PdfReader(path).pages) == 11


def test_markdown_to_paragraphs_maps_line_kinds():
    styles = pages.binder_styles(pages.brand_color("#3498db"))

    flowables = pages.markdown_to_paragraphs("# Title\n\n- item\n*note*\n**Bold:** text", styles)

    paragraphs = [f for f in flowables if hasattr(f, "style")]
    assert [p.style.name for p in paragraphs] == [
        "BinderTitle", "BinderBullet", "BinderBody", "BinderBody",
    ]


def test_inline_escapes_before_adding_bold():
    assert pages.inline("**A & B** <c>") == "<b>A &amp; B</b> &lt;c&gt;"


def test_unusable_brand_color_falls_back():
    assert pages.brand_color("nope").hexval() == pages.brand_color(pages.DEFAULT_COLOR).hexval()
