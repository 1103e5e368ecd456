import json
import re
from datetime import datetime

import pytest

from ghsbinder.utils.templater import Templater
from tests.conftest import chemical_record

GENERATED_AT = datetime(2024, 3, 5, 9, 30)


@pytest.fixture
def templater():
    return Templater()


@pytest.fixture
def config(store):
    config = store.create({
        "name": "Acme Chemical",
        "slug": "acme",
        "phone": "555-0100",
        "emergency": "CHEMTREC 1-800-424-9300",
    })
    config.chemicals = [
        chemical_record("Acetone", "acetone_lit.pdf", "acetone_sds.pdf"),
        chemical_record("Toluene", "toluene_lit.pdf", "toluene_sds.pdf"),
        chemical_record("Xylene", "xylene_lit.pdf", "xylene_sds.pdf", active=False),
    ]
    return config


def embedded_products(html):
    match = re.search(r"const PRODUCTS = (.*);", html)
    return json.loads(match.group(1))


def test_site_data_uses_active_chemicals(templater, config):
    data = templater.site_data(config, GENERATED_AT)

    assert data["total_products"] == 2
    assert data["total_documents"] == 4
    assert data["generation_date"] == "March 05, 2024"
    assert data["complete_binder_url"] == "pdfs/complete_ghs_binder.pdf"
    assert [product["id"] for product in data["products"]] == ["acetone", "toluene"]
    assert data["customer_info"]["contact"]["phone"] == "555-0100"


def test_render_site(templater, config):
    html = templater.render_site(config, GENERATED_AT)

    assert "<title>Acme Chemical - GHS Safety Binder</title>" in html
    assert "CHEMTREC 1-800-424-9300" in html
    assert 'href="pdfs/acetone_sds.pdf"' in html
    assert "Xylene" not in html
    assert [product["name"] for product in embedded_products(html)] == ["Acetone", "Toluene"]


def test_render_site_escapes_customer_text(templater, config):
    config.customer_info.name = "Acme <script>alert(1)</script>"
    config.chemicals[0].name = "</script><b>Acetone</b>"

    html = templater.render_site(config, GENERATED_AT)

    assert "<script>alert(1)</script>" not in html
    assert "</script><b>" not in html
    assert embedded_products(html)[0]["name"] == "</script><b>Acetone</b>"


def test_render_site_is_deterministic(templater, config):
    assert templater.render_site(config, GENERATED_AT) == templater.render_site(config, GENERATED_AT)


def test_render_readme(templater, config):
    readme = templater.render_readme(config, GENERATED_AT)

    assert readme.startswith("# Acme Chemical - GHS Safety Binder")
    assert "**Total Products**: 2" in readme
    assert "**Total Documents**: 4" in readme
    assert "*Generated on March 05, 2024*" in readme


def test_render_checklist_without_chemicals(templater, config):
    config.chemicals = []
    checklist = templater.render_checklist(config, GENERATED_AT)

    assert "## Required Files (0 total)" in checklist
    assert "Generated on: March 05, 2024" in checklist
    assert "- **Repository**: acme-ghs-binder" in checklist


def test_render_binder_cover(templater, config):
    cover = templater.render_binder_page("cover", config, GENERATED_AT)

    assert cover.startswith("# GHS Safety Data Binder\n")
    assert "## Acme Chemical" in cover
    assert "- Total Chemical Products: 2" in cover
    assert "- Emergency Contact: CHEMTREC 1-800-424-9300" in cover
    assert "- Generated: March 05, 2024" in cover


def test_render_binder_contents(templater, config):
    contents = templater.render_binder_page("contents", config, GENERATED_AT, entries=[
        {"title": "1. Compliance Information", "page": 3, "level": 0},
        {"title": "1. Acetone", "page": 4, "level": 1},
    ])

    assert "**1. Compliance Information** (page 3)\n- 1. Acetone (page 4)\n" in contents


def test_render_binder_contact_defaults(templater, config):
    contact = templater.render_binder_page("contact", config, GENERATED_AT)

    assert "- Phone: 555-0100" in contact
    assert "- Email: Not specified" in contact
    assert "**Emergency Line:** CHEMTREC 1-800-424-9300" in contact
