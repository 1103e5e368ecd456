import json
from datetime import date

import pytest

from ghsbinder.exceptions import CustomerNotFound, InvalidCustomer
from tests.conftest import OWNER, chemical_record


def test_create_applies_defaults(store, dirs):
    config = store.create({"name": "Acme Chemical", "slug": "acme", "email": "safety@acme.test"})

    assert config.repo_name == "acme-ghs-binder"
    assert config.customer_info.github_repo.url == f"https://{OWNER}.github.io/acme-ghs-binder"
    assert config.customer_info.contact.company == "Acme Chemical"
    assert config.customer_info.contact.email == "safety@acme.test"
    assert config.customer_info.branding.primary_color == "#3498db"
    assert config.customer_info.branding.secondary_color == "#2c3e50"
    assert config.site_settings.complete_binder.url == "pdfs/complete_ghs_binder.pdf"
    assert config.site_settings.analytics.track_downloads
    assert "Acme Chemical" in config.site_settings.seo.meta_description
    assert config.deployment.status == "created"
    assert config.chemicals == []

    assert (dirs["configs"] / "acme.json").is_file()
    assert (dirs["uploads"] / "acme").is_dir()


def test_create_keeps_given_branding(store):
    config = store.create({"name": "Acme", "slug": "acme", "primary_color": "#ff0000"})
    assert config.customer_info.branding.primary_color == "#ff0000"
    assert config.customer_info.branding.secondary_color == "#2c3e50"


def test_create_refuses_existing_slug(store):
    store.create({"name": "Acme", "slug": "acme"})
    with pytest.raises(InvalidCustomer, match="already exists"):
        store.create({"name": "Acme Again", "slug": "acme"})


@pytest.mark.parametrize("data", [
    {"name": "Acme"},
    {"slug": "acme"},
    {"name": "", "slug": "acme"},
    {"name": "Acme", "slug": "Acme Chemical"},
])
def test_build_rejects_invalid_input(store, data):
    with pytest.raises(InvalidCustomer):
        store.build(data)


def test_load_unknown_customer(store):
    with pytest.raises(CustomerNotFound):
        store.load("nobody")


def test_load_rejects_path_like_slug(store):
    with pytest.raises(CustomerNotFound):
        store.load("../secrets")


def test_round_trip_preserves_unknown_keys(store, dirs):
    config = store.create({"name": "Acme", "slug": "acme"})
    path = dirs["configs"] / "acme.json"
    data = json.loads(path.read_text())
    data["customer_info"]["account_manager"] = "J. Smith"
    path.write_text(json.dumps(data))

    config = store.load("acme")
    config.chemicals.append(chemical_record("Acetone", "acetone_lit.pdf", "acetone_sds.pdf"))
    store.save(config)

    saved = json.loads(path.read_text())
    assert saved["customer_info"]["account_manager"] == "J. Smith"
    assert saved["chemicals"][0]["last_updated"] == "2024-01-15"


def test_listing_skips_template_file(store, dirs):
    store.create({"name": "Acme", "slug": "acme"})
    store.create({"name": "Beta Labs", "slug": "beta-labs"})
    (dirs["configs"] / "customer_template.json").write_text("{}")

    assert store.config_slugs() == ["acme", "beta-labs"]
    assert [config.slug for config in store.list_configs()] == ["acme", "beta-labs"]


def test_listing_without_configs_dir(tmp_path):
    from ghsbinder.utils.store import CustomerStore

    assert CustomerStore(tmp_path / "missing").config_slugs() == []


def test_summaries_count_active_chemicals(store):
    config = store.create({"name": "Acme", "slug": "acme"})
    config.chemicals = [
        chemical_record("Acetone", "a_lit.pdf", "a_sds.pdf"),
        chemical_record("Xylene", "x_lit.pdf", "x_sds.pdf", active=False),
    ]
    store.save(config)

    [summary] = store.summaries()
    assert summary.name == "Acme"
    assert summary.chemicals == 1
    assert summary.url == f"https://{OWNER}.github.io/acme-ghs-binder"
    assert summary.last_updated == date.today()


def test_delete(store):
    store.create({"name": "Acme", "slug": "acme"})
    store.delete("acme")
    assert not store.exists("acme")
    with pytest.raises(CustomerNotFound):
        store.delete("acme")
