import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from ghsbinder.constants import (
    CUSTOMER_CONFIGS_DIR,
    CUSTOMER_TEMPLATE_FILENAME,
    GITHUB_OWNER,
    SITE_VERSION,
    UPLOADS_DIR
)
from ghsbinder.exceptions import CustomerNotFound, InvalidCustomer
from ghsbinder.models import (
    Branding,
    Contact,
    CustomerConfig,
    CustomerCreate,
    CustomerInfo,
    CustomerSummary,
    Deployment,
    GitHubRepo,
    Seo,
    SiteSettings
)
from ghsbinder.utils.ids import is_valid_slug

log = logging.getLogger(__name__)


def pages_url(owner: str, repo_name: str) -> str:
    return f"https://{owner}.github.io/{repo_name}"


class CustomerStore:
    """One JSON document per customer, named ``<slug>.json``.

    Writes are plain overwrites; two writers on the same slug race and the
    last one wins.
    """

    def __init__(self, configs_dir: Path = CUSTOMER_CONFIGS_DIR,
                 uploads_dir: Path = UPLOADS_DIR, owner: str = GITHUB_OWNER):
        self.configs_dir = Path(configs_dir)
        self.uploads_dir = Path(uploads_dir)
        self.owner = owner

    def path_for(self, slug: str) -> Path:
        if not is_valid_slug(slug):
            raise CustomerNotFound(slug)
        return self.configs_dir / f"{slug}.json"

    def exists(self, slug: str) -> bool:
        return is_valid_slug(slug) and self.path_for(slug).is_file()

    def load(self, slug: str) -> CustomerConfig:
        path = self.path_for(slug)
        try:
            data = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise CustomerNotFound(slug) from None
        return self.parse(data)

    @staticmethod
    def parse(data: str) -> CustomerConfig:
        return CustomerConfig.model_validate_json(data)

    def load_file(self, path: Path) -> CustomerConfig:
        return self.parse(Path(path).read_text(encoding="utf-8"))

    def save(self, config: CustomerConfig) -> Path:
        path = self.path_for(config.slug)
        self.configs_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        log.debug("Saved configuration for %s to %s", config.slug, path)
        return path

    def delete(self, slug: str) -> None:
        try:
            self.path_for(slug).unlink()
        except FileNotFoundError:
            raise CustomerNotFound(slug) from None

    def config_slugs(self) -> list[str]:
        if not self.configs_dir.is_dir():
            return []
        return [
            path.stem for path in sorted(self.configs_dir.glob("*.json"))
            if path.name != CUSTOMER_TEMPLATE_FILENAME
        ]

    def iter_configs(self) -> Iterator[CustomerConfig]:
        for slug in self.config_slugs():
            yield self.load_file(self.configs_dir / f"{slug}.json")

    def list_configs(self) -> list[CustomerConfig]:
        return list(self.iter_configs())

    def summaries(self) -> list[CustomerSummary]:
        return [
            CustomerSummary(
                name=config.customer_info.name,
                slug=config.slug,
                url=pages_url(self.owner, config.repo_name),
                chemicals=len(config.active_chemicals()),
                last_updated=config.site_settings.last_updated,
            )
            for config in self.iter_configs()
        ]

    def build(self, data: dict) -> CustomerConfig:
        """Builds a fresh configuration with defaults from dashboard or CLI input."""
        if not data.get("name") or not data.get("slug"):
            raise InvalidCustomer("Customer name and slug are required")
        try:
            customer = CustomerCreate.model_validate(data)
        except ValidationError as e:
            raise InvalidCustomer(str(e)) from e
        if not is_valid_slug(customer.slug):
            raise InvalidCustomer(
                f'Invalid slug "{customer.slug}": use lowercase letters, digits and hyphens'
            )

        now = datetime.now(timezone.utc)
        repo_name = customer.repo_name()
        branding = Branding(**{
            key: value for key, value in {
                "logo_url": customer.logo_url,
                "primary_color": customer.primary_color,
                "secondary_color": customer.secondary_color,
            }.items() if value
        })
        return CustomerConfig(
            customer_info=CustomerInfo(
                name=customer.name,
                slug=customer.slug,
                contact=Contact(
                    company=customer.name,
                    phone=customer.phone,
                    email=customer.email,
                    emergency=customer.emergency,
                    address=customer.address,
                ),
                branding=branding,
                github_repo=GitHubRepo(
                    name=repo_name,
                    url=pages_url(self.owner, repo_name),
                    custom_domain=customer.custom_domain,
                ),
            ),
            chemicals=[],
            site_settings=SiteSettings(
                last_updated=date.today(),
                generation_date=now,
                seo=Seo(meta_description=(
                    f"Professional chemical safety documentation portal for {customer.name} "
                    "providing 24/7 access to GHS-compliant Safety Data Sheets and product literature."
                )),
            ),
            deployment=Deployment(status="created", created=now, version=SITE_VERSION),
        )

    def create(self, data: dict) -> CustomerConfig:
        config = self.build(data)
        if self.exists(config.slug):
            raise InvalidCustomer(f'Customer "{config.slug}" already exists')
        self.save(config)
        (self.uploads_dir / config.slug).mkdir(parents=True, exist_ok=True)
        log.info("Created customer %s (%s)", config.customer_info.name, config.slug)
        return config
