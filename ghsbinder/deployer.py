import asyncio
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable
from urllib.parse import quote

import httpx

from ghsbinder.constants import (
    ASSETS_DIR,
    PAGES_SETTLE_SECONDS,
    PDFS_DIR,
    SITE_DIRECTORIES,
    SITE_VERSION,
    VERIFY_ATTEMPTS,
    VERIFY_BACKOFF_SECONDS,
    VERIFY_MIN_BYTES
)
from ghsbinder.exceptions import VerificationError
from ghsbinder.models import (
    DOCUMENT_LABELS,
    CustomerConfig,
    DeploymentInfo,
    DeploymentResult,
    QRCodes,
    SiteSettingsPatch
)
from ghsbinder.utils.binder import binder_path
from ghsbinder.utils.github import GitHubClient
from ghsbinder.utils.store import CustomerStore, pages_url
from ghsbinder.utils.templater import Templater

log = logging.getLogger(__name__)


class BinderDeployer:
    """Publishes one customer's binder site to GitHub Pages.

    Steps run strictly in sequence and any failure aborts the run. Nothing is
    rolled back; uploads are create-or-update, so re-running a failed deploy
    is the way to recover.
    """

    def __init__(
        self,
        github: GitHubClient,
        store: CustomerStore,
        templater: Templater,
        http: httpx.AsyncClient,
        pdfs_dir: Path = PDFS_DIR,
        assets_dir: Path = ASSETS_DIR,
        settle_seconds: float = PAGES_SETTLE_SECONDS,
        verify_attempts: int = VERIFY_ATTEMPTS,
        verify_backoff_seconds: float = VERIFY_BACKOFF_SECONDS,
        verify_min_bytes: int = VERIFY_MIN_BYTES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.github = github
        self.store = store
        self.templater = templater
        self.http = http
        self.pdfs_dir = Path(pdfs_dir)
        self.assets_dir = Path(assets_dir)
        self.settle_seconds = settle_seconds
        self.verify_attempts = max(1, verify_attempts)
        self.verify_backoff_seconds = verify_backoff_seconds
        self.verify_min_bytes = verify_min_bytes
        self.sleep = sleep

    @property
    def owner(self) -> str:
        return self.github.owner

    def site_url(self, config: CustomerConfig) -> str:
        return pages_url(self.owner, config.repo_name)

    async def deploy(self, config: CustomerConfig) -> DeploymentResult:
        customer = config.customer_info
        log.info("Deploying GHS binder for %s...", customer.name)

        repository = await self.github.create_repository(
            config.repo_name,
            description=(
                f"GHS Safety Binder for {customer.name} - "
                "Professional chemical safety documentation portal"
            ),
            homepage=customer.github_repo.url,
        )
        repo = repository.name
        branch = repository.default_branch
        log.info("Using repository branch: %s", branch)

        html = self.templater.render_site(config)

        await self.create_directory_structure(repo, branch)

        await self.github.upload_text_file(
            repo, "index.html", html, "Deploy GHS safety binder website", branch,
        )
        await self.github.upload_text_file(
            repo, "README.md", self.templater.render_readme(config),
            "Add repository documentation", branch,
        )

        await self.upload_customer_assets(repo, config.slug, branch)
        uploaded, skipped = await self.upload_documents(repo, config, branch)

        await self.github.enable_pages(repo, branch)

        log.info("Waiting %s seconds for GitHub Pages to refresh...", self.settle_seconds)
        await self.sleep(self.settle_seconds)
        await self.verify_documents(self.site_url(config), uploaded)

        qr_codes = self.generate_qr_codes(config)
        log.info("Successfully deployed: %s", repository.html_url or self.site_url(config))

        return DeploymentResult(
            repository=repository,
            url=self.site_url(config),
            qr_codes=qr_codes,
            deployment_info=DeploymentInfo(
                deployed_at=datetime.now(timezone.utc),
                version=SITE_VERSION,
                total_chemicals=len(config.active_chemicals()),
            ),
            uploaded_documents=uploaded,
            skipped_documents=skipped,
        )

    async def create_directory_structure(self, repo: str, branch: str) -> None:
        # .nojekyll goes first so Pages serves the PDFs byte for byte
        await self.github.upload_text_file(
            repo, ".nojekyll", "", "Disable Jekyll processing for GitHub Pages", branch,
        )
        for directory in SITE_DIRECTORIES:
            await self.github.upload_text_file(
                repo, f"{directory}/.gitkeep", "", f"Create {directory} directory", branch,
            )

    async def upload_customer_assets(self, repo: str, slug: str, branch: str) -> list[str]:
        customer_assets = self.assets_dir / slug
        if not customer_assets.is_dir():
            log.info("No assets folder found for customer %s, skipping asset upload", slug)
            return []

        uploaded = []
        for path in sorted(customer_assets.iterdir()):
            if path.is_dir() or path.name.startswith("."):
                continue
            log.info("Uploading %s asset: %s", slug, path.name)
            await self.github.upload_binary_file(
                repo, f"assets/{path.name}", path.read_bytes(),
                f"Upload {slug} asset: {path.name}", branch,
            )
            uploaded.append(path.name)
        log.info("Customer %s assets upload complete (%d files)", slug, len(uploaded))
        return uploaded

    async def upload_documents(self, repo: str, config: CustomerConfig,
                               branch: str) -> tuple[list[str], list[str]]:
        """Uploads every active chemical's PDFs; returns (uploaded, skipped) filenames."""
        chemicals = config.active_chemicals()
        log.info("Uploading PDFs for %d chemicals...", len(chemicals))

        uploaded, skipped = [], []
        for chemical in chemicals:
            for kind, document in chemical.documents():
                label = DOCUMENT_LABELS[kind]
                path = self.pdfs_dir / document.filename
                if not path.is_file():
                    log.warning("%s PDF not found: %s", label, path)
                    skipped.append(document.filename)
                    continue

                log.info("Uploading %s: %s to branch %s", label, document.filename, branch)
                await self.github.upload_binary_file(
                    repo, f"pdfs/{document.filename}", path.read_bytes(),
                    f"Upload {label} PDF for {chemical.name}", branch,
                )
                uploaded.append(document.filename)

        binder = config.site_settings.complete_binder
        local_binder = binder_path(config, self.pdfs_dir)
        if local_binder.is_file():
            log.info("Uploading complete binder: %s", binder.filename)
            await self.github.upload_binary_file(
                repo, f"pdfs/{binder.filename}", local_binder.read_bytes(),
                "Upload complete GHS binder PDF", branch,
            )
            uploaded.append(binder.filename)
        return uploaded, skipped

    async def check_document(self, url: str) -> None:
        try:
            response = await self.http.head(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise VerificationError(url, str(e)) from e

        if not response.is_success:
            raise VerificationError(url, f"HTTP {response.status_code}")

        content_type = response.headers.get("content-type", "")
        try:
            content_length = int(response.headers.get("content-length", "0"))
        except ValueError:
            content_length = 0
        if "pdf" not in content_type or content_length < self.verify_min_bytes:
            raise VerificationError(
                url, f"Unexpected type/size: {content_type or 'unknown'}, {content_length} bytes",
            )

    async def verify_documents(self, base_url: str, filenames: list[str]) -> None:
        log.info("Verifying uploaded PDFs on GitHub Pages...")
        for filename in filenames:
            url = f"{base_url}/pdfs/{quote(filename)}"
            log.info("Checking %s", url)
            for attempt in range(1, self.verify_attempts + 1):
                try:
                    await self.check_document(url)
                    break
                except VerificationError as e:
                    if attempt == self.verify_attempts:
                        raise
                    delay = self.verify_backoff_seconds * attempt
                    log.warning("%s; retrying in %s seconds", e, delay)
                    await self.sleep(delay)
        log.info("All %d PDFs verified successfully", len(filenames))

    def generate_qr_codes(self, config: CustomerConfig) -> QRCodes:
        base_url = self.site_url(config)
        # Only the target URLs; image rendering happens elsewhere
        return QRCodes(
            main_site=base_url,
            mobile_optimized=f"{base_url}?mobile=1",
            emergency_access=f"{base_url}?emergency=1",
        )

    async def deploy_customer(self, slug: str) -> DeploymentResult:
        config = self.store.load(slug)
        return await self.deploy_and_record(config)

    async def deploy_and_record(self, config: CustomerConfig) -> DeploymentResult:
        """Deploys and stamps the deployment status into the stored configuration."""
        try:
            result = await self.deploy(config)
        except Exception:
            log.error("Deployment failed for %s", config.slug)
            config.deployment.status = "failed"
            self.store.save(config)
            raise

        config.deployment.status = "deployed"
        config.deployment.last_deployed = result.deployment_info.deployed_at
        config.deployment.version = result.deployment_info.version
        self.store.save(config)
        return result

    async def update_customer_site(self, slug: str, patch: SiteSettingsPatch) -> DeploymentResult:
        config = self.store.load(slug)
        settings = config.site_settings
        for field in patch.model_fields_set:
            value = getattr(patch, field)
            if value is not None:
                setattr(settings, field, value)
        settings.last_updated = date.today()
        self.store.save(config)
        return await self.deploy_and_record(config)

    async def delete_customer_site(self, slug: str) -> None:
        config = self.store.load(slug)
        await self.github.delete_repository(config.repo_name)
        self.store.delete(slug)
        log.info("Deleted customer site: %s", slug)
