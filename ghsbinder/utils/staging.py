import logging
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

from ghsbinder.constants import UPLOADS_DIR
from ghsbinder.exceptions import BinderError, CustomerNotFound, InvalidUpload, StagedFileNotFound
from ghsbinder.models import CustomerConfig, FileStatus, MissingFile, StagedFile
from ghsbinder.utils.store import CustomerStore

log = logging.getLogger(__name__)


def staged_filenames(staging_dir: Path) -> list[str]:
    """Files in a staging directory; a directory that does not exist holds none."""
    try:
        return sorted(path.name for path in Path(staging_dir).iterdir() if path.is_file())
    except FileNotFoundError:
        return []


def reconcile(config: CustomerConfig, staging_dir: Path) -> FileStatus:
    files = staged_filenames(staging_dir)
    present = set(files)
    referenced = set()
    missing = []
    for chemical in config.active_chemicals():
        for kind, document in chemical.documents():
            referenced.add(document.filename)
            if document.filename not in present:
                missing.append(MissingFile(type=kind, chemical=chemical.name, filename=document.filename))

    return FileStatus(
        customer=config.customer_info.name,
        slug=config.slug,
        total_files=len(files),
        total_chemicals=len(config.active_chemicals()),
        missing_files=missing,
        orphaned_files=[filename for filename in files if filename not in referenced],
        status="complete" if not missing else "incomplete",
    )


class StagingArea:
    """Per-customer directories holding files uploaded through the dashboard."""

    def __init__(self, store: CustomerStore, uploads_dir: Path = UPLOADS_DIR):
        self.store = store
        self.uploads_dir = Path(uploads_dir)

    def directory(self, slug: str) -> Path:
        # Only customers with a stored configuration get a staging directory
        if not self.store.exists(slug):
            raise CustomerNotFound(slug)
        return self.uploads_dir / slug

    @staticmethod
    def safe_name(filename: str) -> str:
        name = Path(filename or "").name
        if name in ("", ".", ".."):
            raise InvalidUpload(f'Invalid filename "{filename}"')
        return name

    @staticmethod
    def describe(slug: str, path: Path) -> StagedFile:
        stats = path.stat()
        return StagedFile(
            filename=path.name,
            size=stats.st_size,
            modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            url=f"/uploads/{slug}/{quote(path.name)}",
            type=path.suffix.lower(),
        )

    def list_files(self, slug: str) -> list[StagedFile]:
        directory = self.directory(slug)
        return [self.describe(slug, directory / filename) for filename in staged_filenames(directory)]

    def save(self, slug: str, filename: str, content: bytes) -> StagedFile:
        directory = self.directory(slug)
        directory.mkdir(parents=True, exist_ok=True)
        name = self.safe_name(filename)
        path = directory / name
        path.write_bytes(content)
        log.info("Staged %s for %s (%d bytes)", name, slug, len(content))
        return self.describe(slug, path)

    def delete(self, slug: str, filename: str) -> None:
        path = self.directory(slug) / self.safe_name(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            raise StagedFileNotFound(slug, filename) from None
        log.info("Deleted staged file %s for %s", path.name, slug)

    def status(self, slug: str) -> FileStatus:
        return reconcile(self.store.load(slug), self.directory(slug))

    def status_report(self) -> list[FileStatus]:
        report = []
        for slug in self.store.config_slugs():
            try:
                report.append(self.status(slug))
            except (BinderError, ValueError) as e:
                log.error("Could not load configuration for %s: %s", slug, e)
                report.append(FileStatus(
                    customer=slug,
                    slug=slug,
                    status="error",
                    error="Could not load customer configuration",
                ))
        return report
