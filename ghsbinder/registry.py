import logging
from datetime import date
from typing import Optional

from pydantic import BaseModel, ValidationError

from ghsbinder.deployer import BinderDeployer
from ghsbinder.exceptions import ChemicalNotFound, InvalidChemical
from ghsbinder.models import (
    ChemicalInput,
    ChemicalPatch,
    ChemicalRecord,
    CustomerConfig,
    DeploymentResult,
    DocumentInput,
    DocumentRef,
    pdf_url
)
from ghsbinder.utils.ids import derive_chemical_id
from ghsbinder.utils.store import CustomerStore
from ghsbinder.utils.templater import Templater

log = logging.getLogger(__name__)

DOCUMENT_TITLES = {
    "literature": "{name} Product Literature",
    "sds": "{name} Safety Data Sheet",
}


class ChemicalChange(BaseModel):
    chemical: ChemicalRecord
    total_chemicals: int
    deployment: Optional[DeploymentResult] = None


class ChemicalListing(BaseModel):
    customer: str
    total: int
    active: int
    inactive: int
    chemicals: list[ChemicalRecord]


class BulkItemResult(BaseModel):
    chemical: str
    success: bool
    error: Optional[str] = None


class BulkResult(BaseModel):
    success: bool
    total: int
    succeeded: int
    failed: int
    results: list[BulkItemResult]


def validation_message(error: ValidationError) -> str:
    missing = [".".join(str(part) for part in e["loc"]) for e in error.errors() if e["type"] == "missing"]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    return "; ".join(
        f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in error.errors()
    )


def validate_chemical_data(data: dict) -> ChemicalInput:
    try:
        return ChemicalInput.model_validate(data)
    except ValidationError as e:
        raise InvalidChemical(validation_message(e)) from e


def validate_chemical_patch(data: dict) -> ChemicalPatch:
    try:
        return ChemicalPatch.model_validate(data)
    except ValidationError as e:
        raise InvalidChemical(validation_message(e)) from e


def document_ref(kind: str, document: DocumentInput, chemical_name: str) -> DocumentRef:
    return DocumentRef(
        filename=document.filename,
        url=pdf_url(document.filename),
        title=document.title or DOCUMENT_TITLES[kind].format(name=chemical_name),
    )


class ChemicalManager:
    """Edits the chemical list of one customer's configuration.

    Every mutation persists the configuration and, unless ``redeploy=False``,
    republishes the site before returning. A failed redeploy raises after the
    configuration has been saved.
    """

    def __init__(self, store: CustomerStore, deployer: BinderDeployer, templater: Templater):
        self.store = store
        self.deployer = deployer
        self.templater = templater

    async def _commit(self, config: CustomerConfig, redeploy: bool) -> Optional[DeploymentResult]:
        config.site_settings.last_updated = date.today()
        self.store.save(config)
        if not redeploy:
            return None
        return await self.deployer.deploy_and_record(config)

    async def add(self, slug: str, data: dict, redeploy: bool = True) -> ChemicalChange:
        chemical_input = validate_chemical_data(data)
        chemical_id = derive_chemical_id(chemical_input.name)
        if not chemical_id:
            raise InvalidChemical(f'Cannot derive an id from name "{chemical_input.name}"')

        config = self.store.load(slug)
        log.info('Adding chemical "%s" to %s...', chemical_input.name, slug)

        if config.find_chemical(chemical_id) is not None:
            log.warning('Chemical "%s" already exists. Updating...', chemical_input.name)
            patch = ChemicalPatch(**chemical_input.model_dump(exclude_none=True), active=True)
            return await self._update(config, chemical_id, patch, redeploy)

        today = date.today()
        chemical = ChemicalRecord(
            id=chemical_id,
            name=chemical_input.name,
            literature=document_ref("literature", chemical_input.literature, chemical_input.name),
            sds=document_ref("sds", chemical_input.sds, chemical_input.name),
            last_updated=today,
            active=True,
            **chemical_input.model_dump(include={"description", "hazards", "supplier"}, exclude_none=True),
        )
        config.chemicals.append(chemical)

        deployment = await self._commit(config, redeploy)
        log.info('Chemical "%s" added successfully', chemical.name)
        return ChemicalChange(
            chemical=chemical,
            total_chemicals=len(config.active_chemicals()),
            deployment=deployment,
        )

    async def remove(self, slug: str, chemical_id: str, redeploy: bool = True) -> ChemicalChange:
        config = self.store.load(slug)
        chemical = config.find_chemical(chemical_id)
        if chemical is None:
            raise ChemicalNotFound(chemical_id)

        log.info('Removing chemical "%s" from %s...', chemical_id, slug)
        # Kept in the list for the audit trail
        chemical.active = False
        chemical.deactivated_date = date.today()

        deployment = await self._commit(config, redeploy)
        log.info('Chemical "%s" removed successfully', chemical.name)
        return ChemicalChange(
            chemical=chemical,
            total_chemicals=len(config.active_chemicals()),
            deployment=deployment,
        )

    async def update(self, slug: str, chemical_id: str, data: dict,
                     redeploy: bool = True) -> ChemicalChange:
        patch = validate_chemical_patch(data)
        config = self.store.load(slug)
        return await self._update(config, chemical_id, patch, redeploy)

    async def _update(self, config: CustomerConfig, chemical_id: str, patch: ChemicalPatch,
                      redeploy: bool) -> ChemicalChange:
        chemical = config.find_chemical(chemical_id)
        if chemical is None:
            raise ChemicalNotFound(chemical_id)

        log.info('Updating chemical "%s" for %s...', chemical_id, config.slug)
        for name in ("name", "description", "hazards", "supplier"):
            value = getattr(patch, name)
            if value is not None:
                setattr(chemical, name, value)
        for kind in ("literature", "sds"):
            document = getattr(patch, kind)
            if document is not None:
                current = getattr(chemical, kind)
                if document.title is None:
                    document = document.model_copy(update={"title": current.title})
                setattr(chemical, kind, document_ref(kind, document, chemical.name))
        if patch.active is not None:
            chemical.active = patch.active
            chemical.deactivated_date = None if patch.active else date.today()
        chemical.last_updated = date.today()

        deployment = await self._commit(config, redeploy)
        log.info('Chemical "%s" updated successfully', chemical.name)
        return ChemicalChange(
            chemical=chemical,
            total_chemicals=len(config.active_chemicals()),
            deployment=deployment,
        )

    async def bulk_add(self, slug: str, items: list[dict], redeploy: bool = True) -> BulkResult:
        log.info("Bulk updating %d chemicals for %s...", len(items), slug)
        results = []
        for data in items:
            name = str(data.get("name", "")) if isinstance(data, dict) else ""
            try:
                await self.add(slug, data, redeploy=redeploy)
            except Exception as e:
                log.error('Failed to add chemical "%s": %s', name, e)
                results.append(BulkItemResult(chemical=name, success=False, error=str(e)))
            else:
                results.append(BulkItemResult(chemical=name, success=True))

        failed = sum(1 for result in results if not result.success)
        log.info("Bulk update complete: %d success, %d failed", len(results) - failed, failed)
        return BulkResult(
            success=failed == 0,
            total=len(items),
            succeeded=len(results) - failed,
            failed=failed,
            results=results,
        )

    def list_chemicals(self, slug: str, include_inactive: bool = False) -> ChemicalListing:
        config = self.store.load(slug)
        active = config.active_chemicals()
        chemicals = config.chemicals if include_inactive else active
        return ChemicalListing(
            customer=config.customer_info.name,
            total=len(chemicals),
            active=len(active),
            inactive=len(config.chemicals) - len(active),
            chemicals=chemicals,
        )

    def generate_checklist(self, slug: str) -> str:
        return self.templater.render_checklist(self.store.load(slug))
