from datetime import date, datetime
from typing import List, Literal, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ghsbinder.constants import COMPLETE_BINDER_FILENAME, REPO_SUFFIX

DOCUMENT_LABELS = {"literature": "Literature", "sds": "SDS"}


def pdf_url(filename: str) -> str:
    return f"pdfs/{quote(filename)}"


def required_name(name: str) -> str:
    if not name.strip():
        raise ValueError("name is required")
    return name.strip()


class StoredModel(BaseModel):
    # Keys written by older tooling survive a load/save cycle.
    model_config = ConfigDict(extra="allow")


class Contact(StoredModel):
    company: str = ""
    phone: str = ""
    email: str = ""
    emergency: str = ""
    address: str = ""


class Branding(StoredModel):
    logo_url: str = "assets/customer_logo.png"
    primary_color: str = "#3498db"
    secondary_color: str = "#2c3e50"


class GitHubRepo(StoredModel):
    name: str
    url: str
    custom_domain: str = ""


class CustomerInfo(StoredModel):
    name: str
    slug: str
    contact: Contact = Field(default_factory=Contact)
    branding: Branding = Field(default_factory=Branding)
    github_repo: GitHubRepo


class DocumentRef(StoredModel):
    filename: str
    url: str
    title: str


class ChemicalRecord(StoredModel):
    id: str
    name: str
    description: str = "Professional chemical product"
    hazards: str = "See Safety Data Sheet for complete hazard information"
    literature: DocumentRef
    sds: DocumentRef
    supplier: str = "Unknown Supplier"
    last_updated: date
    active: bool = True
    deactivated_date: Optional[date] = None

    def documents(self) -> list[tuple[str, DocumentRef]]:
        return [("literature", self.literature), ("sds", self.sds)]


class Analytics(StoredModel):
    google_analytics_id: str = ""
    track_downloads: bool = True
    track_views: bool = True


class Seo(StoredModel):
    meta_description: str = ""
    meta_keywords: str = "GHS, safety data sheet, SDS, chemical safety, OSHA compliance"
    robots: str = "index, follow"


class SiteSettings(StoredModel):
    last_updated: date
    generation_date: datetime
    complete_binder: DocumentRef = Field(default_factory=lambda: DocumentRef(
        filename=COMPLETE_BINDER_FILENAME,
        url=pdf_url(COMPLETE_BINDER_FILENAME),
        title="Complete GHS Safety Binder",
    ))
    analytics: Analytics = Field(default_factory=Analytics)
    seo: Seo = Field(default_factory=Seo)


class Deployment(StoredModel):
    status: Literal["created", "deployed", "failed"] = "created"
    created: datetime
    last_deployed: Optional[datetime] = None
    version: str
    auto_update: bool = True


class CustomerConfig(StoredModel):
    customer_info: CustomerInfo
    chemicals: List[ChemicalRecord] = []
    site_settings: SiteSettings
    deployment: Deployment

    @property
    def slug(self) -> str:
        return self.customer_info.slug

    @property
    def repo_name(self) -> str:
        return self.customer_info.github_repo.name

    def active_chemicals(self) -> list[ChemicalRecord]:
        return [chemical for chemical in self.chemicals if chemical.active]

    def find_chemical(self, chemical_id: str) -> Optional[ChemicalRecord]:
        return next((c for c in self.chemicals if c.id == chemical_id), None)


class CustomerCreate(BaseModel):
    name: str
    slug: str
    phone: str = ""
    email: str = ""
    emergency: str = ""
    address: str = ""
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    custom_domain: str = ""

    def repo_name(self) -> str:
        return f"{self.slug}{REPO_SUFFIX}"


class DocumentInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filename: str
    title: Optional[str] = None

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, filename):
        if not filename:
            raise ValueError("filename is required")
        if not filename.lower().endswith(".pdf"):
            raise ValueError("file must be a PDF")
        return filename


class ChemicalInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    description: Optional[str] = None
    hazards: Optional[str] = None
    literature: DocumentInput
    sds: DocumentInput
    supplier: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, name):
        return required_name(name)


class ChemicalPatch(BaseModel):
    """Named fields that may be changed on an existing chemical."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    hazards: Optional[str] = None
    literature: Optional[DocumentInput] = None
    sds: Optional[DocumentInput] = None
    supplier: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, name):
        if name is None:
            return name
        return required_name(name)


class SiteSettingsPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    complete_binder: Optional[DocumentRef] = None
    analytics: Optional[Analytics] = None
    seo: Optional[Seo] = None


class Repository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    full_name: str = ""
    html_url: str = ""
    default_branch: str = "main"


class QRCodes(BaseModel):
    main_site: str
    mobile_optimized: str
    emergency_access: str


class DeploymentInfo(BaseModel):
    deployed_at: datetime
    version: str
    total_chemicals: int


class DeploymentResult(BaseModel):
    success: bool = True
    repository: Repository
    url: str
    qr_codes: QRCodes
    deployment_info: DeploymentInfo
    uploaded_documents: List[str] = []
    skipped_documents: List[str] = []


class CustomerSummary(BaseModel):
    name: str
    slug: str
    url: str
    chemicals: int
    last_updated: date


class MissingFile(BaseModel):
    type: Literal["literature", "sds"]
    chemical: str
    filename: str


class FileStatus(BaseModel):
    customer: str
    slug: str
    total_files: int = 0
    total_chemicals: int = 0
    missing_files: List[MissingFile] = []
    orphaned_files: List[str] = []
    status: Literal["complete", "incomplete", "error"]
    error: Optional[str] = None


class StagedFile(BaseModel):
    filename: str
    size: int
    modified: datetime
    url: str
    type: str
