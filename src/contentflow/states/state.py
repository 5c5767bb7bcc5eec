from datetime import datetime
from typing import TypedDict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from contentflow.models.taxonomy import Objective, ContentType, Priority
from contentflow.models.work_order import WorkOrderStatus


class ApiModel(BaseModel):
    """Wire model: camelCase on the wire, snake_case in Python, unknown keys rejected."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def _normalize_brand(value: str | None) -> str | None:
    if value is None:
        return None
    brand = value.strip().upper()
    if not brand:
        raise ValueError("brand cannot be blank")
    return brand


# ── Import pipeline schemas ──────────────────────────────────────────────────

class ParsedIdea(ApiModel):
    """One structured idea produced by the import pipeline — not persisted until commit."""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    objective: Objective = Objective.ATTRACTION
    content_type: ContentType = Field(ContentType.CONVERSION, alias="type")
    priority: Priority = Priority.MEDIUM
    channels: list[str] = Field(default_factory=list)
    hook: Optional[str] = None
    cta: Optional[str] = None
    script: Optional[str] = None
    caption: Optional[str] = None
    deadline: Optional[str] = None
    publish_date: Optional[str] = None
    raw_media_links: list[str] = Field(default_factory=list)

    @field_validator("brand")
    @classmethod
    def upper_brand(cls, value):
        return _normalize_brand(value)


class ParseMetadata(ApiModel):
    provider: str
    text_length: int
    items_detected: int


class ParseResult(ApiModel):
    items: list[ParsedIdea]
    metadata: ParseMetadata


class CommitError(ApiModel):
    item: str
    error: str


class CommitResult(ApiModel):
    created: int = 0
    skipped: int = 0
    errors: list[CommitError] = Field(default_factory=list)


class ExtractedFields(BaseModel):
    """
    Best-effort extraction of one section. Never an exception:
    whatever could not be found is None, and every placeholder
    substituted is recorded in `fallbacks` so the policy stays auditable.
    """
    title: str
    description: str
    hook: Optional[str] = None
    cta: Optional[str] = None
    script: Optional[str] = None
    caption: Optional[str] = None
    deadline: Optional[str] = None
    publish_date: Optional[str] = None
    priority_label: Optional[str] = None
    raw_media_links: list[str] = Field(default_factory=list)
    fallbacks: list[str] = Field(default_factory=list)


# ── Lifecycle payloads ───────────────────────────────────────────────────────

class Responsibilities(ApiModel):
    """Role → user id. Only the production roles below are accepted."""
    script: Optional[str] = None
    audio: Optional[str] = None
    capture: Optional[str] = None
    edit: Optional[str] = None
    art: Optional[str] = None
    review: Optional[str] = None
    approval: Optional[str] = None
    social: Optional[str] = None

    def user_ids(self) -> set[str]:
        return {v for v in self.model_dump().values() if v}


class IdeaPatch(ApiModel):
    """Fields an approver may edit while an idea is still PENDENTE."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    brand: Optional[str] = Field(None, min_length=1)
    objective: Optional[Objective] = None
    content_type: Optional[ContentType] = Field(None, alias="type")
    priority: Optional[Priority] = None
    channels: Optional[list[str]] = None
    hook: Optional[str] = None
    cta: Optional[str] = None
    script: Optional[str] = None
    caption: Optional[str] = None
    deadline: Optional[str] = None
    publish_date: Optional[str] = None
    raw_media_links: Optional[list[str]] = None

    @field_validator("brand")
    @classmethod
    def upper_brand(cls, value):
        return _normalize_brand(value)


class WorkOrderCreate(ApiModel):
    title: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    description: Optional[str] = None
    objective: Objective = Objective.ATTRACTION
    content_type: ContentType = Field(ContentType.CONVERSION, alias="type")
    priority: Priority = Priority.MEDIUM
    status: Optional[WorkOrderStatus] = None          # only ROTEIRO or RASCUNHO at creation
    channels: list[str] = Field(default_factory=list)
    hook: Optional[str] = None
    cta: Optional[str] = None
    script: Optional[str] = None
    caption: Optional[str] = None
    raw_media_links: list[str] = Field(default_factory=list)
    deadline: Optional[str] = None
    scheduled_publish_at: Optional[datetime] = None
    current_responsible_id: Optional[str] = None
    responsibilities: Responsibilities = Field(default_factory=Responsibilities)

    @field_validator("brand")
    @classmethod
    def upper_brand(cls, value):
        return _normalize_brand(value)


class WorkOrderPatch(ApiModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, min_length=1)
    objective: Optional[Objective] = None
    content_type: Optional[ContentType] = Field(None, alias="type")
    priority: Optional[Priority] = None
    status: Optional[WorkOrderStatus] = None
    channels: Optional[list[str]] = None
    hook: Optional[str] = None
    cta: Optional[str] = None
    script: Optional[str] = None
    caption: Optional[str] = None
    raw_media_links: Optional[list[str]] = None
    deadline: Optional[str] = None
    scheduled_publish_at: Optional[datetime] = None
    current_responsible_id: Optional[str] = None
    responsibilities: Optional[Responsibilities] = None
    internal_approved: Optional[bool] = None

    @field_validator("brand")
    @classmethod
    def upper_brand(cls, value):
        return _normalize_brand(value)


# ── LangGraph State definitions ───────────────────────────────────────────────

class ImportState(TypedDict):
    """State for the text → parsed ideas pipeline."""
    text: str
    brand_default: str
    sections: list[str]                         # segmenter output, source order
    extracted: list[ExtractedFields]            # one per kept section
    classified: list[tuple]                     # (objective, type, priority) aligned with `extracted`
    items: list[ParsedIdea]
    provider: str                               # HEURISTIC | GEMINI
    errors: list[str]
