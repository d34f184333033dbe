"""Pydantic models for ITGlue entities and JSON:API envelopes."""

from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 1000


class StrictBaseModel(BaseModel):
    """Base model with strict validation that forbids extra fields.

    This ensures that typos or incorrect field names in request parameters
    are caught early with clear validation errors rather than being silently ignored.
    String fields are automatically stripped of leading/trailing whitespace.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ResponseFormat(str, Enum):
    """Output format for tool responses.

    Attributes:
        MARKDOWN: Human-readable markdown format
        JSON: Machine-readable JSON format with full metadata
    """

    MARKDOWN = "markdown"
    JSON = "json"


def _normalize_format(v: str) -> str:
    """Normalize response format to lowercase."""
    if isinstance(v, str):
        return v.lower()
    return v


ResponseFormatInput = Annotated[ResponseFormat, BeforeValidator(_normalize_format)]


class SectionType(str, Enum):
    """Document section type enumeration.

    Attributes:
        TEXT: Rich text body
        HEADING: Heading line with a level
        GALLERY: Image gallery
        STEP: Procedure step with optional duration
    """

    TEXT = "Text"
    HEADING = "Heading"
    GALLERY = "Gallery"
    STEP = "Step"


class ErrorKind(str, Enum):
    """Stable taxonomy of failures surfaced to tool callers."""

    BAD_REQUEST = "bad_request"
    AUTHENTICATION_FAILED = "authentication_failed"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    VALIDATION_FAILED = "validation_failed"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_SERVER_ERROR = "upstream_server_error"
    UNKNOWN_STATUS = "unknown_status"
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    UNEXPECTED_SHAPE = "unexpected_shape"
    EMPTY_MUTATION_RESULT = "empty_mutation_result"
    UNCLASSIFIED = "unclassified"


class ClassifiedError(BaseModel):
    """A failure mapped onto the error taxonomy.

    Attributes:
        kind: Taxonomy entry
        message: User-facing message
        status: HTTP status code, when the failure came from a response
        detail: First upstream error detail (or title), if any
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    status: int | None = None
    detail: str | None = None


class UnexpectedShapeError(ValueError):
    """Raised when a single-resource endpoint returns a collection.

    Attributes:
        message: Explanation of the error
    """

    def __init__(self, message: str = "Expected single resource but received array") -> None:
        """Initialize the exception."""
        self.message = message
        super().__init__(self.message)


class EmptyMutationResultError(ValueError):
    """Raised when a create/update call reports zero resources.

    Attributes:
        operation: Name of the mutation (e.g. "create", "update")
        message: Explanation of the error
    """

    def __init__(self, operation: str) -> None:
        """Initialize the exception with the failing operation."""
        self.operation = operation
        self.message = f"API returned empty array for {operation} operation"
        super().__init__(self.message)


# ==================== WIRE ENVELOPE ====================


class WireResource(BaseModel):
    """A single JSON:API resource object as received from ITGlue."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    type: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, Any] | None = None

    @field_validator("attributes", mode="before")
    @classmethod
    def default_attributes(cls, v: Any) -> Any:
        """Treat a null attribute map as empty."""
        return {} if v is None else v


class PageMeta(BaseModel):
    """Pagination metadata from the ``meta`` member of a list response."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int | None = Field(None, alias="current-page")
    next_page: int | None = Field(None, alias="next-page")
    prev_page: int | None = Field(None, alias="prev-page")
    total_pages: int | None = Field(None, alias="total-pages")
    total_count: int | None = Field(None, alias="total-count")


class ApiErrorObject(BaseModel):
    """A single JSON:API error object."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    status: str | None = None
    title: str | None = None
    detail: str | None = None


class Envelope(BaseModel):
    """Top-level JSON:API document.

    ``data`` is either one resource or a list of them; callers must branch on
    ``isinstance(envelope.data, list)`` rather than assume a shape.
    """

    data: WireResource | list[WireResource] | None = None
    included: list[WireResource] | None = None
    meta: PageMeta | None = None
    errors: list[ApiErrorObject] | None = None


class PageResult(BaseModel):
    """One page of decoded records plus pagination state."""

    data: list[dict[str, Any]]
    total_count: int
    page_number: int
    page_size: int
    has_more: bool
    next_page: int | None = None

    @model_validator(mode="after")
    def check_has_more(self) -> "PageResult":
        """Keep has_more consistent with next_page."""
        if self.has_more != (self.next_page is not None):
            raise ValueError("has_more must be true exactly when next_page is set")
        return self


# ==================== RECORDS ====================


class Organization(BaseModel):
    """ITGlue organization record."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "organizations"
    name: str | None = None
    description: str | None = None
    organization_type_id: int | None = None
    organization_type_name: str | None = None
    organization_status_id: int | None = None
    organization_status_name: str | None = None
    short_name: str | None = None
    primary: bool | None = None
    quick_notes: str | None = None
    alert: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Document(BaseModel):
    """ITGlue document record."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "documents"
    name: str | None = None
    organization_id: int | None = None
    organization_name: str | None = None
    document_folder_id: int | None = None
    resource_url: str | None = None
    published: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None


class DocumentSection(BaseModel):
    """ITGlue document section record."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "document-sections"
    document_id: int | None = None
    resource_id: int | None = None
    resource_type: str | None = None
    content: str | None = None
    rendered_content: str | None = None
    sort: int | None = None
    level: int | None = None
    duration: float | None = None
    created_at: str | None = None
    updated_at: str | None = None


# ==================== REQUEST PARAMETERS ====================


class PaginationParams(StrictBaseModel):
    """Shared pagination and output parameters."""

    page_number: int = Field(default=1, ge=1, description="Page number for pagination (starts at 1)")
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Results per page (1-{MAX_PAGE_SIZE}, default {DEFAULT_PAGE_SIZE})",
    )
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class ListOrganizationsParams(PaginationParams):
    """List organizations request parameters."""

    filter_name: str | None = Field(None, description="Filter by organization name (exact match)")
    filter_id: int | None = Field(None, gt=0, description="Filter by specific organization ID")
    filter_organization_type_id: int | None = Field(None, gt=0, description="Filter by organization type ID")
    filter_organization_status_id: int | None = Field(None, gt=0, description="Filter by organization status ID")
    sort: str | None = Field(None, description="Sort field. Prefix with - for descending (e.g. 'name', '-updated_at')")


class GetOrganizationParams(StrictBaseModel):
    """Get organization request parameters."""

    organization_id: int = Field(gt=0, description="The organization ID to retrieve")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class ListDocumentsParams(PaginationParams):
    """List documents request parameters."""

    organization_id: int = Field(gt=0, description="Organization ID to list documents for")
    filter_name: str | None = Field(None, description="Filter by document name (exact match)")
    filter_id: int | None = Field(None, gt=0, description="Filter by specific document ID")
    sort: str | None = Field(None, description="Sort field. Prefix with - for descending (e.g. 'name', '-updated_at')")


class GetDocumentParams(StrictBaseModel):
    """Get document request parameters."""

    document_id: int = Field(gt=0, description="The document ID to retrieve")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class CreateDocumentParams(StrictBaseModel):
    """Create document request parameters."""

    organization_id: int = Field(gt=0, description="Organization to associate the document with")
    name: str = Field(min_length=1, max_length=255, description="Document name/title")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class UpdateDocumentParams(StrictBaseModel):
    """Update document request parameters."""

    document_id: int = Field(gt=0, description="The document ID to update")
    name: str | None = Field(None, min_length=1, max_length=255, description="New document name")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class PublishDocumentParams(StrictBaseModel):
    """Publish document request parameters."""

    document_id: int = Field(gt=0, description="The document ID to publish")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class DeleteDocumentsParams(StrictBaseModel):
    """Bulk delete documents request parameters."""

    document_ids: list[int] = Field(min_length=1, description="Array of document IDs to delete")

    @field_validator("document_ids")
    @classmethod
    def validate_positive(cls, v: list[int]) -> list[int]:
        """Reject non-positive IDs."""
        if any(doc_id <= 0 for doc_id in v):
            raise ValueError("document IDs must be positive integers")
        return v


class ListDocumentSectionsParams(PaginationParams):
    """List document sections request parameters."""

    document_id: int = Field(gt=0, description="The parent document ID to list sections for")


class GetDocumentSectionParams(StrictBaseModel):
    """Get document section request parameters."""

    document_id: int = Field(gt=0, description="The parent document ID")
    section_id: int = Field(gt=0, description="The document section ID to retrieve")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class SectionContentParams(StrictBaseModel):
    """Section attributes shared by create and update."""

    content: str | None = Field(
        None, description="HTML content for Text and Step sections, or plain text for Heading sections"
    )
    level: int | None = Field(None, ge=1, le=6, description="Heading level 1-6 (Heading sections only)")
    duration: float | None = Field(None, ge=0, description="Duration in minutes (Step sections only)")
    reset_count: bool | None = Field(None, description="Whether to reset the step count (Step sections only)")
    sort: int | None = Field(None, ge=0, description="Sort order/position within the document (0-indexed)")
    response_format: ResponseFormatInput = Field(
        default=ResponseFormat.MARKDOWN, description="Output format: \"markdown\" (default) or \"json\""
    )


class CreateDocumentSectionParams(SectionContentParams):
    """Create document section request parameters."""

    document_id: int = Field(gt=0, description="Parent document ID to add the section to")
    section_type: SectionType = Field(description="Section type: Text, Heading, Gallery, or Step")

    @model_validator(mode="after")
    def check_heading_level(self) -> "CreateDocumentSectionParams":
        """Heading sections must carry a level."""
        if self.section_type == SectionType.HEADING and self.level is None:
            raise ValueError("level is required for Heading sections")
        return self


class UpdateDocumentSectionParams(SectionContentParams):
    """Update document section request parameters."""

    document_id: int = Field(gt=0, description="The parent document ID")
    section_id: int = Field(gt=0, description="The section ID to update")


class DeleteDocumentSectionParams(StrictBaseModel):
    """Delete document section request parameters."""

    document_id: int = Field(gt=0, description="The parent document ID")
    section_id: int = Field(gt=0, description="The section ID to delete")
