"""ITGlue MCP Server implementation."""

import json
import logging
import os
import re
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import requests  # type: ignore[import-untyped]
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .client import (
    ITGlueClient,
    build_filter_params,
    build_pagination_params,
    encode_bulk_delete,
    encode_resource,
)
from .models import (
    MAX_PAGE_SIZE,
    ClassifiedError,
    CreateDocumentParams,
    CreateDocumentSectionParams,
    DeleteDocumentSectionParams,
    DeleteDocumentsParams,
    Document,
    DocumentSection,
    EmptyMutationResultError,
    ErrorKind,
    GetDocumentParams,
    GetDocumentSectionParams,
    GetOrganizationParams,
    ListDocumentSectionsParams,
    ListDocumentsParams,
    ListOrganizationsParams,
    Organization,
    PageResult,
    PublishDocumentParams,
    ResponseFormat,
    UnexpectedShapeError,
    UpdateDocumentParams,
    UpdateDocumentSectionParams,
)

logger = logging.getLogger(__name__)

CHARACTER_LIMIT = 25000  # Maximum response size per MCP best practices
DEFAULT_TRUNCATION_HINT = "Use filters or pagination to narrow results."
SECTION_TRUNCATION_HINT = "Use itglue_get_document_section to retrieve individual sections in full."

SECTION_ATTRIBUTES = {"content", "level", "duration", "reset_count", "sort"}
VALID_TRANSPORTS = ("stdio", "streamable-http", "sse")

SERVER_INSTRUCTIONS = """# ITGlue MCP Server - Tool Usage Guide

## Searching and Filtering
- Filters use EXACT matching, not fuzzy/partial matching.
- When locating an organization or document by name, prefer listing WITHOUT filters and scanning the results \
rather than using a filter that may miss due to exact-match semantics.
- Filters are useful when you know the exact value (an ID or precise name).

## Workflow: Reading Documents
1. Use itglue_list_organizations to find the organization ID.
2. Use itglue_list_documents with the organization ID to find documents.
3. Use itglue_get_document to retrieve full content (may be truncated at 25,000 characters).
4. If content is truncated, use itglue_list_document_sections then itglue_get_document_section.

## Workflow: Creating Documents
1. itglue_create_document creates a DRAFT that is not visible until published.
2. Add content with itglue_create_document_section (Text, Heading, Gallery, Step).
3. Use itglue_publish_document to make it visible.

## Workflow: Updating Documents
- itglue_update_document only changes metadata (name). To change content, use itglue_update_document_section.
- The section ID comes from itglue_list_document_sections.

## Important Notes
- All list tools support pagination (default 50, max 1000 per page).
- All read tools accept response_format: 'markdown' (default) or 'json'.
- Delete operations are PERMANENT and cannot be undone.
- Section content uses HTML format."""


# Tool annotation constants
def _read_only_annotations(title: str) -> ToolAnnotations:
    """Create read-only tool annotations with title."""
    return ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
        title=title,
    )


def _write_annotations(title: str) -> ToolAnnotations:
    """Create write tool annotations with title."""
    return ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
        title=title,
    )


def _destructive_write_annotations(title: str) -> ToolAnnotations:
    """Create destructive write tool annotations with title."""
    return ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=True,
        title=title,
    )


def _idempotent_write_annotations(title: str) -> ToolAnnotations:
    """Create idempotent write tool annotations with title."""
    return ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
        title=title,
    )


# ==================== HTML RENDERING ====================

_HTML_RULES: list[tuple[re.Pattern[str], str | Callable[[re.Match[str]], str]]] = [
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</li>", re.IGNORECASE), "\n"),
    (re.compile(r"<li[^>]*>", re.IGNORECASE), "- "),
    (re.compile(r"</h[1-6]>", re.IGNORECASE), "\n"),
    (re.compile(r"<h([1-6])[^>]*>", re.IGNORECASE), lambda m: "#" * int(m.group(1)) + " "),
    (re.compile(r"<[^>]+>"), ""),
]

# Applied in order; &amp; goes first.
_NAMED_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&nbsp;", " "),
    ("&mdash;", "—"),
    ("&ndash;", "–"),
    ("&hellip;", "…"),
    ("&lsquo;", "‘"),
    ("&rsquo;", "’"),
    ("&ldquo;", "“"),
    ("&rdquo;", "”"),
    ("&copy;", "©"),
    ("&trade;", "™"),
)

_NUMERIC_REFERENCE = re.compile(r"&#([xX][0-9a-fA-F]+|\d+);")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def _decode_numeric_reference(match: re.Match[str]) -> str:
    """Decode a decimal or hex character reference, leaving invalid code points as-is."""
    value = match.group(1)
    code = int(value[1:], 16) if value[0] in "xX" else int(value)
    try:
        return chr(code)
    except (ValueError, OverflowError):
        return match.group(0)


def strip_html(html_text: str) -> str:
    """Render section HTML as plain text with light markdown.

    Line breaks, paragraphs, list items and headings are rewritten first, then
    every other tag is dropped and character references are decoded.

    Args:
        html_text: HTML fragment as stored by ITGlue

    Returns:
        Plain text with at most one blank line between blocks
    """
    text = html_text
    for pattern, replacement in _HTML_RULES:
        text = pattern.sub(replacement, text)
    for entity, char in _NAMED_ENTITIES:
        text = text.replace(entity, char)
    text = _NUMERIC_REFERENCE.sub(_decode_numeric_reference, text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def section_type_label(resource_type: str | None) -> str:
    """Return the short section type (``Document::Heading`` -> ``Heading``)."""
    if not resource_type:
        return "Unknown"
    return resource_type.split("::")[-1]


# ==================== TRUNCATION ====================


def truncate_if_needed(text: str, hint: str | None = None, limit: int = CHARACTER_LIMIT) -> str:
    """Cut text to the character limit and append a truncation footer.

    Args:
        text: Content to check
        hint: Narrowing suggestion for the footer (default: use filters or pagination)
        limit: Character limit (default: CHARACTER_LIMIT)

    Returns:
        The text unchanged if it fits, otherwise the first ``limit`` characters plus footer
    """
    if len(text) <= limit:
        return text
    footer = f"\n\n---\n[Response truncated at {limit:,} characters. {hint or DEFAULT_TRUNCATION_HINT}]"
    return text[:limit] + footer


def _serialize_json(obj: dict[str, Any], *, use_compact: bool) -> str:
    """Serialize JSON object with appropriate formatting.

    Args:
        obj: Dictionary to serialize
        use_compact: If True, use compact format; otherwise use indented format

    Returns:
        JSON string
    """
    if use_compact:
        return json.dumps(obj, separators=(",", ":"), default=str)
    return json.dumps(obj, indent=2, default=str)


def _find_max_items_for_limit(obj: dict[str, Any], original_items: list[Any], limit: int, *, use_compact: bool) -> int:
    """Binary search for the largest ``data`` prefix that fits under limit."""
    left, right = 0, len(original_items)
    while left < right:
        mid = (left + right + 1) // 2
        obj["data"] = original_items[:mid]
        if len(_serialize_json(obj, use_compact=use_compact)) <= limit:
            left = mid
        else:
            right = mid - 1
    return left


def _truncate_json_response(content: str, obj: dict[str, Any], limit: int) -> str:
    """Truncate a JSON listing by shrinking its ``data`` array.

    Args:
        content: Original content string
        obj: Parsed JSON object holding a ``data`` list
        limit: Character limit

    Returns:
        Valid JSON string with ``_meta.truncated`` set
    """
    original_size = len(content)
    use_compact = original_size > limit * 1.2

    original_items = obj["data"]
    max_items = _find_max_items_for_limit(obj, original_items, limit, use_compact=use_compact)
    obj["data"] = original_items[:max_items]

    meta = obj.setdefault("_meta", {})
    meta.update(
        {
            "truncated": True,
            "original_size": original_size,
            "original_count": len(original_items),
            "limit": limit,
            "note": "Response truncated; reduce page_size or add filters.",
        }
    )

    # Metadata itself takes room
    json_str = _serialize_json(obj, use_compact=use_compact)
    while obj["data"] and len(json_str) > limit:
        obj["data"].pop()
        json_str = _serialize_json(obj, use_compact=use_compact)

    return json_str


def truncate_response(content: str, limit: int = CHARACTER_LIMIT, hint: str | None = None) -> str:
    """Truncate a response, keeping JSON listings valid.

    JSON objects with a ``data`` list are shrunk item by item; anything else
    falls back to ``truncate_if_needed``.

    Args:
        content: The content to potentially truncate
        limit: Maximum character limit (default: CHARACTER_LIMIT)
        hint: Narrowing suggestion for plain-text truncation

    Returns:
        Original content if under limit, truncated content otherwise
    """
    if len(content) <= limit:
        return content

    if content.lstrip().startswith("{"):
        try:
            obj = json.loads(content)
        except json.JSONDecodeError as e:
            logger.debug("Failed to parse JSON response for truncation: %s", e, exc_info=True)
        else:
            if isinstance(obj, dict) and isinstance(obj.get("data"), list):
                return _truncate_json_response(content, obj, limit)

    return truncate_if_needed(content, hint, limit)


def pagination_footer(total_count: int, page_number: int, has_more: bool) -> str:
    """Build the footer shown under markdown listings."""
    lines = ["---", f"Page {page_number} | {total_count} total results"]
    if has_more:
        lines.append(f"More results available - use page_number: {page_number + 1} to see next page")
    return "\n".join(lines)


# ==================== ERROR CLASSIFICATION ====================


def _error_detail(response: requests.Response | None) -> str | None:
    """Extract the first upstream error detail, falling back to its title."""
    if response is None or not response.content:
        return None
    try:
        payload = response.json()
    except ValueError:
        return None
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return None
    detail = errors[0].get("detail")
    if detail is None:
        detail = errors[0].get("title")
    return detail


def _classify_status(status: int, detail: str | None) -> ClassifiedError:
    """Map an HTTP status code onto the error taxonomy."""
    suffix = f" {detail}" if detail else ""
    if status == 400:
        kind, message = ErrorKind.BAD_REQUEST, f"Error: Bad request.{suffix} Check your parameters."
    elif status == 401:
        kind = ErrorKind.AUTHENTICATION_FAILED
        message = "Error: Authentication failed. Verify your ITGLUE_API_KEY is valid and not revoked."
    elif status == 403:
        kind = ErrorKind.PERMISSION_DENIED
        message = f"Error: Permission denied.{suffix} Your API key may not have access to this resource."
    elif status == 404:
        kind, message = ErrorKind.NOT_FOUND, "Error: Resource not found. Verify the ID is correct."
    elif status == 415:
        kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE
        message = "Error: Unsupported media type. This is likely a bug in the MCP server."
    elif status == 422:
        kind, message = ErrorKind.VALIDATION_FAILED, f"Error: Validation failed.{suffix}"
    elif status == 429:
        kind = ErrorKind.RATE_LIMITED
        message = "Error: Rate limit exceeded (3000 requests per 5 minutes). Wait before retrying."
    elif status >= 500:
        kind, message = ErrorKind.UPSTREAM_SERVER_ERROR, f"Error: ITGlue server error ({status}). Try again later."
    else:
        kind, message = ErrorKind.UNKNOWN_STATUS, f"Error: API request failed with status {status}.{suffix}"
    return ClassifiedError(kind=kind, message=message, status=status, detail=detail)


def classify_error(e: BaseException) -> ClassifiedError:
    """Map an exception onto the error taxonomy.

    Args:
        e: Exception raised while serving a request

    Returns:
        ClassifiedError with a user-facing message
    """
    if isinstance(e, requests.exceptions.HTTPError) and e.response is not None:
        return _classify_status(e.response.status_code, _error_detail(e.response))

    # ConnectTimeout is both a Timeout and a ConnectionError
    if isinstance(e, requests.exceptions.Timeout):
        return ClassifiedError(kind=ErrorKind.TIMEOUT, message="Error: Request timed out. Please try again.")

    if isinstance(e, requests.exceptions.ConnectionError):
        return ClassifiedError(
            kind=ErrorKind.CONNECTION_REFUSED,
            message="Error: Could not connect to ITGlue API. Check your base URL and network connectivity.",
        )

    if isinstance(e, UnexpectedShapeError):
        return ClassifiedError(kind=ErrorKind.UNEXPECTED_SHAPE, message=f"Error: Unexpected response shape. {e.message}.")

    if isinstance(e, EmptyMutationResultError):
        return ClassifiedError(kind=ErrorKind.EMPTY_MUTATION_RESULT, message=f"Error: {e.message}.")

    return ClassifiedError(kind=ErrorKind.UNCLASSIFIED, message=f"Error: Unexpected error: {e}")


def handle_api_error(e: BaseException) -> str:
    """Format an exception as an actionable message for LLM agents."""
    return classify_error(e).message


def _tool_error(e: Exception, context: str) -> ToolError:
    """Build the ToolError reported to the caller for a failed operation."""
    classified = classify_error(e)
    logger.warning("%s failed (%s): %s", context, classified.kind.value, classified.message)
    return ToolError(classified.message)


# ==================== FORMATTERS ====================


def _display(value: Any) -> str:
    """Render an optional scalar for markdown output."""
    return "N/A" if value is None else str(value)


def _yes_no(value: bool | None) -> str:
    if value is None:
        return "N/A"
    return "Yes" if value else "No"


def _format_page_json(result: PageResult) -> str:
    """Format a page of records as JSON, truncating the ``data`` array if needed."""
    return truncate_response(json.dumps(result.model_dump(), indent=2, default=str))


def _format_record_json(record: dict[str, Any]) -> str:
    return json.dumps(record, indent=2, default=str)


def _format_organizations_markdown(result: PageResult) -> str:
    """Format a page of organizations as markdown.

    Args:
        result: Page of organization records

    Returns:
        Markdown-formatted string with pagination footer
    """
    lines = [f"# Organizations ({result.total_count} total)", ""]
    for record in result.data:
        org = Organization.model_validate(record)
        lines.append(f"## {_display(org.name)} (ID: {org.id})")
        if org.description:
            lines.append(org.description)
        if org.organization_type_name:
            lines.append(f"- **Type**: {org.organization_type_name}")
        if org.organization_status_name:
            lines.append(f"- **Status**: {org.organization_status_name}")
        if org.short_name:
            lines.append(f"- **Short Name**: {org.short_name}")
        lines.append(f"- **Updated**: {_display(org.updated_at)}")
        lines.append("")
    lines.append(pagination_footer(result.total_count, result.page_number, result.has_more))
    return "\n".join(lines)


def _format_organization_detail_markdown(org: Organization) -> str:
    """Format single organization with full details as markdown."""
    lines = [f"# {_display(org.name)}", "", f"**ID**: {org.id}"]
    if org.description:
        lines.append(f"**Description**: {org.description}")
    if org.short_name:
        lines.append(f"**Short Name**: {org.short_name}")
    if org.organization_type_name:
        lines.append(f"**Type**: {org.organization_type_name}")
    if org.organization_status_name:
        lines.append(f"**Status**: {org.organization_status_name}")
    if org.primary:
        lines.append("**Primary**: Yes")
    if org.alert:
        lines.append(f"\n> **Alert**: {org.alert}")
    if org.quick_notes:
        lines.append(f"\n**Quick Notes**: {org.quick_notes}")
    lines.append("")
    lines.append(f"- **Created**: {_display(org.created_at)}")
    lines.append(f"- **Updated**: {_display(org.updated_at)}")
    return "\n".join(lines)


def _format_document_markdown(doc: Document) -> str:
    """Format a document as a listing entry."""
    lines = [f"## {_display(doc.name)} (ID: {doc.id})"]
    if doc.organization_name:
        lines.append(f"- **Organization**: {doc.organization_name}")
    lines.append(f"- **Published**: {_yes_no(doc.published)}")
    lines.append(f"- **Updated**: {_display(doc.updated_at)}")
    if doc.resource_url:
        lines.append(f"- **URL**: {doc.resource_url}")
    lines.append("")
    return "\n".join(lines)


def _format_documents_markdown(result: PageResult) -> str:
    lines = [f"# Documents ({result.total_count} total)", ""]
    lines.extend(_format_document_markdown(Document.model_validate(record)) for record in result.data)
    lines.append(pagination_footer(result.total_count, result.page_number, result.has_more))
    return "\n".join(lines)


def _section_heading(section: DocumentSection) -> str:
    position = _display(section.sort)
    return f"{section_type_label(section.resource_type)} Section (ID: {section.id}, Position: {position})"


def _format_duration(duration: float) -> str:
    return f"{duration:g} min"


def _format_document_detail_markdown(doc: Document, sections: list[DocumentSection]) -> str:
    """Format a document and its sections as markdown.

    Args:
        doc: The document
        sections: The document's sections in position order

    Returns:
        Markdown-formatted string with section content rendered as text
    """
    lines = [f"# {_display(doc.name)}", "", f"**ID**: {doc.id}"]
    if doc.organization_name:
        lines.append(f"**Organization**: {doc.organization_name}")
    lines.append(f"**Published**: {_yes_no(doc.published)}")
    lines.append(f"**Updated**: {_display(doc.updated_at)}")
    if doc.resource_url:
        lines.append(f"**URL**: {doc.resource_url}")
    lines.append("")

    if not sections:
        lines.append("*No sections in this document.*")
        return "\n".join(lines)

    lines.extend([f"## Sections ({len(sections)})", ""])
    for section in sections:
        lines.append(f"### {_section_heading(section)}")
        lines.append(strip_html(section.content) if section.content else "*No content*")
        lines.append("")
    return "\n".join(lines)


def _format_section_markdown(section: DocumentSection) -> str:
    """Format a section as a listing entry."""
    lines = [f"### {_section_heading(section)}"]
    if section.level is not None:
        lines.append(f"**Level**: {section.level}")
    lines.append(strip_html(section.content) if section.content else "*No content*")
    if section.duration is not None:
        lines.append(f"- **Duration**: {_format_duration(section.duration)}")
    lines.append(f"- **Updated**: {_display(section.updated_at)}")
    lines.append("")
    return "\n".join(lines)


def _format_sections_markdown(result: PageResult) -> str:
    lines = [f"# Document Sections ({result.total_count} total)", ""]
    lines.extend(_format_section_markdown(DocumentSection.model_validate(record)) for record in result.data)
    lines.append(pagination_footer(result.total_count, result.page_number, result.has_more))
    return "\n".join(lines)


def _format_section_detail_markdown(section: DocumentSection) -> str:
    """Format a single section with full content as markdown."""
    lines = [
        f"# {section_type_label(section.resource_type)} Section (ID: {section.id})",
        "",
        f"**Document ID**: {_display(section.document_id)}",
        f"**Position**: {_display(section.sort)}",
    ]
    if section.level is not None:
        lines.append(f"**Level**: {section.level}")
    if section.duration is not None:
        lines.append(f"**Duration**: {_format_duration(section.duration)}")
    lines.extend([f"**Updated**: {_display(section.updated_at)}", ""])

    if section.content:
        lines.extend(["## Content", "", strip_html(section.content), ""])
    else:
        lines.extend(["*No content*", ""])
    return "\n".join(lines)


class ITGlueMCPServer:
    """ITGlue MCP Server with proper client lifecycle management."""

    def __init__(self, host: str = "127.0.0.1", port: int = 8000) -> None:
        """Initialize the server.

        Args:
            host: Host to bind for HTTP transport (default: 127.0.0.1)
            port: Port to bind for HTTP transport (default: 8000)
        """
        self.client: ITGlueClient | None = None
        self.mcp = FastMCP(
            "itglue_mcp",
            instructions=SERVER_INSTRUCTIONS,
            host=host,
            port=port,
            lifespan=self._create_lifespan(),
        )
        self._setup_tools()
        self._setup_resources()
        self._setup_prompts()

    def _create_lifespan(self) -> Any:
        """Create the lifespan context manager for the server."""

        @asynccontextmanager
        async def lifespan(_app: FastMCP) -> AsyncIterator[None]:
            """Initialize the client on startup and release it on shutdown."""
            await self.initialize()
            try:
                yield
            finally:
                if self.client is not None:
                    self.client.close()
                    self.client = None
                    logger.info("ITGlue client cleaned up")

        return lifespan

    def get_client(self) -> ITGlueClient:
        """Get the ITGlue client, ensuring it's initialized."""
        if not self.client:
            raise RuntimeError("ITGlue client not initialized")
        return self.client

    async def initialize(self) -> None:
        """Initialize the ITGlue client on server startup."""
        cwd_env = Path.cwd() / ".env"
        if cwd_env.exists():
            load_dotenv(cwd_env)
            logger.info("Loaded environment from %s", cwd_env)

        envrc_path = Path.cwd() / ".envrc"
        if envrc_path.exists() and not os.environ.get("ITGLUE_API_KEY"):
            logger.warning(
                "Found .envrc but environment variables not loaded. Consider using direnv or creating a .env file"
            )

        # Parent directories, for when running from a subdirectory
        load_dotenv()

        try:
            self.client = ITGlueClient()
            logger.info("ITGlue client initialized for %s", self.client.base_url)

            probe = self.client.get_many("/organizations", build_pagination_params(1, 1))
            logger.info("Connected to ITGlue (%s organizations visible)", probe.total_count)
        except Exception:
            logger.exception("Failed to initialize ITGlue client")
            raise

    def _setup_tools(self) -> None:
        """Register all tools with the MCP server."""
        self._setup_organization_tools()
        self._setup_document_tools()
        self._setup_section_tools()

    def _setup_organization_tools(self) -> None:
        """Register organization tools."""

        @self.mcp.tool(annotations=_read_only_annotations("List ITGlue Organizations"))
        def itglue_list_organizations(params: ListOrganizationsParams) -> str:
            """Search and list organizations. Use this to find organization IDs needed for document operations.

            Args:
                params (ListOrganizationsParams): Validated parameters containing:
                    - filter_name (str | None): Filter by organization name (exact match)
                    - filter_id (int | None): Filter by specific organization ID
                    - filter_organization_type_id (int | None): Filter by organization type
                    - filter_organization_status_id (int | None): Filter by status
                    - sort (str | None): Sort field (e.g. "name", "-updated_at")
                    - page_number (int): Page number (default: 1)
                    - page_size (int): Results per page, 1-1000 (default: 50)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Formatted response with the following schema:

                Markdown format (default):
                ```
                # Organizations (120 total)

                ## Acme Corp (ID: 12345)
                - **Type**: Customer
                - **Status**: Active
                - **Updated**: 2024-01-15T10:30:00Z

                ---
                Page 1 | 120 total results
                More results available - use page_number: 2 to see next page
                ```

                JSON format:
                ```json
                {
                    "data": [{"id": "12345", "type": "organizations", "name": "Acme Corp", ...}],
                    "total_count": 120,
                    "page_number": 1,
                    "page_size": 50,
                    "has_more": true,
                    "next_page": 2
                }
                ```

            Examples:
                - Use when: "Find the Acme Corp organization" -> filter_name="Acme Corp"
                - Use when: "List all organizations sorted by name" -> sort="name"

            Error Handling:
                - Returns "No organizations found matching the specified filters." if nothing matches
                - Raises "Error: Authentication failed..." if the API key is invalid
                - Raises "Error: Rate limit exceeded..." if too many requests
            """
            try:
                query: dict[str, Any] = {
                    **build_pagination_params(params.page_number, params.page_size),
                    **build_filter_params(
                        {
                            "name": params.filter_name,
                            "id": params.filter_id,
                            "organization_type_id": params.filter_organization_type_id,
                            "organization_status_id": params.filter_organization_status_id,
                        }
                    ),
                }
                if params.sort:
                    query["sort"] = params.sort

                result = self.get_client().get_many("/organizations", query)
                if not result.data:
                    return "No organizations found matching the specified filters."

                if params.response_format == ResponseFormat.JSON:
                    return _format_page_json(result)
                return truncate_if_needed(_format_organizations_markdown(result))
            except Exception as e:
                raise _tool_error(e, "Listing organizations") from e

        @self.mcp.tool(annotations=_read_only_annotations("Get ITGlue Organization"))
        def itglue_get_organization(params: GetOrganizationParams) -> str:
            """Get detailed information about a specific organization by ID.

            Args:
                params (GetOrganizationParams): Validated parameters containing:
                    - organization_id (int): The organization ID (required)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Name, description, type, status, short name, alert, quick notes and
                timestamps, as markdown or as the flat JSON record.

            Examples:
                - Use when: "Get details for organization 12345" -> organization_id=12345
                - Don't use when: You only know the name (use itglue_list_organizations)

            Error Handling:
                - Raises "Error: Resource not found..." if the organization ID doesn't exist
            """
            try:
                record = self.get_client().get_one(f"/organizations/{params.organization_id}")
                if params.response_format == ResponseFormat.JSON:
                    return truncate_if_needed(_format_record_json(record))
                return truncate_if_needed(_format_organization_detail_markdown(Organization.model_validate(record)))
            except Exception as e:
                raise _tool_error(e, f"Retrieving organization {params.organization_id}") from e

    def _setup_document_tools(self) -> None:  # noqa: PLR0915
        """Register document tools."""

        @self.mcp.tool(annotations=_read_only_annotations("List ITGlue Documents"))
        async def itglue_list_documents(params: ListDocumentsParams) -> str:
            """List documents within an organization, including documents stored in folders.

            Returns document metadata only. Use itglue_get_document for content and
            itglue_list_organizations first if you need the organization ID.

            Args:
                params (ListDocumentsParams): Validated parameters containing:
                    - organization_id (int): Organization to list documents for (required)
                    - filter_name (str | None): Filter by document name (exact match)
                    - filter_id (int | None): Filter by specific document ID
                    - sort (str | None): Sort field (e.g. "name", "-updated_at")
                    - page_number (int): Page number (default: 1)
                    - page_size (int): Results per page, 1-1000 (default: 50)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Formatted response with the following schema:

                Markdown format (default):
                ```
                # Documents (12 total)

                ## Server Maintenance Runbook (ID: 456)
                - **Organization**: Acme Corp
                - **Published**: Yes
                - **Updated**: 2024-01-15T10:30:00Z

                ---
                Page 1 | 12 total results
                ```

                JSON format: same schema as itglue_list_organizations with document records.

            Examples:
                - Use when: "List all documents for org 123" -> organization_id=123
                - Use when: "Show recent documents" -> organization_id=123, sort="-updated_at"

            Error Handling:
                - Returns "No documents found matching the specified filters." if nothing matches
                - Raises "Error: Resource not found..." if the organization doesn't exist

            Note:
                Root-level and in-folder documents are fetched concurrently and merged.
                total_count is the sum of both queries and may exceed the number of
                distinct documents.
            """
            try:
                query: dict[str, Any] = {
                    **build_pagination_params(params.page_number, params.page_size),
                    **build_filter_params({"name": params.filter_name, "id": params.filter_id}),
                }
                if params.sort:
                    query["sort"] = params.sort

                result = await self.get_client().list_documents(params.organization_id, query)
                if not result.data:
                    return "No documents found matching the specified filters."

                if params.response_format == ResponseFormat.JSON:
                    return _format_page_json(result)
                return truncate_if_needed(_format_documents_markdown(result))
            except Exception as e:
                raise _tool_error(e, f"Listing documents for organization {params.organization_id}") from e

        @self.mcp.tool(annotations=_read_only_annotations("Get ITGlue Document"))
        def itglue_get_document(params: GetDocumentParams) -> str:
            """Get a document by ID, including all of its sections.

            Section content is HTML; markdown output renders it as plain text.

            Args:
                params (GetDocumentParams): Validated parameters containing:
                    - document_id (int): The document ID (required)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Formatted response with the following schema:

                Markdown format (default):
                ```
                # Server Maintenance Runbook

                **ID**: 456
                **Published**: Yes

                ## Sections (2)

                ### Heading Section (ID: 789, Position: 0)
                # Overview
                ```

                JSON format: the flat document record with a "sections" array.

            Examples:
                - Use when: "Show me document 456" -> document_id=456
                - Use when: "Get raw data for document 789" -> document_id=789, response_format="json"

            Error Handling:
                - Raises "Error: Resource not found..." if the document ID doesn't exist
                - Truncated at 25,000 characters (use itglue_get_document_section for full sections)
            """
            try:
                client = self.get_client()
                record = client.get_one(f"/documents/{params.document_id}")
                sections = client.get_many(
                    f"/documents/{params.document_id}/relationships/sections",
                    build_pagination_params(1, MAX_PAGE_SIZE),
                )

                if params.response_format == ResponseFormat.JSON:
                    output = {**record, "sections": sections.data}
                    return truncate_if_needed(_format_record_json(output), SECTION_TRUNCATION_HINT)

                result = _format_document_detail_markdown(
                    Document.model_validate(record),
                    [DocumentSection.model_validate(section) for section in sections.data],
                )
                return truncate_if_needed(result, SECTION_TRUNCATION_HINT)
            except Exception as e:
                raise _tool_error(e, f"Retrieving document {params.document_id}") from e

        @self.mcp.tool(annotations=_write_annotations("Create ITGlue Document"))
        def itglue_create_document(params: CreateDocumentParams) -> str:
            """Create a new draft document associated with an organization.

            Use itglue_create_document_section to add content and itglue_publish_document
            to publish it.

            Args:
                params (CreateDocumentParams): Validated parameters containing:
                    - organization_id (int): Organization to associate the document with (required)
                    - name (str): Document name/title (required)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: The created document's ID, name and creation time, with next steps.

            Examples:
                - Use when: "Create a new runbook for org 123" -> organization_id=123, name="Server Runbook"

            Error Handling:
                - Raises "Error: Validation failed..." if ITGlue rejects the document
                - Raises "Error: Resource not found..." if the organization doesn't exist
            """
            try:
                resource = encode_resource("documents", params.model_dump(include={"organization_id", "name"}))
                record = self.get_client().post("/documents", resource)
                logger.info("Created document %s in organization %s", record["id"], params.organization_id)

                if params.response_format == ResponseFormat.JSON:
                    return _format_record_json(record)

                doc = Document.model_validate(record)
                lines = [
                    "# Document Created",
                    "",
                    f"**ID**: {doc.id}",
                    f"**Name**: {_display(doc.name)}",
                    "**Published**: No (draft)",
                    f"**Created**: {_display(doc.created_at)}",
                    "",
                    "Next steps:",
                    "- Use `itglue_create_document_section` to add content",
                    "- Use `itglue_publish_document` to publish when ready",
                ]
                return "\n".join(lines)
            except Exception as e:
                raise _tool_error(e, "Creating document") from e

        @self.mcp.tool(annotations=_idempotent_write_annotations("Update ITGlue Document"))
        def itglue_update_document(params: UpdateDocumentParams) -> str:
            """Update a document's metadata (name).

            Does NOT modify section content; use itglue_update_document_section for that.

            Args:
                params (UpdateDocumentParams): Validated parameters containing:
                    - document_id (int): The document ID to update (required)
                    - name (str | None): New document name
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Confirmation followed by the updated document's metadata.

            Examples:
                - Use when: "Rename document 456 to 'Updated Runbook'" -> document_id=456, name="Updated Runbook"

            Error Handling:
                - Raises "Error: Resource not found..." if the document doesn't exist
                - Raises "Error: Validation failed..." if the document is externally synced
            """
            try:
                attributes = params.model_dump(include={"name"}, exclude_unset=True)
                resource = encode_resource("documents", attributes, str(params.document_id))
                record = self.get_client().patch(f"/documents/{params.document_id}", resource)

                if params.response_format == ResponseFormat.JSON:
                    return _format_record_json(record)
                return f"Document updated successfully.\n\n{_format_document_markdown(Document.model_validate(record))}"
            except Exception as e:
                raise _tool_error(e, f"Updating document {params.document_id}") from e

        @self.mcp.tool(annotations=_idempotent_write_annotations("Publish ITGlue Document"))
        def itglue_publish_document(params: PublishDocumentParams) -> str:
            """Publish a draft document, making it visible to users with access.

            Args:
                params (PublishDocumentParams): Validated parameters containing:
                    - document_id (int): The document ID to publish (required)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Confirmation of publication.

            Examples:
                - Use when: "Publish document 456" -> document_id=456

            Error Handling:
                - Raises "Error: Resource not found..." if the document doesn't exist
            """
            try:
                self.get_client().patch_action(f"/documents/{params.document_id}/publish")
                logger.info("Published document %s", params.document_id)

                if params.response_format == ResponseFormat.JSON:
                    return _format_record_json(
                        {
                            "success": True,
                            "document_id": params.document_id,
                            "message": "Document published successfully",
                        }
                    )
                return f"Document {params.document_id} published successfully."
            except Exception as e:
                raise _tool_error(e, f"Publishing document {params.document_id}") from e

        @self.mcp.tool(annotations=_destructive_write_annotations("Delete ITGlue Documents"))
        def itglue_delete_documents(params: DeleteDocumentsParams) -> str:
            """Permanently delete one or more documents. This CANNOT be undone.

            All sections of the deleted documents are removed as well.

            Args:
                params (DeleteDocumentsParams): Validated parameters containing:
                    - document_ids (list[int]): Document IDs to delete (at least one)

            Returns:
                str: Confirmation listing the deleted IDs.

            Examples:
                - Use when: "Delete documents 100, 200, 300" -> document_ids=[100, 200, 300]

            Error Handling:
                - Raises "Error: Resource not found..." if any document ID doesn't exist
            """
            try:
                self.get_client().delete("/documents", encode_bulk_delete("documents", params.document_ids))
                logger.info("Deleted documents %s", params.document_ids)
                deleted = ", ".join(str(doc_id) for doc_id in params.document_ids)
                return f"Successfully deleted {len(params.document_ids)} document(s): {deleted}"
            except Exception as e:
                raise _tool_error(e, "Deleting documents") from e

    def _setup_section_tools(self) -> None:  # noqa: PLR0915
        """Register document section tools."""

        def sections_path(document_id: int, section_id: int | None = None) -> str:
            base = f"/documents/{document_id}/relationships/sections"
            return f"{base}/{section_id}" if section_id else base

        @self.mcp.tool(annotations=_read_only_annotations("List ITGlue Document Sections"))
        def itglue_list_document_sections(params: ListDocumentSectionsParams) -> str:
            """List the sections of a document in position order.

            Args:
                params (ListDocumentSectionsParams): Validated parameters containing:
                    - document_id (int): The parent document ID (required)
                    - page_number (int): Page number (default: 1)
                    - page_size (int): Results per page, 1-1000 (default: 50)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Sections with ID, type, position, rendered content and timestamps,
                followed by a pagination footer.

            Examples:
                - Use when: "Show sections of document 456" -> document_id=456

            Error Handling:
                - Returns "No sections found in this document." for an empty document
                - Raises "Error: Resource not found..." if the document doesn't exist
            """
            try:
                result = self.get_client().get_many(
                    sections_path(params.document_id),
                    build_pagination_params(params.page_number, params.page_size),
                )
                if not result.data:
                    return "No sections found in this document."

                if params.response_format == ResponseFormat.JSON:
                    return _format_page_json(result)
                return truncate_if_needed(_format_sections_markdown(result), SECTION_TRUNCATION_HINT)
            except Exception as e:
                raise _tool_error(e, f"Listing sections of document {params.document_id}") from e

        @self.mcp.tool(annotations=_read_only_annotations("Get ITGlue Document Section"))
        def itglue_get_document_section(params: GetDocumentSectionParams) -> str:
            """Get a single document section with its full content.

            Use this for sections that were truncated in itglue_get_document.

            Args:
                params (GetDocumentSectionParams): Validated parameters containing:
                    - document_id (int): The parent document ID (required)
                    - section_id (int): The section ID (required)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Section type, position, level, duration and content. JSON output
                includes the raw HTML ``content`` and ``rendered_content``.

            Examples:
                - Use when: "Get section 789 from document 456" -> document_id=456, section_id=789

            Error Handling:
                - Raises "Error: Resource not found..." if the document or section doesn't exist
            """
            try:
                record = self.get_client().get_one(sections_path(params.document_id, params.section_id))
                if params.response_format == ResponseFormat.JSON:
                    return truncate_if_needed(_format_record_json(record))
                return truncate_if_needed(_format_section_detail_markdown(DocumentSection.model_validate(record)))
            except Exception as e:
                raise _tool_error(e, f"Retrieving section {params.section_id}") from e

        @self.mcp.tool(annotations=_write_annotations("Create ITGlue Document Section"))
        def itglue_create_document_section(params: CreateDocumentSectionParams) -> str:
            """Add a new section to an existing document.

            Section types and their attributes:
                - Text: content (HTML body)
                - Heading: content (heading text), level (1-6, required)
                - Gallery: no additional attributes
                - Step: content (HTML body), duration (minutes), reset_count

            Args:
                params (CreateDocumentSectionParams): Validated parameters containing:
                    - document_id (int): Parent document ID (required)
                    - section_type (SectionType): "Text", "Heading", "Gallery" or "Step" (required)
                    - content (str | None): HTML content, or heading text for Heading sections
                    - level (int | None): Heading level 1-6
                    - duration (float | None): Duration in minutes (Step only)
                    - reset_count (bool | None): Reset step count (Step only)
                    - sort (int | None): Position within the document (0-indexed)
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: The created section's ID, type and position.

            Examples:
                - Use when: "Add a heading" -> document_id=456, section_type="Heading", content="Overview", level=2
                - Use when: "Add a step" -> document_id=456, section_type="Step", content="<p>Install</p>", duration=5

            Error Handling:
                - Validation error if a Heading section has no level
                - Raises "Error: Resource not found..." if the document doesn't exist

            Note:
                rendered_content is read-only and generated by ITGlue.
            """
            try:
                attributes = {
                    "resource_type": f"Document::{params.section_type.value}",
                    **params.model_dump(include=SECTION_ATTRIBUTES, exclude_unset=True),
                }
                resource = encode_resource("document-sections", attributes)
                record = self.get_client().post(sections_path(params.document_id), resource)
                logger.info("Created section %s in document %s", record["id"], params.document_id)

                if params.response_format == ResponseFormat.JSON:
                    return _format_record_json(record)

                section = DocumentSection.model_validate(record)
                lines = [
                    "# Section Created",
                    "",
                    f"**ID**: {section.id}",
                    f"**Type**: {section_type_label(section.resource_type)}",
                    f"**Document ID**: {params.document_id}",
                    f"**Position**: {_display(section.sort)}",
                    f"**Created**: {_display(section.created_at)}",
                ]
                return "\n".join(lines)
            except Exception as e:
                raise _tool_error(e, f"Creating section in document {params.document_id}") from e

        @self.mcp.tool(annotations=_idempotent_write_annotations("Update ITGlue Document Section"))
        def itglue_update_document_section(params: UpdateDocumentSectionParams) -> str:
            """Update a section's content or position.

            Only the fields provided are sent; the section type cannot be changed.

            Args:
                params (UpdateDocumentSectionParams): Validated parameters containing:
                    - document_id (int): The parent document ID (required)
                    - section_id (int): The section ID to update (required)
                    - content (str | None): New HTML content (or heading text)
                    - level (int | None): New heading level (Heading only)
                    - duration (float | None): Duration in minutes (Step only)
                    - reset_count (bool | None): Reset step count (Step only)
                    - sort (int | None): New position within the document
                    - response_format (ResponseFormat): Output format (default: "markdown")

            Returns:
                str: Confirmation followed by the updated section.

            Examples:
                - Use when: "Move section 789 to the top" -> document_id=456, section_id=789, sort=0

            Error Handling:
                - Raises "Error: Resource not found..." if the section doesn't exist
            """
            try:
                attributes = params.model_dump(include=SECTION_ATTRIBUTES, exclude_unset=True)
                resource = encode_resource("document-sections", attributes, str(params.section_id))
                record = self.get_client().patch(sections_path(params.document_id, params.section_id), resource)

                if params.response_format == ResponseFormat.JSON:
                    return _format_record_json(record)
                section = DocumentSection.model_validate(record)
                return f"Section updated successfully.\n\n{_format_section_markdown(section)}"
            except Exception as e:
                raise _tool_error(e, f"Updating section {params.section_id}") from e

        @self.mcp.tool(annotations=_destructive_write_annotations("Delete ITGlue Document Section"))
        def itglue_delete_document_section(params: DeleteDocumentSectionParams) -> str:
            """Permanently delete a document section. This CANNOT be undone.

            Args:
                params (DeleteDocumentSectionParams): Validated parameters containing:
                    - document_id (int): The parent document ID (required)
                    - section_id (int): The section ID to delete (required)

            Returns:
                str: Confirmation of deletion.

            Error Handling:
                - Raises "Error: Resource not found..." if the section doesn't exist
            """
            try:
                self.get_client().delete(sections_path(params.document_id, params.section_id))
                logger.info("Deleted section %s from document %s", params.section_id, params.document_id)
                return f"Successfully deleted section {params.section_id}."
            except Exception as e:
                raise _tool_error(e, f"Deleting section {params.section_id}") from e

    def _setup_resources(self) -> None:
        """Register all resources with the MCP server."""
        self._setup_organization_resource()
        self._setup_document_resource()

    def _setup_organization_resource(self) -> None:
        """Register organization resource."""

        @self.mcp.resource("itglue://organization/{organization_id}")
        def get_organization_resource(organization_id: str) -> str:
            """Get an organization as a resource."""
            client = self.get_client()
            try:
                org = Organization.model_validate(client.get_one(f"/organizations/{int(organization_id)}"))

                lines = [
                    f"Organization: {_display(org.name)}",
                    f"ID: {org.id}",
                    f"Short Name: {_display(org.short_name)}",
                    f"Type: {_display(org.organization_type_name)}",
                    f"Status: {_display(org.organization_status_name)}",
                    f"Created: {_display(org.created_at)}",
                    f"Updated: {_display(org.updated_at)}",
                ]
                if org.alert:
                    lines.append(f"Alert: {org.alert}")
                if org.quick_notes:
                    lines.append(f"Quick Notes: {org.quick_notes}")

                return "\n".join(lines)
            except (requests.exceptions.RequestException, ValueError, ValidationError) as e:
                return handle_api_error(e)

    def _setup_document_resource(self) -> None:
        """Register document resource."""

        @self.mcp.resource("itglue://document/{document_id}")
        def get_document_resource(document_id: str) -> str:
            """Get a document with its sections as a resource."""
            client = self.get_client()
            try:
                doc_id = int(document_id)
                doc = Document.model_validate(client.get_one(f"/documents/{doc_id}"))
                sections = client.get_many(
                    f"/documents/{doc_id}/relationships/sections",
                    build_pagination_params(1, MAX_PAGE_SIZE),
                )

                lines = [
                    f"Document: {_display(doc.name)}",
                    f"ID: {doc.id}",
                    f"Organization: {_display(doc.organization_name)}",
                    f"Published: {_yes_no(doc.published)}",
                    f"Updated: {_display(doc.updated_at)}",
                    "",
                ]
                for record in sections.data:
                    section = DocumentSection.model_validate(record)
                    lines.append(f"--- {_section_heading(section)} ---")
                    if section.content:
                        lines.append(strip_html(section.content))
                    lines.append("")

                return truncate_if_needed("\n".join(lines), SECTION_TRUNCATION_HINT)
            except (requests.exceptions.RequestException, ValueError, ValidationError) as e:
                return handle_api_error(e)

    def _setup_prompts(self) -> None:
        """Register all prompts with the MCP server."""

        @self.mcp.prompt()
        def find_document(organization_name: str, topic: str) -> str:
            """Generate a prompt to locate a document about a topic."""
            return f"""Please find the ITGlue document about "{topic}" for the organization "{organization_name}".

1. Use itglue_list_organizations without filters and scan the names to find the organization ID.
2. Use itglue_list_documents with that organization ID and look for documents related to "{topic}".
3. Open the best match with itglue_get_document.

Filters are exact-match, so prefer scanning unfiltered listings when you are unsure of the exact name.
Report the document name, ID and a short description of what it covers."""

        @self.mcp.prompt()
        def summarize_document(document_id: int) -> str:
            """Generate a prompt to summarize a document."""
            return f"""Please summarize ITGlue document with ID {document_id}.
Use the itglue_get_document tool to retrieve the document and its sections.

If the content is truncated, use itglue_list_document_sections and itglue_get_document_section
to read the remaining sections.

Provide:
1. The purpose of the document
2. Key systems, credentials locations or contacts it references
3. Any procedures it describes, as a short numbered list
4. Anything that looks outdated or incomplete"""

        @self.mcp.prompt()
        def draft_runbook(organization_id: int, title: str) -> str:
            """Generate a prompt to draft a runbook document."""
            return f"""Please draft a runbook titled "{title}" for ITGlue organization {organization_id}.

1. Create the document with itglue_create_document (it starts as a draft).
2. Add sections with itglue_create_document_section: a Heading section (level 1) with the title,
   then Text sections for context.
3. Add each procedure step as a Step section with HTML content and an estimated duration.
4. Review the result with itglue_get_document.

Do not publish the document; leave itglue_publish_document for the user to approve."""


# Create the server instance with host/port from environment
# This allows HTTP transport to bind to the configured address
_host = os.getenv("MCP_HOST", "127.0.0.1")
_port = int(os.getenv("MCP_PORT", "8000"))
server = ITGlueMCPServer(host=_host, port=_port)

# Export the MCP server instance
mcp = server.mcp


# Health check endpoint for HTTP transport
@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:  # noqa: ARG001
    """Health check endpoint for HTTP transport.

    Args:
        request: The incoming HTTP request (required by FastMCP).

    Returns:
        JSONResponse with health status.
    """
    return JSONResponse({"status": "healthy", "server": "itglue_mcp", "version": __version__, "transport": "http"})


def _configure_logging() -> None:
    """Configure logging from LOG_LEVEL environment variable.

    Reads LOG_LEVEL environment variable (default: INFO) and configures
    the root logger. Valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL.
    """
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    if log_level_str not in valid_levels:
        invalid_level = log_level_str
        log_level_str = "INFO"
        logger.warning(
            "Invalid LOG_LEVEL '%s', defaulting to INFO. Valid values: %s",
            invalid_level,
            ", ".join(valid_levels),
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level_str))

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root_logger.addHandler(handler)


def _resolve_transport() -> str:
    """Read MCP_TRANSPORT, falling back to stdio for unknown values."""
    transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower()
    if transport not in VALID_TRANSPORTS:
        logger.warning(
            "Invalid MCP_TRANSPORT '%s', defaulting to stdio. Valid values: %s",
            transport,
            ", ".join(VALID_TRANSPORTS),
        )
        return "stdio"
    return transport


def main() -> None:
    """Main entry point for the server."""
    _configure_logging()
    mcp.run(transport=_resolve_transport())  # type: ignore[arg-type]
