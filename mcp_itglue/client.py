"""ITGlue API client and JSON:API resource translation."""

import asyncio
import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any, Final

import requests  # type: ignore[import-untyped]

from .models import (
    EmptyMutationResultError,
    Envelope,
    PageResult,
    UnexpectedShapeError,
    WireResource,
)

logger = logging.getLogger(__name__)

BASE_URLS: Final[dict[str, str]] = {
    "us": "https://api.itglue.com",
    "eu": "https://api.eu.itglue.com",
    "au": "https://api.au.itglue.com",
}
DEFAULT_BASE_URL = BASE_URLS["us"]
DEFAULT_TIMEOUT = 30.0
JSONAPI_MEDIA_TYPE = "application/vnd.api+json"

# Documents outside any folder are returned by default; this filter selects
# the complementary partition (documents that live in some folder).
IN_FOLDER_FILTER: Final[dict[str, str]] = {"filter[document-folder-id][ne]": "null"}


class _Missing:
    """Marker for attributes the caller did not provide."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


# ==================== RESOURCE CODEC ====================


def kebab_to_snake(key: str) -> str:
    """Translate a wire attribute key to its record key."""
    return key.replace("-", "_")


def snake_to_kebab(key: str) -> str:
    """Translate a record key to its wire attribute key."""
    return key.replace("_", "-")


def decode_resource(resource: WireResource) -> dict[str, Any]:
    """Flatten a wire resource into an application record.

    Only top-level attribute keys are translated; nested values are passed
    through untouched.

    Args:
        resource: The wire resource to flatten

    Returns:
        Dict holding ``id``, ``type`` and the translated attributes
    """
    record: dict[str, Any] = {"id": resource.id, "type": resource.type}
    for key, value in resource.attributes.items():
        record[kebab_to_snake(key)] = value
    return record


def encode_resource(type_: str, attributes: Mapping[str, Any], id_: str | None = None) -> dict[str, Any]:
    """Build the outbound resource object for a create or update.

    Attributes whose value is ``MISSING`` are dropped; ``None``, ``0`` and
    ``False`` are sent as-is.

    Args:
        type_: JSON:API resource type (e.g. "documents")
        attributes: Record-style attributes with underscored keys
        id_: Resource ID, included only when given

    Returns:
        Resource object ready to be wrapped in ``{"data": ...}``
    """
    wire_attributes = {snake_to_kebab(key): value for key, value in attributes.items() if value is not MISSING}
    body: dict[str, Any] = {"type": type_, "attributes": wire_attributes}
    if id_ is not None:
        body["id"] = id_
    return body


def encode_bulk_delete(type_: str, ids: Iterable[int | str]) -> list[dict[str, Any]]:
    """Build the bulk-delete payload, one entry per ID in the given order."""
    return [{"type": type_, "attributes": {"id": resource_id}} for resource_id in ids]


# ==================== QUERY PARAMETERS ====================


def build_pagination_params(page_number: int, page_size: int) -> dict[str, int]:
    """Build JSON:API pagination parameters."""
    return {"page[number]": page_number, "page[size]": page_size}


def build_filter_params(filters: Mapping[str, Any]) -> dict[str, Any]:
    """Build ``filter[...]`` parameters from record-style keys.

    Entries that are ``MISSING`` or ``None`` are skipped since a query string
    cannot express a null filter.
    """
    return {
        f"filter[{snake_to_kebab(key)}]": value
        for key, value in filters.items()
        if value is not MISSING and value is not None
    }


# ==================== RESPONSE NORMALIZATION ====================


def expect_one(envelope: Envelope) -> dict[str, Any]:
    """Decode the single resource of a get-one response.

    Raises:
        UnexpectedShapeError: If the response carries a list (of any length) or no data
    """
    if isinstance(envelope.data, list):
        raise UnexpectedShapeError()
    if envelope.data is None:
        raise UnexpectedShapeError("Expected single resource but received no data")
    return decode_resource(envelope.data)


def expect_many(envelope: Envelope, page_size: int | None = None) -> PageResult:
    """Decode a list response into a page of records.

    A singular ``data`` object is treated as a one-element list.

    Args:
        envelope: Parsed response document
        page_size: Requested page size; echoed back when given

    Returns:
        PageResult with pagination state derived from ``meta``
    """
    if envelope.data is None:
        items: list[WireResource] = []
    elif isinstance(envelope.data, list):
        items = envelope.data
    else:
        items = [envelope.data]

    meta = envelope.meta
    total_count = meta.total_count if meta and meta.total_count is not None else len(items)
    current_page = meta.current_page if meta and meta.current_page is not None else 1
    next_page = meta.next_page if meta else None

    return PageResult(
        data=[decode_resource(item) for item in items],
        total_count=total_count,
        page_number=current_page,
        page_size=page_size if page_size else len(items),
        has_more=next_page is not None,
        next_page=next_page,
    )


def expect_one_or_none(envelope: Envelope | None) -> dict[str, Any] | None:
    """Decode an optional result, as returned by action endpoints."""
    if envelope is None or not envelope.data:
        return None
    if isinstance(envelope.data, list):
        return decode_resource(envelope.data[0])
    return decode_resource(envelope.data)


def unwrap_mutation_result(envelope: Envelope | None, operation: str) -> dict[str, Any]:
    """Decode the resource returned by a create or update.

    Raises:
        EmptyMutationResultError: If the response holds no resource
    """
    data = envelope.data if envelope is not None else None
    if isinstance(data, list):
        if not data:
            raise EmptyMutationResultError(operation)
        return decode_resource(data[0])
    if data is None:
        raise EmptyMutationResultError(operation)
    return decode_resource(data)


# ==================== LISTING MERGE ====================


def merge_page_results(first: PageResult, second: PageResult) -> PageResult:
    """Combine the two partitions of one logical listing.

    Records keep first-sighting order (``first`` before ``second``) and are
    deduplicated by ``id``. ``total_count`` is the plain sum of both totals,
    so it over-counts when the partitions overlap.

    Args:
        first: Page from the first partition query
        second: Page from the second partition query

    Returns:
        Merged PageResult using ``first``'s page number and size
    """
    seen: set[str] = set()
    merged: list[dict[str, Any]] = []
    for record in [*first.data, *second.data]:
        record_id = str(record["id"])
        if record_id in seen:
            continue
        seen.add(record_id)
        merged.append(record)

    next_page = first.next_page if first.next_page is not None else second.next_page
    return PageResult(
        data=merged,
        total_count=first.total_count + second.total_count,
        page_number=first.page_number,
        page_size=first.page_size,
        has_more=first.has_more or second.has_more,
        next_page=next_page,
    )


# ==================== HTTP CLIENT ====================


def resolve_base_url(base_url: str | None = None, region: str | None = None) -> str:
    """Pick the API base URL from an explicit URL, a region, or the default.

    Raises:
        ValueError: If the region is unknown
    """
    if base_url:
        return base_url.rstrip("/")
    if region:
        region_key = region.strip().lower()
        if region_key not in BASE_URLS:
            raise ValueError(f'Unknown region "{region}". Valid regions: {", ".join(BASE_URLS)}.')
        return BASE_URLS[region_key]
    return DEFAULT_BASE_URL


class ITGlueClient:
    """Thin JSON:API client for the ITGlue REST API.

    Configuration falls back to the ``ITGLUE_API_KEY``, ``ITGLUE_BASE_URL``,
    ``ITGLUE_REGION`` and ``ITGLUE_TIMEOUT`` environment variables.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        region: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: ITGlue API key
            base_url: Full API base URL, overrides ``region``
            region: One of "us", "eu", "au"
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If no API key is configured or the region is unknown
        """
        api_key = api_key or os.getenv("ITGLUE_API_KEY")
        if not api_key:
            raise ValueError("ITGLUE_API_KEY environment variable is required")

        self.base_url = resolve_base_url(
            base_url or os.getenv("ITGLUE_BASE_URL"),
            region or os.getenv("ITGLUE_REGION"),
        )
        self.timeout = timeout if timeout is not None else float(os.getenv("ITGLUE_TIMEOUT", str(DEFAULT_TIMEOUT)))

        self.session = requests.Session()
        self.session.headers.update(
            {
                "x-api-key": api_key,
                "Content-Type": JSONAPI_MEDIA_TYPE,
                "Accept": JSONAPI_MEDIA_TYPE,
            }
        )

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> Envelope | None:
        """Perform a request and parse the JSON:API document, if any.

        Raises:
            requests.exceptions.RequestException: On transport errors or non-2xx status
        """
        logger.debug("%s %s params=%s", method, path, params)
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            params=params,
            json=body,
            timeout=self.timeout,
        )
        response.raise_for_status()
        if not response.content:
            return None
        payload = response.json()
        if payload is None:
            return None
        return Envelope.model_validate(payload)

    def get_one(self, path: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """GET a single resource."""
        envelope = self._request("GET", path, params=params)
        if envelope is None:
            raise UnexpectedShapeError("Expected single resource but received an empty response")
        return expect_one(envelope)

    def get_many(self, path: str, params: Mapping[str, Any] | None = None) -> PageResult:
        """GET a collection page."""
        envelope = self._request("GET", path, params=params) or Envelope()
        page_size = params.get("page[size]") if params else None
        return expect_many(envelope, int(page_size) if page_size else None)

    def post(self, path: str, resource: dict[str, Any]) -> dict[str, Any]:
        """POST a new resource and return the created record."""
        envelope = self._request("POST", path, body={"data": resource})
        return unwrap_mutation_result(envelope, "create")

    def patch(self, path: str, resource: dict[str, Any]) -> dict[str, Any]:
        """PATCH a resource and return the updated record."""
        envelope = self._request("PATCH", path, body={"data": resource})
        return unwrap_mutation_result(envelope, "update")

    def delete(self, path: str, resources: list[dict[str, Any]] | None = None) -> None:
        """DELETE a resource, or several when a bulk payload is given."""
        body = {"data": resources} if resources is not None else None
        self._request("DELETE", path, body=body)

    def post_action(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """POST to an action endpoint whose result may be empty."""
        return expect_one_or_none(self._request("POST", path, body=body))

    def patch_action(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """PATCH an action endpoint whose result may be empty."""
        return expect_one_or_none(self._request("PATCH", path, body=body))

    async def list_documents(self, organization_id: int, params: Mapping[str, Any]) -> PageResult:
        """List an organization's documents across root and folder partitions.

        Both partition queries run concurrently; results are merged in call
        order regardless of which finishes first.

        Args:
            organization_id: Organization whose documents to list
            params: Pagination, filter and sort parameters shared by both queries

        Returns:
            Merged PageResult, see ``merge_page_results``
        """
        path = f"/organizations/{organization_id}/relationships/documents"
        root_task = asyncio.to_thread(self.get_many, path, dict(params))
        folder_task = asyncio.to_thread(self.get_many, path, {**params, **IN_FOLDER_FILTER})
        root, in_folders = await asyncio.gather(root_task, folder_task)
        logger.debug(
            "Document partitions for organization %s: root=%s folders=%s",
            organization_id,
            len(root.data),
            len(in_folders.data),
        )
        return merge_page_results(root, in_folders)
