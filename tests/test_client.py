"""Tests for the ITGlue client, resource codec and listing merge."""

import asyncio
import threading
import time
from unittest.mock import patch

import pytest
import requests
from pydantic import ValidationError

from mcp_itglue.client import (
    BASE_URLS,
    IN_FOLDER_FILTER,
    MISSING,
    ITGlueClient,
    build_filter_params,
    build_pagination_params,
    decode_resource,
    encode_bulk_delete,
    encode_resource,
    expect_many,
    expect_one,
    expect_one_or_none,
    merge_page_results,
    resolve_base_url,
    unwrap_mutation_result,
)
from mcp_itglue.models import (
    EmptyMutationResultError,
    Envelope,
    PageResult,
    UnexpectedShapeError,
    WireResource,
)

# ==================== HELPERS ====================


def wire(resource_id: str, **attributes):
    """Build a wire resource dict with hyphenated attributes."""
    return {"id": resource_id, "type": "documents", "attributes": attributes}


def page(ids, total_count=None, next_page=None, page_number=1, page_size=50):
    """Build a PageResult holding records with the given IDs."""
    return PageResult(
        data=[{"id": record_id, "type": "documents"} for record_id in ids],
        total_count=len(ids) if total_count is None else total_count,
        page_number=page_number,
        page_size=page_size,
        has_more=next_page is not None,
        next_page=next_page,
    )


# ==================== RESOURCE CODEC ====================


class TestDecodeResource:
    """Wire resource to application record."""

    def test_translates_top_level_keys_only(self) -> None:
        resource = WireResource.model_validate(
            {
                "id": "1",
                "type": "organizations",
                "attributes": {
                    "organization-type-name": "Customer",
                    "name": "Acme",
                    "nested-value": {"inner-key": 1},
                },
                "relationships": {"documents": {"data": []}},
            }
        )

        record = decode_resource(resource)

        assert record == {
            "id": "1",
            "type": "organizations",
            "organization_type_name": "Customer",
            "name": "Acme",
            "nested_value": {"inner-key": 1},
        }

    def test_record_has_no_extra_keys(self) -> None:
        resource = WireResource.model_validate({"id": "7", "type": "documents", "attributes": {}})

        assert set(decode_resource(resource)) == {"id", "type"}

    def test_numeric_id_coerced_to_string(self) -> None:
        resource = WireResource.model_validate({"id": 42, "type": "documents", "attributes": None})

        assert decode_resource(resource) == {"id": "42", "type": "documents"}

    def test_values_are_unchanged(self) -> None:
        resource = WireResource.model_validate(
            {"id": "1", "type": "documents", "attributes": {"published": False, "document-folder-id": None}}
        )

        record = decode_resource(resource)

        assert record["published"] is False
        assert record["document_folder_id"] is None


class TestEncodeResource:
    """Application attributes to outbound resource object."""

    def test_hyphenates_keys(self) -> None:
        body = encode_resource("documents", {"organization_id": 12, "name": "Runbook"})

        assert body == {"type": "documents", "attributes": {"organization-id": 12, "name": "Runbook"}}

    def test_keeps_falsy_values_and_drops_missing(self) -> None:
        body = encode_resource(
            "document-sections",
            {"sort": 0, "reset_count": False, "content": None, "level": MISSING},
        )

        assert body["attributes"] == {"sort": 0, "reset-count": False, "content": None}

    def test_includes_id_only_when_given(self) -> None:
        assert "id" not in encode_resource("documents", {"name": "x"})
        assert encode_resource("documents", {"name": "x"}, "456")["id"] == "456"

    def test_key_translation_round_trip(self) -> None:
        attributes = {"organization-type-name": "A", "quick-notes": "B", "name": "C"}
        resource = WireResource.model_validate({"id": "1", "type": "organizations", "attributes": attributes})

        record = decode_resource(resource)
        record.pop("id")
        record.pop("type")

        assert encode_resource("organizations", record)["attributes"] == attributes

    def test_bulk_delete_preserves_order_and_duplicates(self) -> None:
        assert encode_bulk_delete("documents", [3, 1, 3]) == [
            {"type": "documents", "attributes": {"id": 3}},
            {"type": "documents", "attributes": {"id": 1}},
            {"type": "documents", "attributes": {"id": 3}},
        ]

    def test_missing_is_falsy_singleton(self) -> None:
        assert not MISSING
        assert repr(MISSING) == "MISSING"
        assert type(MISSING)() is MISSING


# ==================== QUERY PARAMETERS ====================


class TestQueryParameters:
    """Pagination and filter parameter building."""

    def test_pagination(self) -> None:
        assert build_pagination_params(2, 100) == {"page[number]": 2, "page[size]": 100}

    def test_filters_hyphenate_and_skip_absent(self) -> None:
        params = build_filter_params(
            {"name": "Acme", "organization_type_id": 3, "id": None, "organization_status_id": MISSING}
        )

        assert params == {"filter[name]": "Acme", "filter[organization-type-id]": 3}

    def test_filters_keep_zero(self) -> None:
        assert build_filter_params({"id": 0}) == {"filter[id]": 0}

    def test_empty_filters(self) -> None:
        assert build_filter_params({}) == {}


# ==================== RESPONSE NORMALIZATION ====================


class TestExpectOne:
    """Single-resource responses."""

    def test_decodes_object(self) -> None:
        envelope = Envelope.model_validate({"data": wire("1", name="Doc")})

        assert expect_one(envelope) == {"id": "1", "type": "documents", "name": "Doc"}

    @pytest.mark.parametrize("count", [0, 1, 2])
    def test_rejects_array_of_any_length(self, count: int) -> None:
        envelope = Envelope.model_validate({"data": [wire(str(i)) for i in range(count)]})

        with pytest.raises(UnexpectedShapeError, match="Expected single resource but received array"):
            expect_one(envelope)

    def test_rejects_null_data(self) -> None:
        with pytest.raises(UnexpectedShapeError):
            expect_one(Envelope.model_validate({"data": None}))


class TestExpectMany:
    """Collection responses."""

    def test_reads_pagination_meta(self) -> None:
        envelope = Envelope.model_validate(
            {
                "data": [wire("1"), wire("2")],
                "meta": {"current-page": 2, "next-page": 3, "prev-page": 1, "total-pages": 5, "total-count": 9},
            }
        )

        result = expect_many(envelope, 2)

        assert [record["id"] for record in result.data] == ["1", "2"]
        assert result.total_count == 9
        assert result.page_number == 2
        assert result.page_size == 2
        assert result.has_more is True
        assert result.next_page == 3

    def test_defaults_without_meta(self) -> None:
        result = expect_many(Envelope.model_validate({"data": [wire("1"), wire("2"), wire("3")]}))

        assert result.total_count == 3
        assert result.page_number == 1
        assert result.page_size == 3
        assert result.has_more is False
        assert result.next_page is None

    def test_page_size_echoes_request(self) -> None:
        result = expect_many(Envelope.model_validate({"data": [wire("1")]}), 50)

        assert result.page_size == 50

    def test_wraps_single_object(self) -> None:
        result = expect_many(Envelope.model_validate({"data": wire("1", name="Only")}))

        assert result.data == [{"id": "1", "type": "documents", "name": "Only"}]

    def test_null_next_page_means_no_more(self) -> None:
        envelope = Envelope.model_validate({"data": [], "meta": {"next-page": None, "total-count": 0}})

        result = expect_many(envelope, 50)

        assert result.data == []
        assert result.has_more is False


class TestOptionalAndMutationResults:
    """Action and mutation responses."""

    def test_optional_absent(self) -> None:
        assert expect_one_or_none(None) is None
        assert expect_one_or_none(Envelope.model_validate({"data": None})) is None
        assert expect_one_or_none(Envelope.model_validate({"data": []})) is None

    def test_optional_object_or_first(self) -> None:
        assert expect_one_or_none(Envelope.model_validate({"data": wire("5")}))["id"] == "5"
        assert expect_one_or_none(Envelope.model_validate({"data": [wire("6"), wire("7")]}))["id"] == "6"

    def test_mutation_empty_array_fails(self) -> None:
        with pytest.raises(EmptyMutationResultError, match="API returned empty array for create operation"):
            unwrap_mutation_result(Envelope.model_validate({"data": []}), "create")

    def test_mutation_single_element_array(self) -> None:
        envelope = Envelope.model_validate({"data": [wire("8", name="New")]})

        assert unwrap_mutation_result(envelope, "create") == {"id": "8", "type": "documents", "name": "New"}

    def test_mutation_object(self) -> None:
        assert unwrap_mutation_result(Envelope.model_validate({"data": wire("9")}), "update")["id"] == "9"

    def test_mutation_without_body_fails(self) -> None:
        with pytest.raises(EmptyMutationResultError) as exc_info:
            unwrap_mutation_result(None, "update")

        assert exc_info.value.operation == "update"


# ==================== LISTING MERGE ====================


class TestMergePageResults:
    """Combining root and in-folder partitions."""

    def test_dedupes_in_first_sighting_order(self) -> None:
        merged = merge_page_results(page(["1"]), page(["1", "2"]))

        assert [record["id"] for record in merged.data] == ["1", "2"]
        assert merged.total_count == 3

    def test_pagination_from_first_and_has_more_from_either(self) -> None:
        first = page(["1"], total_count=60, page_number=1, page_size=50)
        second = page(["2"], total_count=75, next_page=2, page_number=1, page_size=50)

        merged = merge_page_results(first, second)

        assert merged.page_number == 1
        assert merged.page_size == 50
        assert merged.has_more is True
        assert merged.next_page == 2
        assert merged.total_count == 135

    def test_prefers_first_next_page(self) -> None:
        merged = merge_page_results(page(["1"], next_page=3), page(["2"], next_page=2))

        assert merged.next_page == 3

    def test_empty_partitions(self) -> None:
        merged = merge_page_results(page([]), page([]))

        assert merged.data == []
        assert merged.total_count == 0
        assert merged.has_more is False

    def test_page_result_enforces_has_more(self) -> None:
        with pytest.raises(ValidationError):
            PageResult(data=[], total_count=0, page_number=1, page_size=50, has_more=True, next_page=None)


# ==================== CONFIGURATION ====================


class TestConfiguration:
    """Client construction and environment handling."""

    def test_requires_api_key(self, clean_env) -> None:
        with pytest.raises(ValueError, match="ITGLUE_API_KEY"):
            ITGlueClient()

    def test_reads_environment(self, clean_env) -> None:
        clean_env.setenv("ITGLUE_API_KEY", "env-key")
        clean_env.setenv("ITGLUE_REGION", "EU")
        clean_env.setenv("ITGLUE_TIMEOUT", "12.5")

        client = ITGlueClient()

        assert client.base_url == BASE_URLS["eu"]
        assert client.timeout == 12.5
        assert client.session.headers["x-api-key"] == "env-key"

    def test_jsonapi_headers(self, clean_env) -> None:
        client = ITGlueClient(api_key="k")

        assert client.session.headers["Content-Type"] == "application/vnd.api+json"
        assert client.session.headers["Accept"] == "application/vnd.api+json"
        assert client.timeout == 30.0

    def test_base_url_overrides_region(self) -> None:
        assert resolve_base_url("https://custom.example.com/", "au") == "https://custom.example.com"

    def test_default_and_regions(self) -> None:
        assert resolve_base_url() == "https://api.itglue.com"
        assert resolve_base_url(region="au") == "https://api.au.itglue.com"

    def test_unknown_region(self) -> None:
        with pytest.raises(ValueError, match='Unknown region "mars"'):
            resolve_base_url(region="mars")

    def test_close_releases_session(self, clean_env) -> None:
        client = ITGlueClient(api_key="k")

        with patch.object(client.session, "close") as mock_close:
            client.close()

        mock_close.assert_called_once_with()


# ==================== HTTP CLIENT ====================


class TestHttpClient:
    """Requests issued through the session."""

    def test_get_one(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(200, {"data": wire("456", name="Doc")})

        record = client.get_one("/documents/456")

        assert record["name"] == "Doc"
        mock_request.assert_called_once_with(
            "GET",
            "https://api.itglue.com/documents/456",
            params=None,
            json=None,
            timeout=30.0,
        )

    def test_get_one_array_response(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(200, {"data": [wire("456")]})

        with pytest.raises(UnexpectedShapeError):
            client.get_one("/documents/456")

    def test_get_many_uses_requested_page_size(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(
            200, {"data": [wire("1")], "meta": {"current-page": 1, "next-page": None, "total-count": 1}}
        )

        result = client.get_many("/organizations", build_pagination_params(1, 25))

        assert result.page_size == 25
        assert result.total_count == 1

    def test_post_wraps_data(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(201, {"data": wire("10", name="New")})
        resource = encode_resource("documents", {"organization_id": 1, "name": "New"})

        record = client.post("/documents", resource)

        assert record["id"] == "10"
        assert mock_request.call_args.kwargs["json"] == {
            "data": {"type": "documents", "attributes": {"organization-id": 1, "name": "New"}}
        }

    def test_patch_empty_array(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(200, {"data": []})

        with pytest.raises(EmptyMutationResultError, match="update"):
            client.patch("/documents/1", encode_resource("documents", {"name": "x"}, "1"))

    def test_delete_bulk_body(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(204)

        client.delete("/documents", encode_bulk_delete("documents", [1, 2]))

        assert mock_request.call_args.args[0] == "DELETE"
        assert mock_request.call_args.kwargs["json"] == {
            "data": [
                {"type": "documents", "attributes": {"id": 1}},
                {"type": "documents", "attributes": {"id": 2}},
            ]
        }

    def test_delete_without_body(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(204)

        client.delete("/documents/1/relationships/sections/2")

        assert mock_request.call_args.kwargs["json"] is None

    def test_patch_action_empty_response(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(204)

        assert client.patch_action("/documents/1/publish") is None

    def test_post_action_returns_record(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(200, {"data": [wire("3")]})

        assert client.post_action("/documents/3/copy")["id"] == "3"

    def test_http_error_propagates(self, api_client, make_response) -> None:
        client, mock_request = api_client
        mock_request.return_value = make_response(404, {"errors": [{"title": "Not Found"}]})

        with pytest.raises(requests.exceptions.HTTPError) as exc_info:
            client.get_one("/documents/999")

        assert exc_info.value.response.status_code == 404

    def test_timeout_propagates(self, api_client) -> None:
        client, mock_request = api_client
        mock_request.side_effect = requests.exceptions.ReadTimeout("timed out")

        with pytest.raises(requests.exceptions.Timeout):
            client.get_many("/organizations")


# ==================== DOCUMENT LISTING ====================


class TestListDocuments:
    """Concurrent root and in-folder document queries."""

    @pytest.mark.asyncio
    async def test_issues_both_partitions(self, api_client, make_response) -> None:
        client, mock_request = api_client

        def respond(method, url, params=None, json=None, timeout=None):
            if "filter[document-folder-id][ne]" in params:
                return make_response(200, {"data": [wire("1"), wire("2")], "meta": {"total-count": 2}})
            return make_response(200, {"data": [wire("1")], "meta": {"total-count": 1}})

        mock_request.side_effect = respond
        query = {**build_pagination_params(1, 50), "sort": "name"}

        result = await client.list_documents(12345, query)

        assert [record["id"] for record in result.data] == ["1", "2"]
        assert result.total_count == 3
        assert result.page_size == 50
        assert mock_request.call_count == 2
        for call in mock_request.call_args_list:
            assert call.args[1] == "https://api.itglue.com/organizations/12345/relationships/documents"
            assert call.kwargs["params"]["sort"] == "name"
            assert call.kwargs["params"]["page[size]"] == 50
        sent = [call.kwargs["params"] for call in mock_request.call_args_list]
        assert sum(1 for params in sent if IN_FOLDER_FILTER.items() <= params.items()) == 1
        assert IN_FOLDER_FILTER == {"filter[document-folder-id][ne]": "null"}
        assert {"page[number]": 1, "page[size]": 50, "sort": "name"} in sent
        assert {
            "page[number]": 1,
            "page[size]": 50,
            "sort": "name",
            "filter[document-folder-id][ne]": "null",
        } in sent

    @pytest.mark.asyncio
    async def test_merges_in_call_order_not_completion_order(self, clean_env) -> None:
        client = ITGlueClient(api_key="k")

        def fake_get_many(path, params=None):
            if "filter[document-folder-id][ne]" in params:
                return page(["folder"])
            time.sleep(0.05)
            return page(["root"])

        with patch.object(client, "get_many", side_effect=fake_get_many):
            result = await client.list_documents(1, build_pagination_params(1, 50))

        assert [record["id"] for record in result.data] == ["root", "folder"]

    @pytest.mark.asyncio
    async def test_partition_failure_propagates(self, clean_env) -> None:
        client = ITGlueClient(api_key="k")

        def fake_get_many(path, params=None):
            if "filter[document-folder-id][ne]" in params:
                raise requests.exceptions.ConnectionError("refused")
            return page(["root"])

        with (
            patch.object(client, "get_many", side_effect=fake_get_many),
            pytest.raises(requests.exceptions.ConnectionError),
        ):
            await client.list_documents(1, build_pagination_params(1, 50))

    @pytest.mark.asyncio
    async def test_queries_run_concurrently(self, clean_env) -> None:
        client = ITGlueClient(api_key="k")
        # Both queries must be in flight at once to pass the barrier
        barrier = threading.Barrier(2, timeout=5)

        def fake_get_many(path, params=None):
            barrier.wait()
            return page([])

        with patch.object(client, "get_many", side_effect=fake_get_many) as mock_get_many:
            result = await asyncio.wait_for(client.list_documents(1, build_pagination_params(1, 50)), timeout=10)

        assert mock_get_many.call_count == 2
        assert result.data == []
