"""Shared fixtures for ITGlue MCP tests."""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import Mock, patch

import pytest
import requests

from mcp_itglue.client import ITGlueClient
from mcp_itglue.server import ITGlueMCPServer


@pytest.fixture
def decorator_capturer():
    """Capture functions registered through a FastMCP decorator.

    Usage:
        captured, capture = decorator_capturer(server.mcp.tool)
        server.mcp.tool = capture
        server._setup_tools()
        captured["itglue_get_document"](params)

    Tools and prompts are keyed by function name, resources by URI template.
    """

    def make_capturer(_original: Callable[..., Any]) -> tuple[dict[str, Callable[..., Any]], Callable[..., Any]]:
        captured: dict[str, Callable[..., Any]] = {}

        def capture(*args: Any, **kwargs: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                key = args[0] if args and isinstance(args[0], str) else kwargs.get("name") or func.__name__
                captured[key] = func
                return func

            return decorator

        return captured, capture

    return make_capturer


@pytest.fixture
def make_response():
    """Factory for real ``requests.Response`` objects with a JSON:API body."""

    def factory(status_code: int = 200, payload: Any = None, url: str = "https://api.itglue.com/test") -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        response.headers["Content-Type"] = "application/vnd.api+json"
        response.encoding = "utf-8"
        response.url = url
        return response

    return factory


@pytest.fixture
def clean_env(monkeypatch):
    """Remove ITGlue configuration from the environment."""
    for name in ("ITGLUE_API_KEY", "ITGLUE_BASE_URL", "ITGLUE_REGION", "ITGLUE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def api_client(clean_env):
    """ITGlueClient whose session.request is mocked."""
    client = ITGlueClient(api_key="test-key")
    with patch.object(client.session, "request") as mock_request:
        yield client, mock_request


@pytest.fixture
def mock_itglue_client():
    """Fixture that provides a mocked ITGlueClient class and instance."""
    with patch("mcp_itglue.server.ITGlueClient") as mock_client_class:
        mock_instance = Mock()
        mock_instance.base_url = "https://api.itglue.com"
        mock_client_class.return_value = mock_instance
        yield mock_instance, mock_client_class


@pytest.fixture
def server_instance():
    """Fixture that provides an ITGlueMCPServer with a mock client."""
    server_inst = ITGlueMCPServer()
    server_inst.client = Mock()
    return server_inst


@pytest.fixture
def tools(server_instance, decorator_capturer):
    """Tool functions of ``server_instance`` keyed by name."""
    test_tools, capture_tool = decorator_capturer(server_instance.mcp.tool)
    server_instance.mcp.tool = capture_tool  # type: ignore[method-assign, assignment]
    server_instance.get_client = lambda: server_instance.client  # type: ignore[method-assign, assignment, return-value]
    server_instance._setup_tools()
    return test_tools


@pytest.fixture
def organization_record():
    """Flat organization record as returned by the client."""
    return {
        "id": "12345",
        "type": "organizations",
        "name": "Acme Corp",
        "description": "Managed services customer",
        "organization_type_id": 3,
        "organization_type_name": "Customer",
        "organization_status_id": 1,
        "organization_status_name": "Active",
        "short_name": "ACME",
        "primary": False,
        "quick_notes": None,
        "alert": None,
        "created_at": "2024-01-01T00:00:00.000Z",
        "updated_at": "2024-01-15T10:30:00.000Z",
    }


@pytest.fixture
def document_record():
    """Flat document record as returned by the client."""
    return {
        "id": "456",
        "type": "documents",
        "name": "Server Maintenance Runbook",
        "organization_id": 12345,
        "organization_name": "Acme Corp",
        "document_folder_id": None,
        "resource_url": "https://acme.itglue.com/12345/docs/456",
        "published": True,
        "created_at": "2024-01-02T00:00:00.000Z",
        "updated_at": "2024-01-16T08:00:00.000Z",
    }


@pytest.fixture
def section_record():
    """Flat document section record as returned by the client."""
    return {
        "id": "789",
        "type": "document-sections",
        "document_id": 456,
        "resource_id": 1001,
        "resource_type": "Document::Text",
        "content": "<p>Reboot the <strong>primary</strong> server.</p>",
        "rendered_content": "<p>Reboot the <strong>primary</strong> server.</p>",
        "sort": 0,
        "level": None,
        "duration": None,
        "created_at": "2024-01-02T00:00:00.000Z",
        "updated_at": "2024-01-16T08:00:00.000Z",
    }
