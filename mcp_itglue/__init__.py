"""MCP server exposing ITGlue organizations and documents to LLM agents."""

__version__ = "1.0.0"
