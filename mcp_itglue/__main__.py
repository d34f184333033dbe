"""Allow running the server with ``python -m mcp_itglue``."""

from .server import main

if __name__ == "__main__":
    main()
