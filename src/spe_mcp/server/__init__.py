"""MCP server surface for SharePoint Embedded.

Usage:
    from spe_mcp.server import create_server

    create_server().run()
"""

from spe_mcp.server.app import create_server

__all__ = ["create_server"]
