"""Authentication module for Microsoft Graph API.

Provides MSAL-based OAuth2 client credentials (app-only) authentication.

Usage:
    from spe_mcp.auth import GraphAuth

    auth = GraphAuth(
        tenant_id="your-tenant-id",
        client_id="your-client-id",
        client_secret="your-client-secret",
    )

    token = auth.get_access_token()
"""

from spe_mcp.auth.msal_auth import GraphAuth

__all__ = ["GraphAuth"]
