"""MSAL client credentials authentication for Microsoft Graph API.

SharePoint Embedded containers are accessed with app-only permissions, so
this uses the OAuth2 client credentials grant with a client secret. There
is no interactive sign-in and no token cache on disk: MSAL keeps issued
tokens in memory and hands back the cached one until it nears expiry.

Building the MSAL application fetches the tenant's OpenID configuration,
so it is deferred to the first token request and retried with it.

Usage:
    from spe_mcp.auth.msal_auth import GraphAuth
    from spe_mcp.config import get_config

    config = get_config()
    auth = GraphAuth(
        tenant_id=config.auth.tenant_id,
        client_id=config.auth.client_id,
        client_secret=config.auth.client_secret.get_secret_value(),
        authority_host=config.auth.authority_host,
        scopes=config.auth.scopes,
    )

    token = auth.get_access_token()
"""

import random
import threading
import time

import msal
import requests

from spe_mcp.config_schema import GRAPH_DEFAULT_SCOPE
from spe_mcp.core.errors import AuthenticationError
from spe_mcp.core.logging import get_logger

logger = get_logger(__name__)

# Retry configuration for MSAL operations
MSAL_MAX_RETRIES = 3
MSAL_RETRY_DELAYS = [1.0, 2.0, 4.0]  # Exponential backoff with jitter


class GraphAuth:
    """Acquires app-only Graph tokens via MSAL client credentials flow.

    Attributes:
        tenant_id: Azure AD Directory (tenant) ID
        client_id: Azure AD Application (client) ID
        authority: Full authority URL for the tenant
        scopes: Scopes requested (normally the Graph ``.default`` scope)
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        authority_host: str = "https://login.microsoftonline.com",
        scopes: list[str] | None = None,
    ):
        """Initialize the Graph authentication handler.

        Args:
            tenant_id: Azure AD Directory (tenant) ID
            client_id: Azure AD Application (client) ID
            client_secret: Client secret registered for the application
            authority_host: Azure AD authority host
            scopes: Scopes to request (default: Graph .default scope)

        Raises:
            ValueError: If any credential is empty
        """
        if not tenant_id or not client_id or not client_secret:
            raise ValueError(
                "Azure AD application credentials are missing. "
                "Provide tenant_id, client_id and client_secret in config.yaml "
                "or via AZURE_TENANT_ID / AZURE_CLIENT_ID / AZURE_CLIENT_SECRET."
            )

        self.tenant_id = tenant_id
        self.client_id = client_id
        self.authority = f"{authority_host.rstrip('/')}/{tenant_id}"
        self.scopes = scopes or [GRAPH_DEFAULT_SCOPE]

        self._client_secret = client_secret
        self._app: msal.ConfidentialClientApplication | None = None
        self._app_lock = threading.Lock()

        logger.debug(
            "GraphAuth initialized",
            client_id=client_id[:8] + "...",
            tenant_id=tenant_id[:8] + "...",
            scopes=self.scopes,
        )

    def _get_app(self) -> msal.ConfidentialClientApplication:
        """Return the MSAL application, building it on first use.

        Raises:
            requests.exceptions.RequestException: If tenant discovery fails
            AuthenticationError: If Azure AD rejects the authority or tenant
        """
        with self._app_lock:
            if self._app is None:
                try:
                    self._app = msal.ConfidentialClientApplication(
                        client_id=self.client_id,
                        client_credential=self._client_secret,
                        authority=self.authority,
                    )
                except ValueError as e:
                    logger.error("Invalid authority", authority=self.authority, error=str(e))
                    raise AuthenticationError(
                        f"Azure AD rejected authority {self.authority}: {e}. "
                        "Check tenant_id and authority_host."
                    ) from e
            return self._app

    def get_access_token(self) -> str:
        """Get a valid app-only access token.

        Returns:
            Access token string for Microsoft Graph API

        Raises:
            AuthenticationError: If the token cannot be acquired
        """
        result = self._acquire_token_with_retry()

        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            error_desc = result.get("error_description", "Token acquisition failed")

            if error == "invalid_client" or "AADSTS7000215" in error_desc:
                logger.error("Client secret rejected", error=error)
                raise AuthenticationError(
                    "The client secret was rejected by Azure AD. "
                    "Check that the secret value (not its ID) is configured and has not expired."
                )
            if "AADSTS700016" in error_desc:
                logger.error("Application not found in tenant", error=error)
                raise AuthenticationError(
                    f"Application {self.client_id} was not found in tenant {self.tenant_id}. "
                    "Check client_id and tenant_id."
                )

            logger.error("Client credentials authentication failed", error=error, description=error_desc)
            raise AuthenticationError(f"Authentication failed: {error_desc}")

        logger.debug(
            "Access token acquired",
            source=result.get("token_source", "identity_provider"),
        )
        return result["access_token"]

    def _acquire_token_with_retry(self) -> dict:
        """Acquire token for the client with retry logic for transient network errors.

        Covers building the MSAL application as well as the token request.

        Returns:
            Token result dict from MSAL

        Raises:
            AuthenticationError: If all retries fail on network errors
        """
        last_error: Exception | None = None

        for attempt in range(MSAL_MAX_RETRIES):
            try:
                return self._get_app().acquire_token_for_client(scopes=self.scopes)
            except requests.exceptions.RequestException as e:
                last_error = e
                if attempt < MSAL_MAX_RETRIES - 1:
                    delay = MSAL_RETRY_DELAYS[attempt]
                    jitter = delay * 0.2 * (2 * random.random() - 1)
                    actual_delay = delay + jitter
                    logger.warning(
                        "Token acquisition failed, retrying",
                        attempt=attempt + 1,
                        max_retries=MSAL_MAX_RETRIES,
                        delay=actual_delay,
                        error=str(e),
                    )
                    time.sleep(actual_delay)

        raise AuthenticationError(
            f"Failed to acquire token after {MSAL_MAX_RETRIES} attempts: {last_error}. "
            "Check your network connection and try again."
        ) from last_error
