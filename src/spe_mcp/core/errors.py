"""Custom exception types for the SharePoint Embedded tool server.

Error messages state what failed, why, and how to fix it where that is
known. Tool handlers convert every one of these into a plain string for
the MCP host, so nothing here ever reaches the agent as an exception.
"""


class SpeMcpError(Exception):
    """Base exception for all SharePoint Embedded tool server errors."""

    pass


class ConfigValidationError(SpeMcpError):
    """Raised when configuration fails Pydantic validation.

    Includes specific field errors with actionable messages.
    """

    pass


class ConfigLoadError(SpeMcpError):
    """Raised when config.yaml cannot be loaded (YAML parse error, wrong shape)."""

    pass


class AuthenticationError(SpeMcpError):
    """Raised when MSAL client-credentials acquisition fails."""

    pass


class GraphAPIError(SpeMcpError):
    """Raised when Microsoft Graph API returns an error.

    Attributes:
        status_code: HTTP status code from the API
        error_code: Error code from Graph API response (if available)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class RateLimitExceeded(GraphAPIError):
    """Raised when Graph keeps answering 429 after all retries."""

    def __init__(self, message: str, retry_after: str | None = None):
        super().__init__(message, status_code=429, error_code="TooManyRequests")
        self.retry_after = retry_after


class UploadPreconditionError(SpeMcpError):
    """Raised when a folder upload cannot start.

    The local folder is missing or contains no files. No remote call has
    been made when this is raised.

    Attributes:
        local_path: The local folder path that failed the check
    """

    def __init__(self, message: str, local_path: str):
        super().__init__(message)
        self.local_path = local_path


class FileTooLargeError(SpeMcpError):
    """Raised when a local file is over the single-request upload limit.

    Checked from the file size alone, before the content is read.

    Attributes:
        local_path: The local file that was rejected
        size: File size in bytes
        limit: The limit it exceeded, in bytes
    """

    def __init__(self, message: str, local_path: str, size: int, limit: int):
        super().__init__(message)
        self.local_path = local_path
        self.size = size
        self.limit = limit
