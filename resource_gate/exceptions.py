"""Custom exceptions for the resource gate with user-friendly messages."""


class ResourceGateError(Exception):
    """Base exception for resource gate errors."""

    def __init__(self, message: str, user_hint: str | None = None):
        self.message = message
        self.user_hint = user_hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.user_hint:
            return f"{self.message}\n  Hint: {self.user_hint}"
        return self.message


class ConfigurationError(ResourceGateError):
    """A setting or allowlist entry is malformed."""

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        super().__init__(
            message=f"Invalid {setting}: {reason}",
            user_hint=f"Check the {setting} value in your .env file",
        )


class ResourceNotPermittedError(ResourceGateError):
    """URL failed validation. The reason code is for logs only."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(message="Resource URL is not permitted")


class MetadataFetchError(ResourceGateError):
    """Fetching or parsing a resource page failed."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        full_msg = f"{message}" + (f" (URL: {url})" if url else "")
        super().__init__(message=full_msg)
