"""Exception hierarchy for ytvault.

Messages say what happened and, where there is one, what to do next.
"""


class YtVaultError(Exception):
    """Base class for all ytvault errors."""


class ConfigError(YtVaultError):
    """Configuration is missing a required value or has an invalid one."""


class AuthenticationError(YtVaultError):
    """Credentials are missing, expired, or were rejected by the API."""


class ApiError(YtVaultError):
    """The YouTube Data API call failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class AssetDownloadError(YtVaultError):
    """A thumbnail could not be downloaded. Any partial file has been removed."""

    def __init__(self, url: str, path, reason: str):
        super().__init__(f"Could not download {url} to {path}: {reason}")
        self.url = url
        self.path = path


class TemplateError(YtVaultError):
    """A note template could not be loaded or compiled."""

    def __init__(self, template_ref: str, reason: str):
        super().__init__(
            f"Template '{template_ref}' failed: {reason}. "
            f"Check templates.video / templates.channel in config.yaml."
        )
        self.template_ref = template_ref


class FrontmatterError(YtVaultError):
    """A note's front matter is not a valid YAML mapping."""

    def __init__(self, path, reason: str):
        super().__init__(f"Invalid front matter in {path}: {reason}")
        self.path = path
