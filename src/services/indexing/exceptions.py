"""Exceptions raised while discovering and configuring an analysis run."""


class ManifestError(Exception):
    """Raised when a solution or project manifest is missing or malformed."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{message} [path={path}]" if path else message)


class InvalidAnalyzerConfigError(ValueError):
    """Raised when the analyzer is started with inconsistent options."""
