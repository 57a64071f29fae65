"""Custom exception classes for the surveillance pipelines."""


class PipelineError(Exception):
    """Base class for every fatal pipeline error."""


class ConfigError(PipelineError):
    """Raised when config.yaml holds invalid values."""


class SchemaError(PipelineError):
    """Raised when an input table does not match its declared schema."""
    def __init__(self, message, source=None, column=None):
        super().__init__(message)
        self.source = source
        self.column = column

    def __str__(self):
        location = ", ".join(
            part for part in (
                f"source: {self.source}" if self.source is not None else None,
                f"column: {self.column}" if self.column is not None else None,
            ) if part
        )
        if location:
            return f"SchemaError: {self.args[0]} ({location})"
        return f"SchemaError: {self.args[0]}"


class DataValidationError(PipelineError):
    """Raised when a parsed table breaks an ordering or completeness rule."""


class NetworkError(PipelineError):
    """Raised on unreachable hosts and non-success HTTP responses."""
    def __init__(self, message, status_code=None, url=None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    def __str__(self):
        return f"NetworkError: {self.args[0]} (Status: {self.status_code})"


class ArchiveNotFoundError(PipelineError):
    """Raised when the download page no longer contains a matching archive link."""
    def __init__(self, message, page_url=None):
        super().__init__(message)
        self.page_url = page_url


class ArchiveMemberError(PipelineError):
    """Raised when the downloaded archive is unreadable or lacks the expected member."""
    def __init__(self, message, member=None):
        super().__init__(message)
        self.member = member
