"""
Custom Exceptions
Error taxonomy for the digest pipeline
"""


class PipelineError(Exception):
    """Base error for every pipeline failure."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationMissingError(PipelineError):
    """No configuration source yields a value for a required key."""

    def __init__(self, key: str, **kwargs):
        super().__init__(f'Configuration key "{key}" not found in any source', kwargs)
        self.key = key


class InvalidInputError(PipelineError):
    """Structurally invalid input; never retried."""
    pass


class SourceFailureError(PipelineError):
    """A single source could not be scraped."""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class RankingError(PipelineError):
    """Ranking failed after all retries."""
    pass


class MalformedRankingLineError(RankingError):
    """A ranking reply line does not decompose into one id and one score."""

    def __init__(self, line: str, line_no: int = None):
        super().__init__(f"Invalid ranking line: {line!r}", {"line_no": line_no} if line_no else None)
        self.line = line
        self.line_no = line_no


class EnrichmentError(PipelineError):
    """Summarization of a single item failed."""

    def __init__(self, message: str, item_id: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.item_id = item_id


class EmptyWorkingSetError(PipelineError):
    """Nothing was collected; a normal negative outcome."""
    pass


class CoverAssetError(PipelineError):
    """Cover image generation or upload failed."""
    pass


class PublishError(PipelineError):
    """Publishing the rendered document failed."""

    def __init__(self, message: str, platform: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.platform = platform


class TaskFailedError(PipelineError):
    """A long-running external task reached FAILED."""

    def __init__(self, message: str, task_id: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.task_id = task_id


class TaskTimeoutError(PipelineError):
    """A long-running external task did not finish within the poll budget."""

    def __init__(self, message: str, task_id: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.task_id = task_id


class CredentialError(PipelineError):
    """A credential could not be obtained or was unusable."""
    pass


class UnsupportedProviderError(PipelineError):
    """A provider kind string does not name a registered backend."""

    def __init__(self, kind: str, registry: str = "provider"):
        super().__init__(f"Unsupported {registry} kind: {kind}")
        self.kind = kind


class LLMError(PipelineError):
    """LLM call failed or returned an unusable reply."""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class PipelineTimeoutError(PipelineError):
    """The run exceeded its wall-clock deadline."""
    pass
