from docbatch.errors import DocBatchError, ErrorCode


class PipelineError(DocBatchError):
    """Base exception for orchestrator errors."""


class ProcessingInProgressError(PipelineError):
    """Raised when process() is called while a run is already active."""

    code = ErrorCode.PROCESSING_IN_PROGRESS


class PipelineConfigurationError(PipelineError):
    """Raised when a run asks for a stage that has no collaborator wired in."""

    code = ErrorCode.CONFIGURATION_ERROR
