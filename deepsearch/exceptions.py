"""Error taxonomy for the research pipeline."""


class DeepSearchError(Exception):
    """Base exception for research pipeline errors."""

    pass


class InputError(DeepSearchError):
    """Raised when a query or topic is empty or malformed."""

    pass


class ProviderError(DeepSearchError):
    """Raised when the language-model provider is unreachable, misconfigured, or rate-limited."""

    pass


class PlanningError(DeepSearchError):
    """Raised when a research topic could not be decomposed into subtasks."""

    pass


class PlanParseError(PlanningError):
    """Raised when model output does not contain a well-formed subtask list."""

    pass


class SubtaskError(DeepSearchError):
    """A single subtask's model call failed.

    Never escalated past the task executor: the message becomes the
    subtask's recorded content.
    """

    def __init__(self, task_id: str, reason: str):
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"Error conducting research for this subtask: {reason}")


class PipelineTimeoutError(DeepSearchError):
    """Raised when a pipeline run exceeds its overall time budget."""

    pass
