"""Exception hierarchy for acp_session."""


class AcpSessionError(Exception):
    """Base class for errors raised by acp_session."""


class StepFailedError(AcpSessionError):
    """Raised when an ordered step fails after completed steps were unwound.

    Attributes:
        step_name: Name of the step that raised
    """

    def __init__(self, step_name: str, message: str) -> None:
        self.step_name = step_name
        super().__init__(f"Step '{step_name}' failed: {message}")


class SnapshotApplyError(AcpSessionError):
    """Raised when a working-tree snapshot cannot be restored."""


class TaskRunClientError(AcpSessionError):
    """Raised when the run metadata / log / artifact service fails."""
