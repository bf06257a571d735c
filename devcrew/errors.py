"""Structured error types for devcrew."""


class DevcrewError(Exception):
    """Base error for all devcrew operations."""
    pass


class ConfigurationError(DevcrewError):
    """Raised when an orchestrator or worker pool is built from an invalid setup."""
    pass


class TaskStateError(DevcrewError):
    """Raised on an illegal task status transition."""

    def __init__(self, task_id: str, message: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id}: {message}")


class TaskTimeoutError(DevcrewError):
    """Raised when a worker invocation exceeds the task timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Worker timed out after {timeout:g}s")


class OrchestratorBusyError(DevcrewError):
    """Raised when a run is started while another run is in progress."""

    def __init__(self):
        super().__init__("An orchestration run is already in progress")


class ToolError(DevcrewError):
    """Error raised during tool execution."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(f"{tool_name} error: {message}")


class FileOperationError(DevcrewError):
    """Raised when a file operation is rejected or fails."""
    pass


class ShellBlockedError(DevcrewError):
    """Raised when a shell command is blocked by safety guards."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Blocked: {reason}")


class ShellTimeoutError(DevcrewError):
    """Raised when a shell command exceeds its timeout."""

    def __init__(self, timeout: int):
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s")


class TaskCancelledError(DevcrewError):
    """Raised inside a worker call whose caller has given up on it."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Worker call for {role} was cancelled")
