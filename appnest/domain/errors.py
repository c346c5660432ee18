class AppError(Exception):
    """Base class for app lifecycle errors."""


class InvalidAppIdError(AppError, ValueError):
    def __init__(self, app_id):
        super().__init__(f"Invalid app ID: {app_id!r}")
        self.app_id = app_id


class AppNotFoundError(AppError):
    def __init__(self, app_id: str):
        super().__init__(f"App not installed: {app_id}")
        self.app_id = app_id


class ScriptError(AppError):
    """The app script exited with a non-zero status."""

    def __init__(self, action: str, app_id: str, exit_code: int, stderr: str = ""):
        message = f"App script '{action}' failed for {app_id} (exit code {exit_code})"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.action = action
        self.app_id = app_id
        self.exit_code = exit_code
        self.stderr = stderr


class EngineError(AppError):
    """The container engine could not be reached or rejected a request."""
