"""
PromptShot Custom Exceptions

Custom exception classes for error handling throughout the PromptShot workflow.
"""

from .constants import DEFAULT_SERVICE_ERROR_MESSAGE


class PromptShotError(Exception):
    """Base exception for all PromptShot errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    @property
    def user_message(self) -> str:
        """Message suitable for display in the workflow's error field."""
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(PromptShotError):
    """Raised when there's an issue with configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration is missing."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# WORKFLOW ERRORS
# =============================================================================

class WorkflowError(PromptShotError):
    """Base exception for workflow errors."""
    pass


class InputValidationError(WorkflowError):
    """Raised when a local precondition is unmet (empty script, bad upload)."""
    pass


class InvalidTransitionError(WorkflowError):
    """Raised when an action is not allowed from the current stage."""

    def __init__(self, stage: str, action: str):
        message = f"Action '{action}' is not available at stage '{stage}'"
        super().__init__(message, {"stage": stage, "action": action})


class StageBusyError(WorkflowError):
    """Raised when an action is triggered while a completion call is outstanding."""

    def __init__(self, action: str):
        message = "A request is already in progress. Please wait for it to finish."
        super().__init__(message, {"action": action})


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(PromptShotError):
    """Base exception for LLM-related errors."""
    pass


class ServiceError(LLMError):
    """Raised when the completion gateway fails (transport, auth, quota, request)."""

    def __init__(self, message: str = None, provider: str = None):
        details = {"provider": provider} if provider else None
        super().__init__(message or DEFAULT_SERVICE_ERROR_MESSAGE, details)


class MalformedOutputError(LLMError):
    """Raised when a structured response fails to parse under its contract."""

    def __init__(self, reason: str, raw_output: str = None):
        message = f"The AI returned malformed output: {reason}"
        details = {"reason": reason}
        if raw_output is not None:
            details["raw_output"] = raw_output[:200]
        super().__init__(message, details)
