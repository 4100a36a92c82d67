"""
Custom exception hierarchy for StoryDigest.

Provides structured error types for better error handling and debugging.
All exceptions inherit from DigestError for easy catching.
"""


class DigestError(Exception):
    """
    Base exception for all StoryDigest errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize StoryDigest error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(DigestError):
    """
    Document store errors.
    Raised when a persisted document cannot be read, validated or written.
    """

    pass


class SessionError(DigestError):
    """
    Base exception for session lifecycle errors.
    """

    pass


class NoActiveSessionError(SessionError):
    """
    Raised when a phase-level command runs without an active session.
    """

    def __init__(self, command: str = "new <input>"):
        super().__init__(
            f"No active digest session. Run `{command}` first.",
            context={"required_command": command},
        )


class SessionNotFoundError(SessionError):
    """
    Raised when a session id is not present in the registry.
    """

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}", context={"session_id": session_id})


class PrerequisiteError(SessionError):
    """
    Raised when a phase runs before the phase whose output it needs.
    """

    def __init__(self, phase: str, required_command: str):
        super().__init__(
            f"Cannot run {phase}: run `{required_command}` first.",
            context={"phase": phase, "required_command": required_command},
        )


class ValidationError(DigestError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class StoryValidationError(ValidationError):
    """
    Story edit commit rejected.

    Carries field-level messages as a list of {"field", "message"} dicts.
    """

    def __init__(self, story_id: str, field_errors: list[dict[str, str]]):
        fields = ", ".join(error["field"] for error in field_errors)
        super().__init__(
            f"Story {story_id} rejected: invalid {fields}",
            context={"story_id": story_id, "field_errors": field_errors},
        )
        self.field_errors = field_errors


class OverrideRequiredError(DigestError):
    """
    Raised for destructive or irreversible actions invoked without the override flag.
    """

    pass


class NotFoundError(DigestError):
    """
    Resource not found errors.
    Raised when a requested story, question or topic doesn't exist.
    """

    pass


class ConfigurationError(DigestError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass
