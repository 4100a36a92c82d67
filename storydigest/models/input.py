"""
Normalized input models.

The Input Normalizer turns a raw blob into a NormalizedInput: a format tag,
a content-type guess, a language guess, and (for subtitle or meeting
inputs) a uniform list of timestamped, speaker-attributed entries.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SourceFormat(str, Enum):
    """Detected input format."""

    PLAIN_TEXT = "plain_text"
    SUBTITLE = "subtitle"
    CHAT_EXPORT = "chat_export"
    JSON_MEETING = "json_meeting"


class ContentType(str, Enum):
    """Generic content category from the rule-based classifier."""

    TRANSCRIPT = "transcript"
    REQUIREMENTS = "requirements"
    TECHNICAL_SPEC = "technical_spec"
    MEETING_NOTES = "meeting_notes"
    USER_STORY = "user_story"
    BUG_REPORT = "bug_report"
    DOCUMENTATION = "documentation"
    EMAIL_THREAD = "email_thread"
    CODE = "code"
    UNKNOWN = "unknown"


class LanguageResult(BaseModel):
    """Language detection outcome."""

    language: str = Field(default="unknown", description="ISO 639-1 code or 'unknown'")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    script: str = Field(default="unknown", description="Dominant script class")
    scores: dict[str, float] = Field(default_factory=dict)


class NormalizedEntry(BaseModel):
    """One timestamped, speaker-attributed text segment."""

    timestamp_ms: int | None = Field(default=None, ge=0)
    speaker: str | None = None
    text: str

    @property
    def prefix(self) -> str:
        """The ``[hh:mm:ss] Speaker: `` marker written before the text when rendered."""
        prefix = ""
        if self.timestamp_ms is not None:
            seconds = self.timestamp_ms // 1000
            prefix += f"[{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}] "
        if self.speaker:
            prefix += f"{self.speaker}: "
        return prefix



class NormalizedInput(BaseModel):
    """Uniform view of an ingested transcript."""

    format: SourceFormat = SourceFormat.PLAIN_TEXT
    content_type: ContentType = ContentType.UNKNOWN
    content_score: float = 0.0
    language: LanguageResult = Field(default_factory=LanguageResult)
    text: str = Field(default="", description="Full text used for downstream passes")
    entries: list[NormalizedEntry] = Field(default_factory=list)
    word_count: int = 0
    char_count: int = 0
    token_count: int = 0

    @property
    def has_entries(self) -> bool:
        """True for subtitle and meeting inputs parsed into entries."""
        return bool(self.entries)
