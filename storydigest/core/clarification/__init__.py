"""
Clarification engine module.

Question generation (gaps, vagueness, contradictions, ambiguous topics),
answer parsing, voice-transcript cleanup and follow-up triggers.
"""

from storydigest.core.clarification.followups import detect_followups
from storydigest.core.clarification.parser import AnswerParser, ParsedAnswers
from storydigest.core.clarification.questions import (
    GapDetector,
    QuestionIds,
    VaguenessDetector,
    ambiguous_topic_question,
    contradiction_question,
)
from storydigest.core.clarification.templates import (
    CONTRADICTION_BOTH_OPTION,
    ENTITY_DETAILS,
    QUESTION_TEMPLATES,
    DetailSpec,
    get_template,
)
from storydigest.core.clarification.voice import (
    VoiceAnalysis,
    VoiceNormalizer,
    answer_confidence,
    words_to_number,
)

__all__ = [
    "GapDetector",
    "VaguenessDetector",
    "QuestionIds",
    "contradiction_question",
    "ambiguous_topic_question",
    "AnswerParser",
    "ParsedAnswers",
    "VoiceNormalizer",
    "VoiceAnalysis",
    "answer_confidence",
    "words_to_number",
    "detect_followups",
    "ENTITY_DETAILS",
    "QUESTION_TEMPLATES",
    "CONTRADICTION_BOTH_OPTION",
    "DetailSpec",
    "get_template",
]
