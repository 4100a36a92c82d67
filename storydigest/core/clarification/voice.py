"""
Voice-transcript detection and cleanup for clarification answers.

Detection signals: filler-word density, self-correction markers and
run-on shape. Cleaning digitizes spoken numbers, collapses
self-corrections to the corrected segment, strips fillers and inserts
basic punctuation.
"""

import re

from pydantic import BaseModel, Field

from storydigest.config import ClarificationConfig
from storydigest.core.rules.tables import (
    SELF_CORRECTION_RULES,
    UNCERTAINTY_RULES,
    VOICE_FILLER_RULES,
    YES_NO_RULES,
)
from storydigest.utils.text import word_count

BASE_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 1.0

UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
SCALES = {"hundred": 100, "thousand": 1000, "million": 1_000_000}
ONE_DETERMINERS = {
    "the", "this", "that", "which", "each", "every", "any", "another",
    "other", "no", "some", "a", "an",
}
NUMBER_WORD = re.compile(
    r"\b(?:" + "|".join(list(UNITS) + list(TENS) + list(SCALES)) + r")\b(?:[\s-]+(?:and\s+)?"
    r"(?:" + "|".join(list(UNITS) + list(TENS) + list(SCALES)) + r")\b)*",
    re.IGNORECASE,
)
CORRECTION_MARKER = re.compile(
    r",?\s*\b(no wait|scratch that|i mean|sorry|actually no|let me rephrase)\b[,.]?\s*",
    re.IGNORECASE,
)
RUN_ON_CONNECTOR = re.compile(r"\s+(and then|but|also|so)\s+", re.IGNORECASE)


class VoiceAnalysis(BaseModel):
    """Voice detection outcome."""

    is_voice: bool = False
    filler_density: float = 0.0
    self_corrections: list[str] = Field(default_factory=list)
    run_on: bool = False


def words_to_number(phrase: str) -> int | None:
    """Convert a spoken number ("twenty five", "two hundred") to an int."""
    total = current = 0
    seen = False
    for token in re.split(r"[\s-]+", phrase.lower()):
        if token in ("", "and"):
            continue
        if token in UNITS:
            current += UNITS[token]
        elif token in TENS:
            current += TENS[token]
        elif token in SCALES:
            scale = SCALES[token]
            if scale == 100:
                current = max(current, 1) * scale
            else:
                total += max(current, 1) * scale
                current = 0
        else:
            return None
        seen = True
    return total + current if seen else None


def _is_pronoun_one(text: str, match: re.Match) -> bool:
    """A lone "one" after a determiner ("the one", "the left one") is not a number."""
    if match.group(0).lower() != "one":
        return False
    preceding = re.findall(r"[a-z']+", text[: match.start()].lower())[-2:]
    return any(word in ONE_DETERMINERS for word in preceding)


def digitize_numbers(text: str) -> str:
    def replace(match: re.Match) -> str:
        if _is_pronoun_one(text, match):
            return match.group(0)
        value = words_to_number(match.group(0))
        return str(value) if value is not None else match.group(0)

    return NUMBER_WORD.sub(replace, text)



def collapse_self_corrections(text: str) -> str:
    """
    Keep the corrected segment of "X, no wait, Y".

    When the correction starts with a number, only the last number of the
    preceding clause is replaced; otherwise the whole preceding clause is.
    """
    while True:
        match = CORRECTION_MARKER.search(text)
        if not match:
            return text
        before, after = text[: match.start()], text[match.end() :]
        clause_start = max(before.rfind(","), before.rfind("."), before.rfind(";")) + 1
        clause = before[clause_start:]
        numbers_in_clause = list(re.finditer(r"\d+(?:\.\d+)?", clause))
        if re.match(r"\s*\d", after) and numbers_in_clause:
            kept = before[: clause_start + numbers_in_clause[-1].start()]
        else:
            kept = before[:clause_start]
            if kept and not kept.endswith(" "):
                kept += " "
        text = kept + after.lstrip()


def strip_fillers(text: str) -> str:
    for rule in VOICE_FILLER_RULES:
        text = rule.regex.sub(" ", text).strip()
    return text


def punctuate(text: str, run_on_words: int) -> str:
    text = re.sub(r"\s+", " ", text).strip()
    text = re.sub(r"\s+([,.!?])", r"\1", text)
    text = re.sub(r"([,.!?])\1+", r"\1", text)
    text = re.sub(r"^[,.\s]+", "", text)
    if word_count(text) >= run_on_words and not re.search(r"[.!?]\s", text):
        text = RUN_ON_CONNECTOR.sub(lambda m: f". {m.group(1).capitalize()} ", text)
    if text:
        text = text[0].upper() + text[1:]
        if text[-1] not in ".!?":
            text += "."
    return text


class VoiceNormalizer:
    """Detects and cleans voice-transcribed answers; scores answer confidence."""

    def __init__(self, config: ClarificationConfig | None = None):
        self.config = config or ClarificationConfig()

    def analyze(self, text: str) -> VoiceAnalysis:
        words = word_count(text)
        if not words:
            return VoiceAnalysis()
        fillers = sum(
            rule.count(text) for rule in VOICE_FILLER_RULES if rule.label in ("pause", "discourse")
        )
        density = fillers / words
        corrections = SELF_CORRECTION_RULES.matching_labels(text)
        sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
        longest = max((word_count(s) for s in sentences), default=0)
        run_on = longest >= self.config.voice_run_on_words
        is_voice = density >= self.config.voice_filler_density or (
            bool(corrections) and (run_on or fillers > 0)
        )
        return VoiceAnalysis(
            is_voice=is_voice,
            filler_density=round(density, 3),
            self_corrections=corrections,
            run_on=run_on,
        )

    def is_voice(self, text: str) -> bool:
        return self.analyze(text).is_voice

    def clean(self, text: str) -> str:
        """Normalize a voice transcript into a typed-looking answer."""
        text = digitize_numbers(text)
        text = collapse_self_corrections(text)
        text = strip_fillers(text)
        return punctuate(text, self.config.voice_run_on_words)

    def normalize(self, text: str, voice: bool | None = None) -> tuple[str, bool]:
        """
        Clean text when it is (or is forced to be) a voice transcript.

        Returns:
            (text, whether cleaning was applied)
        """
        apply = self.is_voice(text) if voice is None else voice
        return (self.clean(text), True) if apply else (text.strip(), False)


def answer_confidence(text: str) -> float:
    """Base confidence, penalized for uncertainty, boosted for yes/no phrasing."""
    confidence = BASE_CONFIDENCE
    confidence -= UNCERTAINTY_RULES.weight_of_matches(text)
    confidence = max(MIN_CONFIDENCE, confidence)
    confidence += YES_NO_RULES.weight_of_matches(text)
    return round(min(MAX_CONFIDENCE, confidence), 2)
