"""
Free-text answer parsing.

Strategies, in order (first success wins):
1. numbered list ("1. ... 2. ..."), markers counting up from 1
2. keyword-anchored phrases matched against each question's keywords
3. single-question passthrough
4. positional sentence split, only when the segment count equals the
   number of pending questions
"""

import re

from pydantic import BaseModel, Field

from storydigest.core.extraction.statements import split_sentences
from storydigest.models.clarification import ClarificationQuestion
from storydigest.utils.text import contains_term

NUMBER_MARKER = re.compile(r"(?:^|(?<=\s))(\d{1,2})[.)]\s+")
SEGMENT_SPLIT = re.compile(r"\s*;\s*")


class ParsedAnswers(BaseModel):
    """Answers mapped to question ids."""

    strategy: str | None = None
    answers: dict[str, str] = Field(default_factory=dict)

    @property
    def parsed(self) -> bool:
        return bool(self.answers)


def _segments(text: str) -> list[str]:
    parts: list[str] = []
    for sentence in split_sentences(text):
        parts.extend(p.strip() for p in SEGMENT_SPLIT.split(sentence) if p.strip())
    return parts


class AnswerParser:
    """Maps a free-text reply onto the presented questions."""

    def parse_numbered(
        self, text: str, pending: list[ClarificationQuestion]
    ) -> dict[str, str]:
        # Only 1, 2, 3, ... in order are markers; "at most 10. " stays in the body
        markers = []
        for marker in NUMBER_MARKER.finditer(text):
            if int(marker.group(1)) == len(markers) + 1:
                markers.append(marker)
        if not markers:
            return {}
        answers: dict[str, str] = {}
        for i, marker in enumerate(markers):
            number = i + 1
            end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
            body = text[marker.end() : end].strip()
            if number <= len(pending) and body:
                answers[pending[number - 1].id] = body
        return answers

    def parse_keywords(
        self, text: str, pending: list[ClarificationQuestion]
    ) -> dict[str, str]:
        if len(pending) == 1:
            question = pending[0]
            if any(contains_term(text, kw) for kw in question.keywords):
                return {question.id: text.strip()}
            return {}
        collected: dict[str, list[str]] = {}
        for segment in _segments(text):
            for question in pending:
                if any(contains_term(segment, kw) for kw in question.keywords):
                    collected.setdefault(question.id, []).append(segment)
                    break
        return {qid: " ".join(parts) for qid, parts in collected.items()}

    def parse_positional(
        self, text: str, pending: list[ClarificationQuestion]
    ) -> dict[str, str]:
        segments = _segments(text)
        if len(segments) != len(pending):
            return {}
        return {question.id: segment for question, segment in zip(pending, segments)}

    def parse(self, text: str, pending: list[ClarificationQuestion]) -> ParsedAnswers:
        """
        Parse an answer against the pending (presented) questions.

        Args:
            text: Free-text reply
            pending: Questions in presentation order

        Returns:
            ParsedAnswers naming the winning strategy, empty when none applies
        """
        if not text or not text.strip() or not pending:
            return ParsedAnswers()

        answers = self.parse_numbered(text, pending)
        if answers:
            return ParsedAnswers(strategy="numbered_list", answers=answers)

        answers = self.parse_keywords(text, pending)
        if answers:
            return ParsedAnswers(strategy="keyword_anchored", answers=answers)

        if len(pending) == 1:
            return ParsedAnswers(strategy="single", answers={pending[0].id: text.strip()})

        answers = self.parse_positional(text, pending)
        if answers:
            return ParsedAnswers(strategy="positional", answers=answers)
        return ParsedAnswers()
