"""
Source format detection and entry parsing.

Detection priority:
1. Subtitle cue markers (SRT / WebVTT "start --> end" headers)
2. Meeting export markers (JSON meeting export, chat headers, voice tags,
   bracketed timestamps)
3. Plain text
"""

import json
import re
from typing import Any

from storydigest.models.input import NormalizedEntry, SourceFormat

CUE_PATTERN = re.compile(
    r"^\s*((?:\d{1,2}:)?\d{1,2}:\d{2}[,.]\d{1,3})\s*-->\s*((?:\d{1,2}:)?\d{1,2}:\d{2}[,.]\d{1,3})",
    re.MULTILINE,
)
VOICE_TAG_PATTERN = re.compile(r"<v(?:\.[\w-]+)?\s+([^>]+)>(.*?)(?:</v>|$)", re.IGNORECASE)
HTML_TAG_PATTERN = re.compile(r"</?[^>]+>")

# (name, pattern, timestamp group, speaker group, text group)
CHAT_LINE_PATTERNS: list[tuple[str, re.Pattern, int | None, int | None, int]] = [
    (
        "zoom_chat",
        re.compile(r"^(\d{1,2}:\d{2}(?::\d{2})?)\s+From\s+(.+?)\s+to\s+.+?:\s*(.*)$", re.IGNORECASE),
        1,
        2,
        3,
    ),
    (
        "bracketed_speaker",
        re.compile(r"^\[(\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AP]M)?)\]\s*([^:\[\]]{1,40}):\s*(.*)$", re.IGNORECASE),
        1,
        2,
        3,
    ),
    (
        "timestamp_speaker",
        re.compile(r"^(\d{1,2}:\d{2}(?::\d{2})?(?:\s*[AP]M)?)\s+-?\s*([^:]{1,40}):\s*(.*)$", re.IGNORECASE),
        1,
        2,
        3,
    ),
    (
        "voice_tag",
        re.compile(r"^<v\s+([^>]+)>(.*?)(?:</v>)?$", re.IGNORECASE),
        None,
        1,
        2,
    ),
    (
        "bracketed_timestamp",
        re.compile(r"^\[(\d{1,2}:\d{2}(?::\d{2})?)\]\s*(.+)$"),
        1,
        None,
        2,
    ),
]
SPEAKER_LINE_PATTERN = re.compile(r"^([A-Z][\w.'-]*(?:\s[A-Z][\w.'-]*){0,3}):\s+(.+)$")

JSON_LIST_KEYS = ("transcript", "segments", "messages", "entries", "utterances", "results")
JSON_TEXT_KEYS = ("text", "content", "message", "transcript", "body", "utterance")
JSON_SPEAKER_KEYS = ("speaker", "speaker_name", "name", "author", "user", "from", "participant")
JSON_TIME_KEYS = ("timestamp_ms", "start_ms", "offset_ms", "start", "timestamp", "time", "offset", "start_time")


def parse_timestamp_ms(value: str) -> int | None:
    """
    Parse "hh:mm:ss,mmm", "mm:ss.mmm", "hh:mm:ss", "mm:ss" or "h:mm PM" into ms.

    Two-part clock values are read as mm:ss; relative order is what matters
    downstream.
    """
    if value is None:
        return None
    raw = str(value).strip()
    meridiem = None
    match = re.search(r"\s*([AP]M)$", raw, re.IGNORECASE)
    if match:
        meridiem = match.group(1).upper()
        raw = raw[: match.start()]
    raw = raw.replace(",", ".")
    parts = raw.split(":")
    try:
        if len(parts) == 3:
            hours, minutes, seconds = int(parts[0]), int(parts[1]), float(parts[2])
        elif len(parts) == 2:
            if meridiem:
                hours, minutes, seconds = int(parts[0]), int(parts[1]), 0.0
            else:
                hours, minutes, seconds = 0, int(parts[0]), float(parts[1])
        else:
            return None
    except ValueError:
        return None
    if meridiem == "PM" and hours < 12:
        hours += 12
    if meridiem == "AM" and hours == 12:
        hours = 0
    return int(round((hours * 3600 + minutes * 60 + seconds) * 1000))


def is_subtitle(text: str) -> bool:
    """Timed-cue headers present (or an explicit WEBVTT header)."""
    return text.lstrip().upper().startswith("WEBVTT") or CUE_PATTERN.search(text) is not None


def parse_subtitle(text: str) -> list[NormalizedEntry]:
    """Parse SRT/WebVTT cues into entries."""
    entries: list[NormalizedEntry] = []
    blocks = re.split(r"\n\s*\n", text.replace("\r\n", "\n"))
    for block in blocks:
        lines = [line.strip() for line in block.strip().split("\n") if line.strip()]
        cue_index = next((i for i, line in enumerate(lines) if CUE_PATTERN.match(line)), None)
        if cue_index is None:
            continue
        cue = CUE_PATTERN.match(lines[cue_index])
        timestamp = parse_timestamp_ms(cue.group(1))
        body = " ".join(lines[cue_index + 1 :])
        if not body:
            continue
        speaker = None
        voice = VOICE_TAG_PATTERN.search(body)
        if voice:
            speaker = voice.group(1).strip()
        body = HTML_TAG_PATTERN.sub("", body).strip()
        colon = SPEAKER_LINE_PATTERN.match(body)
        if speaker is None and colon:
            speaker, body = colon.group(1), colon.group(2)
        if body:
            entries.append(NormalizedEntry(timestamp_ms=timestamp, speaker=speaker, text=body))
    return _merge_split_cues(entries)


def _merge_split_cues(entries: list[NormalizedEntry]) -> list[NormalizedEntry]:
    """Join cues that continue a sentence from the same speaker."""
    merged: list[NormalizedEntry] = []
    for entry in entries:
        if (
            merged
            and merged[-1].speaker == entry.speaker
            and not re.search(r"[.!?…]$", merged[-1].text)
        ):
            merged[-1].text = f"{merged[-1].text} {entry.text}"
            continue
        merged.append(entry.model_copy())
    return merged


def _load_json(text: str) -> Any | None:
    stripped = text.strip()
    if not stripped or stripped[0] not in "[{":
        return None
    try:
        return json.loads(stripped)
    except ValueError:
        return None


def _json_items(data: Any) -> list[dict] | None:
    if isinstance(data, dict):
        for key in JSON_LIST_KEYS:
            if isinstance(data.get(key), list):
                return _json_items(data[key])
        return None
    if isinstance(data, list) and data and all(isinstance(item, dict) for item in data):
        if any(any(key in item for key in JSON_TEXT_KEYS) for item in data):
            return data
    return None


def _json_timestamp(item: dict) -> int | None:
    for key in JSON_TIME_KEYS:
        if key not in item or item[key] is None:
            continue
        value = item[key]
        if isinstance(value, (int, float)):
            if key.endswith("_ms"):
                return int(value)
            return int(round(float(value) * 1000))
        parsed = parse_timestamp_ms(str(value))
        if parsed is not None:
            return parsed
    return None


def _json_field(item: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = item.get(key)
        if isinstance(value, dict):
            value = value.get("name") or value.get("display_name")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def is_json_meeting(text: str) -> bool:
    return _json_items(_load_json(text)) is not None


def parse_json_meeting(text: str) -> list[NormalizedEntry]:
    """Parse a JSON meeting export (list of segments/messages)."""
    items = _json_items(_load_json(text)) or []
    entries: list[NormalizedEntry] = []
    for item in items:
        body = _json_field(item, JSON_TEXT_KEYS)
        if not body:
            continue
        entries.append(
            NormalizedEntry(
                timestamp_ms=_json_timestamp(item),
                speaker=_json_field(item, JSON_SPEAKER_KEYS),
                text=body,
            )
        )
    return entries


def _match_chat_line(line: str) -> NormalizedEntry | None:
    for _, pattern, time_group, speaker_group, text_group in CHAT_LINE_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        timestamp = parse_timestamp_ms(match.group(time_group)) if time_group else None
        speaker = match.group(speaker_group).strip() if speaker_group else None
        return NormalizedEntry(
            timestamp_ms=timestamp,
            speaker=speaker,
            text=HTML_TAG_PATTERN.sub("", match.group(text_group)).strip(),
        )
    return None


def is_chat_export(text: str) -> bool:
    """
    Chat headers, voice tags or bracketed timestamps on at least two lines,
    or speaker-colon prefixes on at least half of the non-empty lines.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return False
    marked = sum(1 for line in lines if _match_chat_line(line))
    if marked >= 2:
        return True
    speaker_lines = sum(1 for line in lines if SPEAKER_LINE_PATTERN.match(line))
    return speaker_lines >= 2 and speaker_lines / len(lines) >= 0.5


def parse_chat_export(text: str) -> list[NormalizedEntry]:
    """Parse chat/meeting lines; unmarked lines continue the previous entry."""
    entries: list[NormalizedEntry] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        entry = _match_chat_line(line)
        if entry is None:
            colon = SPEAKER_LINE_PATTERN.match(line)
            if colon:
                entry = NormalizedEntry(speaker=colon.group(1), text=colon.group(2).strip())
        if entry is None:
            if entries:
                entries[-1].text = f"{entries[-1].text} {line}".strip()
            else:
                entries.append(NormalizedEntry(text=line))
            continue
        if entry.text:
            entries.append(entry)
    return entries


def detect_format(text: str) -> SourceFormat:
    """Detect the source format in priority order."""
    if not text or not text.strip():
        return SourceFormat.PLAIN_TEXT
    if is_subtitle(text):
        return SourceFormat.SUBTITLE
    if is_json_meeting(text):
        return SourceFormat.JSON_MEETING
    if is_chat_export(text):
        return SourceFormat.CHAT_EXPORT
    return SourceFormat.PLAIN_TEXT


def parse_entries(text: str, source_format: SourceFormat) -> list[NormalizedEntry]:
    """Entries for subtitle/meeting formats; plain text has none."""
    if source_format == SourceFormat.SUBTITLE:
        return parse_subtitle(text)
    if source_format == SourceFormat.JSON_MEETING:
        return parse_json_meeting(text)
    if source_format == SourceFormat.CHAT_EXPORT:
        return parse_chat_export(text)
    return []
