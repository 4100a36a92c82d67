"""
Rule-based language detection.

Non-Latin scripts dominate through character-class ratios. Latin-script
languages are disambiguated by a weighted score of common-word frequency
(0.6) and trigram profile matches (0.4).
"""

import re
from collections import Counter

from storydigest.models.input import LanguageResult
from storydigest.utils.logger import get_logger

logger = get_logger(__name__)

# (script, pattern, language, ratio threshold), checked in order
SCRIPT_CLASSES: list[tuple[str, re.Pattern, str, float]] = [
    ("kana", re.compile(r"[぀-ヿ]"), "ja", 0.1),
    ("hangul", re.compile(r"[가-힯ᄀ-ᇿ]"), "ko", 0.3),
    ("cjk", re.compile(r"[一-鿿]"), "zh", 0.3),
    ("cyrillic", re.compile(r"[Ѐ-ӿ]"), "ru", 0.3),
    ("arabic", re.compile(r"[؀-ۿ]"), "ar", 0.3),
    ("hebrew", re.compile(r"[֐-׿]"), "he", 0.3),
    ("devanagari", re.compile(r"[ऀ-ॿ]"), "hi", 0.3),
    ("greek", re.compile(r"[Ͱ-Ͽ]"), "el", 0.3),
    ("thai", re.compile(r"[฀-๿]"), "th", 0.3),
]
LATIN_PATTERN = re.compile(r"[A-Za-zÀ-ɏ]")

COMMON_WORDS: dict[str, frozenset[str]] = {
    "en": frozenset(
        "the be to of and a in that have it for not on with he as you do at this but his by "
        "from they we say her she or an will my one all would there their what so up out if "
        "about who get which go me when make can like should need want".split()
    ),
    "es": frozenset(
        "el la de que y a en un ser se no haber por con su para como estar tener le lo todo "
        "pero más hacer o poder decir este ir otro ese si me ya ver porque dar cuando muy sin "
        "vez mucho saber qué sobre también debe los las una del".split()
    ),
    "fr": frozenset(
        "le de un à être et en avoir que pour dans ce il qui ne sur se pas plus pouvoir par je "
        "avec tout faire son mettre autre on mais nous comme ou si leur y dire elle devoir "
        "avant deux même les des une est du au".split()
    ),
    "de": frozenset(
        "der die und in den von zu das mit sich des auf für ist im dem nicht ein eine als auch "
        "es an werden aus er hat dass sie nach wird bei einer um am sind noch wie einem über "
        "einen so zum war haben nur oder aber soll muss".split()
    ),
    "it": frozenset(
        "di e il la che a per un in non è una sono mi si ho lo ma ti ci le da con gli questo "
        "come io se del della anche più dei tutto cosa bene deve essere fare".split()
    ),
    "pt": frozenset(
        "de a o que e do da em um para é com não uma os no se na por mais as dos como mas foi "
        "ao ele das tem à seu sua ou ser quando muito há nos já está eu também só pelo deve".split()
    ),
    "nl": frozenset(
        "de en van ik te dat die in een hij het niet zijn is was op aan met als voor had er "
        "maar om hem dan zou of wat mijn men dit zo door over ze zich bij ook tot je moet "
        "worden".split()
    ),
}

TRIGRAM_PROFILES: dict[str, frozenset[str]] = {
    "en": frozenset(
        [" th", "the", "he ", "and", " an", "nd ", "ing", "ng ", " to", "to ", "ion", " of",
         "of ", "ed ", "er ", "tio", " in", "is ", "ent", "hat"]
    ),
    "es": frozenset(
        [" de", "de ", "os ", " la", "la ", "ión", "ent", "el ", " el", "es ", " qu", "que",
         "ue ", "as ", " co", "ado", "con", "ara", "par", " en"]
    ),
    "fr": frozenset(
        [" de", "es ", "de ", "ent", " le", "le ", "ion", "les", " la", "la ", "que", " qu",
         "ue ", "tio", " et", "et ", "ait", " pa", "our", "ns "]
    ),
    "de": frozenset(
        ["en ", "er ", "ich", " de", "der", "die", "sch", "ie ", "ein", "che", " un", "und",
         "nd ", "ung", "cht", " di", "den", "gen", "ter", " ge"]
    ),
    "it": frozenset(
        [" di", "di ", "che", " ch", "re ", "to ", "la ", "zio", "ell", " de", "one", "del",
         "ne ", "per", " pe", "lla", "ion", " co", "are", "ent"]
    ),
    "pt": frozenset(
        [" de", "de ", "os ", "ão ", "ção", " qu", "que", "ue ", "do ", " co", "ent", "da ",
         " a ", "as ", "com", "ara", "par", "nte", " pa", "ar "]
    ),
    "nl": frozenset(
        ["en ", " de", "de ", "an ", "van", " va", "et ", "het", " he", "ij ", "ing", "er ",
         " ee", "een", "cht", "oor", " ge", "ver", "aar", "ijk"]
    ),
}

WORD_WEIGHT = 0.6
TRIGRAM_WEIGHT = 0.4
MIN_LATIN_RATIO = 0.5


def _trigrams(tokens: list[str]) -> Counter:
    grams: Counter = Counter()
    for token in tokens:
        padded = f" {token} "
        for i in range(len(padded) - 2):
            grams[padded[i : i + 3]] += 1
    return grams


def _latin_scores(text: str) -> dict[str, float]:
    tokens = re.findall(r"[a-zà-öø-ÿ']+", text.lower())
    if not tokens:
        return {}
    grams = _trigrams(tokens)
    total_grams = sum(grams.values()) or 1
    scores: dict[str, float] = {}
    for language, common in COMMON_WORDS.items():
        word_score = sum(1 for token in tokens if token in common) / len(tokens)
        profile = TRIGRAM_PROFILES[language]
        trigram_score = sum(count for gram, count in grams.items() if gram in profile) / total_grams
        scores[language] = round(WORD_WEIGHT * word_score + TRIGRAM_WEIGHT * trigram_score, 4)
    return scores


def _detect(text: str) -> LanguageResult:
    letters = [ch for ch in text if ch.isalpha()]
    if not letters:
        return LanguageResult()
    total = len(letters)
    sample = "".join(letters)

    ratios = {
        script: len(pattern.findall(sample)) / total for script, pattern, _, _ in SCRIPT_CLASSES
    }
    for script, _, language, threshold in SCRIPT_CLASSES:
        ratio = ratios[script]
        if ratio >= threshold:
            return LanguageResult(
                language=language,
                confidence=round(min(1.0, 0.5 + ratio / 2), 2),
                script=script,
                scores={script: round(ratio, 4)},
            )

    latin_ratio = len(LATIN_PATTERN.findall(sample)) / total
    if latin_ratio < MIN_LATIN_RATIO:
        return LanguageResult(scores={k: round(v, 4) for k, v in ratios.items() if v})

    scores = _latin_scores(text)
    if not scores:
        return LanguageResult(script="latin")
    best = max(scores, key=scores.get)
    best_score = scores[best]
    if best_score <= 0:
        return LanguageResult(script="latin", scores=scores)

    runner_up = max((v for k, v in scores.items() if k != best), default=0.0)
    confidence = best_score / (best_score + runner_up)
    # short inputs carry little evidence
    token_count = len(text.split())
    if token_count < 5:
        confidence *= 0.5
    return LanguageResult(
        language=best,
        confidence=round(min(1.0, confidence * latin_ratio), 2),
        script="latin",
        scores=scores,
    )


def detect_language(text: str) -> LanguageResult:
    """
    Detect the dominant language of text.

    Never raises: any internal failure yields language "unknown" with
    confidence 0.
    """
    try:
        return _detect(text or "")
    except Exception as e:
        logger.debug(f"Language detection failed, degrading to unknown: {e}")
        return LanguageResult()
