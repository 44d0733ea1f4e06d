"""Candidate mention extraction.

Proper nouns in fantasy prose defeat part-of-speech tagging: titles,
invented words and loose capitalization are the norm. Extraction is
therefore a list of independent lexical passes, each a plain function
``text -> list[CandidateMention]``, reconciled in one step:

1. quoted spans that start with a capital letter
2. title-prefixed names ("Lord Vorn of the Ash III")
3. "Name the Epithet"
4. "Name of [the] Place"
5. "the Adjective PlaceNoun"
6. "placenoun of [the] Name" (only the trailing name is kept)
7. runs of two or more capitalized words
8. single capitalized words right after punctuation
9. single capitalized words near creation/ownership phrases

Reconciliation sorts every span by start offset and greedily keeps the ones
that do not overlap an already kept span; on equal starts the earlier pass
wins. Survivors are then de-duplicated case-insensitively, first occurrence
first.
"""

import re
from typing import Callable

from canonforge.config import DEFAULT_CONFIG, EngineConfig
from canonforge.entity import CandidateMention
from canonforge.scanning.vocab import (
    NAME_CONNECTORS,
    NAMING_VERB_PHRASES,
    PLACE_NOUNS,
    TITLE_WORDS,
    is_function_word,
    is_spell_name,
    is_stopword,
    should_ignore_term,
)

# A capitalized word; inner apostrophes and hyphens are allowed, possessive 's is not.
WORD = r"[A-Z][a-z]+(?:['’-](?!s\b)[A-Za-z][a-z]*)*"
# Horizontal whitespace only; names never span a line break.
_SP = r"[^\S\n]+"
_CONNECTOR = "(?:" + "|".join(NAME_CONNECTORS) + ")"
_ROMAN = rf"(?:{_SP}[IVXLCDM]+\b)"
_TITLES = "|".join(re.escape(t).replace(r"\ ", r"\s+") for t in TITLE_WORDS)
_PLACES_ANY_CASE = "|".join(PLACE_NOUNS)
_PLACES_CAPITALIZED = "|".join(p.capitalize() for p in PLACE_NOUNS)
_SENTENCE_PUNCT = ".!?,;:"

_QUOTED_RE = re.compile(r"[\"“]([A-Z][^\"“”\n]{0,60}?)[\"”]")
_QUOTED_NAME_RE = re.compile(rf"{WORD}(?:{_SP}(?:{_CONNECTOR}{_SP}){{0,2}}{WORD})*")
_TITLED_RE = re.compile(
    rf"(?<![A-Za-z])(?:{_TITLES}){_SP}{WORD}(?:{_SP}(?:{_CONNECTOR}{_SP}){{0,2}}{WORD})*{_ROMAN}?"
)
_EPITHET_RE = re.compile(rf"(?<![A-Za-z])({WORD}){_SP}the{_SP}({WORD}){_ROMAN}?(?![A-Za-z])(?!{_SP}[A-Z])")
_NAME_OF_PLACE_RE = re.compile(rf"(?<![A-Za-z])({WORD}){_SP}of{_SP}(?:the{_SP})?{WORD}(?:{_SP}{WORD})*")
_ADJ_PLACE_RE = re.compile(rf"(?<![A-Za-z])[Tt]he{_SP}(({WORD}){_SP}(?:{_PLACES_CAPITALIZED}))(?![A-Za-z])")
_PLACE_OF_NAME_RE = re.compile(
    rf"(?<![A-Za-z])(?i:{_PLACES_ANY_CASE}){_SP}of{_SP}(?:(?i:the){_SP})?({WORD}(?:{_SP}{WORD})*)"
)
_MULTI_WORD_RE = re.compile(rf"(?<![A-Za-z]){WORD}(?:{_SP}(?:{_CONNECTOR}{_SP}){{0,2}}{WORD})+")
_AFTER_PUNCT_RE = re.compile(rf"(?<=[{re.escape(_SENTENCE_PUNCT)}])\s+({WORD})(?![A-Za-z])")
_WORD_RE = re.compile(rf"(?<![A-Za-z'’-]){WORD}(?![A-Za-z])")
_NAMING_PHRASE_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in sorted(NAMING_VERB_PHRASES, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_SENTENCE_START_RE = re.compile(r"(?:^|[.!?][\"'”’)\]]*\s+|\n\s*)")
_TOKEN_RE = re.compile(r"\S+")

PassFunction = Callable[[str, EngineConfig], list[CandidateMention]]


def _mention(text: str, start: int, end: int, source_pass: str, config: EngineConfig) -> CandidateMention:
    radius = config.context_radius
    return CandidateMention(
        text=text[start:end],
        start_index=start,
        end_index=end,
        context=text[max(0, start - radius) : min(len(text), end + radius)],
        source_pass=source_pass,
    )


def _usable_single_word(word: str, config: EngineConfig) -> bool:
    return len(word) >= config.min_single_word_length and not is_stopword(word) and not should_ignore_term(word)


def quoted_spans(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """Short quoted names such as "The Drowned Rat"; quoted dialogue is skipped."""
    results = []
    for m in _QUOTED_RE.finditer(text):
        inner = m.group(1).rstrip()
        if not _QUOTED_NAME_RE.fullmatch(inner) or len(inner.split()) > 6:
            continue
        start = m.start(1)
        results.append(_mention(text, start, start + len(inner), "quoted", config))
    return results


def titled_names(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """Names led by a title, e.g. "Lord Vorn of the Ash III" or "Captain Maelis"."""
    return [_mention(text, m.start(), m.end(), "titled", config) for m in _TITLED_RE.finditer(text)]


def epithet_names(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """"Grimnar the Bold"; an epithet that is really a place noun ("Kael the Tower") is not one."""
    results = []
    for m in _EPITHET_RE.finditer(text):
        name, epithet = m.group(1), m.group(2)
        if is_function_word(name) or epithet.lower() in PLACE_NOUNS:
            continue
        results.append(_mention(text, m.start(), m.end(), "epithet", config))
    return results


def name_of_place(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """"Aldric of Stonebridge", keeping the whole span."""
    results = []
    for m in _NAME_OF_PLACE_RE.finditer(text):
        if is_function_word(m.group(1)):
            continue
        results.append(_mention(text, m.start(), m.end(), "name_of_place", config))
    return results


def adjective_place(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """"the Gilded Spire"; the article is not part of the mention."""
    results = []
    for m in _ADJ_PLACE_RE.finditer(text):
        if is_function_word(m.group(2)):
            continue
        results.append(_mention(text, m.start(1), m.end(1), "adjective_place", config))
    return results


def place_of_name(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """"the city of Duskhollow" yields only "Duskhollow"."""
    return [_mention(text, m.start(1), m.end(1), "place_of_name", config) for m in _PLACE_OF_NAME_RE.finditer(text)]


def capitalized_runs(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """Two or more capitalized words, optionally joined by name connectors.

    Leading function words ("When", "After") are trimmed, except a leading
    "The" that is part of the name. Runs made only of stopwords are dropped.
    """
    results = []
    for m in _MULTI_WORD_RE.finditer(text):
        tokens = [(t.group(), m.start() + t.start()) for t in _TOKEN_RE.finditer(m.group())]
        while tokens and tokens[0][0] != "The" and is_function_word(tokens[0][0]):
            tokens.pop(0)
        if not tokens:
            continue
        words = [w for w, _ in tokens if w not in NAME_CONNECTORS]
        if all(is_stopword(w) for w in words):
            continue
        start = tokens[0][1]
        candidate = text[start : m.end()]
        if should_ignore_term(candidate):
            continue
        if len(words) == 1 and not _usable_single_word(words[0], config):
            continue
        results.append(_mention(text, start, m.end(), "capitalized_run", config))
    return results


def after_punctuation(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """A lone capitalized word after punctuation, as in "Later, Brannoc followed"."""
    results = []
    for m in _AFTER_PUNCT_RE.finditer(text):
        if _usable_single_word(m.group(1), config):
            results.append(_mention(text, m.start(1), m.end(1), "after_punctuation", config))
    return results


def near_naming_verbs(text: str, config: EngineConfig = DEFAULT_CONFIG) -> list[CandidateMention]:
    """Single names close to phrases like "forged by", "known as" or "named"."""
    results = []
    seen: set[int] = set()
    for phrase in _NAMING_PHRASE_RE.finditer(text):
        lo = max(0, phrase.start() - config.verb_window)
        hi = phrase.end() + config.verb_window
        for m in _WORD_RE.finditer(text, lo):
            if m.start() >= hi:
                break
            if m.end() > hi or m.start() in seen:
                continue
            if m.start() < phrase.end() and phrase.start() < m.end():
                continue
            if _usable_single_word(m.group(), config):
                seen.add(m.start())
                results.append(_mention(text, m.start(), m.end(), "naming_verb", config))
    return results


PASSES: tuple[tuple[str, PassFunction], ...] = (
    ("quoted", quoted_spans),
    ("titled", titled_names),
    ("epithet", epithet_names),
    ("name_of_place", name_of_place),
    ("adjective_place", adjective_place),
    ("place_of_name", place_of_name),
    ("capitalized_run", capitalized_runs),
    ("after_punctuation", after_punctuation),
    ("naming_verb", near_naming_verbs),
)

_PASS_PRIORITY = {name: i for i, (name, _) in enumerate(PASSES)}


def is_self_reference(text: str, current_entity_name: str | None) -> bool:
    if not current_entity_name:
        return False
    a, b = text.lower(), current_entity_name.lower().strip()
    return bool(b) and (a == b or a in b or b in a)


def reconcile(candidates: list[CandidateMention]) -> list[CandidateMention]:
    """Keep non-overlapping spans, earliest start first, ties to the earlier pass."""
    ordered = sorted(
        candidates,
        key=lambda c: (c.start_index, _PASS_PRIORITY.get(c.source_pass, len(PASSES)), -(c.end_index - c.start_index)),
    )
    kept: list[CandidateMention] = []
    for candidate in ordered:
        if kept and candidate.start_index < kept[-1].end_index:
            continue
        kept.append(candidate)
    return kept


def sentence_starts(text: str) -> list[int]:
    return sorted({m.end() for m in _SENTENCE_START_RE.finditer(text)})


def _starts_a_sentence(mention: str, text: str, starts: list[int]) -> bool:
    lowered = mention.lower()
    return any(text[p : p + len(lowered)].lower() == lowered for p in starts)


def extract_proper_nouns(
    text: str,
    current_entity_name: str | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list[CandidateMention]:
    """Run every pass over ``text`` and return reconciled candidates in text order.

    ``current_entity_name`` (the entity being authored) is never returned,
    neither exactly nor as a substring in either direction.
    """
    candidates: list[CandidateMention] = []
    for _, extract in PASSES:
        for candidate in extract(text, config):
            if is_self_reference(candidate.text, current_entity_name):
                continue
            if is_spell_name(candidate.text):
                continue
            candidates.append(candidate)

    unique: list[CandidateMention] = []
    seen: set[str] = set()
    for candidate in reconcile(candidates):
        key = candidate.text.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)

    starts = sentence_starts(text)
    return [
        c
        for c in unique
        if not (
            should_ignore_term(c.text)
            and (len(c.text.split()) == 1 or _starts_a_sentence(c.text, text, starts))
        )
    ]
