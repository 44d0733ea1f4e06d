"""Best-guess entity type for a candidate mention.

First match wins:

1. spell or ignore-listed text                    -> other
2. title prefix or "Name the Epithet" shape       -> npc
3. "the Adjective PlaceNoun" shape                -> location
4. indicator word inside the mention itself       -> location, faction, item
5. phrase right before the mention                -> location, faction, item, npc
6. faction noun anywhere in the context           -> faction
7. speech or action verb right after the mention  -> npc
8. quest vocabulary anywhere in the context       -> quest
9. "First Last" shape, or nothing at all          -> npc
"""

import re

from canonforge.entity import EntityKind
from canonforge.scanning.mentions import WORD
from canonforge.scanning.vocab import (
    AGENT_LEAD_INS,
    FACTION_LEAD_INS,
    FACTION_WORDS,
    ITEM_LEAD_INS,
    ITEM_WORDS,
    LOCATION_LEAD_INS,
    LOCATION_WORDS,
    NPC_VERBS,
    PLACE_NOUNS,
    QUEST_WORDS,
    TITLE_WORDS,
    is_spell_name,
    lead_in_pattern,
    should_ignore_term,
)

_TITLE_PREFIX_RE = re.compile(
    r"^(?:" + "|".join(re.escape(t).replace(r"\ ", r"\s+") for t in TITLE_WORDS) + r")\s+\S",
    re.IGNORECASE,
)
_EPITHET_SHAPE_RE = re.compile(rf"^{WORD}\s+the\s+{WORD}(?:\s+[IVXLCDM]+)?$")
_PLACE_SHAPE_RE = re.compile(
    rf"^(?:[Tt]he\s+)?{WORD}\s+(?:" + "|".join(p.capitalize() for p in PLACE_NOUNS) + r")$"
)
_FIRST_LAST_RE = re.compile(rf"^{WORD}\s+{WORD}$")
_TOKEN_RE = re.compile(r"[a-z]+")

_LOCATION_LEAD_RE = re.compile(
    r"(?:\b(?:"
    + "|".join(re.escape(p) for p in sorted(LOCATION_LEAD_INS, key=len, reverse=True))
    + r")\s+(?:(?:the|a|an)\s+)?(?:[a-z]+\s+of\s+(?:the\s+)?)?"
    + r"|\b(?:"
    + "|".join(PLACE_NOUNS)
    + r")\s+of\s+(?:the\s+)?)$",
    re.IGNORECASE,
)
_FACTION_LEAD_RE = lead_in_pattern(FACTION_LEAD_INS)
_ITEM_LEAD_RE = lead_in_pattern(ITEM_LEAD_INS)
_AGENT_LEAD_RE = lead_in_pattern(AGENT_LEAD_INS)
_NEXT_WORD_RE = re.compile(r"^[\s,]*([a-z]+)")


def _split_context(mention: str, context: str) -> tuple[str, str]:
    """Split the context window around the first occurrence of the mention."""
    i = context.find(mention)
    if i < 0:
        i = context.lower().find(mention.lower())
    if i < 0:
        return context, ""
    return context[:i], context[i + len(mention) :]


def _has_word(text: str, words: frozenset[str]) -> bool:
    return any(token in words for token in _TOKEN_RE.findall(text.lower()))


def guess_entity_type(text: str, context: str = "") -> EntityKind:
    """Classify a mention using only its own text and its context window."""
    mention = text.strip()
    if should_ignore_term(mention) or is_spell_name(mention):
        return EntityKind.OTHER

    if _TITLE_PREFIX_RE.match(mention) or _EPITHET_SHAPE_RE.match(mention):
        return EntityKind.NPC

    if _PLACE_SHAPE_RE.match(mention):
        return EntityKind.LOCATION

    if _has_word(mention, LOCATION_WORDS):
        return EntityKind.LOCATION
    if _has_word(mention, FACTION_WORDS):
        return EntityKind.FACTION
    if _has_word(mention, ITEM_WORDS):
        return EntityKind.ITEM

    before, after = _split_context(mention, context)
    before = before.rstrip() + " " if before.strip() else ""
    if before:
        if _LOCATION_LEAD_RE.search(before):
            return EntityKind.LOCATION
        if _FACTION_LEAD_RE.search(before):
            return EntityKind.FACTION
        if _ITEM_LEAD_RE.search(before):
            return EntityKind.ITEM
        if _AGENT_LEAD_RE.search(before):
            return EntityKind.NPC

    if _has_word(context, FACTION_WORDS):
        return EntityKind.FACTION

    next_word = _NEXT_WORD_RE.match(after)
    if next_word and next_word.group(1) in NPC_VERBS:
        return EntityKind.NPC

    if _has_word(context, QUEST_WORDS):
        return EntityKind.QUEST

    if _FIRST_LAST_RE.match(mention):
        return EntityKind.NPC
    return EntityKind.NPC
