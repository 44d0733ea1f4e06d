"""Campaign codex snapshot and the codex validator.

The codex is world-level configuration owned by an external editor. The
engine reads one immutable snapshot per call and checks generated payloads
against its naming conventions, themes and safety presets. Everything here
is pure: findings are returned as warnings and suggestions, never raised.
"""

import json
import re
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict


class NamingConventions(BaseModel, frozen=True):
    notes: str | None = None
    examples: tuple[str, ...] = ()


class ProperNoun(BaseModel, frozen=True):
    name: str
    description: str = ""


class ResolvedQuestion(BaseModel, frozen=True):
    question: str
    answer: str


class CodexFaction(BaseModel, frozen=True):
    name: str
    description: str = ""


class CampaignCodex(BaseModel):
    """Read-only world configuration for one campaign."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    campaign_id: str | None = None
    setting: str | None = None
    themes: tuple[str, ...] = ()
    tone: str | None = None
    naming_conventions: NamingConventions | None = None
    safety_presets: tuple[str, ...] = ()
    proper_nouns: tuple[ProperNoun, ...] = ()
    resolved_questions: tuple[ResolvedQuestion, ...] = ()
    factions: tuple[CodexFaction, ...] = ()

    def knows_faction(self, name: str) -> bool:
        lowered = name.lower()
        return any(f.name.lower() == lowered for f in self.factions)


class CodexValidation(BaseModel, frozen=True):
    is_valid: bool = True
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


NORDIC_ENDINGS = ("son", "sson", "dottir", "heim", "fjord", "vik")
CELTIC_PREFIXES = ("mac", "mc", "o'", "fitz")
NORDIC_FALLBACK_EXAMPLES = "Bjorn, Astrid, Thorvald"
CELTIC_FALLBACK_EXAMPLES = "Brennan, Siobhan, Cormac"

DARK_THEMES = ("dark", "gritty", "horror", "grimdark")
LIGHT_THEMES = ("heroic", "high fantasy", "lighthearted", "comedy")
DARK_WORDS = ("grim", "bleak", "hopeless", "cruel", "torture")
LIGHT_WORDS = ("whimsical", "silly", "comical", "cheerful")

SAFETY_TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "violence": ("gore", "torture", "mutilation", "graphic"),
    "sexual": ("seductive", "intimate", "romance"),
    "drugs": ("addiction", "intoxicated", "substance"),
    "slavery": ("slave", "enslaved", "bondage", "servitude"),
    "child harm": ("child", "orphan", "young"),
    "real-world politics": ("election", "political party", "president"),
    "real-world religion": ("christian", "muslim", "jewish", "buddhist"),
}

_CONSONANT_CLUSTER = re.compile(r"[^aeiou\s'\-]{2,}")
_VOWEL_CLUSTER = re.compile(r"[aeiou]{2,}")


def _payload_text(content: Mapping[str, Any] | BaseModel) -> str:
    if isinstance(content, BaseModel):
        data: Any = content.model_dump(mode="json")
    else:
        data = content
    return json.dumps(data, default=str).lower()


def _payload_name(content: Mapping[str, Any] | BaseModel) -> str | None:
    if isinstance(content, BaseModel):
        name = getattr(content, "name", None)
    else:
        name = content.get("name")
    return str(name) if name else None


def check_naming_convention(name: str, notes: str, examples: tuple[str, ...] = ()) -> tuple[bool, str | None]:
    """Keyword-triggered style check of ``name`` against the codex notes.

    Returns ``(matches, suggestion)``. Styles that the notes do not mention
    are not checked.
    """
    lower_notes = notes.lower()
    lower_name = name.lower()

    if "nordic" in lower_notes or "norse" in lower_notes:
        nordic = lower_name.endswith(NORDIC_ENDINGS) or bool(_CONSONANT_CLUSTER.search(lower_name))
        if not nordic:
            return False, f"Consider Nordic-style names like: {', '.join(examples) or NORDIC_FALLBACK_EXAMPLES}"

    if "celtic" in lower_notes or "irish" in lower_notes:
        celtic = lower_name.startswith(CELTIC_PREFIXES) or bool(_VOWEL_CLUSTER.search(lower_name))
        if not celtic:
            return False, f"Consider Celtic-style names like: {', '.join(examples) or CELTIC_FALLBACK_EXAMPLES}"

    return True, None


def check_theme_consistency(content_text: str, themes: tuple[str, ...]) -> list[str]:
    warnings: list[str] = []
    lowered = [t.lower() for t in themes]
    is_dark = any(d in t for t in lowered for d in DARK_THEMES)
    is_light = any(light in t for t in lowered for light in LIGHT_THEMES)

    if is_light and any(w in content_text for w in DARK_WORDS):
        warnings.append("Content may be darker than your campaign's lighthearted tone")
    if is_dark and any(w in content_text for w in LIGHT_WORDS):
        warnings.append("Content may be lighter than your campaign's dark tone")
    return warnings


def check_safety_presets(content_text: str, safety_presets: tuple[str, ...]) -> list[str]:
    """Report every matched keyword, per configured safety topic."""
    violations: list[str] = []
    for preset in safety_presets:
        preset_lower = preset.lower()
        for topic, keywords in SAFETY_TOPIC_KEYWORDS.items():
            if topic not in preset_lower:
                continue
            matches = [k for k in keywords if k in content_text]
            if matches:
                violations.append(f"{topic} (found: {', '.join(matches)})")
    return violations


def validate_against_codex(
    content: Mapping[str, Any] | BaseModel,
    codex: CampaignCodex | None,
) -> CodexValidation:
    """Check a generated (or requested) payload against the codex rules."""
    if codex is None:
        return CodexValidation()

    warnings: list[str] = []
    suggestions: list[str] = []

    name = _payload_name(content)
    conventions = codex.naming_conventions
    if conventions is not None and conventions.notes and name:
        matches, suggestion = check_naming_convention(name, conventions.notes, conventions.examples)
        if not matches:
            warnings.append(f'Name "{name}" may not match your naming conventions: {conventions.notes}')
            if suggestion:
                suggestions.append(suggestion)

    content_text = _payload_text(content)
    if codex.themes:
        warnings.extend(check_theme_consistency(content_text, codex.themes))

    if codex.safety_presets:
        warnings.extend(
            f"Content may touch on safety preset: {v}"
            for v in check_safety_presets(content_text, codex.safety_presets)
        )

    return CodexValidation(
        is_valid=not warnings,
        warnings=tuple(warnings),
        suggestions=tuple(suggestions),
    )
