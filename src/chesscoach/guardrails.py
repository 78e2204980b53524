"""Fallback enforcement for narrative sections that feed reports."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from chesscoach.schemas import NarrativeSections

SectionKind = Literal["text", "bullets"]


@dataclass(frozen=True)
class SectionRule:
    key: str
    marker: str
    kind: SectionKind = "text"
    placeholder: str | None = None

    @property
    def is_bullets(self) -> bool:
        return self.kind == "bullets"


def _placeholder(rule: SectionRule) -> str:
    return rule.placeholder or f"No {rule.key.replace('_', ' ')} provided."


def apply_section_guardrails(
    full_text: str,
    rules: Sequence[SectionRule],
    text_sections: Mapping[str, str | None],
    list_sections: Mapping[str, list[str] | None],
) -> NarrativeSections:
    """Fill missing or empty sections so a report never carries a blank field.

    A ``None`` entry means the marker was absent from the narration. Text
    sections fall back to the whole narration, then to the placeholder when the
    narration is blank. Bullet sections fall back to a single placeholder item.
    """
    text: dict[str, str] = {}
    lists: dict[str, list[str]] = {}
    for rule in rules:
        if rule.is_bullets:
            items = [item for item in (list_sections.get(rule.key) or []) if item]
            lists[rule.key] = items or [_placeholder(rule)]
            continue

        body = text_sections.get(rule.key)
        text[rule.key] = body if body else full_text.strip() or _placeholder(rule)
    return NarrativeSections(text=text, lists=lists)
