"""Section extraction for completed narration text."""

from __future__ import annotations

from collections.abc import Sequence

from chesscoach.constants import BULLET_GLYPHS
from chesscoach.guardrails import SectionRule, apply_section_guardrails
from chesscoach.schemas import NarrativeSections

_MARKER_DECORATION = "*:#_ \t"


def _section_end(full_text: str, start: int, markers: Sequence[str]) -> int:
    ends = [pos for pos in (full_text.find(marker, start) for marker in markers) if pos != -1]
    return min(ends, default=len(full_text))


def slice_sections(full_text: str, markers: Sequence[str]) -> dict[str, str | None]:
    """Map each marker to its raw body, or ``None`` when the marker is absent.

    A body runs from the end of its marker to the nearest following occurrence
    of any other marker, so generators may emit sections in any order.
    """
    bodies: dict[str, str | None] = {}
    for marker in markers:
        position = full_text.find(marker)
        if position == -1:
            bodies[marker] = None
            continue
        start = position + len(marker)
        others = [other for other in markers if other != marker]
        end = _section_end(full_text, start, others)
        bodies[marker] = full_text[start:end]
    return bodies


def _clean_text_body(body: str) -> str:
    # Decoration around a heading splits across bodies: "**MARKER**" leaves
    # "**" on both sides of the cut.
    return body.strip().strip(_MARKER_DECORATION).strip()


def parse_bullets(body: str) -> list[str]:
    bullets: list[str] = []
    for raw in body.splitlines():
        line = raw.strip()
        glyph = next((glyph for glyph in BULLET_GLYPHS if line.startswith(glyph)), None)
        if glyph is None:
            continue
        item = line[len(glyph) :].strip()
        if item.strip("".join(BULLET_GLYPHS)):
            bullets.append(item)
    return bullets


def extract_sections(full_text: str, rules: Sequence[SectionRule]) -> NarrativeSections:
    bodies = slice_sections(full_text, [rule.marker for rule in rules])

    text_sections: dict[str, str | None] = {}
    list_sections: dict[str, list[str] | None] = {}
    for rule in rules:
        body = bodies[rule.marker]
        if rule.is_bullets:
            list_sections[rule.key] = None if body is None else parse_bullets(body)
        else:
            text_sections[rule.key] = None if body is None else _clean_text_body(body)

    return apply_section_guardrails(full_text, rules, text_sections, list_sections)
