"""Offline keyword scoring of change requests.

Assigns points to three buckets and picks the best one. Needs no external call, so
it is always available as a fallback for the scope classifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from modification_service.models.modification_models import ComponentType, ModificationStrategy

COMPONENT_PHRASES = (
    "create", "add new", "build new", "make new", "new component",
    "new page", "new feature", "add a", "build a", "create a",
)
TARGETED_PHRASES = (
    "change button", "make button", "button color", "button text",
    "change text", "update text", "modify text", "text to",
    "change color", "make red", "make blue", "make green",
    "change label", "update label", "modify label",
    "one button", "single button", "this button", "the button",
    "specific", "only", "just change", "just update",
)
FULL_FILE_PHRASES = (
    "redesign", "overhaul", "complete", "entire", "whole",
    "layout", "theme", "styling", "responsive", "mobile",
    "restructure", "rearrange", "organize", "reorder",
    "multiple", "several", "all buttons", "all text",
    "dark mode", "light mode", "header", "footer", "navigation",
)

COMPONENT_PHRASE_POINTS = 20
TARGETED_PHRASE_POINTS = 15
FULL_FILE_PHRASE_POINTS = 10

_ELEMENT_NOUNS = r"(?:button|link|text|title|heading|label|color|colour|element|icon|image|input|placeholder)"
_SINGLE_ELEMENT = re.compile(rf"\b(?:one|single|specific|this|that|the)\s+(?:\w+\s+)?{_ELEMENT_NOUNS}\b")
_MANY_ELEMENTS = re.compile(r"\b(?:all|every|multiple|several)\s+(?:the\s+)?(?:button|text|element|link|heading|card)")
_ELEMENT_NOUN = re.compile(rf"\b{_ELEMENT_NOUNS}\b")
_STYLE_WORDS = re.compile(
    r"\b(?:red|blue|green|yellow|orange|purple|pink|black|white|gr[ae]y|bigger|smaller|larger|bold|italic|rounded)\b"
)
_NEW_THING = re.compile(r"\bnew\s+\w+\s+(?:page|component|screen|section|form|modal|widget)\b")

_PAGE_WORDS = re.compile(r"\b(?:page|route|screen)s?\b")
_NAMED = re.compile(r"\b(?:called|named)\s+[\"']?([A-Za-z][\w-]*)")
_NOUN_KINDS = r"(page|component|screen|section|form|modal|card|widget|list|table|panel|dialog|banner|footer|header|navbar|sidebar)"
_BEFORE_KIND = re.compile(rf"\b([A-Za-z][\w-]*(?:\s+[A-Za-z][\w-]*)?)\s+{_NOUN_KINDS}\b", re.IGNORECASE)
_KEPT_SUFFIXES = frozenset({
    "form", "modal", "card", "widget", "list", "table", "panel", "dialog",
    "banner", "footer", "header", "navbar", "sidebar", "section",
})
STOPWORDS = frozenset({
    "a", "an", "the", "new", "add", "create", "build", "make", "simple", "basic",
    "my", "our", "another", "some", "for", "to", "with", "and", "of", "please", "me", "us", "that", "this",
})

DEFAULT_COMPONENT_NAME = "NewComponent"
DEFAULT_PAGE_NAME = "NewPage"


@dataclass(frozen=True)
class HeuristicScore:
    strategy: ModificationStrategy
    confidence: int
    reasoning: str
    points: dict = field(default_factory=dict)


def _phrase_points(text: str, phrases, points: int) -> int:
    return sum(points for phrase in phrases if phrase in text)


def score_request(request: str) -> HeuristicScore:
    text = request.lower()
    component = _phrase_points(text, COMPONENT_PHRASES, COMPONENT_PHRASE_POINTS)
    targeted = _phrase_points(text, TARGETED_PHRASES, TARGETED_PHRASE_POINTS)
    full_file = _phrase_points(text, FULL_FILE_PHRASES, FULL_FILE_PHRASE_POINTS)

    word_count = len(request.split())
    if word_count <= 5:
        targeted += 20
    elif word_count > 15:
        full_file += 10

    if _SINGLE_ELEMENT.search(text):
        targeted += 25
    if _ELEMENT_NOUN.search(text):
        targeted += 20
    if _STYLE_WORDS.search(text):
        targeted += 20
    if _MANY_ELEMENTS.search(text):
        full_file += 20
    if _NEW_THING.search(text):
        component += 20

    points = {
        ModificationStrategy.COMPONENT_ADDITION.value: component,
        ModificationStrategy.NODE_EDIT.value: targeted,
        ModificationStrategy.FULL_FILE.value: full_file,
    }
    best = max(component, targeted, full_file)
    if component == best and component > 0:
        return HeuristicScore(
            ModificationStrategy.COMPONENT_ADDITION, min(95, component),
            "Keywords suggest creating a new component or page", points,
        )
    if targeted == best and targeted > 0:
        return HeuristicScore(
            ModificationStrategy.NODE_EDIT, min(95, targeted),
            "Keywords suggest a specific element change", points,
        )
    reasoning = "Keywords suggest comprehensive changes" if full_file > 0 else "Default for unclear requests"
    return HeuristicScore(ModificationStrategy.FULL_FILE, min(95, max(50, full_file)), reasoning, points)


def component_type_for(request: str) -> ComponentType:
    return ComponentType.PAGE if _PAGE_WORDS.search(request.lower()) else ComponentType.COMPONENT


def pascal_case(words: str) -> str:
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", words) if p]
    name = "".join(p[:1].upper() + p[1:] for p in parts)
    return name if name[:1].isalpha() else ""


def normalize_component_name(candidate: Optional[str]) -> Optional[str]:
    """PascalCase identifier for ``candidate`` or ``None`` when nothing usable remains."""
    if not candidate:
        return None
    name = pascal_case(candidate)
    return name if re.fullmatch(r"[A-Z][A-Za-z0-9]*", name or "") else None


def component_name_for(request: str, component_type: Optional[ComponentType] = None) -> str:
    named = _NAMED.search(request)
    if named:
        name = normalize_component_name(named.group(1))
        if name:
            return name

    for match in _BEFORE_KIND.finditer(request):
        words = [w for w in match.group(1).split() if w.lower() not in STOPWORDS]
        kind = match.group(2).lower()
        if kind in _KEPT_SUFFIXES:
            words.append(kind)
        name = normalize_component_name(" ".join(words))
        if name:
            return name

    kind = component_type or component_type_for(request)
    return DEFAULT_PAGE_NAME if kind == ComponentType.PAGE else DEFAULT_COMPONENT_NAME
