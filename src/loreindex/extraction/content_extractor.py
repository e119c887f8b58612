"""
Content Extraction - Canonical text and metadata for content records.

Converts each content record into one canonical text blob for embedding:
- Non-empty fields concatenated in a fixed order, separated by blank lines
- Structured sub-fields (stats, rewards, requirements) rendered as compact
  human-readable text rather than raw JSON, so the embedding captures meaning
- Bounded previews for nested lists (manifest items, dialogue lines)

Dispatch is by record class: adding a content kind means registering one
extractor and one metadata function for its model.
"""

import logging
from functools import singledispatch
from typing import Any, Dict, Iterable, List, Optional

from ..models.content_models import (
    CharacterRecord,
    ItemRecord,
    LoreRecord,
    ManifestRecord,
    NpcRecord,
    QuestRecord,
    _PersonaRecord,
)

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n"
MANIFEST_ITEM_PREVIEW = 5
DIALOGUE_PREVIEW = 3


def summarize_value(value: Any) -> str:
    """
    Render a structured value as compact readable text.

    ``{"gold": 100, "items": ["Sword"]}`` becomes ``gold: 100, items: Sword``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, dict):
        parts = []
        for key, item in value.items():
            rendered = summarize_value(item)
            if rendered:
                parts.append(f"{_humanize_key(key)}: {rendered}")
        return ", ".join(parts)
    if isinstance(value, (list, tuple, set)):
        rendered_items = []
        for item in value:
            rendered = summarize_value(item)
            if not rendered:
                continue
            rendered_items.append(f"({rendered})" if isinstance(item, dict) else rendered)
        return "; ".join(rendered_items)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _humanize_key(key: Any) -> str:
    text = str(key)
    # camelCase -> "camel case"
    chars = []
    for i, ch in enumerate(text):
        if ch.isupper() and i > 0 and not text[i - 1].isupper():
            chars.append(" ")
        chars.append(ch.lower() if ch.isupper() else ch)
    return "".join(chars).replace("_", " ")


def _labeled(label: str, value: Any) -> str:
    rendered = summarize_value(value)
    return f"{label}: {rendered}" if rendered else ""


def _first(*values: Optional[Any]) -> str:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _join(parts: Iterable[str]) -> str:
    return SECTION_SEPARATOR.join(part.strip() for part in parts if part and part.strip())


def _item_label(item: Any) -> str:
    if isinstance(item, dict):
        return _first(item.get("name"), item.get("id"))
    return _first(item)


@singledispatch
def extract_text(record: Any) -> str:
    """Canonical text for a content record."""
    raise TypeError(f"No extractor registered for {type(record).__name__}")


@extract_text.register
def _(record: LoreRecord) -> str:
    return _join([record.title, record.category, record.content, record.summary])


@extract_text.register
def _(record: QuestRecord) -> str:
    objectives = record.objective
    if not objectives and record.objectives:
        objectives = summarize_value(record.objectives)

    return _join([
        _first(record.title, record.name),
        record.description,
        objectives,
        record.quest_giver,
        _labeled("Rewards", record.rewards),
        _labeled("Requirements", record.requirements),
    ])


@extract_text.register
def _(record: ItemRecord) -> str:
    return _join([
        record.name,
        _first(record.id),
        _first(record.type, record.category),
        record.description,
        record.lore,
        _labeled("Stats", record.stats),
        _labeled("Effects", record.effects),
        _labeled("Requirements", record.requirements),
    ])


def _persona_parts(record: _PersonaRecord) -> List[str]:
    dialogue = record.dialogue
    if isinstance(dialogue, list):
        dialogue = "; ".join(line for line in dialogue[:DIALOGUE_PREVIEW] if line)

    return [
        record.name,
        record.title,
        _first(record.race, record.species),
        _first(record.class_name, record.role),
        record.description,
        record.backstory,
        record.personality,
        f"Common phrases: {dialogue}" if dialogue else "",
        f"Location: {record.location}" if record.location else "",
    ]


@extract_text.register
def _(record: CharacterRecord) -> str:
    return _join(_persona_parts(record))


@extract_text.register
def _(record: NpcRecord) -> str:
    parts = _persona_parts(record)
    if record.faction:
        parts.append(f"Faction: {record.faction}")
    return _join(parts)


@extract_text.register
def _(record: ManifestRecord) -> str:
    parts = [
        record.name,
        _first(record.category, record.type),
        record.description,
        f"Tags: {', '.join(record.tags)}" if record.tags else "",
        _labeled("Metadata", record.metadata),
    ]

    if record.items:
        preview = [_item_label(item) for item in record.items[:MANIFEST_ITEM_PREVIEW]]
        summary = ", ".join(label for label in preview if label)
        more = "..." if len(record.items) > MANIFEST_ITEM_PREVIEW else ""
        parts.append(f"Items: {summary}{more}")

    return _join(parts)


@singledispatch
def extract_metadata(record: Any) -> Dict[str, Any]:
    """Filterable metadata stored with a record's vector."""
    raise TypeError(f"No metadata extractor registered for {type(record).__name__}")


@extract_metadata.register
def _(record: LoreRecord) -> Dict[str, Any]:
    return {"title": record.title, "category": record.category, "tags": list(record.tags)}


@extract_metadata.register
def _(record: QuestRecord) -> Dict[str, Any]:
    return {
        "title": record.title or record.name,
        "difficulty": record.difficulty,
        "questGiver": record.quest_giver,
        "level": record.level if record.level is not None else record.required_level,
    }


@extract_metadata.register
def _(record: ItemRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "type": record.type or record.category,
        "rarity": record.rarity,
        "level": record.level,
    }


@extract_metadata.register
def _(record: CharacterRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "race": record.race or record.species,
        "class": record.class_name or record.role,
        "location": record.location,
    }


@extract_metadata.register
def _(record: NpcRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "type": record.type or "npc",
        "location": record.location,
        "faction": record.faction,
    }


@extract_metadata.register
def _(record: ManifestRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "category": record.category,
        "itemCount": len(record.items),
    }


def is_embeddable(text: Any, min_length: int = 3) -> bool:
    """True if ``text`` is a string with at least ``min_length`` non-blank chars."""
    return isinstance(text, str) and len(text.strip()) >= min_length
