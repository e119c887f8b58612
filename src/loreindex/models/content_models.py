"""
Content record models for the game-design content kinds.

Each content kind is a pydantic model tagged by ``kind``; ``ContentRecord`` is
the discriminated union over all of them. Records accept the camelCase keys
produced by the relational layer (``questGiver``, ``requiredLevel``) as well
as snake_case names. Unknown keys are ignored.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from .exceptions import ContentValidationError


class ContentKind(str, Enum):
    """Taxonomy of indexed content. One vector collection per kind."""

    LORE = "lore"
    QUEST = "quest"
    NPC = "npc"
    ITEM = "item"
    CHARACTER = "character"
    MANIFEST = "manifest"


Scalar = Union[str, int, float]


class _RecordBase(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LoreRecord(_RecordBase):
    """World lore entry."""

    kind: Literal[ContentKind.LORE] = ContentKind.LORE
    title: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class QuestRecord(_RecordBase):
    """Quest definition with objectives, rewards and requirements."""

    kind: Literal[ContentKind.QUEST] = ContentKind.QUEST
    title: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    objective: Optional[str] = None
    objectives: Optional[Union[List[Any], str]] = None
    quest_giver: Optional[str] = None
    rewards: Optional[Any] = None
    requirements: Optional[Any] = None
    difficulty: Optional[str] = None
    level: Optional[Scalar] = None
    required_level: Optional[Scalar] = None


class ItemRecord(_RecordBase):
    """Item with stat bonuses, effects and equip requirements."""

    kind: Literal[ContentKind.ITEM] = ContentKind.ITEM
    id: Optional[Union[str, int]] = None
    name: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    lore: Optional[str] = None
    stats: Optional[Any] = None
    effects: Optional[Any] = None
    requirements: Optional[Any] = None
    rarity: Optional[str] = None
    level: Optional[Scalar] = None


class _PersonaRecord(_RecordBase):
    name: Optional[str] = None
    title: Optional[str] = None
    race: Optional[str] = None
    species: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    role: Optional[str] = None
    description: Optional[str] = None
    backstory: Optional[str] = None
    personality: Optional[str] = None
    dialogue: Optional[Union[List[str], str]] = None
    location: Optional[str] = None


class CharacterRecord(_PersonaRecord):
    """Playable or story character."""

    kind: Literal[ContentKind.CHARACTER] = ContentKind.CHARACTER


class NpcRecord(_PersonaRecord):
    """Non-player character."""

    kind: Literal[ContentKind.NPC] = ContentKind.NPC
    type: Optional[str] = None
    faction: Optional[str] = None


class ManifestRecord(_RecordBase):
    """Data manifest holding a nested list of items."""

    kind: Literal[ContentKind.MANIFEST] = ContentKind.MANIFEST
    name: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    items: List[Any] = Field(default_factory=list)


ContentRecord = Annotated[
    Union[
        LoreRecord,
        QuestRecord,
        NpcRecord,
        ItemRecord,
        CharacterRecord,
        ManifestRecord,
    ],
    Field(discriminator="kind"),
]

_RECORD_ADAPTER: TypeAdapter = TypeAdapter(ContentRecord)


def parse_record(kind: Union[ContentKind, str], data: Dict[str, Any]) -> ContentRecord:
    """
    Build a typed content record from a raw row.

    Args:
        kind: Content kind the row belongs to
        data: Raw field mapping (camelCase or snake_case keys)

    Returns:
        The typed record for ``kind``

    Raises:
        ContentValidationError: If the kind is unknown or the row is malformed
    """
    try:
        content_kind = ContentKind(kind)
    except ValueError as e:
        raise ContentValidationError(f"Unknown content type: {kind}", cause=e) from e

    try:
        return _RECORD_ADAPTER.validate_python({**data, "kind": content_kind.value})
    except ValidationError as e:
        raise ContentValidationError(
            f"Invalid {content_kind.value} record",
            content_id=str(data.get("id")) if data.get("id") is not None else None,
            cause=e,
        ) from e
