"""
Deterministic point ids derived from content ids.

The point id is the only key a content record has in the vector store, so
the same content id must always map to the same id across processes.

Two schemes are provided:

- ``uuid5``: a name-based UUID (128-bit) over the content id. The default.
- ``legacy32``: polynomial rolling hash (x31) with 32-bit signed wraparound,
  then absolute value. Compatible with collections populated by earlier
  deployments. Distinct content ids can collide under this scheme (for
  example ``"Aa"`` and ``"BB"``), so writes through it are collision-checked.
"""

import uuid
from typing import Callable, Dict, Union

PointId = Union[int, str]

# Fixed namespace so ids are stable across processes and hosts
CONTENT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "loreindex/content")


def legacy_point_id(content_id: str) -> int:
    """Rolling 32-bit hash of the content id, as a non-negative integer."""
    value = 0
    for char in content_id:
        # JavaScript strings hash UTF-16 code units
        for unit in _utf16_units(char):
            value = (value * 31 + unit) & 0xFFFFFFFF

    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def uuid_point_id(content_id: str) -> str:
    """Name-based UUID of the content id."""
    return str(uuid.uuid5(CONTENT_NAMESPACE, content_id))


def _utf16_units(char: str):
    code = ord(char)
    if code < 0x10000:
        return (code,)
    code -= 0x10000
    return (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF))


POINT_ID_GENERATORS: Dict[str, Callable[[str], PointId]] = {
    "uuid5": uuid_point_id,
    "legacy32": legacy_point_id,
}


def get_point_id_generator(scheme: str) -> Callable[[str], PointId]:
    """Look up the point id function for a configured scheme."""
    try:
        return POINT_ID_GENERATORS[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown point id scheme {scheme!r}; expected one of {sorted(POINT_ID_GENERATORS)}"
        ) from None
