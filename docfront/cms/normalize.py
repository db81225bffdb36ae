"""Shape detection and projection of CMS entities.

The CMS returns entities either *nested* (``{"id", "attributes": {...}}`` with
relations wrapped as ``{"data": {...}}``) or *flat* (fields and relations
directly on the entity). The shape is detected once per entity and the whole
entity is projected with it; nothing here mutates its input or raises.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from .media import file_extension
from .models import ArticleView, Author, Category, Media, Shape

Relation = Union[Mapping[str, Any], List[Mapping[str, Any]]]


def is_nested(entity: object) -> bool:
    """True when *entity* carries an ``attributes`` field, even a null one."""

    return isinstance(entity, Mapping) and "attributes" in entity


def is_flat(entity: object) -> bool:
    return not is_nested(entity)


def detect_shape(entity: object) -> Shape:
    return Shape.NESTED if is_nested(entity) else Shape.FLAT


def fields_of(entity: object, shape: Optional[Shape] = None) -> Mapping[str, Any]:
    """Return the mapping that holds the entity's own fields."""

    if not isinstance(entity, Mapping):
        return {}
    shape = shape or detect_shape(entity)
    if shape is Shape.NESTED:
        attributes = entity.get("attributes")
        return attributes if isinstance(attributes, Mapping) else {}
    return entity


def _flatten_entry(entry: object) -> Optional[Mapping[str, Any]]:
    if not isinstance(entry, Mapping):
        return None
    attributes = entry.get("attributes")
    if isinstance(attributes, Mapping):
        return {"id": entry.get("id"), **attributes}
    return entry


def unwrap_relation(value: object, shape: Shape) -> Optional[Relation]:
    """Resolve one level of ``{"data": ...}`` wrapping for nested relations.

    Flat relations pass through unchanged. ``{"data": null}`` and missing
    relations resolve to ``None``.
    """

    if shape is Shape.FLAT:
        if isinstance(value, (Mapping, list)):
            return value
        return None
    if not isinstance(value, Mapping):
        return None
    data = value.get("data")
    if data is None:
        return None
    if isinstance(data, list):
        return [entry for entry in map(_flatten_entry, data) if entry is not None]
    return _flatten_entry(data)


def _first(relation: Optional[Relation]) -> Optional[Mapping[str, Any]]:
    if isinstance(relation, list):
        for entry in relation:
            if isinstance(entry, Mapping):
                return entry
        return None
    return relation


def _text(value: object) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _as_int(value: object) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _media(fields: Optional[Mapping[str, Any]]) -> Optional[Media]:
    if not isinstance(fields, Mapping):
        return None
    url = fields.get("url")
    if not isinstance(url, str) or not url:
        return None
    name = _text(fields.get("name"))
    return Media(
        url=url,
        id=_as_int(fields.get("id")),
        alternative_text=_text(fields.get("alternativeText")),
        width=_as_int(fields.get("width")),
        height=_as_int(fields.get("height")),
        mime=_text(fields.get("mime")),
        name=name,
        ext=file_extension(_text(fields.get("ext")), name, url) or None,
    )


def media_from(ref: object) -> Optional[Media]:
    """Build a :class:`Media` from a reference in any shape.

    Accepts ``{"data": {...}}`` wrappers, ``{"id", "attributes"}`` entries and
    flat media objects. Returns ``None`` when no URL can be found.
    """

    if not isinstance(ref, Mapping):
        return None
    if "data" in ref:
        return _media(_first(unwrap_relation(ref, Shape.NESTED)))
    return _media(_flatten_entry(ref))


def media_list_from(refs: object) -> List[Optional[Media]]:
    """Resolve each entry of a media list; unresolvable entries become ``None``."""

    if isinstance(refs, Mapping):
        refs = refs.get("data")
    if not isinstance(refs, list):
        return []
    return [media_from(ref) for ref in refs]


def _author(fields: Optional[Mapping[str, Any]], shape: Shape) -> Optional[Author]:
    if not isinstance(fields, Mapping):
        return None
    name = _text(fields.get("name"))
    if not name:
        return None
    return Author(
        name=name,
        id=_as_int(fields.get("id")),
        email=_text(fields.get("email")),
        avatar=_media(_first(unwrap_relation(fields.get("avatar"), shape))),
    )


def _category(fields: Optional[Mapping[str, Any]]) -> Optional[Category]:
    if not isinstance(fields, Mapping):
        return None
    name = _text(fields.get("name"))
    if not name:
        return None
    return Category(name=name, slug=_text(fields.get("slug")), id=_as_int(fields.get("id")))


def unwrap(entity: object) -> ArticleView:
    """Project an article entity of either shape onto :class:`ArticleView`."""

    shape = detect_shape(entity)
    fields = fields_of(entity, shape)
    entity_id = _as_int(entity.get("id")) if isinstance(entity, Mapping) else None
    blocks = fields.get("blocks")
    return ArticleView(
        id=entity_id,
        shape=shape,
        title=_text(fields.get("title")),
        slug=_text(fields.get("slug")),
        description=_text(fields.get("description")),
        cover=_media(_first(unwrap_relation(fields.get("cover"), shape))),
        author=_author(_first(unwrap_relation(fields.get("author"), shape)), shape),
        category=_category(_first(unwrap_relation(fields.get("category"), shape))),
        blocks=tuple(
            block for block in (blocks if isinstance(blocks, list) else [])
            if isinstance(block, Mapping)
        ),
        openapi_file=_media(_first(unwrap_relation(fields.get("openapi"), shape))),
        created_at=_text(fields.get("createdAt")),
        updated_at=_text(fields.get("updatedAt")),
        published_at=_text(fields.get("publishedAt")),
    )


__all__ = [
    "detect_shape",
    "fields_of",
    "is_flat",
    "is_nested",
    "media_from",
    "media_list_from",
    "unwrap",
    "unwrap_relation",
]
