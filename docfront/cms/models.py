"""Uniform views over CMS entities, independent of the wire shape."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Shape(str, Enum):
    """The two wire encodings the CMS uses for an entity."""

    NESTED = "nested"
    FLAT = "flat"


@dataclass(frozen=True, slots=True)
class Media:
    url: str
    id: Optional[int] = None
    alternative_text: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    mime: Optional[str] = None
    name: Optional[str] = None
    ext: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "url": self.url,
            "alternativeText": self.alternative_text,
            "width": self.width,
            "height": self.height,
            "mime": self.mime,
            "name": self.name,
            "ext": self.ext,
        }


@dataclass(frozen=True, slots=True)
class Author:
    name: str
    id: Optional[int] = None
    email: Optional[str] = None
    avatar: Optional[Media] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar.as_dict() if self.avatar else None,
        }


@dataclass(frozen=True, slots=True)
class Category:
    name: str
    slug: Optional[str] = None
    id: Optional[int] = None

    def as_dict(self) -> Dict[str, object]:
        return {"id": self.id, "name": self.name, "slug": self.slug}


@dataclass(frozen=True, slots=True)
class ArticleView:
    """Shape-independent projection of an article entity.

    Relations resolve to ``None`` when absent, including the nested
    ``{"data": null}`` sentinel. ``blocks`` keeps the raw dynamic-zone payloads;
    the block dispatcher interprets them.
    """

    id: Optional[int]
    shape: Shape
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    cover: Optional[Media] = None
    author: Optional[Author] = None
    category: Optional[Category] = None
    blocks: Tuple[Mapping[str, Any], ...] = ()
    openapi_file: Optional[Media] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    published_at: Optional[str] = None

    @property
    def display_date(self) -> Optional[str]:
        return self.published_at or self.created_at

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "shape": self.shape.value,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "cover": self.cover.as_dict() if self.cover else None,
            "author": self.author.as_dict() if self.author else None,
            "category": self.category.as_dict() if self.category else None,
            "blocks": [dict(block) for block in self.blocks],
            "openapi": self.openapi_file.as_dict() if self.openapi_file else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "publishedAt": self.published_at,
        }


@dataclass(frozen=True, slots=True)
class PaginationMeta:
    page: int
    page_size: int
    page_count: int
    total: int

    @classmethod
    def from_meta(cls, meta: object) -> Optional["PaginationMeta"]:
        """Read ``meta.pagination`` from a CMS envelope, or ``None`` if absent."""

        if not isinstance(meta, Mapping):
            return None
        pagination = meta.get("pagination")
        if not isinstance(pagination, Mapping):
            return None
        try:
            return cls(
                page=int(pagination.get("page", 1)),
                page_size=int(pagination.get("pageSize", 0)),
                page_count=int(pagination.get("pageCount", 0)),
                total=int(pagination.get("total", 0)),
            )
        except (TypeError, ValueError):
            return None

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    def as_dict(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "pageCount": self.page_count,
            "total": self.total,
        }


@dataclass(slots=True)
class ArticleList:
    """Raw article entities plus pagination, as returned by a listing call."""

    data: List[Mapping[str, Any]]
    meta: Optional[PaginationMeta] = None
    hints: Dict[str, object] = field(default_factory=dict)


__all__ = [
    "ArticleList",
    "ArticleView",
    "Author",
    "Category",
    "Media",
    "PaginationMeta",
    "Shape",
]
