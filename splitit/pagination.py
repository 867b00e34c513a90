"""Paging and sorting parameters for collection queries."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping

DEFAULT_ITEMS_PER_PAGE = 20


@dataclass(frozen=True)
class Pageable:
    """Zero-based page request with a sort predicate."""

    page: int = 0
    size: int = DEFAULT_ITEMS_PER_PAGE
    predicate: str = "id"
    reverse: bool = True

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("Page index must not be negative")
        if self.size <= 0:
            raise ValueError("Page size must be positive")
        if not self.predicate.strip():
            raise ValueError("Sort predicate must not be empty")

    def sort(self) -> List[str]:
        result = [f"{self.predicate},{'asc' if self.reverse else 'desc'}"]
        if self.predicate != "id":
            result.append("id")
        return result

    def params(self) -> Dict[str, object]:
        return {"page": self.page, "size": self.size, "sort": self.sort()}

    def transition(self, page: int) -> "Pageable":
        return replace(self, page=page)


def links_from_response(links: Mapping[str, Mapping[str, str]]) -> Dict[str, str]:
    """Flatten ``httpx.Response.links`` into a ``rel -> url`` mapping."""
    flattened: Dict[str, str] = {}
    for rel, entry in links.items():
        url = entry.get("url")
        if rel and url:
            flattened[str(rel)] = url
    return flattened


__all__ = ["DEFAULT_ITEMS_PER_PAGE", "Pageable", "links_from_response"]
