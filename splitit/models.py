"""Domain models shared by the splitIt controllers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

ACCOUNT_FIELDS: Tuple[str, ...] = (
    "id",
    "login",
    "email",
    "firstName",
    "lastName",
    "langKey",
    "activated",
    "authorities",
)


@dataclass(frozen=True)
class Account:
    """Trimmed, read-only copy of the authenticated user's identity record."""

    id: Optional[int]
    login: Optional[str]
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    lang_key: Optional[str]
    activated: Optional[bool]
    authorities: Tuple[str, ...] = ()

    @staticmethod
    def from_identity(record: Mapping[str, Any]) -> "Account":
        """Copy the allow-listed fields out of ``record``; anything else is dropped.

        Raises :class:`ValueError` when ``authorities`` is not a list of strings.
        """
        authorities = record.get("authorities")
        if authorities is None:
            authorities = ()
        if not isinstance(authorities, (list, tuple)):
            raise ValueError("Identity authorities must be a list of strings")
        if not all(isinstance(item, str) for item in authorities):
            raise ValueError("Identity authorities must be a list of strings")
        return Account(
            id=record.get("id"),
            login=record.get("login"),
            email=record.get("email"),
            first_name=record.get("firstName"),
            last_name=record.get("lastName"),
            lang_key=record.get("langKey"),
            activated=record.get("activated"),
            authorities=tuple(authorities),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "login": self.login,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "langKey": self.lang_key,
            "activated": self.activated,
            "authorities": list(self.authorities),
        }

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        if parts:
            return " ".join(parts)
        return self.login or ""


@dataclass(frozen=True)
class GroupSummaryResult:
    """Summaries of a group's transactions as returned by the summary endpoint."""

    summaries: Tuple[Dict[str, Any], ...]
    payload: Dict[str, Any]

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> "GroupSummaryResult":
        summaries = payload.get("summaries")
        if not isinstance(summaries, list):
            raise ValueError("Summary payload must contain a 'summaries' list")
        return GroupSummaryResult(
            summaries=tuple(dict(item) if isinstance(item, Mapping) else {"value": item} for item in summaries),
            payload=dict(payload),
        )

    @property
    def count(self) -> int:
        return len(self.summaries)


@dataclass(frozen=True)
class Page:
    """A single page of a paginated collection."""

    items: Tuple[Dict[str, Any], ...]
    total_count: Optional[int]
    links: Dict[str, str] = field(default_factory=dict)

    @property
    def has_next(self) -> bool:
        return "next" in self.links


@dataclass(frozen=True)
class NavigationState:
    """Navigation state a view was entered from."""

    name: str
    params: Dict[str, Any] = field(default_factory=dict)


__all__ = ["ACCOUNT_FIELDS", "Account", "GroupSummaryResult", "NavigationState", "Page"]
