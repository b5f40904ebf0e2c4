"""Identities that may check in, and the sources that provide them."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Protocol


class RosterError(ValueError):
    """Raised when a roster file cannot be turned into identities."""


class UnknownIdentityError(ValueError):
    """Raised when selecting an id that is not on the roster."""


@dataclass(frozen=True)
class Identity:
    """A person who can be picked on the check-in form."""

    id: str
    display_name: str


class Roster:
    """Immutable, ordered collection of identities keyed by id."""

    def __init__(self, identities: Iterable[Identity]) -> None:
        entries = tuple(identities)
        by_id: dict[str, Identity] = {}
        for identity in entries:
            if not identity.id:
                raise RosterError("Roster entries must have a non-empty id")
            if identity.id in by_id:
                raise RosterError(f"Duplicate roster id: {identity.id}")
            by_id[identity.id] = identity
        self._entries = entries
        self._by_id = by_id

    def __iter__(self) -> Iterator[Identity]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity_id: object) -> bool:
        return identity_id in self._by_id

    def get(self, identity_id: str) -> Optional[Identity]:
        return self._by_id.get(identity_id)

    def require(self, identity_id: str) -> Identity:
        identity = self._by_id.get(identity_id)
        if identity is None:
            raise UnknownIdentityError(f"Unknown identity: {identity_id}")
        return identity


class RosterSource(Protocol):
    """Provide the identities shown on the check-in form."""

    def load(self) -> Roster:
        """Return the roster to offer for selection."""


DEFAULT_IDENTITIES = (
    Identity(id="emp-1", display_name="Taro Yamada"),
    Identity(id="emp-2", display_name="Hanako Sato"),
    Identity(id="emp-3", display_name="Sho Tanaka"),
)


class StaticRosterSource:
    """Serve a fixed, hard-coded roster."""

    def __init__(self, identities: Iterable[Identity] = DEFAULT_IDENTITIES) -> None:
        self._identities = tuple(identities)

    def load(self) -> Roster:
        return Roster(self._identities)


class JsonRosterSource:
    """Load identities from a JSON list of ``{"id", "name"}`` records."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def load(self) -> Roster:
        identities = [self._parse_entry(entry) for entry in self._load_entries()]
        if not identities:
            raise RosterError(f"No identities found in {self._path}")
        return Roster(identities)

    def _load_entries(self) -> Iterable[dict[str, Any]]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RosterError(f"Roster file {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise RosterError("Roster JSON must be a list of entries")
        for entry in payload:
            if not isinstance(entry, dict):
                raise RosterError("Roster entry must be an object with 'id' and 'name'")
            yield entry

    @staticmethod
    def _parse_entry(entry: dict[str, Any]) -> Identity:
        identity_id = entry.get("id")
        # "displayName" matches the directory-service record shape.
        name = entry.get("name", entry.get("displayName"))
        if not identity_id or not name:
            raise RosterError("Roster entry must include non-empty 'id' and 'name'")
        return Identity(id=str(identity_id), display_name=str(name))
