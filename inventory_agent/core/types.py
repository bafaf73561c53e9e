"""
Shared types for building and publishing records.

ErrorLog is the single error sink of one report cycle. The builder and the
publisher both append to it; nothing ever removes an entry.

AttributeField describes one published field. A record's field table is a
plain ordered tuple of these, so attribute order and encoding are fixed by
the table rather than discovered at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, List

from inventory_agent.core.encoding import render_error_list


class FieldKind(str, Enum):
    """
    text
      Written as raw UTF-8.

    structured
      Written as base64(gzip(json)).

    list
      Not published by the field walk.
    """

    text = "text"
    structured = "structured"
    list = "list"


@dataclass(frozen=True)
class AttributeField:
    name: str
    kind: FieldKind
    accessor: Callable[[Any], Any]


class ErrorLog:
    """Append only, ordered list of error strings."""

    def __init__(self, entries: Iterable[str] = ()):
        self._entries: List[str] = list(entries)

    def append(self, message: str) -> None:
        self._entries.append(str(message))

    def extend(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.append(message)

    def render(self) -> str:
        return render_error_list(self._entries)

    def as_list(self) -> List[str]:
        return list(self._entries)

    def to_json(self) -> List[str]:
        return self.as_list()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorLog):
            return self._entries == other._entries
        if isinstance(other, list):
            return self._entries == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"ErrorLog({self._entries!r})"
