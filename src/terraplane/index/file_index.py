"""Per-document collection of sections."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from terraplane.index.models import Query, Section, coerce_query

if TYPE_CHECKING:
    from terraplane.index.parser import ParseError, ParseResult
    from terraplane.index.reference import Reference


class SectionQuery:
    """Lazy, restartable view of the sections matching a query.

    Every iteration re-scans the file's sections; nothing is cached.
    """

    __slots__ = ("_sections", "_query")

    def __init__(self, sections: tuple[Section, ...], query: Query) -> None:
        self._sections = sections
        self._query = query

    def __iter__(self) -> Iterator[Section]:
        query = self._query
        if query.is_empty:
            return iter(self._sections)
        return (s for s in self._sections if query.matches(s))

    def __repr__(self) -> str:
        return f"SectionQuery({self._query!r})"


class FileIndex:
    """The sections of exactly one document.

    Built fresh from one parse and never mutated; a changed document gets a
    new FileIndex.
    """

    def __init__(
        self,
        uri: str | None,
        sections: Iterable[Section],
        *,
        result: ParseResult | None = None,
        parse_error: ParseError | None = None,
    ) -> None:
        self._uri = uri
        self._sections = tuple(sections)
        self._result = result
        self._parse_error = parse_error

    @property
    def uri(self) -> str | None:
        return self._uri

    @property
    def sections(self) -> tuple[Section, ...]:
        return self._sections

    @property
    def parse_error(self) -> ParseError | None:
        return self._parse_error

    @property
    def source(self) -> str | None:
        return self._result.text if self._result is not None else None

    def query(self, filter: Query | Mapping[str, Any] | None = None) -> SectionQuery:  # noqa: A002
        return SectionQuery(self._sections, coerce_query(filter))

    def references(self) -> list[Reference]:
        from terraplane.index.build import extract_references

        return extract_references(self)

    def query_references(self, target_id: str) -> list[Reference]:
        return [r for r in self.references() if r.target_id == target_id]

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        return f"FileIndex({self._uri!r}, sections={len(self._sections)})"
