"""References: dotted paths that point from one block at another.

    var.region                            -> var.region                  []
    aws_s3_bucket.bucket.arn              -> aws_s3_bucket.bucket        ["arn"]
    data.template_file.template.rendered  -> data.template_file.template ["rendered"]
    url                                   -> url                         []

Parsing never raises; malformed paths degrade to a target no section has.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeAlias

from terraplane.index.models import Location, Query, Section

# Namespaces Terraform resolves itself; they never name a declared block
BUILTIN_NAMESPACES: frozenset[str] = frozenset({"each", "count", "path", "self", "terraform"})

_SEGMENT = r"(?:[A-Za-z_][\w-]*|\*|\d+)"
_RE_DOTTED_PATH = re.compile(rf"(?<![\w.\-])[A-Za-z_][\w-]*(?:\.{_SEGMENT})+")
_RE_FOR_BINDING = re.compile(
    r"(?<![\w.\-])for\s+([A-Za-z_][\w-]*)(?:\s*,\s*([A-Za-z_][\w-]*))?\s+in(?![\w-])"
)


class Reference:
    """A parsed pointer from one location in configuration to a Section."""

    __slots__ = ("raw_path", "uri", "location", "type", "target_id", "_value_path")

    def __init__(
        self,
        raw_path: str,
        uri: str | None = None,
        location: Location | None = None,
    ) -> None:
        self.raw_path = raw_path
        self.uri = uri
        self.location = location

        segments = raw_path.split(".")
        head = segments[0]
        if any(not s for s in segments):
            # "", "a..b", ".a", "a." -- nothing a section id could produce
            self.type = head
            self.target_id = raw_path
            self._value_path: tuple[str, ...] = ()
        elif head == "var" and len(segments) >= 2:
            self.type = "variable"
            self.target_id = f"var.{segments[1]}"
            self._value_path = tuple(segments[2:])
        elif head == "data" and len(segments) >= 3:
            self.type = "data"
            self.target_id = f"data.{segments[1]}.{segments[2]}"
            self._value_path = tuple(segments[3:])
        elif head == "data":
            self.type = "data"
            self.target_id = raw_path
            self._value_path = ()
        elif len(segments) >= 2:
            self.type = head
            self.target_id = f"{head}.{segments[1]}"
            self._value_path = tuple(segments[2:])
        else:
            # bare name, e.g. an output
            self.type = "variable" if head == "var" else head
            self.target_id = raw_path
            self._value_path = ()

    def value_path(self) -> list[str]:
        return list(self._value_path)

    def get_query(self) -> Query:
        return Query(id=self.target_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reference):
            return NotImplemented
        return (self.raw_path, self.uri, self.location) == (other.raw_path, other.uri, other.location)

    def __hash__(self) -> int:
        return hash((self.raw_path, self.uri, self.location))

    def __repr__(self) -> str:
        return f"Reference({self.raw_path!r}, target={self.target_id!r}, uri={self.uri!r})"


@dataclass(frozen=True, slots=True)
class RawPath:
    """Target given as a dotted path, e.g. ``var.region`` or ``aws_s3_bucket.b.arn``."""

    path: str


@dataclass(frozen=True, slots=True)
class ResolvedSection:
    """Target given as the id of an already-resolved section."""

    section_id: str

    @classmethod
    def of(cls, section: Section) -> ResolvedSection:
        return cls(section.id())


ReferenceTarget: TypeAlias = RawPath | ResolvedSection


def to_target(value: str | Section | RawPath | ResolvedSection) -> ReferenceTarget:
    if isinstance(value, (RawPath, ResolvedSection)):
        return value
    if isinstance(value, Section):
        return ResolvedSection.of(value)
    if isinstance(value, str):
        return RawPath(value)
    raise TypeError(f"Unsupported reference target: {value!r}")


def normalize_target(value: str | Section | RawPath | ResolvedSection) -> str:
    """Canonical section id a reference must carry to match ``value``.

    Raises:
        TypeError: When ``value`` is not a path, a Section or a tagged target.
    """
    match to_target(value):
        case ResolvedSection(section_id=section_id):
            return section_id
        case RawPath(path=path):
            return Reference(path).target_id


def iter_reference_candidates(text: str, *, template: bool = False) -> Iterator[tuple[int, str]]:
    """Yield ``(offset, dotted_path)`` for every candidate reference in ``text``.

    ``text`` is the source of one expression. String literals only contribute
    their ``${...}``/``%{...}`` sequences; with ``template=True`` (heredocs) the
    whole text is treated as template content. Names bound by ``for``
    expressions and builtin namespaces are skipped.
    """
    code = _mask_literals(text, template=template)
    bound = {name for m in _RE_FOR_BINDING.finditer(code) for name in m.groups() if name}

    for match in _RE_DOTTED_PATH.finditer(code):
        head = match.group().split(".", 1)[0]
        if head in BUILTIN_NAMESPACES or head in bound:
            continue
        yield match.start(), match.group()


def _mask_literals(text: str, *, template: bool = False) -> str:
    """``text`` with everything but expression code blanked to spaces.

    Offsets are preserved. The context stack holds an int brace depth for
    code and ``'"'`` or ``"<<"`` for quoted and heredoc string content.
    """
    out = list(text)
    stack: list[int | str] = ["<<" if template else 0]
    i, n = 0, len(text)

    def blank(start: int, end: int) -> None:
        for j in range(start, min(end, n)):
            if out[j] != "\n":
                out[j] = " "

    while i < n:
        frame = stack[-1]
        c = text[i]

        if isinstance(frame, str):
            if text.startswith(("$${", "%%{"), i):
                blank(i, i + 3)
                i += 3
            elif text.startswith(("${", "%{"), i):
                blank(i, i + 2)
                stack.append(0)
                i += 2
            elif frame == '"' and c == "\\":
                blank(i, i + 2)
                i += 2
            elif frame == '"' and c in '"\n':
                blank(i, i + 1)
                stack.pop()
                i += 1
            else:
                blank(i, i + 1)
                i += 1
            continue

        if c == '"':
            blank(i, i + 1)
            stack.append('"')
        elif c == "{":
            stack[-1] = frame + 1
        elif c == "}":
            if frame == 0 and len(stack) > 1:
                # end of an interpolation or directive
                blank(i, i + 1)
                stack.pop()
            else:
                stack[-1] = max(frame - 1, 0)
        elif c == "#" or text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            blank(i, end)
            i = end
            continue
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            blank(i, end)
            i = end
            continue
        i += 1

    return "".join(out)
