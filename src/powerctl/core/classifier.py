"""Map command failure output to an error kind.

Matching is plain substring search over lower-cased output. The text varies
by locale and tool version, so the table only covers the messages seen from
Windows ``shutdown``/``net use`` (English and Portuguese) and Samba ``net``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from powerctl.errors import ErrorKind


@dataclass(frozen=True)
class ErrorPattern:
    kind: ErrorKind
    needles: tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(needle in text for needle in self.needles)


DEFAULT_PATTERNS: tuple[ErrorPattern, ...] = (
    ErrorPattern(ErrorKind.PERMISSION_DENIED, ("acesso negado", "access is denied")),
    ErrorPattern(
        ErrorKind.TARGET_UNREACHABLE,
        ("caminho da rede", "network path", "unreachable"),
    ),
    ErrorPattern(
        ErrorKind.MISSING_BRIDGE_TOOL,
        ("not found", "net: command not found"),
    ),
)


def classify(text: str, patterns: Sequence[ErrorPattern] = DEFAULT_PATTERNS) -> ErrorKind:
    """Return the kind of the first pattern matching ``text``, else GENERIC."""
    lowered = text.lower()
    for pattern in patterns:
        if pattern.matches(lowered):
            return pattern.kind
    return ErrorKind.GENERIC


def build_patterns(rows: Iterable[tuple[ErrorKind | str, Iterable[str]]]) -> tuple[ErrorPattern, ...]:
    """Build a replacement table from ``(kind, needles)`` rows."""
    return tuple(
        ErrorPattern(ErrorKind(kind), tuple(needle.lower() for needle in needles))
        for kind, needles in rows
    )
