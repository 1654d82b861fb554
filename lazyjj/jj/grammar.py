"""Entry-start line grammars for jj's log, op log and evolution log.

Each grammar is a small ordered set of anchored patterns compiled once at
import time. Classification always runs on the decoration-stripped line, so
the result does not depend on where jj chose to put colour codes (jj emits
them between the graph marker and the identity token).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..ansi import strip_ansi
from .types import NO_MATCH, EntryKind, EntryMatch

GRAPH_CONNECTORS = "│├└┌┐┘┤┬┴┼─╭╮╯╰~"
OPERATION_MARKERS = "@○"
CHANGE_MARKERS = "@○◆◇●×"

_CONNECTOR_PREFIX = "[" + re.escape(GRAPH_CONNECTORS) + r"\s]*"
CONNECTOR_PREFIX_RE = re.compile("^" + _CONNECTOR_PREFIX)

OPERATION_LINE_RE = re.compile(
    "^" + _CONNECTOR_PREFIX
    + r"(?P<marker>[" + OPERATION_MARKERS + r"])\s+"
    + r"(?P<id>[0-9a-f]{12})\s(?P<header>.*)$"
)
# Change ids use jj's "reverse hex" alphabet (k-z); evolution-log rows may
# carry a /N suffix naming a historical version of the change.
CHANGE_LINE_RE = re.compile(
    "^" + _CONNECTOR_PREFIX
    + r"(?P<marker>[" + CHANGE_MARKERS + r"])\s*"
    + r"(?P<id>[k-z]{8,}(?:/(?P<version>\d+))?)\s(?P<header>.*)$"
)


@dataclass(frozen=True)
class LineGrammar:
    """Named, ordered set of entry-start patterns."""

    name: str
    patterns: tuple[tuple[EntryKind, re.Pattern[str]], ...]

    def match_stripped(self, stripped: str) -> EntryMatch:
        """Classify an already-stripped line."""
        for kind, pattern in self.patterns:
            match = pattern.match(stripped)
            if match is None:
                continue
            version = match.groupdict().get("version")
            return EntryMatch(
                kind=kind,
                id=match.group("id"),
                version=int(version) if version is not None else None,
                marker=match.group("marker"),
                header=match.group("header").strip(),
            )
        return NO_MATCH

    def classify(self, line: str) -> EntryMatch:
        return self.match_stripped(strip_ansi(line))


OPERATION_LOG = LineGrammar(
    name="operation-log",
    patterns=((EntryKind.OPERATION, OPERATION_LINE_RE),),
)
CHANGE_LOG = LineGrammar(
    name="change-log",
    patterns=((EntryKind.CHANGE, CHANGE_LINE_RE),),
)
EVOLUTION_LOG = LineGrammar(
    name="evolution-log",
    patterns=(
        (EntryKind.OPERATION, OPERATION_LINE_RE),
        (EntryKind.CHANGE, CHANGE_LINE_RE),
    ),
)


def classify(line: str, grammar: LineGrammar = CHANGE_LOG) -> EntryMatch:
    """Return the entry-start match for ``line`` under ``grammar``."""
    return grammar.classify(line)


def is_entry_start(line: str, grammar: LineGrammar = EVOLUTION_LOG) -> bool:
    return grammar.classify(line).is_entry_start


def strip_connector_prefix(stripped: str) -> str:
    """Drop leading graph connectors and whitespace from a stripped line."""
    return CONNECTOR_PREFIX_RE.sub("", stripped, count=1).strip()


__all__ = [
    "CHANGE_LOG",
    "EVOLUTION_LOG",
    "GRAPH_CONNECTORS",
    "LineGrammar",
    "OPERATION_LOG",
    "classify",
    "is_entry_start",
    "strip_connector_prefix",
]
