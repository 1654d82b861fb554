"""jj-facing layer: line grammars, parsers, command runner and watcher."""

from .grammar import CHANGE_LOG, EVOLUTION_LOG, OPERATION_LOG, classify
from .parse import assemble, find_hunks, parse_changes, parse_details, parse_evolog, parse_files, parse_operations
from .runner import CommandRunner, JJCommandError
from .types import Assembly, Change, DetailsHeader, EntryKind, EntryMatch, File, FileStatus, Hunk, Operation

__all__ = [
    "Assembly",
    "CHANGE_LOG",
    "Change",
    "CommandRunner",
    "DetailsHeader",
    "EVOLUTION_LOG",
    "EntryKind",
    "EntryMatch",
    "File",
    "FileStatus",
    "Hunk",
    "JJCommandError",
    "OPERATION_LOG",
    "Operation",
    "assemble",
    "classify",
    "find_hunks",
    "parse_changes",
    "parse_details",
    "parse_evolog",
    "parse_files",
    "parse_operations",
]
