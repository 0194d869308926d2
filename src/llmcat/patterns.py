"""
Glob and ignore-file pattern matching.

Paths handed to this module are always relative to the scan root and use
forward slashes, whatever the host separator is.
"""

from __future__ import annotations

import fnmatch
import logging
import posixpath
import re
from typing import Iterable, List

import pathspec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern

logger = logging.getLogger(__name__)


def matches(pattern: str, path: str) -> bool:
    """Return True if the shell glob *pattern* matches *path*.

    Patterns without a ``/`` are also tried against the base name, so
    ``*.test.go`` matches ``pkg/a.test.go``.
    """
    if not pattern:
        return False
    try:
        if fnmatch.fnmatchcase(path, pattern):
            return True
        if "/" not in pattern:
            return fnmatch.fnmatchcase(posixpath.basename(path), pattern)
    except re.error:
        logger.debug("Ignoring malformed pattern %r", pattern)
    return False


def matches_any(patterns: Iterable[str], path: str) -> bool:
    return any(matches(p, path) for p in patterns)


def compile_ignore_lines(lines: Iterable[str], source: str = "<patterns>") -> pathspec.PathSpec:
    """Compile ignore-file *lines* into a :class:`pathspec.PathSpec`.

    Rules follow ``.gitignore`` semantics and are evaluated in file order, so a
    later ``!negation`` re-includes what an earlier rule excluded. A line that
    pathspec refuses to compile is dropped with a warning.
    """
    compiled: List[pathspec.Pattern] = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        try:
            pattern = GitWildMatchPattern(line)
        except ValueError as e:
            logger.warning("%s:%d: ignoring invalid pattern %r (%s)", source, lineno, line, e)
            continue
        # Blank lines and comments compile to inert patterns.
        if pattern.include is not None:
            compiled.append(pattern)
    return pathspec.PathSpec(compiled)


def is_ignored(spec: pathspec.PathSpec, path: str, is_dir: bool = False) -> bool:
    """Check *path* against *spec*; directories are tested with a trailing slash."""
    return spec.match_file(path + "/" if is_dir else path)
