"""
Core logic for llmcat: configuration, directory walk and file collection.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Tuple

import pathspec

from .languages import DEFAULT_CLASSIFIER, ExtensionClassifier, extension_of
from .patterns import compile_ignore_lines, is_ignored, matches_any

logger = logging.getLogger(__name__)


# Exceptions
class LlmcatError(Exception):
    """Base exception for llmcat errors."""


class InvalidRootError(LlmcatError):
    """Raised when the directory to scan is missing or cannot be listed."""


class ConfigFileError(LlmcatError):
    """Raised when an ignore or pattern file cannot be read."""


class OutputError(LlmcatError):
    """Raised when the rendered output cannot be written."""


# Directories that are never descended into, whatever the user's patterns say.
PRUNED_DIRS: FrozenSet[str] = frozenset({".git", ".hg", ".svn", ".bzr", "node_modules"})


class SkipReason(enum.Enum):
    EXCLUDED_BY_IGNORE = "excluded by ignore file"
    EXCLUDED_BY_PATTERN = "excluded by pattern"
    EXCLUDED_EXTENSION = "extension excluded"
    UNRECOGNIZED_EXTENSION = "unrecognized extension"
    TOO_LARGE = "too large"
    EMPTY = "empty"
    UNREADABLE = "unreadable"
    STAT_ERROR = "error getting info"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class FileEntry:
    path: str
    content: bytes


@dataclass(frozen=True)
class SkipRecord:
    """Why a file or directory was left out. Diagnostic only."""

    path: str
    reason: SkipReason
    detail: str = ""
    is_dir: bool = False

    def describe(self) -> str:
        name = self.path + "/" if self.is_dir else self.path
        return f"{name} ({self.detail or self.reason.label})"


@dataclass(frozen=True)
class FilterConfig:
    """Selection rules, resolved once from the command line."""

    max_size_bytes: int = 25 * 1024
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    excluded_extensions: FrozenSet[str] = frozenset()
    source_only: bool = False
    ignore_rules: Optional[pathspec.PathSpec] = None
    prepend_path: Optional[str] = None

    @classmethod
    def build(
        cls,
        max_size_kb: int = 25,
        include_patterns: Iterable[str] = (),
        exclude_patterns: Iterable[str] = (),
        excluded_extensions: Iterable[str] = (),
        source_only: bool = False,
        ignore_rules: Optional[pathspec.PathSpec] = None,
        prepend_path: Optional[str] = None,
    ) -> "FilterConfig":
        """Normalize raw CLI values (``log``, ``.LOG`` -> ``.log``; KB -> bytes)."""
        exts = set()
        for ext in excluded_extensions:
            ext = ext.strip().lower()
            if not ext:
                continue
            exts.add(ext if ext.startswith(".") else "." + ext)
        return cls(
            max_size_bytes=max_size_kb * 1024,
            include_patterns=tuple(p for p in include_patterns if p),
            exclude_patterns=tuple(p for p in exclude_patterns if p),
            excluded_extensions=frozenset(exts),
            source_only=source_only,
            ignore_rules=ignore_rules,
            prepend_path=prepend_path or None,
        )


@dataclass
class ScanResult:
    files: List[FileEntry] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)


# Ignore-file utilities
def load_ignore_file(path: Path) -> pathspec.PathSpec:
    """Compile a ``.gitignore``-style file into a :class:`pathspec.PathSpec`."""
    try:
        with path.open("r", encoding="utf-8") as fh:
            return compile_ignore_lines(fh, source=str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read ignore file '{path}': {e}")


def load_extra_patterns(config_path: Path) -> List[str]:
    """Read newline-separated patterns from *config_path*, skipping comments."""
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")


def resolve_ignore_rules(
    root: Path,
    ignore_file: Optional[Path] = None,
    extra_patterns: Iterable[str] = (),
) -> Optional[pathspec.PathSpec]:
    """Build the ignore rule set for a scan.

    Without an explicit *ignore_file*, ``<root>/.gitignore`` is used when it
    exists. A missing ignore file means no ignore rules. *extra_patterns* are
    appended after the file's rules, so they win over it.
    """
    explicit = ignore_file is not None
    if ignore_file is None:
        ignore_file = root / ".gitignore"

    spec: Optional[pathspec.PathSpec] = None
    if ignore_file.is_file():
        spec = load_ignore_file(ignore_file)
        logger.info("Using ignore file: %s", ignore_file)
    elif explicit:
        logger.warning("Ignore file '%s' not found. Proceeding with basic filters.", ignore_file)
    else:
        logger.info("No .gitignore file found or specified. Proceeding with basic filters.")

    extra = list(extra_patterns)
    if extra:
        extra_spec = compile_ignore_lines(extra, source="--config")
        if spec is not None:
            extra_spec = pathspec.PathSpec(list(spec.patterns) + list(extra_spec.patterns))
        spec = extra_spec
    return spec


# Directory walk
def validate_root(root: Path) -> Path:
    try:
        root = root.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    return root


class _Walker:
    """Depth-first walk applying the selection rules to every entry."""

    def __init__(self, root: Path, config: FilterConfig, classifier: ExtensionClassifier) -> None:
        self.root = root
        self.config = config
        self.classifier = classifier
        self.result = ScanResult()

    def skip(self, rel: str, reason: SkipReason, detail: str = "", is_dir: bool = False) -> None:
        self.result.skipped.append(SkipRecord(rel, reason, detail, is_dir))

    def run(self) -> ScanResult:
        try:
            entries = self._list(self.root)
        except OSError as e:
            raise InvalidRootError(f"Could not scan directory '{self.root}': {e}")
        self._visit_all(entries, "")
        return self.result

    @staticmethod
    def _list(path) -> List[os.DirEntry]:
        with os.scandir(path) as it:
            return sorted(it, key=lambda e: e.name)

    def _visit_all(self, entries: List[os.DirEntry], prefix: str) -> None:
        for entry in entries:
            self._visit(entry, prefix + entry.name)

    def _visit(self, entry: os.DirEntry, rel: str) -> None:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False

        if is_dir and entry.name in PRUNED_DIRS:
            logger.debug("Pruned %s/", rel)
            return

        cfg = self.config
        if cfg.ignore_rules is not None and is_ignored(cfg.ignore_rules, rel, is_dir):
            self.skip(rel, SkipReason.EXCLUDED_BY_IGNORE, is_dir=is_dir)
            return

        if cfg.exclude_patterns and matches_any(cfg.exclude_patterns, rel):
            self.skip(rel, SkipReason.EXCLUDED_BY_PATTERN, is_dir=is_dir)
            return

        if is_dir:
            try:
                children = self._list(entry.path)
            except OSError as e:
                self.skip(rel, SkipReason.UNREADABLE, f"unreadable: {e.strerror or e}", is_dir=True)
                return
            self._visit_all(children, rel + "/")
            return

        try:
            is_file = entry.is_file(follow_symlinks=False)
        except OSError:
            is_file = False
        if not is_file:
            return

        self._check_file(entry, rel)

    def _check_file(self, entry: os.DirEntry, rel: str) -> None:
        cfg = self.config
        ext = extension_of(rel)

        if ext in cfg.excluded_extensions:
            self.skip(rel, SkipReason.EXCLUDED_EXTENSION)
            return

        if cfg.source_only and not self.classifier.is_recognized(ext):
            self.skip(rel, SkipReason.UNRECOGNIZED_EXTENSION, "not a recognized source file")
            return

        if cfg.include_patterns:
            if not matches_any(cfg.include_patterns, rel):
                self.skip(rel, SkipReason.EXCLUDED_BY_PATTERN, "no include pattern matched")
                return
        elif not self.classifier.is_default_included(ext):
            self.skip(rel, SkipReason.UNRECOGNIZED_EXTENSION)
            return

        try:
            size = entry.stat(follow_symlinks=False).st_size
        except OSError:
            self.skip(rel, SkipReason.STAT_ERROR)
            return
        if size > cfg.max_size_bytes:
            self.skip(
                rel,
                SkipReason.TOO_LARGE,
                f"too large: {size // 1024}KB > {cfg.max_size_bytes // 1024}KB",
            )
            return
        if size == 0:
            self.skip(rel, SkipReason.EMPTY)
            return

        try:
            with open(entry.path, "rb") as fh:
                content = fh.read()
        except OSError:
            self.skip(rel, SkipReason.UNREADABLE)
            return
        self.result.files.append(FileEntry(rel, content))


def collect_files(
    root: Path,
    config: FilterConfig,
    classifier: Optional[ExtensionClassifier] = None,
) -> ScanResult:
    """Walk *root* and return the accepted files plus a record of every skip.

    Per-entry failures become :class:`SkipRecord` values; only a root that
    cannot be resolved or listed raises (:class:`InvalidRootError`).
    """
    root = validate_root(root)
    walker = _Walker(root, config, classifier or DEFAULT_CLASSIFIER)
    result = walker.run()
    logger.debug(
        "%d files collected, %d entries skipped under %s",
        len(result.files),
        len(result.skipped),
        root,
    )
    return result


def format_skip_report(skipped: List[SkipRecord]) -> List[str]:
    """Group skip records by reason, count and sort them for display."""
    if not skipped:
        return []
    groups = {}
    for rec in skipped:
        groups.setdefault(rec.reason, []).append(rec)

    lines = [f"Skipped {len(skipped)} files/dirs:"]
    for reason in SkipReason:
        recs = groups.get(reason)
        if not recs:
            continue
        lines.append(f"  {reason.label} ({len(recs)}):")
        for rec in sorted(recs, key=lambda r: r.path):
            lines.append(f"  - {rec.describe()}")
    return lines
