"""
Extension lookup tables: which files are picked up by default and which
language tag labels their Markdown fence.
"""

from __future__ import annotations

import posixpath
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping

LANGUAGE_HINTS: Mapping[str, str] = MappingProxyType({
    # Programming languages
    ".go": "go",
    ".py": "python",
    ".js": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".pl": "perl",
    ".sh": "bash",
    ".sql": "sql",
    # Markup & styles
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    # Data & config
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".xml": "xml",
    ".toml": "toml",
    ".ini": "ini",
    # Docs
    ".md": "markdown",
    ".txt": "text",
    ".rst": "rst",
})

# Text formats worth sending along that have no fence language of their own.
_EXTRA_TEXT_EXTENSIONS: FrozenSet[str] = frozenset({
    ".cfg", ".conf", ".csv", ".env", ".gradle", ".graphql", ".log", ".proto",
    ".properties", ".svelte", ".tf", ".vue",
})

DEFAULT_EXTENSIONS: FrozenSet[str] = frozenset(LANGUAGE_HINTS) | _EXTRA_TEXT_EXTENSIONS


def extension_of(path: str) -> str:
    """Lower-cased final suffix of *path* including the dot, ``""`` if none."""
    return posixpath.splitext(path)[1].lower()


def _normalize(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


class ExtensionClassifier:
    """Case-insensitive extension lookups over immutable tables."""

    def __init__(
        self,
        language_hints: Mapping[str, str],
        default_extensions: Iterable[str],
    ) -> None:
        self._hints = MappingProxyType({_normalize(k): v for k, v in language_hints.items()})
        self._defaults = frozenset(_normalize(e) for e in default_extensions)

    @classmethod
    def default(cls) -> "ExtensionClassifier":
        return cls(LANGUAGE_HINTS, DEFAULT_EXTENSIONS)

    def is_default_included(self, ext: str) -> bool:
        return _normalize(ext) in self._defaults

    def is_recognized(self, ext: str) -> bool:
        """True when *ext* has a known programming/markup language tag."""
        return _normalize(ext) in self._hints

    def language_hint(self, ext: str) -> str:
        return self._hints.get(_normalize(ext), "")

    def hint_for_path(self, path: str) -> str:
        return self.language_hint(extension_of(path))


DEFAULT_CLASSIFIER = ExtensionClassifier.default()
