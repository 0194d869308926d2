"""
Ordering and output formats for collected files.
"""

from __future__ import annotations

import enum
import os
import posixpath
import re
from typing import FrozenSet, List, Optional, Sequence

from .core import FileEntry
from .languages import DEFAULT_CLASSIFIER, ExtensionClassifier

# Base names (lower-cased) that always lead the output.
PRIORITY_FILENAMES: FrozenSet[str] = frozenset({"readme.md"})

SEPARATOR = "=" * 48

# Code points XML 1.0 cannot carry, even as character references.
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


class OutputFormat(enum.Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    XML = "xml"


def is_priority(path: str) -> bool:
    return posixpath.basename(path).lower() in PRIORITY_FILENAMES


def sort_entries(files: Sequence[FileEntry]) -> List[FileEntry]:
    """README first, then everything else by the path's filesystem bytes."""
    return sorted(files, key=lambda f: (not is_priority(f.path), os.fsencode(f.path)))


def apply_prepend(path: str, prefix: Optional[str]) -> str:
    if not prefix:
        return path
    return posixpath.normpath(posixpath.join(prefix.replace("\\", "/"), path))


def _path_bytes(path: str, prefix: Optional[str]) -> bytes:
    # Undecodable file names come back from scandir as surrogate escapes.
    return os.fsencode(apply_prepend(path, prefix))


def escape_xml(text: str, quote: bool = False) -> str:
    text = _XML_ILLEGAL.sub("\ufffd", text)
    text = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    # Parsers fold CR/CRLF into LF unless it is a character reference.
    text = text.replace("\r", "&#13;")
    if quote:
        # Attribute value normalization turns raw tabs and newlines into spaces.
        text = text.replace('"', "&quot;").replace("\n", "&#10;").replace("\t", "&#9;")
    return text


def _render_text(files: Sequence[FileEntry], prefix: Optional[str]) -> List[bytes]:
    sep = SEPARATOR.encode() + b"\n"
    parts = []
    for f in files:
        parts += [
            sep,
            b"FILE: " + _path_bytes(f.path, prefix) + b"\n",
            sep,
            f.content,
            b"\n\n",
        ]
    return parts


def _render_markdown(
    files: Sequence[FileEntry],
    prefix: Optional[str],
    classifier: ExtensionClassifier,
) -> List[bytes]:
    parts = []
    for f in files:
        lang = classifier.hint_for_path(f.path)
        parts.append(f"```{lang} path=".encode("utf-8") + _path_bytes(f.path, prefix) + b"\n")
        parts.append(f.content)
        if not f.content.endswith(b"\n"):
            parts.append(b"\n")
        parts.append(b"```\n\n")
    return parts


def _render_xml(files: Sequence[FileEntry], prefix: Optional[str]) -> List[bytes]:
    parts = [b"<documents>\n"]
    for f in files:
        path = escape_xml(_path_bytes(f.path, prefix).decode("utf-8", errors="replace"), quote=True)
        body = escape_xml(f.content.decode("utf-8", errors="replace"))
        parts.append(
            f'  <document path="{path}">\n    <content>{body}</content>\n  </document>\n'.encode("utf-8")
        )
    parts.append(b"</documents>\n")
    return parts


def render(
    files: Sequence[FileEntry],
    fmt: OutputFormat = OutputFormat.TEXT,
    prepend_path: Optional[str] = None,
    classifier: Optional[ExtensionClassifier] = None,
) -> bytes:
    """Sort *files* and serialize them in *fmt*.

    Content is emitted byte-for-byte in the text and Markdown formats. The XML
    format decodes it as UTF-8 (invalid sequences replaced) and escapes it so
    a conforming parser gives back the original text.
    """
    ordered = sort_entries(files)
    if fmt is OutputFormat.MARKDOWN:
        parts = _render_markdown(ordered, prepend_path, classifier or DEFAULT_CLASSIFIER)
    elif fmt is OutputFormat.XML:
        parts = _render_xml(ordered, prepend_path)
    else:
        parts = _render_text(ordered, prepend_path)
    return b"".join(parts)
