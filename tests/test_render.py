"""Unit tests for llmcat.render: ordering and output formats."""

import sys
import xml.etree.ElementTree as ET

import pytest

from llmcat.core import FileEntry
from llmcat.render import OutputFormat, apply_prepend, escape_xml, render, sort_entries


def _entries(*pairs):
    return [FileEntry(path, content) for path, content in pairs]


class TestOrdering:
    def test_readme_first_regardless_of_depth(self) -> None:
        files = _entries(("a.go", b"a"), ("docs/deep/README.md", b"r"), ("b.go", b"b"))
        assert [f.path for f in sort_entries(files)] == ["docs/deep/README.md", "a.go", "b.go"]

    def test_priority_name_is_case_insensitive(self) -> None:
        files = _entries(("a.go", b"a"), ("readme.MD", b"r"))
        assert sort_entries(files)[0].path == "readme.MD"

    def test_multiple_readmes_sorted_by_path(self) -> None:
        files = _entries(("z/README.md", b"1"), ("x.go", b"2"), ("README.md", b"3"))
        assert [f.path for f in sort_entries(files)] == ["README.md", "z/README.md", "x.go"]

    def test_paths_in_code_point_order(self) -> None:
        files = _entries(("b.go", b""), ("B.go", b""), ("a/z.go", b""), ("a.go", b""))
        assert [f.path for f in sort_entries(files)] == ["B.go", "a.go", "a/z.go", "b.go"]

    @pytest.mark.skipif(sys.platform == "win32", reason="file names are not bytes on Windows")
    def test_surrogate_escaped_names_sort_by_bytes(self) -> None:
        # "\udcff" stands for the raw byte 0xff, which sorts after any UTF-8 lead byte.
        files = _entries(("\udcff.py", b"x"), ("\uff46.py", b"f"))
        assert [f.path for f in sort_entries(files)] == ["\uff46.py", "\udcff.py"]

    def test_other_readme_names_are_not_prioritized(self) -> None:
        files = _entries(("a.go", b"a"), ("README.txt", b"r"))
        assert sort_entries(files)[0].path == "README.txt"
        files = _entries(("a.go", b"a"), ("readme.txt", b"r"))
        assert sort_entries(files)[0].path == "a.go"


class TestApplyPrepend:
    def test_no_prefix(self) -> None:
        assert apply_prepend("src/a.go", None) == "src/a.go"
        assert apply_prepend("src/a.go", "") == "src/a.go"

    def test_prefix_is_joined_and_normalized(self) -> None:
        assert apply_prepend("src/a.go", "repo") == "repo/src/a.go"
        assert apply_prepend("a.go", "./repo//sub/") == "repo/sub/a.go"
        assert apply_prepend("a.go", "repo\\sub") == "repo/sub/a.go"


class TestTextFormat:
    def test_layout(self) -> None:
        out = render(_entries(("a.go", b"package a")))
        sep = b"=" * 48 + b"\n"
        assert out == sep + b"FILE: a.go\n" + sep + b"package a\n\n"

    def test_prepend_only_changes_emitted_path(self) -> None:
        files = _entries(("b.go", b"b"), ("a.go", b"a"))
        out = render(files, prepend_path="proj")
        assert out.index(b"FILE: proj/a.go") < out.index(b"FILE: proj/b.go")
        assert [f.path for f in files] == ["b.go", "a.go"]


class TestMarkdownFormat:
    def test_fence_with_language_and_path(self) -> None:
        out = render(_entries(("main.py", b"print(1)\n")), OutputFormat.MARKDOWN)
        assert out == b"```python path=main.py\nprint(1)\n```\n\n"

    def test_newline_forced_before_closing_fence(self) -> None:
        out = render(_entries(("main.go", b"package main")), OutputFormat.MARKDOWN)
        assert out == b"```go path=main.go\npackage main\n```\n\n"

    def test_unknown_extension_gets_untagged_fence(self) -> None:
        out = render(_entries(("notes.xyz", b"n\n")), OutputFormat.MARKDOWN)
        assert out.startswith(b"``` path=notes.xyz\n")

    def test_content_recoverable(self) -> None:
        content = b"a\r\nb\n\n"
        out = render(_entries(("x.txt", content)), OutputFormat.MARKDOWN)
        header, _, rest = out.partition(b"\n")
        assert header == b"```text path=x.txt"
        assert rest[: -len(b"```\n\n")] == content


class TestXmlFormat:
    """Tests for the XML document format."""

    def test_structure_and_round_trip(self) -> None:
        content = 'if a < b && c > "d" {\r\n\treturn \'x\'\n}'
        files = _entries(("README.md", b"# T\n"), ('we"ird&<name>.go', content.encode()))
        out = render(files, OutputFormat.XML)

        doc = ET.fromstring(out)
        assert doc.tag == "documents"
        docs = doc.findall("document")
        assert [d.get("path") for d in docs] == ["README.md", 'we"ird&<name>.go']
        assert docs[0].find("content").text == "# T\n"
        assert docs[1].find("content").text == content

    def test_layout(self) -> None:
        out = render(_entries(("a.go", b"x")), OutputFormat.XML, prepend_path="p")
        assert out == (
            b"<documents>\n"
            b'  <document path="p/a.go">\n'
            b"    <content>x</content>\n"
            b"  </document>\n"
            b"</documents>\n"
        )

    def test_non_utf8_and_control_characters_are_replaced(self) -> None:
        out = render(_entries(("b.txt", b"ok\xff\x01end")), OutputFormat.XML)
        doc = ET.fromstring(out)
        assert doc.find("document/content").text == "ok\ufffd\ufffdend"

    @pytest.mark.skipif(sys.platform == "win32", reason="file names are not bytes on Windows")
    def test_undecodable_path_is_emitted(self) -> None:
        files = _entries(("\udcff.py", b"x = 1\n"))

        assert b"FILE: \xff.py\n" in render(files)
        assert b"```python path=\xff.py\n" in render(files, OutputFormat.MARKDOWN)
        doc = ET.fromstring(render(files, OutputFormat.XML))
        assert doc.find("document").get("path") == "\ufffd.py"

    def test_path_attribute_keeps_tabs_and_newlines(self) -> None:
        out = render(_entries(("odd\tname\n.txt", b"x")), OutputFormat.XML)
        doc = ET.fromstring(out)
        assert doc.find("document").get("path") == "odd\tname\n.txt"

    def test_escape_xml(self) -> None:
        assert escape_xml('<a href="x">&</a>') == '&lt;a href="x"&gt;&amp;&lt;/a&gt;'
        assert escape_xml('"', quote=True) == "&quot;"
        assert escape_xml("\r\n") == "&#13;\n"
        assert escape_xml("a\tb\nc", quote=True) == "a&#9;b&#10;c"
