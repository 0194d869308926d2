"""Shared pytest fixtures for the llmcat test suite."""

from pathlib import Path
from typing import Callable, Dict, Union

import pytest

TreeSpec = Dict[str, Union[str, bytes]]


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[TreeSpec], Path]:
    """Create files under a fresh root from a ``{relative_path: content}`` map."""

    def _make(files: TreeSpec) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            target.write_bytes(content)
        return root

    return _make
