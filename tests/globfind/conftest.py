from pathlib import Path

import pytest


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """
    .dot.txt
    .hidden/a.txt
    a.txt
    b/a.txt
    b/c/a.txt
    b/c/d.js
    x.txt
    """
    for name in [".dot.txt", ".hidden/a.txt", "a.txt", "b/a.txt", "b/c/a.txt", "b/c/d.js", "x.txt"]:
        file = tmp_path / name
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(name, encoding="utf-8")

    return tmp_path
