import os

import pytest

from tutorial_gen.core.combine_tutorial import (
    build_index_content,
    build_mermaid_diagram,
    combine_tutorial,
    sanitize_for_mermaid,
)

ANALYSIS = {
    "summary": "A tiny **demo** app.",
    "relationships": [
        {"from": 0, "to": 1, "label": "Runs"},
        {"from": 2, "to": 0, "label": "Provides a very long configuration label\nacross lines"},
    ],
}

CHAPTERS = [
    {"chapter_number": 1, "abstraction_index": 1, "title": "Engine",
     "content": "# Chapter 1: Engine\n\nBody one", "filename": "01_engine.md"},
    {"chapter_number": 3, "abstraction_index": 2, "title": "Config",
     "content": "# Chapter 3: Config\n\nBody three\n", "filename": "03_config.md"},
]


def test_sanitize_for_mermaid():
    assert sanitize_for_mermaid('Say "hi" (now)') == "Say #quot;hi#quot; #lpar;now#rpar;"


def test_mermaid_diagram(abstractions):
    diagram = build_mermaid_diagram(abstractions, ANALYSIS["relationships"])
    lines = diagram.splitlines()

    assert lines[0] == "flowchart TD"
    assert '    A0["Application"]' in lines
    assert '    A2["Config"]' in lines
    assert '    A0 -- "Runs" --> A1' in lines
    long_edge = [line for line in lines if line.startswith("    A2 --")][0]
    label = long_edge.split('"')[1]
    assert len(label) == 30
    assert label.endswith("...")
    assert "\n" not in label


def test_isolated_abstraction_still_gets_a_node(abstractions):
    diagram = build_mermaid_diagram(abstractions, [])
    assert diagram.count('["') == 3


def test_index_content():
    content = build_index_content(
        "demo", ANALYSIS, CHAPTERS,
        repo_url="https://github.com/o/demo", mermaid_diagram="flowchart TD",
    )
    assert content.startswith("# Tutorial: demo\n\nA tiny **demo** app.")
    assert "**Source Repository:** [https://github.com/o/demo](https://github.com/o/demo)" in content
    assert "```mermaid\nflowchart TD\n```" in content
    assert "1. [Engine](01_engine.md)" in content
    assert "3. [Config](03_config.md)" in content
    assert content.rstrip().endswith("(https://github.com/The-Pocket/Tutorial-Codebase-Knowledge)")


def test_index_without_repo_url_has_no_source_line():
    content = build_index_content("demo", ANALYSIS, CHAPTERS)
    assert "Source Repository" not in content


def test_combine_writes_files(tmp_path, abstractions):
    out = combine_tutorial("demo", str(tmp_path), ANALYSIS, abstractions, CHAPTERS)

    assert out == os.path.join(str(tmp_path), "demo")
    assert sorted(os.listdir(out)) == ["01_engine.md", "03_config.md", "index.md"]

    index = (tmp_path / "demo" / "index.md").read_text(encoding="utf-8")
    assert "```mermaid" in index
    chapter = (tmp_path / "demo" / "03_config.md").read_text(encoding="utf-8")
    assert chapter.startswith("# Chapter 3: Config\n\nBody three\n\n---\n\nGenerated by")


def test_duplicate_filenames_are_rejected(tmp_path, abstractions):
    chapters = CHAPTERS + [dict(CHAPTERS[0], chapter_number=4)]
    with pytest.raises(ValueError, match="01_engine.md"):
        combine_tutorial("demo", str(tmp_path), ANALYSIS, abstractions, chapters)
    assert not (tmp_path / "demo").exists()
