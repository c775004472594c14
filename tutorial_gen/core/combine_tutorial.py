"""
Final step - lay the tutorial out on disk.

Writes ``index.md`` (summary, relationship diagram, chapter list) plus one
file per chapter into ``output_dir/project_name``. No LLM involved.
"""

import logging
import os
from typing import List

from tutorial_gen.constants.defaults import ATTRIBUTION_FOOTER, MERMAID_MAX_LABEL_LENGTH
from tutorial_gen.constants.paths import INDEX_FILE_NAME
from tutorial_gen.core.types import Abstraction, ChapterOutput, ProjectAnalysis

logger = logging.getLogger(__name__)


def sanitize_for_mermaid(text):
    """Escape the characters that break a quoted Mermaid label."""
    return text.replace('"', "#quot;").replace("(", "#lpar;").replace(")", "#rpar;")


def _truncate_label(label, max_len=MERMAID_MAX_LABEL_LENGTH):
    if len(label) > max_len:
        return label[:max_len - 3] + "..."
    return label


def build_mermaid_diagram(abstractions, relationships):
    """
    Flowchart with one node per abstraction and one edge per relationship.

    Abstractions that take part in no relationship still get a node.
    """
    lines = ["flowchart TD"]
    for i, abstr in enumerate(abstractions):
        name = " ".join(abstr["name"].split())
        lines.append(f'    A{i}["{sanitize_for_mermaid(name)}"]')

    for rel in relationships:
        label = " ".join(rel["label"].split())
        label = _truncate_label(label)
        lines.append(f'    A{rel["from"]} -- "{sanitize_for_mermaid(label)}" --> A{rel["to"]}')
    return "\n".join(lines)


def with_footer(content):
    if not content.endswith("\n\n"):
        content = content.rstrip("\n") + "\n\n"
    return f"{content}---\n\n{ATTRIBUTION_FOOTER}\n"


def build_index_content(project_name, analysis, chapters, repo_url=None, mermaid_diagram=None):
    """
    Markdown for index.md.

    Args:
        analysis: {"summary", "relationships"} from analyze_relationships()
        chapters: Written chapters, in teaching order
        mermaid_diagram: Pre-rendered diagram; omitted from the page when None
    """
    content = f"# Tutorial: {project_name}\n\n"
    content += f"{analysis.get('summary', '')}\n\n"

    if repo_url:
        content += f"**Source Repository:** [{repo_url}]({repo_url})\n\n"

    if mermaid_diagram:
        content += f"```mermaid\n{mermaid_diagram}\n```\n\n"

    content += "## Chapters\n\n"
    for chapter in chapters:
        content += f"{chapter['chapter_number']}. [{chapter['title']}]({chapter['filename']})\n"

    return with_footer(content)


def combine_tutorial(
    project_name,
    output_dir,
    analysis: ProjectAnalysis,
    abstractions: List[Abstraction],
    chapters: List[ChapterOutput],
    repo_url=None,
):
    """
    Write index.md and every chapter file.

    Args:
        project_name: Subdirectory created under output_dir
        output_dir: Base output directory
        analysis: {"summary", "relationships"}
        abstractions: Abstractions, for the diagram nodes
        chapters: Output of write_chapters()
        repo_url: Source link for the index page, if any

    Returns:
        str: The directory the tutorial was written to

    Raises:
        ValueError: Two chapters share a filename
    """
    filenames = [chapter["filename"] for chapter in chapters]
    duplicates = sorted({name for name in filenames if filenames.count(name) > 1})
    if duplicates:
        raise ValueError(f"Duplicate chapter filenames: {duplicates}")

    output_path = os.path.join(output_dir, project_name)
    diagram = build_mermaid_diagram(abstractions, analysis.get("relationships") or [])
    index_content = build_index_content(
        project_name, analysis, chapters, repo_url=repo_url, mermaid_diagram=diagram
    )

    print(f"Combining tutorial into directory: {output_path}")
    os.makedirs(output_path, exist_ok=True)

    index_filepath = os.path.join(output_path, INDEX_FILE_NAME)
    with open(index_filepath, "w", encoding="utf-8") as f:
        f.write(index_content)
    print(f"  - Wrote {index_filepath}")

    for chapter in chapters:
        chapter_filepath = os.path.join(output_path, chapter["filename"])
        with open(chapter_filepath, "w", encoding="utf-8") as f:
            f.write(with_footer(chapter["content"]))
        print(f"  - Wrote {chapter_filepath}")

    logger.info(f"Wrote {len(chapters)} chapters and {INDEX_FILE_NAME} to {output_path}")
    return output_path
