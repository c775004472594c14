"""
Stage 4 - one Markdown chapter per abstraction, in teaching order.

Chapters are written strictly one after another: every prompt carries a
digest of all chapters written before it, so the order is a data
dependency. The digests travel as an explicit accumulator
(write_chapter() takes the previous digests and returns the new one).
"""

import logging
import re
from typing import Dict, List, Sequence, Tuple

from tutorial_gen.constants.defaults import CHAPTER_DIGEST_LENGTH, DEFAULT_LANGUAGE
from tutorial_gen.constants.paths import CHAPTER_FILE_FORMAT, FALLBACK_CHAPTER_SLUG
from tutorial_gen.core.helpers import call_stage_llm, get_content_for_indices, is_english
from tutorial_gen.core.types import Abstraction, ChapterLinkInfo, ChapterOutput, FetchedFile
from tutorial_gen.utils.response_contract import excerpt

logger = logging.getLogger(__name__)

STAGE = "write_chapters"

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_FILENAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]")


def sanitize_filename(name, chapter_num):
    """
    Deterministic chapter filename: ``"{NN}_{slug}.md"``.

    >>> sanitize_filename("My Chapter!", 3)
    '03_my_chapter.md'
    """
    slug = _WHITESPACE_RE.sub("_", (name or "").strip().lower())
    slug = _UNSAFE_FILENAME_CHARS_RE.sub("", slug)
    if not slug.replace("_", ""):
        slug = FALLBACK_CHAPTER_SLUG
    return CHAPTER_FILE_FORMAT.format(num=chapter_num, slug=slug)


def build_chapter_index(
    chapter_order: Sequence[int], abstractions: List[Abstraction]
) -> Dict[int, ChapterLinkInfo]:
    """
    Map abstraction index -> {"num", "name", "filename"} for the whole tutorial.

    Computed before any chapter is written because every prompt links to
    chapters that do not exist yet. The chapter number is the position in
    chapter_order + 1, whether or not earlier entries are later skipped.

    Raises:
        ValueError: If an abstraction index appears more than once
    """
    index = {}
    for position, abstraction_index in enumerate(chapter_order):
        if abstraction_index in index:
            raise ValueError(
                f"Duplicate abstraction index {abstraction_index} in chapter order "
                f"(positions {index[abstraction_index]['num']} and {position + 1})."
            )
        chapter_num = position + 1
        if 0 <= abstraction_index < len(abstractions):
            name = abstractions[abstraction_index]["name"]
        else:
            name = f"Unknown Abstraction {abstraction_index}"
        index[abstraction_index] = {
            "num": chapter_num,
            "name": name,
            "filename": sanitize_filename(name, chapter_num),
        }
    return index


def make_chapter_digest(chapter_num, name, content):
    return f"## Summary of Chapter {chapter_num}: {name}\n{excerpt(content, CHAPTER_DIGEST_LENGTH)}"


def ensure_heading(content, chapter_num, name):
    """Prepend "# Chapter N: Name" when the model left out a heading."""
    text = (content or "").strip()
    if text.startswith("#"):
        return text
    logger.warning(
        f"[{STAGE}] Output for chapter {chapter_num} ({name!r}) did not start with a heading. "
        f"Prepending a default one."
    )
    return f"# Chapter {chapter_num}: {name}\n\n{text}"


def build_chapter_prompt(
    chapter_num,
    abstraction,
    files_data,
    project_name,
    chapter_listing,
    previous_digests,
    prev_chapter,
    next_chapter,
    language,
):
    abstraction_name = abstraction["name"]
    abstraction_description = abstraction["description"]

    related_files = get_content_for_indices(files_data, abstraction.get("file_indices", []))
    file_context_str = "\n\n".join(
        f"--- File: {idx_path.split('# ', 1)[1] if '# ' in idx_path else idx_path} ---\n{content}"
        for idx_path, content in related_files.items()
    )
    previous_chapters_summary = "\n\n---\n\n".join(previous_digests)

    transitions = []
    if prev_chapter:
        transitions.append(
            f"Previous chapter: [{prev_chapter['name']}]({prev_chapter['filename']})"
        )
    else:
        transitions.append("This is the first chapter.")
    if next_chapter:
        transitions.append(
            f"Next chapter: [{next_chapter['name']}]({next_chapter['filename']})"
        )
    else:
        transitions.append("This is the last chapter.")
    transitions_str = "\n".join(transitions)

    # Language-specific instructions
    language_instruction = ""
    concept_details_note = ""
    structure_note = ""
    prev_summary_note = ""
    instruction_lang_note = ""
    mermaid_lang_note = ""
    code_comment_note = ""
    link_lang_note = ""
    tone_note = ""
    if not is_english(language):
        lang_cap = language.capitalize()
        language_instruction = (
            f"IMPORTANT: Write this ENTIRE tutorial chapter in **{lang_cap}**. Some input context "
            f"(like concept name, description, chapter list, previous summary) might already be in "
            f"{lang_cap}, but you MUST translate ALL other generated content including explanations, "
            f"examples, technical terms, and potentially code comments into {lang_cap}. DO NOT use "
            f"English anywhere except in code syntax, required proper nouns, or when specified. "
            f"The entire output MUST be in {lang_cap}.\n\n"
        )
        concept_details_note = f" (Note: Provided in {lang_cap})"
        structure_note = f" (Note: Chapter names might be in {lang_cap})"
        prev_summary_note = f" (Note: This summary might be in {lang_cap})"
        instruction_lang_note = f" (in {lang_cap})"
        mermaid_lang_note = f" (Use {lang_cap} for labels/text if appropriate)"
        code_comment_note = f" (Translate to {lang_cap} if possible, otherwise keep minimal English for clarity)"
        link_lang_note = f" (Use the {lang_cap} chapter title from the structure above)"
        tone_note = f" (appropriate for {lang_cap} readers)"

    return f"""
{language_instruction}Write a very beginner-friendly tutorial chapter (in Markdown format) for the project `{project_name}` about the concept: "{abstraction_name}". This is Chapter {chapter_num}.

Concept Details{concept_details_note}:
- Name: {abstraction_name}
- Description:
{abstraction_description}

Complete Tutorial Structure{structure_note}:
{chapter_listing}

Neighbouring chapters:
{transitions_str}

Context from previous chapters{prev_summary_note}:
{previous_chapters_summary if previous_chapters_summary else "This is the first chapter."}

Relevant Code Snippets (Code itself remains unchanged):
{file_context_str if file_context_str else "No specific code snippets provided for this abstraction."}

Instructions for the chapter (Generate content in {(language or DEFAULT_LANGUAGE).capitalize()} unless specified otherwise):
- Start with a clear heading (e.g., `# Chapter {chapter_num}: {abstraction_name}`). Use the provided concept name.

- If this is not the first chapter, begin with a brief transition from the previous chapter{instruction_lang_note}, referencing it with a proper Markdown link using its name{link_lang_note}.

- Begin with a high-level motivation explaining what problem this abstraction solves{instruction_lang_note}. Start with a central use case as a concrete example. The whole chapter should guide the reader to understand how to solve this use case. Make it very minimal and friendly to beginners.

- If the abstraction is complex, break it down into key concepts. Explain each concept one-by-one in a very beginner-friendly way{instruction_lang_note}.

- Explain how to use this abstraction to solve the use case{instruction_lang_note}. Give example inputs and outputs for code snippets (if the output isn't values, describe at a high level what will happen{instruction_lang_note}).

- Each code block should be BELOW 10 lines! If longer code blocks are needed, break them down into smaller pieces and walk through them one-by-one. Aggressively simplify the code to make it minimal. Use comments{code_comment_note} to skip non-important implementation details. Each code block should have a beginner friendly explanation right after it{instruction_lang_note}.

- Describe the internal implementation to help understand what's under the hood{instruction_lang_note}. First provide a non-code or code-light walkthrough on what happens step-by-step when the abstraction is called{instruction_lang_note}. It's recommended to use a simple sequenceDiagram with a dummy example - keep it minimal with at most 5 participants to ensure clarity. If participant name has space, use: `participant QP as Query Processing`. {mermaid_lang_note}.

- Then dive deeper into code for the internal implementation with references to files. Provide example code blocks, but make them similarly simple and beginner-friendly. Explain{instruction_lang_note}.

- IMPORTANT: When you need to refer to other core abstractions covered in other chapters, ALWAYS use proper Markdown links like this: [Chapter Title](filename.md). Use the Complete Tutorial Structure above to find the correct filename and the chapter title{link_lang_note}. Translate the surrounding text.

- Use mermaid diagrams to illustrate complex concepts (```mermaid``` format). {mermaid_lang_note}.

- Heavily use analogies and examples throughout{instruction_lang_note} to help beginners understand.

- End the chapter with a brief conclusion that summarizes what was learned{instruction_lang_note} and provides a transition to the next chapter{instruction_lang_note}. If there is a next chapter, use a proper Markdown link: [Next Chapter Title](next_chapter_filename){link_lang_note}.

- Ensure the tone is welcoming and easy for a newcomer to understand{tone_note}.

- Output *only* the Markdown content for this chapter.

Now, directly provide a super beginner-friendly Markdown output (DON'T need ```markdown``` tags):
"""


def write_chapter(
    chapter_num,
    abstraction_index,
    abstraction,
    files_data,
    project_name,
    llm,
    chapter_listing,
    previous_digests,
    prev_chapter=None,
    next_chapter=None,
    filename=None,
    language=DEFAULT_LANGUAGE,
    use_cache=True,
    llm_options=None,
) -> Tuple[ChapterOutput, str]:
    """
    Write a single chapter.

    Args:
        previous_digests: Digests of every chapter written so far (not modified)

    Returns:
        tuple: (chapter_output dict, digest of this chapter)
    """
    name = abstraction["name"]
    print(f"Writing chapter {chapter_num} for: {name} using LLM...")

    prompt = build_chapter_prompt(
        chapter_num,
        abstraction,
        files_data,
        project_name,
        chapter_listing,
        previous_digests,
        prev_chapter,
        next_chapter,
        language,
    )
    raw_content = call_stage_llm(llm, prompt, STAGE, use_cache=use_cache, llm_options=llm_options)
    content = ensure_heading(raw_content, chapter_num, name)

    chapter = {
        "chapter_number": chapter_num,
        "abstraction_index": abstraction_index,
        "title": name,
        "content": content,
        "filename": filename or sanitize_filename(name, chapter_num),
    }
    return chapter, make_chapter_digest(chapter_num, name, content)


def write_chapters(
    chapter_order: Sequence[int],
    abstractions: List[Abstraction],
    files_data: List[FetchedFile],
    project_name,
    llm,
    language=DEFAULT_LANGUAGE,
    use_cache=True,
    llm_options=None,
) -> List[ChapterOutput]:
    """
    Write every chapter in chapter_order, sequentially.

    An index with no matching abstraction is skipped with a warning; the
    remaining chapters keep the numbers their position gives them, so the
    numbering has a gap rather than being compacted.
    A repeated index raises ValueError before any LLM call.

    Returns:
        list: [{"chapter_number", "abstraction_index", "title", "content", "filename"}, ...]
    """
    if not chapter_order:
        logger.warning(f"[{STAGE}] Called with no chapter order. Returning no chapters.")
        return []
    if not abstractions:
        logger.warning(f"[{STAGE}] Called with no abstractions. Returning no chapters.")
        return []

    chapter_index = build_chapter_index(chapter_order, abstractions)

    def is_known(abstraction_index):
        return 0 <= abstraction_index < len(abstractions)

    known_positions = [pos for pos, idx in enumerate(chapter_order) if is_known(idx)]
    chapter_listing = "\n".join(
        f"{chapter_index[chapter_order[pos]]['num']}. "
        f"[{chapter_index[chapter_order[pos]]['name']}]({chapter_index[chapter_order[pos]]['filename']})"
        for pos in known_positions
    )
    print(f"Preparing to write {len(known_positions)} chapters...")

    chapters = []
    digests = []
    for position, abstraction_index in enumerate(chapter_order):
        chapter_num = position + 1
        if not is_known(abstraction_index):
            logger.warning(
                f"[{STAGE}] Skipping chapter {chapter_num}: abstraction index "
                f"{abstraction_index} not found."
            )
            continue

        # Neighbours are the nearest chapters that will actually be written
        slot = known_positions.index(position)
        prev_chapter = (
            chapter_index[chapter_order[known_positions[slot - 1]]] if slot > 0 else None
        )
        next_chapter = (
            chapter_index[chapter_order[known_positions[slot + 1]]]
            if slot < len(known_positions) - 1 else None
        )

        chapter, digest = write_chapter(
            chapter_num,
            abstraction_index,
            abstractions[abstraction_index],
            files_data,
            project_name,
            llm,
            chapter_listing,
            tuple(digests),
            prev_chapter=prev_chapter,
            next_chapter=next_chapter,
            filename=chapter_index[abstraction_index]["filename"],
            language=language,
            use_cache=use_cache,
            llm_options=llm_options,
        )
        chapters.append(chapter)
        digests.append(digest)

    print(f"Finished writing {len(chapters)} chapters.")
    return chapters
