"""
Stage 3 - a teaching order over all abstractions.

The result must be a permutation of range(len(abstractions)). Unlike the
other stages nothing here is skipped: a bad element, a duplicate or a gap
makes the whole order unusable, so each of them aborts the stage.
"""

import logging
from typing import List

from tutorial_gen.constants.defaults import DEFAULT_LANGUAGE, NO_PROJECT_SUMMARY
from tutorial_gen.core.helpers import call_stage_llm, is_english
from tutorial_gen.core.types import Abstraction, ProjectAnalysis
from tutorial_gen.utils.response_contract import (
    ResponseContractError,
    excerpt,
    parse_reference,
    parse_structured_response,
)

logger = logging.getLogger(__name__)

STAGE = "order_chapters"


def format_relationships(abstractions, relationships):
    """Human-readable edge list: "- From 0 (UI) to 1 (Logic): calls"."""
    lines = []
    for rel in relationships:
        src, dst = rel["from"], rel["to"]
        if 0 <= src < len(abstractions) and 0 <= dst < len(abstractions):
            lines.append(
                f"- From {src} ({abstractions[src]['name']}) to {dst} "
                f"({abstractions[dst]['name']}): {rel['label']}"
            )
        else:
            lines.append(f"- Relationship with invalid abstraction index: from {src} to {dst}")
    if not lines:
        return "No specific relationships were identified or provided."
    return "\n".join(lines)


def build_order_prompt(abstractions, project_analysis, project_name, language):
    abstraction_listing = "\n".join(f"- {i} # {a['name']}" for i, a in enumerate(abstractions))

    summary_note = ""
    list_lang_note = ""
    if not is_english(language):
        summary_note = f" (Note: Project Summary might be in {language.capitalize()})"
        list_lang_note = f" (Names might be in {language.capitalize()})"

    summary = project_analysis.get("summary") or NO_PROJECT_SUMMARY
    context = f"Project Summary{summary_note}:\n{summary}\n\n"
    context += "Relationships (Indices refer to abstractions above):\n"
    context += format_relationships(abstractions, project_analysis.get("relationships") or [])

    return f"""
Given the following project abstractions and their relationships for the project `{project_name}`:

Abstractions (Index # Name){list_lang_note}:
{abstraction_listing}

Context about relationships and project summary:
{context}

If you are going to make a tutorial for `{project_name}`, what is the best order to explain these abstractions, from first to last?
Ideally, first explain those that are the most important or foundational, perhaps user-facing concepts or entry points. Then move to more detailed, lower-level implementation details or supporting concepts.

Every abstraction listed above must appear exactly once.

Output the ordered list of abstraction indices, including the name in a comment for clarity. Use the format `idx # AbstractionName`.

```yaml
- 2 # FoundationalConcept
- 0 # CoreClassA
- 1 # CoreClassB (uses CoreClassA)
- ...
```

Now, provide the YAML output:
"""


def validate_chapter_order(raw, num_abstractions: int) -> List[int]:
    """
    Check that parsed LLM output is a full, duplicate-free order.

    Args:
        raw: Parsed YAML
        num_abstractions: M; the result must be a permutation of range(M)

    Returns:
        list[int]: The order, unchanged

    Raises:
        ResponseContractError: Non-list output, an unresolvable element, a
            duplicate (named) or missing indices (all named)
    """
    if not isinstance(raw, list):
        raise ResponseContractError(
            f"LLM output is not a list of ordered indices. Received: {type(raw).__name__}\n"
            f"Content:\n{excerpt(repr(raw))}",
            stage=STAGE,
        )

    max_index = num_abstractions - 1
    ordered = []
    seen = set()
    for entry in raw:
        try:
            idx = parse_reference(entry, max_index, kind="abstraction")
        except ResponseContractError as e:
            raise ResponseContractError(
                f"Invalid index found in chapter order output: {e} Raw item: {excerpt(repr(entry), 100)}",
                stage=STAGE,
            ) from e
        if idx in seen:
            raise ResponseContractError(
                f"Duplicate abstraction index {idx} found in chapter order output.",
                stage=STAGE,
            )
        seen.add(idx)
        ordered.append(idx)

    missing = sorted(set(range(num_abstractions)) - seen)
    if len(ordered) != num_abstractions or missing:
        raise ResponseContractError(
            f"Chapter order is incomplete. Missing indices: [{', '.join(map(str, missing))}]. "
            f"Expected {num_abstractions}, got {len(ordered)}.",
            stage=STAGE,
        )
    return ordered


def order_chapters(
    abstractions: List[Abstraction],
    project_analysis: ProjectAnalysis,
    project_name,
    llm,
    language=DEFAULT_LANGUAGE,
    use_cache=True,
    llm_options=None,
) -> List[int]:
    """
    Ask the LLM for the order in which to teach the abstractions.

    Args:
        abstractions: Output of identify_abstractions()
        project_analysis: Output of analyze_relationships(); None is tolerated
        project_name: Name used in the prompt
        llm: An LLMProvider

    Returns:
        list[int]: A permutation of abstraction indices

    Raises:
        ResponseContractError: See validate_chapter_order()
        LLMCallError: The provider failed
    """
    if not abstractions:
        logger.warning(f"[{STAGE}] Called with no abstractions. Returning empty order.")
        return []
    if project_analysis is None:
        logger.warning(f"[{STAGE}] Called with no project analysis; ordering without it.")
        project_analysis = {"summary": NO_PROJECT_SUMMARY, "relationships": []}

    print("Determining chapter order using LLM...")
    prompt = build_order_prompt(abstractions, project_analysis, project_name, language)
    response = call_stage_llm(llm, prompt, STAGE, use_cache=use_cache, llm_options=llm_options)

    raw = parse_structured_response(response, STAGE)
    ordered = validate_chapter_order(raw, len(abstractions))

    print(f"Determined chapter order (indices): {ordered}")
    return ordered
