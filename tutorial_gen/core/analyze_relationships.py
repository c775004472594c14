"""
Stage 2 - project summary plus a directed relationship graph between abstractions.
"""

import logging
from typing import List

from tutorial_gen.constants.defaults import DEFAULT_LANGUAGE, NO_ABSTRACTIONS_SUMMARY
from tutorial_gen.core.helpers import call_stage_llm, get_content_for_indices, is_english
from tutorial_gen.core.types import Abstraction, FetchedFile, ProjectAnalysis
from tutorial_gen.utils.response_contract import (
    ResponseContractError,
    excerpt,
    parse_reference,
    parse_structured_response,
)

logger = logging.getLogger(__name__)

STAGE = "analyze_relationships"


def build_relationships_prompt(abstractions, files_data, project_name, language):
    context = "Identified Abstractions:\n"
    all_relevant_indices = set()
    abstraction_listing = []

    for i, abstr in enumerate(abstractions):
        paths = [
            files_data[idx][0] if 0 <= idx < len(files_data) else f"<missing file {idx}>"
            for idx in abstr["file_indices"]
        ]
        context += (
            f"- Index {i}: {abstr['name']} (Relevant files: {', '.join(paths)})\n"
            f"  Description: {abstr['description']}\n"
        )
        abstraction_listing.append(f"{i} # {abstr['name']}")
        all_relevant_indices.update(abstr["file_indices"])

    # Each referenced file once, however many abstractions point at it
    context += "\nRelevant File Snippets (Referenced by Index and Path):\n"
    relevant_files = get_content_for_indices(files_data, sorted(all_relevant_indices))
    context += "\n\n".join(
        f"--- File: {idx_path} ---\n{content}" for idx_path, content in relevant_files.items()
    )

    language_instruction = ""
    lang_hint = ""
    list_lang_note = ""
    if not is_english(language):
        lang_cap = language.capitalize()
        language_instruction = (
            f"IMPORTANT: Generate the `summary` and relationship `label` fields in "
            f"**{lang_cap}** language. Do NOT use English for these fields.\n\n"
        )
        lang_hint = f" (in {lang_cap})"
        list_lang_note = f" (Names might be in {lang_cap})"

    listing = "\n".join(abstraction_listing)
    return f"""
Based on the following abstractions and relevant code snippets from the project `{project_name}`:

List of Abstraction Indices and Names{list_lang_note}:
{listing}

Context (Abstractions, Descriptions, Code):
{context}

{language_instruction}Please provide:
1. A high-level `summary` of the project's main purpose and functionality in a few beginner-friendly sentences{lang_hint}. Use markdown formatting with **bold** and *italic* text to highlight important concepts.
2. A list (`relationships`) describing the key interactions between these abstractions. For each relationship, specify:
    - `from_abstraction`: Index of the source abstraction (e.g., `0 # AbstractionName1`)
    - `to_abstraction`: Index of the target abstraction (e.g., `1 # AbstractionName2`)
    - `label`: A brief label for the interaction **in just a few words**{lang_hint} (e.g., "Manages", "Inherits", "Uses").
    Ideally the relationship should be backed by one abstraction calling or passing parameters to another.
    Simplify the relationship and exclude those non-important ones.

IMPORTANT: Make sure EVERY abstraction is involved in at least ONE relationship (either as source or target). Each abstraction index must appear at least once across all relationships.

Format the output as YAML:

```yaml
summary: |
  A brief, simple explanation of the project{lang_hint}.
  Can span multiple lines with **bold** and *italic* for emphasis.
relationships:
  - from_abstraction: 0 # AbstractionName1
    to_abstraction: 1 # AbstractionName2
    label: "Manages"{lang_hint}
  - from_abstraction: 2 # AbstractionName3
    to_abstraction: 0 # AbstractionName1
    label: "Provides config"{lang_hint}
  # ... other relationships
```

Now, provide the YAML output:
"""


def validate_analysis(raw, num_abstractions: int) -> ProjectAnalysis:
    """
    Validate parsed LLM output into {"summary", "relationships"}.

    A missing summary is fatal; individual bad relationships are dropped.
    """
    if not isinstance(raw, dict):
        raise ResponseContractError(
            f"LLM output is not a mapping with 'summary' and 'relationships'. "
            f"Received: {type(raw).__name__}\nContent:\n{excerpt(repr(raw))}",
            stage=STAGE,
        )

    summary = raw.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise ResponseContractError(
            f"LLM output missing or empty 'summary'. Received: {excerpt(repr(summary), 200)}",
            stage=STAGE,
        )

    raw_relationships = raw.get("relationships")
    if not isinstance(raw_relationships, list):
        logger.warning(
            f"[{STAGE}] 'relationships' is missing or not a list "
            f"({excerpt(repr(raw_relationships), 200)}); using an empty list."
        )
        raw_relationships = []

    max_index = num_abstractions - 1
    relationships = []
    for rel in raw_relationships:
        if not isinstance(rel, dict):
            logger.warning(f"[{STAGE}] Skipping relationship that is not a mapping: {excerpt(repr(rel), 200)}")
            continue
        label = rel.get("label")
        if not isinstance(label, str) or not label.strip():
            logger.warning(f"[{STAGE}] Skipping relationship with missing or empty label: {excerpt(repr(rel), 200)}")
            continue
        if rel.get("from_abstraction") is None or rel.get("to_abstraction") is None:
            logger.warning(
                f"[{STAGE}] Skipping relationship with missing from_abstraction or "
                f"to_abstraction: {excerpt(repr(rel), 200)}"
            )
            continue
        try:
            from_idx = parse_reference(rel["from_abstraction"], max_index, kind="abstraction")
            to_idx = parse_reference(rel["to_abstraction"], max_index, kind="abstraction")
        except ResponseContractError as e:
            logger.warning(f"[{STAGE}] Skipping relationship {excerpt(repr(rel), 200)}: {e}")
            continue
        relationships.append({"from": from_idx, "to": to_idx, "label": label.strip()})

    return {"summary": summary.strip(), "relationships": relationships}


def find_isolated_abstractions(num_abstractions, relationships):
    """Indices that appear in no relationship, as source or target."""
    connected = set()
    for rel in relationships:
        connected.add(rel["from"])
        connected.add(rel["to"])
    return [i for i in range(num_abstractions) if i not in connected]


def analyze_relationships(
    abstractions: List[Abstraction],
    files_data: List[FetchedFile],
    project_name,
    llm,
    language=DEFAULT_LANGUAGE,
    use_cache=True,
    llm_options=None,
) -> ProjectAnalysis:
    """
    Summarize the project and map how its abstractions interact.

    Args:
        abstractions: Output of identify_abstractions()
        files_data: List of (path, content) tuples
        project_name: Name used in the prompt
        llm: An LLMProvider

    Returns:
        dict: {"summary": str, "relationships": [{"from", "to", "label"}, ...]}

    Raises:
        ResponseContractError: Unparseable output, non-mapping top level or
            missing summary
        LLMCallError: The provider failed
    """
    if not abstractions:
        logger.warning(f"[{STAGE}] Called with no abstractions. Returning empty analysis.")
        return {"summary": NO_ABSTRACTIONS_SUMMARY, "relationships": []}
    if not files_data:
        logger.warning(f"[{STAGE}] Called with no files; the analysis will only see descriptions.")

    print("Analyzing relationships using LLM...")
    prompt = build_relationships_prompt(abstractions, files_data, project_name, language)
    response = call_stage_llm(llm, prompt, STAGE, use_cache=use_cache, llm_options=llm_options)

    raw = parse_structured_response(response, STAGE)
    analysis = validate_analysis(raw, len(abstractions))

    # Coverage is requested in the prompt but not enforced
    isolated = find_isolated_abstractions(len(abstractions), analysis["relationships"])
    if isolated:
        logger.info(f"[{STAGE}] Abstractions without any relationship: {isolated}")

    print(f"Generated project summary and {len(analysis['relationships'])} relationships.")
    return analysis
