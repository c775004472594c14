"""
Stage 1 - ask the LLM for the core abstractions of a codebase.

Item-level problems (a bad name, an out-of-range file index, ...) drop that
one abstraction with a warning; only an unparseable or wrongly-shaped
response aborts the stage.
"""

import logging
from typing import List

from tutorial_gen.constants.defaults import DEFAULT_LANGUAGE, DEFAULT_MAX_ABSTRACTIONS
from tutorial_gen.core.helpers import call_stage_llm, is_english
from tutorial_gen.core.types import Abstraction, FetchedFile
from tutorial_gen.utils.response_contract import (
    ResponseContractError,
    excerpt,
    parse_reference,
    parse_structured_response,
)

logger = logging.getLogger(__name__)

STAGE = "identify_abstractions"
REQUIRED_KEYS = ("name", "description", "file_indices")


def build_abstractions_prompt(files_data, project_name, max_abstractions, language):
    context = ""
    listing = []
    for i, (path, content) in enumerate(files_data):
        context += f"--- File Index {i}: {path} ---\n{content}\n\n"
        listing.append(f"- {i} # {path}")
    file_listing = "\n".join(listing)

    # Add language instruction only if not English
    language_instruction = ""
    name_lang_hint = ""
    desc_lang_hint = ""
    if not is_english(language):
        lang_cap = language.capitalize()
        language_instruction = (
            f"IMPORTANT: Generate the `name` and `description` for each abstraction in "
            f"**{lang_cap}** language. Do NOT use English for these fields. "
            f"File indices and paths stay exactly as listed.\n\n"
        )
        name_lang_hint = f" (value in {lang_cap})"
        desc_lang_hint = f" (value in {lang_cap})"

    return f"""
For the project `{project_name}`:

Codebase Context:
{context}

{language_instruction}Analyze the codebase context.
Identify the top 5-{max_abstractions} core most important abstractions to help those new to the codebase.

For each abstraction, provide:
1. A concise `name`{name_lang_hint}.
2. A beginner-friendly `description` explaining what it is with a simple analogy, in around 100 words{desc_lang_hint}.
3. A list of relevant `file_indices` (integers) using the format `idx # path/comment`.

List of file indices and paths present in the context:
{file_listing}

Format the output as a YAML list of dictionaries:

```yaml
- name: |
    Query Processing{name_lang_hint}
  description: |
    Explains what the abstraction does.
    It's like a central dispatcher routing requests.{desc_lang_hint}
  file_indices:
    - 0 # path/to/file1.py
    - 3 # path/to/related.py
- name: |
    Query Optimization{name_lang_hint}
  description: |
    Another core concept, similar to a blueprint for objects.{desc_lang_hint}
  file_indices:
    - 5 # path/to/another.js
# ... up to {max_abstractions} abstractions
```"""


def _coerce_to_list(raw):
    if isinstance(raw, list):
        return raw
    # A lone abstraction sometimes comes back as a bare mapping
    if isinstance(raw, dict) and all(raw.get(k) for k in REQUIRED_KEYS):
        logger.warning(f"[{STAGE}] LLM returned a single object, not a list. Wrapping it.")
        return [raw]
    raise ResponseContractError(
        f"LLM output is not a list of abstractions. Received: {type(raw).__name__}\n"
        f"Content:\n{excerpt(repr(raw))}",
        stage=STAGE,
    )


def validate_abstractions(raw, file_count: int) -> List[Abstraction]:
    """
    Validate parsed LLM output against the abstraction schema.

    Args:
        raw: Parsed YAML (list of mappings, or a single mapping)
        file_count: Number of fetched files; indices must be < file_count

    Returns:
        list: Clean abstraction dicts, in the order the model listed them
    """
    max_index = file_count - 1
    validated = []
    for item in _coerce_to_list(raw):
        if not isinstance(item, dict):
            logger.warning(f"[{STAGE}] Skipping item that is not a mapping: {excerpt(repr(item), 200)}")
            continue
        name = item.get("name")
        description = item.get("description")
        if not isinstance(name, str) or not name.strip():
            logger.warning(f"[{STAGE}] Skipping abstraction with missing or empty name: {excerpt(repr(item), 200)}")
            continue
        if not isinstance(description, str) or not description.strip():
            logger.warning(f"[{STAGE}] Skipping abstraction {name.strip()!r} with missing or empty description")
            continue
        raw_indices = item.get("file_indices")
        if not isinstance(raw_indices, list) or not raw_indices:
            logger.warning(
                f"[{STAGE}] Skipping abstraction {name.strip()!r} with missing, empty, "
                f"or non-list file_indices: {raw_indices!r}"
            )
            continue

        try:
            indices = [parse_reference(entry, max_index, kind="file_index") for entry in raw_indices]
        except ResponseContractError as e:
            logger.warning(f"[{STAGE}] Skipping abstraction {name.strip()!r} due to invalid file_indices: {e}")
            continue

        validated.append({
            "name": name.strip(),
            "description": description.strip(),
            # Same file listed twice adds nothing; keep first-seen order
            "file_indices": list(dict.fromkeys(indices)),
        })
    return validated


def identify_abstractions(
    files_data: List[FetchedFile],
    project_name,
    llm,
    language=DEFAULT_LANGUAGE,
    max_abstractions=DEFAULT_MAX_ABSTRACTIONS,
    use_cache=True,
    llm_options=None,
) -> List[Abstraction]:
    """
    Identify the core abstractions of a codebase with one LLM call.

    Args:
        files_data: List of (path, content) tuples; list position is the file index
        project_name: Name used in the prompt
        llm: An LLMProvider (anything with generate_content(prompt, options))
        language: Language for `name` and `description`
        max_abstractions: Upper bound requested from the model
        use_cache: Passed through to the provider
        llm_options: Extra provider options (model, temperature, ...)

    Returns:
        list: [{"name", "description", "file_indices"}, ...]; possibly shorter
        than what the model returned, since invalid items are dropped

    Raises:
        ResponseContractError: Unparseable output or a top level that is
            neither a list nor a single abstraction mapping
        LLMCallError: The provider failed
    """
    if not files_data:
        logger.warning(f"[{STAGE}] Called with no files. Returning no abstractions.")
        return []

    print("Identifying abstractions using LLM...")
    prompt = build_abstractions_prompt(files_data, project_name, max_abstractions, language)
    response = call_stage_llm(llm, prompt, STAGE, use_cache=use_cache, llm_options=llm_options)

    raw = parse_structured_response(response, STAGE)
    abstractions = validate_abstractions(raw, len(files_data))

    print(f"Identified {len(abstractions)} abstractions.")
    return abstractions
