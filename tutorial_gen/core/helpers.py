"""
Helpers shared by the LLM-backed stages.
"""

import logging

from tutorial_gen.utils.response_contract import LLMCallError

logger = logging.getLogger(__name__)


def get_content_for_indices(files_data, indices):
    """
    Helper to get file content for specific file indices.

    The key format "index # path" matches the reference notation the prompts
    ask the model to use, so the LLM sees the same handle everywhere.

    Args:
        files_data: List of (path, content) tuples
        indices: Iterable of integer indices to fetch

    Returns:
        dict: Mapping of "index # path" -> content, in the order given
    """
    content_map = {}
    for i in indices:
        if 0 <= i < len(files_data):
            path, content = files_data[i]
            content_map[f"{i} # {path}"] = content
    return content_map


def is_english(language):
    return (language or "english").strip().lower() == "english"


def call_stage_llm(llm, prompt, stage, use_cache=True, llm_options=None):
    """
    Issue the stage's LLM call and tag adapter failures with the stage name.

    The adapter owns retries; anything that escapes it is logged here and
    re-raised as LLMCallError chained to the original exception.
    """
    options = dict(llm_options or {})
    options["use_cache"] = use_cache
    try:
        return llm.generate_content(prompt, options)
    except Exception as e:
        logger.error(f"[{stage}] LLM call failed: {e}")
        raise LLMCallError(stage, e) from e
