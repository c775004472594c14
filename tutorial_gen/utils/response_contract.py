"""
================================================================================
RESPONSE CONTRACT - turning free-form LLM text into validated data
================================================================================
Every LLM-backed stage goes through the same two phases:

    raw text ──► extract_structured_block() ──► yaml.safe_load()
                          │ (no ```yaml block)
                          └──────────────► yaml.safe_load(whole text)

and then resolves every "idx # Name" style reference it received through
parse_reference(), so that the prompts can use one notation everywhere.

Each stage layers its own fatality policy on top (skip the item vs. abort
the stage); the helpers here only parse and raise.
================================================================================
"""

import logging
import re

import yaml

from tutorial_gen.constants.defaults import ERROR_EXCERPT_LENGTH

logger = logging.getLogger(__name__)

# ```yaml ... ``` (also ```yml, any case, optional trailing text on the fence line).
# Only a fence at the start of a line closes the block; backticks inside an
# indented block scalar or mid-line belong to the payload.
_STRUCTURED_BLOCK_RE = re.compile(
    r"```[ \t]*ya?ml[^\n]*\n(.*?)^```", re.DOTALL | re.IGNORECASE | re.MULTILINE
)
_LEADING_DIGITS_RE = re.compile(r"^(\d+)")


class ResponseContractError(ValueError):
    """Raised when LLM output violates the structure a stage depends on."""

    def __init__(self, message: str, stage: str | None = None):
        self.stage = stage
        if stage:
            message = f"[{stage}] {message}"
        super().__init__(message)


class LLMCallError(RuntimeError):
    """Raised when the LLM adapter fails; wraps the original error with the stage."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"[{stage}] LLM call failed: {type(cause).__name__}: {cause}")


def excerpt(text, limit: int = ERROR_EXCERPT_LENGTH) -> str:
    """Bounded excerpt of a (possibly huge) payload for error messages."""
    text = "" if text is None else str(text)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def extract_structured_block(text: str) -> str | None:
    """
    Return the interior of the first ```yaml fenced block, or None.

    Only blocks explicitly tagged as YAML count; an untagged ``` block is
    treated as prose.
    """
    if not text:
        return None
    match = _STRUCTURED_BLOCK_RE.search(text)
    if not match:
        return None
    return match.group(1).strip()


def parse_structured_response(text: str, stage: str):
    """
    Extract and parse the structured payload of an LLM response.

    Args:
        text: Raw LLM output
        stage: Stage name used in log lines and error messages

    Returns:
        The parsed YAML value (list, dict, scalar or None)

    Raises:
        ResponseContractError: If neither the fenced block nor the raw text parses
    """
    block = extract_structured_block(text)
    if block is not None:
        try:
            return yaml.safe_load(block)
        except yaml.YAMLError as e:
            raise ResponseContractError(
                f"Invalid YAML in fenced block from LLM: {e}\n"
                f"Raw YAML part:\n{excerpt(block)}",
                stage=stage,
            ) from e

    logger.warning(
        "[%s] No explicit YAML block found (```yaml ... ```), "
        "attempting to parse entire LLM response.",
        stage,
    )
    try:
        return yaml.safe_load(text or "")
    except yaml.YAMLError as e:
        raise ResponseContractError(
            f"Failed to parse LLM response as YAML (no explicit block and "
            f"direct parse failed): {e}\nRaw response:\n{excerpt(text)}",
            stage=stage,
        ) from e


def parse_reference(raw, max_index: int, kind: str = "index") -> int:
    """
    Resolve an LLM-provided reference into a validated integer index.

    Accepted shapes: a native int (``3``), a numeric string (``"3"``) or any
    string that starts with a digit run (``"3 # Query Engine"``).

    Args:
        raw: The raw value taken from parsed YAML
        max_index: Largest valid index (inclusive)
        kind: What is being referenced, used in error messages

    Returns:
        int: The index, guaranteed to lie in [0, max_index]

    Raises:
        ResponseContractError: On an unsupported type, a string without
            leading digits, or an out-of-range index
    """
    # bool is an int subclass; True/False are never valid references
    if isinstance(raw, bool):
        raise ResponseContractError(
            f"Invalid type for {kind} reference: expected int or str, got bool ({raw!r})."
        )
    if isinstance(raw, int):
        index = raw
    elif isinstance(raw, str):
        match = _LEADING_DIGITS_RE.match(raw.strip())
        if not match:
            raise ResponseContractError(
                f"Invalid {kind} reference format: expected number or "
                f"'index # Name', got {excerpt(repr(raw), 100)}."
            )
        index = int(match.group(1))
    else:
        raise ResponseContractError(
            f"Invalid type for {kind} reference: expected int or str, "
            f"got {type(raw).__name__} ({excerpt(repr(raw), 100)})."
        )

    if index < 0 or index > max_index:
        raise ResponseContractError(
            f"{kind} {index} is out of bounds (0-{max_index})."
        )
    return index
