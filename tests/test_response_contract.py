import pytest

from tutorial_gen.utils.response_contract import (
    LLMCallError,
    ResponseContractError,
    excerpt,
    extract_structured_block,
    parse_reference,
    parse_structured_response,
)


def test_extracts_fenced_yaml_block():
    text = "Sure! Here you go:\n```yaml\n- 0\n- 1\n```\nHope that helps."
    assert extract_structured_block(text) == "- 0\n- 1"


def test_extracts_yml_tag_case_insensitive():
    text = "```YML\nkey: value\n```"
    assert extract_structured_block(text) == "key: value"


def test_untagged_fence_is_not_a_structured_block():
    assert extract_structured_block("```\n- 0\n```") is None


def test_first_block_wins():
    text = "```yaml\nfirst: 1\n```\n```yaml\nsecond: 2\n```"
    assert parse_structured_response(text, "stage") == {"first": 1}


def test_indented_fence_inside_block_scalar_does_not_close_the_block():
    text = (
        "```yaml\n"
        "- name: Installer\n"
        "  description: |\n"
        "    Run it like this:\n"
        "    ```python\n"
        "    install()\n"
        "    ```\n"
        "  file_indices: [0]\n"
        "- name: Engine\n"
        "  description: Does the work.\n"
        "  file_indices: [1]\n"
        "```\n"
        "Let me know if you need more."
    )
    parsed = parse_structured_response(text, "identify_abstractions")
    assert [item["name"] for item in parsed] == ["Installer", "Engine"]
    assert "```python\ninstall()\n```" in parsed[0]["description"]


def test_inline_backticks_do_not_close_the_block():
    text = "```yaml\nsummary: Use ```pip install``` first\nrelationships: []\n```"
    assert parse_structured_response(text, "analyze_relationships") == {
        "summary": "Use ```pip install``` first",
        "relationships": [],
    }


def test_empty_fenced_block():
    assert extract_structured_block("```yaml\n```") == ""
    assert parse_structured_response("```yaml\n```", "stage") is None


def test_falls_back_to_whole_text_when_no_block():
    assert parse_structured_response("- 2\n- 0\n- 1", "stage") == [2, 0, 1]


def test_invalid_yaml_in_block_raises_with_stage():
    with pytest.raises(ResponseContractError) as exc_info:
        parse_structured_response("```yaml\nkey: [unclosed\n```", "order_chapters")
    assert exc_info.value.stage == "order_chapters"
    assert str(exc_info.value).startswith("[order_chapters]")
    assert "Invalid YAML" in str(exc_info.value)


def test_unparseable_raw_text_raises():
    with pytest.raises(ResponseContractError, match="direct parse failed"):
        parse_structured_response("key: [unclosed", "stage")


def test_error_excerpt_is_bounded():
    huge = "key: [" + "x" * 5000
    with pytest.raises(ResponseContractError) as exc_info:
        parse_structured_response(huge, "stage")
    assert len(str(exc_info.value)) < 1000


def test_excerpt():
    assert excerpt("short") == "short"
    assert excerpt("a" * 600) == "a" * 500 + "..."
    assert excerpt(None) == ""


@pytest.mark.parametrize("raw, expected", [
    (3, 3),
    ("3", 3),
    ("3 # Query Engine", 3),
    ("  0 # first", 0),
    (9, 9),
])
def test_parse_reference_accepts(raw, expected):
    assert parse_reference(raw, 9) == expected


@pytest.mark.parametrize("raw", [True, False, 1.5, None, [1], {"a": 1}])
def test_parse_reference_rejects_types(raw):
    with pytest.raises(ResponseContractError, match="Invalid type"):
        parse_reference(raw, 9)


@pytest.mark.parametrize("raw", ["abc", "# 3", "", "-1"])
def test_parse_reference_rejects_strings_without_leading_digits(raw):
    with pytest.raises(ResponseContractError, match="format"):
        parse_reference(raw, 9)


@pytest.mark.parametrize("raw", [10, -1, "12 # too big"])
def test_parse_reference_out_of_bounds(raw):
    with pytest.raises(ResponseContractError, match="out of bounds"):
        parse_reference(raw, 9, kind="abstraction")


def test_parse_reference_with_empty_range_rejects_everything():
    with pytest.raises(ResponseContractError):
        parse_reference(0, -1)


def test_llm_call_error_keeps_cause():
    cause = TimeoutError("slow")
    err = LLMCallError("write_chapters", cause)
    assert err.stage == "write_chapters"
    assert err.cause is cause
    assert "[write_chapters]" in str(err)
    assert "TimeoutError" in str(err)


def test_parse_reference_format_error_excerpt_is_bounded():
    with pytest.raises(ResponseContractError) as exc_info:
        parse_reference("x" * 5000, 9)
    assert len(str(exc_info.value)) < 300
