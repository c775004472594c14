import pytest

from tutorial_gen.core.identify_abstractions import (
    build_abstractions_prompt,
    identify_abstractions,
    validate_abstractions,
)
from tutorial_gen.utils.response_contract import LLMCallError, ResponseContractError

GOOD_RESPONSE = """Here are the abstractions:
```yaml
- name: |
    Engine
  description: |
    The thing that runs.
  file_indices:
    - 1 # src/engine.py
    - 0 # src/app.py
- name: Config
  description: Settings holder.
  file_indices: [2]
```
"""


def test_identify_abstractions_parses_and_cleans(fake_llm, files_data):
    llm = fake_llm([GOOD_RESPONSE])
    result = identify_abstractions(files_data, "demo", llm)

    assert result == [
        {"name": "Engine", "description": "The thing that runs.", "file_indices": [1, 0]},
        {"name": "Config", "description": "Settings holder.", "file_indices": [2]},
    ]
    assert llm.call_count == 1
    assert llm.options[0]["use_cache"] is True


def test_prompt_lists_every_file_with_index(files_data):
    prompt = build_abstractions_prompt(files_data, "demo", 7, "english")
    assert "- 0 # src/app.py" in prompt
    assert "--- File Index 2: src/config.py ---" in prompt
    assert "5-7" in prompt
    assert "IMPORTANT" not in prompt


def test_prompt_carries_language_instruction(files_data):
    prompt = build_abstractions_prompt(files_data, "demo", 10, "spanish")
    assert "**Spanish**" in prompt


def test_out_of_range_index_skips_only_that_item(caplog):
    raw = [
        {"name": "Good", "description": "ok", "file_indices": [0]},
        {"name": "Bad", "description": "ok", "file_indices": [0, 7]},
    ]
    result = validate_abstractions(raw, file_count=3)
    assert [a["name"] for a in result] == ["Good"]
    assert "Bad" in caplog.text


@pytest.mark.parametrize("item", [
    "just a string",
    {"description": "no name", "file_indices": [0]},
    {"name": "  ", "description": "blank name", "file_indices": [0]},
    {"name": "No description", "file_indices": [0]},
    {"name": "No files", "description": "x", "file_indices": []},
    {"name": "Files not a list", "description": "x", "file_indices": "0"},
    {"name": "Bool index", "description": "x", "file_indices": [True]},
])
def test_invalid_items_are_skipped(item):
    assert validate_abstractions([item], file_count=3) == []


def test_duplicate_file_indices_are_collapsed():
    raw = [{"name": "A", "description": "d", "file_indices": [2, "2 # again", 0]}]
    assert validate_abstractions(raw, file_count=3)[0]["file_indices"] == [2, 0]


def test_single_mapping_is_wrapped():
    raw = {"name": "Solo", "description": "d", "file_indices": [1]}
    result = validate_abstractions(raw, file_count=3)
    assert result == [{"name": "Solo", "description": "d", "file_indices": [1]}]


def test_non_list_output_is_fatal(fake_llm, files_data):
    llm = fake_llm(["```yaml\njust a sentence\n```"])
    with pytest.raises(ResponseContractError, match="not a list"):
        identify_abstractions(files_data, "demo", llm)


def test_empty_input_makes_no_call(fake_llm):
    llm = fake_llm([])
    assert identify_abstractions([], "demo", llm) == []
    assert llm.call_count == 0


def test_adapter_failure_is_wrapped(fake_llm, files_data):
    llm = fake_llm([ConnectionError("down")])
    with pytest.raises(LLMCallError) as exc_info:
        identify_abstractions(files_data, "demo", llm)
    assert exc_info.value.stage == "identify_abstractions"
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_use_cache_flag_is_forwarded(fake_llm, files_data):
    llm = fake_llm([GOOD_RESPONSE])
    identify_abstractions(files_data, "demo", llm, use_cache=False, llm_options={"model": "m"})
    assert llm.options[0] == {"model": "m", "use_cache": False}
