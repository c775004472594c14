import pytest

from tutorial_gen.core.analyze_relationships import (
    analyze_relationships,
    build_relationships_prompt,
    find_isolated_abstractions,
    validate_analysis,
)
from tutorial_gen.utils.response_contract import ResponseContractError

GOOD_RESPONSE = """```yaml
summary: |
  A tiny **demo** app.
relationships:
  - from_abstraction: 0 # Application
    to_abstraction: 1 # Engine
    label: "Runs"
  - from_abstraction: 2 # Config
    to_abstraction: "0 # Application"
    label: Configures
```"""


def test_analyze_relationships_happy_path(fake_llm, abstractions, files_data):
    llm = fake_llm([GOOD_RESPONSE])
    analysis = analyze_relationships(abstractions, files_data, "demo", llm)

    assert analysis == {
        "summary": "A tiny **demo** app.",
        "relationships": [
            {"from": 0, "to": 1, "label": "Runs"},
            {"from": 2, "to": 0, "label": "Configures"},
        ],
    }


def test_prompt_includes_each_file_once(abstractions, files_data):
    abstractions = abstractions + [
        {"name": "Shared", "description": "Also uses engine.", "file_indices": [1]}
    ]
    prompt = build_relationships_prompt(abstractions, files_data, "demo", "english")
    assert prompt.count("--- File: 1 # src/engine.py ---") == 1
    assert "- Index 3: Shared (Relevant files: src/engine.py)" in prompt
    assert "3 # Shared" in prompt


def test_missing_summary_is_fatal():
    with pytest.raises(ResponseContractError, match="summary"):
        validate_analysis({"relationships": []}, 3)


def test_non_mapping_is_fatal():
    with pytest.raises(ResponseContractError, match="not a mapping"):
        validate_analysis(["summary"], 3)


def test_missing_relationships_defaults_to_empty(caplog):
    analysis = validate_analysis({"summary": "S"}, 3)
    assert analysis == {"summary": "S", "relationships": []}
    assert "relationships" in caplog.text


@pytest.mark.parametrize("rel", [
    "not a mapping",
    {"from_abstraction": 0, "to_abstraction": 1},
    {"from_abstraction": 0, "to_abstraction": 1, "label": "  "},
    {"to_abstraction": 1, "label": "x"},
    {"from_abstraction": 0, "to_abstraction": 5, "label": "x"},
    {"from_abstraction": "zero", "to_abstraction": 1, "label": "x"},
])
def test_invalid_relationships_are_skipped(rel):
    raw = {"summary": "S", "relationships": [rel, {"from_abstraction": 1, "to_abstraction": 2, "label": "ok"}]}
    analysis = validate_analysis(raw, 3)
    assert analysis["relationships"] == [{"from": 1, "to": 2, "label": "ok"}]


def test_self_loops_are_kept():
    raw = {"summary": "S", "relationships": [{"from_abstraction": 1, "to_abstraction": 1, "label": "recurses"}]}
    assert validate_analysis(raw, 3)["relationships"] == [{"from": 1, "to": 1, "label": "recurses"}]


def test_isolated_abstractions_are_reported_not_rejected(fake_llm, abstractions, files_data, caplog):
    caplog.set_level("INFO")
    llm = fake_llm(["```yaml\nsummary: S\nrelationships:\n  - from_abstraction: 0\n    to_abstraction: 1\n    label: uses\n```"])
    analysis = analyze_relationships(abstractions, files_data, "demo", llm)
    assert len(analysis["relationships"]) == 1
    assert "[2]" in caplog.text


def test_find_isolated_abstractions():
    rels = [{"from": 0, "to": 2, "label": "x"}]
    assert find_isolated_abstractions(4, rels) == [1, 3]


def test_empty_abstractions_skip_the_call(fake_llm, files_data):
    llm = fake_llm([])
    analysis = analyze_relationships([], files_data, "demo", llm)
    assert analysis == {"summary": "No abstractions provided to analyze.", "relationships": []}
    assert llm.call_count == 0
