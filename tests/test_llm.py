import json

import pytest

from llm import (
    MAX_SLIDES,
    PlanParseError,
    build_plan_prompt,
    build_slide_prompt,
    clean_llm_output,
    fallback_plan,
    parse_plan,
)
from slide_schema import PlanItem


def _items(n):
    return [{"phase": f"P{i}", "instruction": f"Do {i}"} for i in range(n)]


def test_parse_bare_array():
    plan = parse_plan(json.dumps(_items(3)))
    assert [p.phase for p in plan] == ["P0", "P1", "P2"]


def test_parse_slides_object_with_fences():
    text = "```json\n" + json.dumps({"slides": _items(4)}) + "\n```"
    assert len(parse_plan(text)) == 4


def test_parse_json_wrapped_in_prose():
    text = "Here is your plan:\n" + json.dumps(_items(5)) + "\nEnjoy!"
    assert len(parse_plan(text)) == 5


def test_long_plan_is_truncated_to_max():
    plan = parse_plan(json.dumps(_items(12)))
    assert len(plan) == MAX_SLIDES
    assert plan[-1].phase == "P7"


def test_short_plan_is_rejected():
    with pytest.raises(PlanParseError):
        parse_plan(json.dumps(_items(2)))


def test_empty_and_malformed_entries_are_dropped():
    entries = _items(3) + [{"phase": " ", "instruction": "x"}, {"phase": "only"}, "junk"]
    plan = parse_plan(json.dumps(entries))
    assert len(plan) == 3


def test_invalid_json_raises():
    with pytest.raises(PlanParseError):
        parse_plan("not json at all")


def test_unexpected_shape_raises():
    with pytest.raises(PlanParseError):
        parse_plan(json.dumps({"foo": "bar"}))


def test_clean_llm_output_strips_fences():
    assert clean_llm_output("```json\n[1, 2]\n```") == "[1, 2]"


def test_fallback_plan_has_three_fresh_items():
    a, b = fallback_plan(), fallback_plan()
    assert len(a) == 3
    assert [p.phase for p in a] == ["介绍", "细节", "总结"]
    a[0].phase = "changed"
    assert b[0].phase == "介绍"


def test_prompts_carry_script_and_phase():
    assert "my script" in build_plan_prompt("my script")
    prompt = build_slide_prompt("full text", PlanItem(phase="Pricing", instruction="Show tiers"))
    assert "**Pricing**" in prompt
    assert "Show tiers" in prompt
    assert "full text" in prompt
