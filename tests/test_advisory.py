"""
Test cases for the AI advisory adapter and the shared chat helpers.

The OpenAI client is replaced by a MagicMock; no network calls are made.
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from car_cost_calculator.advisory import (
    DEFAULT_CONFIDENCE,
    AdvisoryClient,
    ParseStatus,
    Verdict,
    build_advisory_request,
    build_analysis_messages,
    parse_analysis_reply,
    verdict_from_mapping,
)
from car_cost_calculator.calculator import calculate
from car_cost_calculator.config import Settings
from car_cost_calculator.data.defaults import default_input
from car_cost_calculator.errors import AdvisoryUnavailable
from car_cost_calculator.llm import clear_client_cache, complete_chat, get_client, parse_json_reply


# ── Helpers ───────────────────────────────────────────────────────────────────

FULL_REPLY = """```json
{
  "verdict": "reconsider",
  "confidence": 72,
  "summary": "Costs exceed a third of income.",
  "detailedAnalysis": "The loan payment dominates.",
  "risks": ["Suspension wear", "Cooling system"],
  "recommendations": ["Raise the down payment"],
  "comparisonWithStandard": "Well above the 20-30% guideline."
}
```"""


def make_settings() -> Settings:
    return Settings(LLM_API_KEY="test-key", _env_file=None)


def make_client(content: str | None, reasoning: str | None = None) -> MagicMock:
    client = MagicMock()
    message = SimpleNamespace(content=content, reasoning_content=reasoning)
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=message)]
    )
    return client


@pytest.fixture
def scenario():
    calc = default_input()
    return calc, calculate(calc)


# ── Test 1: Request and prompt ────────────────────────────────────────────────

def test_request_carries_inputs_and_results(scenario):
    calc, result = scenario
    request = build_advisory_request(calc, result)
    assert request.model_key is calc.car.model_key
    assert request.annual_income == pytest.approx(calc.income.monthly_income * 12)
    assert request.total_per_month == result.total_per_month
    assert request.maintenance_per_month == result.maintenance.avg_per_month
    assert request.ratio_to_income == result.affordability.ratio_to_monthly_income
    assert request.affordability_level is result.affordability.level


def test_prompt_mentions_figures(scenario):
    calc, result = scenario
    messages = build_analysis_messages(build_advisory_request(calc, result), today=date(2026, 6, 1))
    assert [m["role"] for m in messages] == ["system", "user"]
    user = messages[1]["content"]
    assert "Age: 10 years (model year 2016)" in user
    assert f"{result.total_per_month:,.0f}" in user
    assert '"verdict": "buy" | "reconsider" | "do-not-buy"' in user


# ── Test 2: JSON extraction ───────────────────────────────────────────────────

def test_parse_json_reply_fenced_and_bare():
    assert parse_json_reply('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_reply('```\n{"a": 2}\n```') == {"a": 2}
    assert parse_json_reply('  {"a": 3}  ') == {"a": 3}


def test_parse_json_reply_repairs_trailing_comma():
    assert parse_json_reply('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}


def test_parse_json_reply_rejects_non_objects():
    assert parse_json_reply("") is None
    assert parse_json_reply("[1, 2, 3]") is None


# ── Test 3: Verdict parsing ───────────────────────────────────────────────────

def test_full_reply_is_parsed():
    outcome = parse_analysis_reply(FULL_REPLY, model="glm-4.6")
    assert outcome.status is ParseStatus.PARSED
    assert outcome.note is None
    v = outcome.verdict
    assert v.verdict is Verdict.RECONSIDER
    assert v.confidence == 72
    assert v.risks == ["Suspension wear", "Cooling system"]
    assert v.comparison_with_standard.startswith("Well above")
    assert outcome.model == "glm-4.6"


def test_missing_fields_are_defaulted_and_flagged():
    outcome = parse_analysis_reply('{"verdict": "BUY", "summary": "Fine."}')
    assert outcome.status is ParseStatus.PARTIAL
    assert outcome.verdict.verdict is Verdict.BUY
    assert outcome.verdict.confidence == DEFAULT_CONFIDENCE
    assert "confidence" in outcome.note
    assert "risks" in outcome.note


@pytest.mark.parametrize(
    "raw, expected",
    [("do_not_buy", Verdict.DO_NOT_BUY), ("Do Not Buy", Verdict.DO_NOT_BUY), ("maybe", Verdict.RECONSIDER)],
)
def test_verdict_spellings(raw, expected):
    verdict, _ = verdict_from_mapping({"verdict": raw})
    assert verdict.verdict is expected


@pytest.mark.parametrize("raw, expected", [(150, 100), (-5, 0), ("64.6", 65), (True, DEFAULT_CONFIDENCE)])
def test_confidence_clamped(raw, expected):
    verdict, _ = verdict_from_mapping({"confidence": raw})
    assert verdict.confidence == expected


def test_snake_case_keys_accepted():
    verdict, defaulted = verdict_from_mapping(
        {"detailed_analysis": "x", "comparison_with_standard": "y"}
    )
    assert verdict.detailed_analysis == "x"
    assert verdict.comparison_with_standard == "y"
    assert "detailed_analysis" not in defaulted


def test_empty_text_fields_count_as_answered():
    reply = (
        '{"verdict": "buy", "confidence": 90, "summary": "Comfortable.", '
        '"detailedAnalysis": "", "risks": [], "recommendations": [], '
        '"comparisonWithStandard": ""}'
    )
    outcome = parse_analysis_reply(reply)
    assert outcome.status is ParseStatus.PARSED
    assert outcome.note is None
    assert outcome.verdict.detailed_analysis == ""
    assert outcome.verdict.comparison_with_standard == ""


def test_reasoning_fallback_is_partial():
    outcome = parse_analysis_reply("", "Long reasoning about the car and the buyer.")
    assert outcome.status is ParseStatus.PARTIAL
    assert outcome.note == "Parsed from reasoning"
    assert outcome.verdict.verdict is Verdict.RECONSIDER
    assert outcome.verdict.detailed_analysis == "Long reasoning about the car and the buyer."


def test_nothing_usable_is_unparsed():
    outcome = parse_analysis_reply("", None)
    assert outcome.status is ParseStatus.UNPARSED
    assert outcome.verdict is None


# ── Test 4: Client ────────────────────────────────────────────────────────────

def test_client_returns_parsed_verdict(scenario):
    calc, result = scenario
    client = make_client(FULL_REPLY)
    before = result.model_copy(deep=True)

    outcome = AdvisoryClient(make_settings(), client=client).analyze(calc, result)

    assert outcome.status is ParseStatus.PARSED
    assert result == before
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "glm-4.6"
    assert kwargs["temperature"] == pytest.approx(0.4)
    assert kwargs["max_tokens"] == 1500


def test_client_uses_reasoning_when_content_empty(scenario):
    calc, result = scenario
    client = make_client("", "The buyer spends over 100% of income on this car.")
    outcome = AdvisoryClient(make_settings(), client=client).analyze(calc, result)
    assert outcome.status is ParseStatus.PARTIAL


def test_client_raises_when_unreadable(scenario):
    calc, result = scenario
    client = make_client("Sorry, I cannot help with that")
    with pytest.raises(AdvisoryUnavailable) as exc_info:
        AdvisoryClient(make_settings(), client=client).analyze(calc, result)
    assert exc_info.value.raw_content == "Sorry, I cannot help with that"


def test_transport_error_becomes_advisory_unavailable(scenario):
    calc, result = scenario
    client = MagicMock()
    client.chat.completions.create.side_effect = OpenAIError("connection reset")
    with pytest.raises(AdvisoryUnavailable, match="connection reset"):
        AdvisoryClient(make_settings(), client=client).analyze(calc, result)


def test_empty_choices_raise():
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    with pytest.raises(AdvisoryUnavailable):
        complete_chat([{"role": "user", "content": "hi"}], settings=make_settings(), client=client)


def test_missing_api_key_raises():
    with pytest.raises(AdvisoryUnavailable, match="LLM_API_KEY"):
        get_client(Settings(LLM_API_KEY=None, _env_file=None))


def test_client_cache_reused_per_endpoint():
    clear_client_cache()
    settings = make_settings()
    first = get_client(settings)
    assert get_client(settings) is first
    clear_client_cache()
    assert get_client(settings) is not first
    clear_client_cache()
