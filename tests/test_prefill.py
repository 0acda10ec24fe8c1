"""
Test cases for prefill.py: suggestion parsing, reasoning scrape and merge.
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from car_cost_calculator.advisory import ParseStatus
from car_cost_calculator.config import Settings
from car_cost_calculator.data.defaults import default_input
from car_cost_calculator.errors import AdvisoryUnavailable
from car_cost_calculator.prefill import (
    DEFAULT_EXPLANATION,
    PrefillClient,
    PrefillSource,
    SuggestedInputs,
    build_prefill_messages,
    build_prefill_request,
    extract_from_reasoning,
    merge_suggestions,
    parse_prefill_reply,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def make_client(content: str | None, reasoning: str | None = None) -> MagicMock:
    client = MagicMock()
    message = SimpleNamespace(content=content, reasoning_content=reasoning)
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=message)]
    )
    return client


def make_prefill_client(client: MagicMock) -> PrefillClient:
    return PrefillClient(Settings(LLM_API_KEY="test-key", _env_file=None), client=client)


# ── Test 1: Prompt ────────────────────────────────────────────────────────────

def test_prompt_includes_car_facts():
    request = build_prefill_request(default_input())
    messages = build_prefill_messages(request, today=date(2026, 3, 1))
    user = messages[1]["content"]
    assert "Model year: 2016 (10 years old)" in user
    assert "120,000 km" in user
    assert '"kmPerLiter": <number>' in user


# ── Test 2: JSON content ──────────────────────────────────────────────────────

def test_json_content_parsed():
    outcome = parse_prefill_reply(
        '```json\n{"kmPerLiter": 14.5, "insurancePerYear": "28,000", '
        '"depreciationRatePerYear": 11, "parkingTollPerMonth": 1200, '
        '"explanation": "Typical for a ten year old diesel."}\n```'
    )
    assert outcome.status is ParseStatus.PARSED
    assert outcome.source is PrefillSource.CONTENT
    s = outcome.suggestions
    assert s.km_per_liter == pytest.approx(14.5)
    assert s.insurance_per_year == pytest.approx(28_000)
    assert s.depreciation_rate_per_year == pytest.approx(11)
    assert s.parking_toll_per_month == pytest.approx(1_200)
    assert s.explanation == "Typical for a ten year old diesel."


def test_missing_explanation_gets_default():
    outcome = parse_prefill_reply('{"kmPerLiter": 13, "insurancePerYear": null}')
    assert outcome.suggestions.explanation == DEFAULT_EXPLANATION
    assert outcome.suggestions.insurance_per_year is None


def test_unreadable_content_is_unparsed():
    outcome = parse_prefill_reply("no numbers here at all")
    assert outcome.status is ParseStatus.UNPARSED
    assert outcome.note == "no numbers here at all"


# ── Test 3: Reasoning fallback ────────────────────────────────────────────────

def test_numbers_scraped_from_reasoning():
    reasoning = (
        "For this car I estimate 14.5 km/L in mixed driving. "
        "Insurance: 32,000 per year is typical. "
        "It loses about 11% per year. "
        "Parking: 1,500 a month downtown."
    )
    s = extract_from_reasoning(reasoning)
    assert s.km_per_liter == pytest.approx(14.5)
    assert s.insurance_per_year == 32_000
    assert s.depreciation_rate_per_year == pytest.approx(11)
    assert s.parking_toll_per_month == 1_500


def test_empty_content_uses_reasoning():
    reasoning = "kmPerLiter: 12.5, depreciationRatePerYear: 13"
    outcome = parse_prefill_reply("", reasoning)
    assert outcome.status is ParseStatus.PARTIAL
    assert outcome.source is PrefillSource.REASONING_PARSED
    assert outcome.suggestions.km_per_liter == pytest.approx(12.5)
    assert outcome.suggestions.depreciation_rate_per_year == pytest.approx(13)
    assert outcome.suggestions.explanation == reasoning


def test_reasoning_without_numbers_is_raw():
    outcome = parse_prefill_reply("", "The car seems fine overall.")
    assert outcome.status is ParseStatus.UNPARSED
    assert outcome.source is PrefillSource.REASONING_RAW
    assert not outcome.suggestions.has_values
    assert outcome.suggestions.explanation == "The car seems fine overall."


def test_no_content_and_no_reasoning():
    outcome = parse_prefill_reply(None, None)
    assert outcome.status is ParseStatus.UNPARSED
    assert outcome.source is None


# ── Test 4: Merge ─────────────────────────────────────────────────────────────

def test_merge_applies_only_present_values():
    calc = default_input()
    merged = merge_suggestions(
        calc, SuggestedInputs(km_per_liter=11.0, parking_toll_per_month=900)
    )
    assert merged.usage.km_per_liter == 11.0
    assert merged.fixed_costs.parking_toll_per_month == 900
    assert merged.fixed_costs.insurance_per_year == calc.fixed_costs.insurance_per_year
    assert merged.depreciation == calc.depreciation
    # Original untouched
    assert calc.usage.km_per_liter == 15


def test_merge_with_nothing_is_identity():
    calc = default_input()
    assert merge_suggestions(calc, SuggestedInputs()) == calc


# ── Test 5: Client ────────────────────────────────────────────────────────────

def test_client_returns_suggestions():
    client = make_client('{"kmPerLiter": 14, "insurancePerYear": 30000}')
    outcome = make_prefill_client(client).suggest(default_input())
    assert outcome.status is ParseStatus.PARSED
    assert outcome.suggestions.insurance_per_year == pytest.approx(30_000)
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["temperature"] == pytest.approx(0.3)
    assert kwargs["max_tokens"] == 800


def test_client_returns_raw_reasoning_instead_of_raising():
    client = make_client("", "Hard to say without more detail.")
    outcome = make_prefill_client(client).suggest(default_input())
    assert outcome.source is PrefillSource.REASONING_RAW
    assert outcome.suggestions.explanation == "Hard to say without more detail."


def test_client_raises_on_unreadable_content():
    client = make_client("I would rather not say")
    with pytest.raises(AdvisoryUnavailable):
        make_prefill_client(client).suggest(default_input())
