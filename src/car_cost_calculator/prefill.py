"""
AI prefill: ask a chat model for sensible starting values (fuel economy,
insurance, depreciation rate, parking/tolls) for a given car and buyer.

Suggestions are advisory defaults only. They are merged into a CalcInput
explicitly by the caller via merge_suggestions(); the engine never sees
them otherwise.

Some reasoning models answer with empty `content` and put their thinking in
`reasoning_content`. In that case the numbers are scraped from the text with
ordered regex lists (first match wins per field).
"""

import logging
import re
from datetime import date, datetime, timezone
from enum import Enum

from openai import OpenAI
from pydantic import BaseModel, Field

from car_cost_calculator.advisory import CONDITION_LABELS, LOCATION_LABELS, ParseStatus
from car_cost_calculator.config import Settings, get_settings
from car_cost_calculator.data.profiles import lookup_profile
from car_cost_calculator.errors import AdvisoryUnavailable
from car_cost_calculator.llm import complete_chat, parse_json_reply
from car_cost_calculator.models import CalcInput, CarCondition, ModelKey, ServiceLocation

logger = logging.getLogger(__name__)

PREFILL_TEMPERATURE = 0.3
PREFILL_MAX_TOKENS = 800

DEFAULT_EXPLANATION = "Suggested from the car's condition and usage."

SYSTEM_PROMPT = (
    "You are a BMW running-cost specialist. Suggest realistic cost inputs "
    "and answer in JSON only."
)

# ── Reasoning-text patterns ───────────────────────────────────────────────────
# Ordered most to least specific; the first pattern that matches wins.

_NUMBER = r"(\d+\.?\d*)"
_GROUPED = r"(\d[\d,]*)"

KM_PER_LITER_PATTERNS = [
    re.compile(r"kmPerLiter[:\s]+" + _NUMBER, re.I),
    re.compile(_NUMBER + r"\s*km/L", re.I),
    re.compile(_NUMBER + r"\s*km per lit(?:er|re)", re.I),
    re.compile(r"around " + _NUMBER + r"\s*km", re.I),
    re.compile(r"estimate " + _NUMBER + r"\s*km", re.I),
]

INSURANCE_PATTERNS = [
    re.compile(r"insurancePerYear[:\s]+" + _GROUPED, re.I),
    re.compile(r"insurance.*?[:\s]+(\d[\d,]{4,6})", re.I),
    re.compile(r"(\d[\d,]{4,6})\s*(?:THB|baht)", re.I),
]

DEPRECIATION_PATTERNS = [
    re.compile(r"depreciationRatePerYear[:\s]+" + _NUMBER, re.I),
    re.compile(_NUMBER + r"%\s*per year", re.I),
    re.compile(_NUMBER + r"%\s*depreciation", re.I),
    re.compile(r"depreciation.*?" + _NUMBER + r"%", re.I),
    re.compile(r"around " + _NUMBER + r"%", re.I),
]

PARKING_PATTERNS = [
    re.compile(r"parkingTollPerMonth[:\s]+" + _GROUPED, re.I),
    re.compile(r"parking[:\s]+(\d[\d,]{2,5})", re.I),
    re.compile(r"(\d[\d,]{2,5})\s*(?:THB|baht).*?month", re.I),
]


class PrefillSource(str, Enum):
    CONTENT = "content"                    # JSON in the reply content
    REASONING_PARSED = "reasoning_parsed"  # Numbers scraped from reasoning text
    REASONING_RAW = "reasoning_raw"        # Reasoning text only, no numbers


class PrefillRequest(BaseModel):
    model_key: ModelKey
    year: int
    mileage_km: float
    km_per_month: float
    monthly_income: float
    car_price: float
    condition: CarCondition | None = None
    service_location: ServiceLocation | None = None


class SuggestedInputs(BaseModel):
    km_per_liter: float | None = None
    insurance_per_year: float | None = None
    depreciation_rate_per_year: float | None = None
    parking_toll_per_month: float | None = None
    explanation: str | None = None

    @property
    def has_values(self) -> bool:
        return any(
            v is not None
            for v in (
                self.km_per_liter,
                self.insurance_per_year,
                self.depreciation_rate_per_year,
                self.parking_toll_per_month,
            )
        )


class PrefillOutcome(BaseModel):
    status: ParseStatus
    source: PrefillSource | None = None
    suggestions: SuggestedInputs = Field(default_factory=SuggestedInputs)
    model: str | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    note: str | None = None


def build_prefill_request(calc_input: CalcInput) -> PrefillRequest:
    return PrefillRequest(
        model_key=calc_input.car.model_key,
        year=calc_input.car.year,
        mileage_km=calc_input.car.mileage_km,
        km_per_month=calc_input.usage.km_per_month,
        monthly_income=calc_input.income.monthly_income,
        car_price=calc_input.finance.car_price,
        condition=calc_input.car.condition,
        service_location=calc_input.maintenance.service_location,
    )


def build_prefill_messages(
    request: PrefillRequest,
    today: date | None = None,
) -> list[dict[str, str]]:
    profile = lookup_profile(request.model_key)
    today = today or date.today()
    car_age = today.year - request.year
    condition = CONDITION_LABELS[request.condition or CarCondition.NORMAL]
    location = LOCATION_LABELS[request.service_location or ServiceLocation.CENTER]

    prompt = f"""Car:
- Model: {profile.display_name}
- Model year: {request.year} ({car_age} years old)
- Current mileage: {request.mileage_km:,.0f} km
- Usage: {request.km_per_month:,.0f} km per month
- Purchase price: {request.car_price:,.0f}
- Buyer income: {request.monthly_income:,.0f} per month
- Condition: {condition}
- Servicing at: {location}

Profile defaults:
- km/L: {profile.defaults.km_per_liter:g}
- Depreciation %/year: {profile.defaults.depreciation_rate_per_year:g}
- Base service per year: {profile.defaults.base_service_per_year:,.0f}

Return this JSON:
{{
  "kmPerLiter": <number>,
  "insurancePerYear": <number>,
  "depreciationRatePerYear": <number>,
  "parkingTollPerMonth": <number>,
  "explanation": "two or three sentences on why these values were chosen"
}}

Guidance:
- kmPerLiter: realistic economy for a {car_age}-year-old car in {condition} \
condition (profile default {profile.defaults.km_per_liter:g})
- insurancePerYear: yearly premium for a {car_age}-year-old car priced \
{request.car_price:,.0f} (typically 15,000-60,000)
- depreciationRatePerYear: yearly depreciation for a {car_age}-year-old car (typically 8-18%)
- parkingTollPerMonth: parking and tolls suited to an income of \
{request.monthly_income:,.0f} per month

Reply with the JSON only."""

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _first_match(patterns: list[re.Pattern], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).replace(",", "")
    return None


def extract_from_reasoning(reasoning: str) -> SuggestedInputs | None:
    """
    Best-effort scrape of the four numeric suggestions from free text.
    Returns None when nothing was found.
    """
    result = SuggestedInputs()

    km = _first_match(KM_PER_LITER_PATTERNS, reasoning)
    if km is not None:
        result.km_per_liter = float(km)

    insurance = _first_match(INSURANCE_PATTERNS, reasoning)
    if insurance:
        result.insurance_per_year = int(insurance)

    depreciation = _first_match(DEPRECIATION_PATTERNS, reasoning)
    if depreciation is not None:
        result.depreciation_rate_per_year = float(depreciation)

    parking = _first_match(PARKING_PATTERNS, reasoning)
    if parking:
        result.parking_toll_per_month = int(parking)

    if not result.has_values:
        logger.info("No values found in reasoning text")
        return None

    logger.debug("Parsed values from reasoning: %s", result.model_dump(exclude_none=True))
    return result


def suggestions_from_mapping(data: dict) -> SuggestedInputs:
    """Accept camelCase or snake_case keys; drop values that are not numbers."""

    def number(*names: str) -> float | None:
        for name in names:
            value = data.get(name)
            if isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                return float(value)
            if isinstance(value, str):
                try:
                    return float(value.replace(",", ""))
                except ValueError:
                    continue
        return None

    explanation = data.get("explanation")
    return SuggestedInputs(
        km_per_liter=number("kmPerLiter", "km_per_liter"),
        insurance_per_year=number("insurancePerYear", "insurance_per_year"),
        depreciation_rate_per_year=number("depreciationRatePerYear", "depreciation_rate_per_year"),
        parking_toll_per_month=number("parkingTollPerMonth", "parking_toll_per_month"),
        explanation=explanation if isinstance(explanation, str) and explanation else None,
    )


def parse_prefill_reply(
    content: str | None,
    reasoning_content: str | None = None,
    *,
    model: str | None = None,
) -> PrefillOutcome:
    """
    Read suggestions out of a model reply.

    Empty content -> reasoning path: scraped numbers (partial) or the raw
    reasoning as explanation only (unparsed). Otherwise the content must hold
    a JSON object (parsed); anything else is unparsed.
    """
    if not content or not content.strip():
        if not reasoning_content:
            logger.error("Prefill reply has neither content nor reasoning")
            return PrefillOutcome(status=ParseStatus.UNPARSED, model=model)

        logger.warning("Prefill content empty, using reasoning text")
        parsed = extract_from_reasoning(reasoning_content)
        if parsed is not None:
            parsed.explanation = reasoning_content
            return PrefillOutcome(
                status=ParseStatus.PARTIAL,
                source=PrefillSource.REASONING_PARSED,
                suggestions=parsed,
                model=model,
            )
        return PrefillOutcome(
            status=ParseStatus.UNPARSED,
            source=PrefillSource.REASONING_RAW,
            suggestions=SuggestedInputs(explanation=reasoning_content),
            model=model,
            note="Could not parse numeric values",
        )

    data = parse_json_reply(content)
    if data is None:
        logger.error("Failed to parse prefill reply (%d chars)", len(content))
        return PrefillOutcome(status=ParseStatus.UNPARSED, model=model, note=content)

    suggestions = suggestions_from_mapping(data)
    if suggestions.explanation is None:
        suggestions.explanation = DEFAULT_EXPLANATION
    return PrefillOutcome(
        status=ParseStatus.PARSED,
        source=PrefillSource.CONTENT,
        suggestions=suggestions,
        model=model,
    )


def merge_suggestions(calc_input: CalcInput, suggestions: SuggestedInputs) -> CalcInput:
    """Copy of `calc_input` with every present suggestion applied."""
    usage = calc_input.usage
    fixed_costs = calc_input.fixed_costs
    depreciation = calc_input.depreciation

    if suggestions.km_per_liter is not None:
        usage = usage.model_copy(update={"km_per_liter": suggestions.km_per_liter})
    if suggestions.insurance_per_year is not None:
        fixed_costs = fixed_costs.model_copy(
            update={"insurance_per_year": suggestions.insurance_per_year}
        )
    if suggestions.parking_toll_per_month is not None:
        fixed_costs = fixed_costs.model_copy(
            update={"parking_toll_per_month": suggestions.parking_toll_per_month}
        )
    if suggestions.depreciation_rate_per_year is not None:
        depreciation = depreciation.model_copy(
            update={"depreciation_rate_per_year": suggestions.depreciation_rate_per_year}
        )

    return calc_input.model_copy(
        update={"usage": usage, "fixed_costs": fixed_costs, "depreciation": depreciation}
    )


class PrefillClient:
    """Requests suggested inputs for the car described by a CalcInput."""

    def __init__(self, settings: Settings | None = None, client: OpenAI | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client

    def suggest(self, calc_input: CalcInput, today: date | None = None) -> PrefillOutcome:
        """
        Raises AdvisoryUnavailable when the call fails or the reply cannot be
        read at all. Reasoning-only replies come back unparsed with the text
        as explanation.
        """
        request = build_prefill_request(calc_input)
        messages = build_prefill_messages(request, today=today)

        logger.info("Requesting prefill suggestions for %s", request.model_key.value)
        reply = complete_chat(
            messages,
            settings=self.settings,
            client=self.client,
            temperature=PREFILL_TEMPERATURE,
            max_tokens=PREFILL_MAX_TOKENS,
        )

        outcome = parse_prefill_reply(
            reply.content, reply.reasoning_content, model=self.settings.LLM_MODEL
        )
        # Raw reasoning is still returned so the caller can show it
        if (
            outcome.status is ParseStatus.UNPARSED
            and outcome.source is not PrefillSource.REASONING_RAW
        ):
            raise AdvisoryUnavailable(
                outcome.note or "Failed to parse AI response", raw_content=reply.content
            )
        return outcome
