"""
AI purchase advisory: sends the computed cost breakdown to a chat model and
reads back a buy / reconsider / do-not-buy verdict.

This is a fallible adapter around the engine, never part of it:
  - The engine result is computed first and is complete without this call.
  - Replies are parsed best-effort and tagged parsed / partial / unparsed.
  - Transport failures and unreadable replies raise AdvisoryUnavailable.
"""

import logging
import math
from datetime import date, datetime, timezone
from enum import Enum

from openai import OpenAI
from pydantic import BaseModel, Field

from car_cost_calculator.config import Settings, get_settings
from car_cost_calculator.data.profiles import lookup_profile
from car_cost_calculator.errors import AdvisoryUnavailable
from car_cost_calculator.llm import complete_chat, parse_json_reply
from car_cost_calculator.models import (
    AffordabilityLevel,
    CalcInput,
    CalcResult,
    CarCondition,
    ModelKey,
    ServiceLocation,
)

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.4
ANALYSIS_MAX_TOKENS = 1500

DEFAULT_CONFIDENCE = 50
DEFAULT_SUMMARY = "Analysis complete."

CONDITION_LABELS: dict[CarCondition, str] = {
    CarCondition.EXCELLENT: "excellent",
    CarCondition.NORMAL: "normal",
    CarCondition.POOR: "poor",
}

LOCATION_LABELS: dict[ServiceLocation, str] = {
    ServiceLocation.CENTER: "dealer service centre",
    ServiceLocation.OUTSIDE: "independent garage",
}

SYSTEM_PROMPT = (
    "You are an impartial personal-finance adviser and BMW specialist. "
    "Give balanced, practical advice."
)


class Verdict(str, Enum):
    BUY = "buy"
    RECONSIDER = "reconsider"
    DO_NOT_BUY = "do-not-buy"


class ParseStatus(str, Enum):
    PARSED = "parsed"        # Complete verdict object
    PARTIAL = "partial"      # Usable, but some fields were defaulted
    UNPARSED = "unparsed"    # Nothing usable


class AdvisoryRequest(BaseModel):
    """Flat record of every input and computed monthly figure."""

    model_key: ModelKey
    year: int
    mileage_km: float
    km_per_month: float
    monthly_income: float
    annual_income: float
    car_price: float
    down_payment_amount: float
    months: float
    interest_apr_flat: float
    fuel_price: float
    km_per_liter: float
    insurance_per_year: float
    tax_and_act_per_year: float
    parking_toll_per_month: float
    hold_years: float
    expected_resale_price: float | None
    depreciation_rate_per_year: float
    car_condition: CarCondition
    service_location: ServiceLocation
    # Calculated results
    total_per_month: float
    payment_per_month: float
    fuel_cost_per_month: float
    maintenance_per_month: float
    depreciation_per_month: float
    fixed_costs_per_month: float
    ratio_to_income: float
    affordability_level: AffordabilityLevel


class AdvisoryVerdict(BaseModel):
    verdict: Verdict
    confidence: int = Field(ge=0, le=100)
    summary: str
    detailed_analysis: str = ""
    risks: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    comparison_with_standard: str = ""


class AdvisoryOutcome(BaseModel):
    status: ParseStatus
    verdict: AdvisoryVerdict | None = None
    model: str | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw_content: str | None = None
    note: str | None = None


def build_advisory_request(calc_input: CalcInput, result: CalcResult) -> AdvisoryRequest:
    return AdvisoryRequest(
        model_key=calc_input.car.model_key,
        year=calc_input.car.year,
        mileage_km=calc_input.car.mileage_km,
        km_per_month=calc_input.usage.km_per_month,
        monthly_income=calc_input.income.monthly_income,
        annual_income=calc_input.income.effective_annual_income,
        car_price=calc_input.finance.car_price,
        down_payment_amount=calc_input.finance.down_payment_amount,
        months=calc_input.finance.months,
        interest_apr_flat=calc_input.finance.interest_apr_flat,
        fuel_price=calc_input.usage.fuel_price_per_liter,
        km_per_liter=calc_input.usage.km_per_liter,
        insurance_per_year=calc_input.fixed_costs.insurance_per_year,
        tax_and_act_per_year=calc_input.fixed_costs.tax_and_act_per_year,
        parking_toll_per_month=calc_input.fixed_costs.parking_toll_per_month,
        hold_years=calc_input.depreciation.hold_years,
        expected_resale_price=calc_input.depreciation.expected_resale_price,
        depreciation_rate_per_year=calc_input.depreciation.depreciation_rate_per_year,
        car_condition=calc_input.car.condition,
        service_location=calc_input.maintenance.service_location,
        total_per_month=result.total_per_month,
        payment_per_month=result.loan.payment_per_month,
        fuel_cost_per_month=result.fuel.cost_per_month,
        maintenance_per_month=result.maintenance.avg_per_month,
        depreciation_per_month=result.depreciation.per_month,
        fixed_costs_per_month=result.fixed_costs.per_month,
        ratio_to_income=result.affordability.ratio_to_monthly_income,
        affordability_level=result.affordability.level,
    )


def build_analysis_messages(
    request: AdvisoryRequest,
    today: date | None = None,
) -> list[dict[str, str]]:
    """System + user messages asking for a JSON verdict."""
    profile = lookup_profile(request.model_key)
    today = today or date.today()
    car_age = today.year - request.year
    down_pct = (
        request.down_payment_amount / request.car_price * 100 if request.car_price > 0 else 0.0
    )
    ratio_pct = request.ratio_to_income * 100
    level = request.affordability_level.value

    prompt = f"""## Buyer
- Monthly income: {request.monthly_income:,.0f}
- Annual income: {request.annual_income:,.0f}

## Car
- Model: {profile.display_name}
- Age: {car_age} years (model year {request.year})
- Current mileage: {request.mileage_km:,.0f} km
- Condition: {CONDITION_LABELS[request.car_condition]}
- Purchase price: {request.car_price:,.0f}
- Down payment: {request.down_payment_amount:,.0f} ({down_pct:.0f}%)
- Term: {request.months:g} months
- Interest: {request.interest_apr_flat:g}% per year (flat rate)

## Usage
- Distance per month: {request.km_per_month:,.0f} km
- Fuel economy: {request.km_per_liter:g} km/L
- Fuel price: {request.fuel_price:g} per litre
- Servicing at: {LOCATION_LABELS[request.service_location]}

## Calculated monthly costs
- Loan payment: {request.payment_per_month:,.0f}
- Fuel: {request.fuel_cost_per_month:,.0f}
- Maintenance: {request.maintenance_per_month:,.0f}
- Depreciation: {request.depreciation_per_month:,.0f}
- Fixed costs (insurance + tax + parking): {request.fixed_costs_per_month:,.0f}
- **Total: {request.total_per_month:,.0f} per month**

## Calculator assessment
- Share of income: {ratio_pct:.1f}%
- Affordability level: {level}

## Questions
With an income of {request.monthly_income:,.0f} per month and car costs of \
{request.total_per_month:,.0f} per month ({ratio_pct:.1f}% of income):
1. Should this car be bought? Why?
2. Which risks need watching?
3. What else do you recommend?
4. If the calculator says "{level}" but the buyer still wants the car, what should they consider?

Reply in JSON only:
{{
  "verdict": "buy" | "reconsider" | "do-not-buy",
  "confidence": number 0-100,
  "summary": "one or two plain sentences",
  "detailedAnalysis": "detailed reasoning",
  "risks": ["risk 1", "risk 2"],
  "recommendations": ["recommendation 1", "recommendation 2"],
  "comparisonWithStandard": "comparison with the usual guideline (car costs at most 20-30% of income)"
}}"""

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _normalize_verdict(value: object) -> Verdict | None:
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return Verdict(key)
    except ValueError:
        return None


def _normalize_confidence(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        confidence = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(confidence):
        return None
    return int(round(max(0.0, min(100.0, confidence))))


def _string_list(value: object) -> list[str] | None:
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return None


def verdict_from_mapping(data: dict) -> tuple[AdvisoryVerdict, list[str]]:
    """
    Build a verdict from a reply object, accepting camelCase or snake_case
    keys. Returns the verdict and the names of fields that were defaulted.
    """
    defaulted: list[str] = []

    def pick(*names: str, keep_empty: bool = False) -> object:
        missing = (None,) if keep_empty else (None, "")
        for name in names:
            if data.get(name) not in missing:
                return data[name]
        return None

    verdict = _normalize_verdict(pick("verdict"))
    if verdict is None:
        verdict = Verdict.RECONSIDER
        defaulted.append("verdict")

    confidence = _normalize_confidence(pick("confidence"))
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
        defaulted.append("confidence")

    summary = pick("summary")
    if not isinstance(summary, str):
        summary = DEFAULT_SUMMARY
        defaulted.append("summary")

    detailed = pick("detailedAnalysis", "detailed_analysis", keep_empty=True)
    if not isinstance(detailed, str):
        detailed = ""
        defaulted.append("detailed_analysis")

    risks = _string_list(pick("risks"))
    if risks is None:
        risks = []
        defaulted.append("risks")

    recommendations = _string_list(pick("recommendations"))
    if recommendations is None:
        recommendations = []
        defaulted.append("recommendations")

    comparison = pick("comparisonWithStandard", "comparison_with_standard", keep_empty=True)
    if not isinstance(comparison, str):
        comparison = ""
        defaulted.append("comparison_with_standard")

    return (
        AdvisoryVerdict(
            verdict=verdict,
            confidence=confidence,
            summary=summary,
            detailed_analysis=detailed,
            risks=risks,
            recommendations=recommendations,
            comparison_with_standard=comparison,
        ),
        defaulted,
    )


def fallback_verdict(reasoning: str) -> AdvisoryVerdict:
    """Neutral verdict wrapping raw reasoning text when no JSON was returned."""
    return AdvisoryVerdict(
        verdict=Verdict.RECONSIDER,
        confidence=DEFAULT_CONFIDENCE,
        summary="Analysis incomplete; see the model's raw reasoning.",
        detailed_analysis=reasoning,
        risks=["The AI response could not be processed."],
        recommendations=["Try again, or consult a financial adviser."],
        comparison_with_standard="Comparison not available.",
    )


def parse_analysis_reply(
    content: str | None,
    reasoning_content: str | None = None,
    *,
    model: str | None = None,
) -> AdvisoryOutcome:
    """
    Read a verdict out of a model reply.

    1. JSON object in `content` (fenced or bare, repaired if needed):
       parsed, or partial when any field had to be defaulted.
    2. Otherwise raw reasoning text, if any: partial fallback verdict.
    3. Otherwise: unparsed, no verdict.
    """
    data = parse_json_reply(content or "")
    if data is not None:
        verdict, defaulted = verdict_from_mapping(data)
        if defaulted:
            logger.info("Advisory reply missing fields: %s", ", ".join(defaulted))
            return AdvisoryOutcome(
                status=ParseStatus.PARTIAL,
                verdict=verdict,
                model=model,
                raw_content=content,
                note=f"Defaulted: {', '.join(defaulted)}",
            )
        return AdvisoryOutcome(
            status=ParseStatus.PARSED, verdict=verdict, model=model, raw_content=content
        )

    if reasoning_content and reasoning_content.strip():
        logger.warning("Advisory content unparseable, falling back to reasoning text")
        return AdvisoryOutcome(
            status=ParseStatus.PARTIAL,
            verdict=fallback_verdict(reasoning_content),
            model=model,
            raw_content=content,
            note="Parsed from reasoning",
        )

    logger.error("Failed to parse advisory reply (%d chars)", len(content or ""))
    return AdvisoryOutcome(status=ParseStatus.UNPARSED, model=model, raw_content=content)


class AdvisoryClient:
    """Requests a narrative verdict for an already computed result."""

    def __init__(self, settings: Settings | None = None, client: OpenAI | None = None) -> None:
        self.settings = settings or get_settings()
        self.client = client

    def analyze(
        self,
        calc_input: CalcInput,
        result: CalcResult,
        today: date | None = None,
    ) -> AdvisoryOutcome:
        """
        Raises AdvisoryUnavailable when the call fails or nothing usable
        comes back; `result` is never modified.
        """
        request = build_advisory_request(calc_input, result)
        messages = build_analysis_messages(request, today=today)

        logger.info("Requesting advisory verdict for %s", request.model_key.value)
        reply = complete_chat(
            messages,
            settings=self.settings,
            client=self.client,
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )

        outcome = parse_analysis_reply(
            reply.content, reply.reasoning_content, model=self.settings.LLM_MODEL
        )
        if outcome.status is ParseStatus.UNPARSED:
            raise AdvisoryUnavailable(
                "Failed to parse AI response", raw_content=reply.content
            )

        logger.info("Advisory completed: %s (%s)", outcome.verdict.verdict.value, outcome.status.value)
        return outcome
