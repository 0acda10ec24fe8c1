"""
Plain-text report of one calculation, shared by the CLI export.
"""

from datetime import date

from car_cost_calculator.advisory import AdvisoryOutcome, ParseStatus
from car_cost_calculator.comparison import RankedModel
from car_cost_calculator.data.profiles import PROFILES_DATE, lookup_profile
from car_cost_calculator.models import AffordabilityLevel, CalcInput, CalcResult

LEVEL_LABELS: dict[AffordabilityLevel, str] = {
    AffordabilityLevel.AFFORDABLE: "Affordable",
    AffordabilityLevel.TIGHT: "Tight",
    AffordabilityLevel.RISKY: "Risky",
}


def fmt_money(amount: float) -> str:
    return f"{amount:,.0f}"


def fmt_pct(ratio: float) -> str:
    """Ratio (0.25) as a percentage string (25.0%)."""
    return f"{ratio * 100:.1f}%"


def generate_report_text(
    calc_input: CalcInput,
    result: CalcResult,
    ranked: list[RankedModel] | None = None,
    outcome: AdvisoryOutcome | None = None,
    generated: date | None = None,
) -> str:
    """
    Build the plain-text report. Returns the full report as a single string.
    """
    profile = lookup_profile(calc_input.car.model_key)
    generated = generated or date.today()
    resale_note = "estimated" if result.depreciation.resale_is_estimated else "given"

    lines = [
        "Car Ownership Cost Report",
        f"Generated: {generated.isoformat()}",
        f"Profile data: {PROFILES_DATE}",
        "=" * 60,
        "",
        "CAR",
        f"  Model:             {profile.display_name}",
        f"  Year:              {calc_input.car.year}",
        f"  Mileage:           {fmt_money(calc_input.car.mileage_km)} km",
        f"  Condition:         {calc_input.car.condition.value}",
        f"  Servicing:         {calc_input.maintenance.service_location.value}",
        "",
        "FINANCE",
        f"  Car price:         {fmt_money(calc_input.finance.car_price)}",
        f"  Down payment:      {fmt_money(result.loan.down_payment_amount)} "
        f"({result.loan.down_payment_percent:.1f}%)",
        f"  Principal:         {fmt_money(result.loan.principal)}",
        f"  Term:              {result.loan.months} months",
        f"  Flat interest:     {calc_input.finance.interest_apr_flat:g}% / year",
        f"  Total interest:    {fmt_money(result.loan.total_interest)}",
        "",
        "MONTHLY COSTS",
        f"  Loan payment:      {fmt_money(result.loan.payment_per_month)}",
        f"  Fuel:              {fmt_money(result.fuel.cost_per_month)} "
        f"({result.fuel.liters_per_month:.1f} L)",
        f"  Fixed costs:       {fmt_money(result.fixed_costs.per_month)}",
        f"  Depreciation:      {fmt_money(result.depreciation.per_month)} "
        f"(resale {fmt_money(result.depreciation.expected_resale_price)}, {resale_note})",
        f"  Maintenance:       {fmt_money(result.maintenance.avg_per_month)}",
        f"    Base service:    {fmt_money(result.maintenance.base_service_per_month)}",
        f"    Wear:            {fmt_money(result.maintenance.wear_per_month)}",
        f"    Risk reserve:    {fmt_money(result.maintenance.risk_reserve_per_month)}",
        f"  TOTAL:             {fmt_money(result.total_per_month)}",
        "",
        "RISK ITEMS",
    ]
    if result.maintenance.risk_items:
        for item in result.maintenance.risk_items:
            lines.append(f"  - {item.name:<40} {fmt_money(item.monthly_reserve)} / month")
    else:
        lines.append("  (none triggered at this mileage and model year)")

    lines += [
        "",
        "AFFORDABILITY",
        f"  Monthly income:    {fmt_money(calc_input.income.monthly_income)}",
        f"  Share of income:   {fmt_pct(result.affordability.ratio_to_monthly_income)}",
        f"  Level:             {LEVEL_LABELS[result.affordability.level]}",
    ]

    if ranked:
        lines += ["", "MODEL COMPARISON"]
        for r in ranked:
            lines.append(
                f"  #{r.rank} {r.display_name:<34} "
                f"Total: {fmt_money(r.total_per_month)}  Level: {LEVEL_LABELS[r.level]}"
            )

    if outcome is not None and outcome.verdict is not None:
        verdict = outcome.verdict
        lines += [
            "",
            "AI ADVISORY",
            f"  Verdict:           {verdict.verdict.value} ({verdict.confidence}% confidence)",
            f"  Summary:           {verdict.summary}",
        ]
        if outcome.status is not ParseStatus.PARSED:
            lines.append(f"  Note:              analysis incomplete ({outcome.status.value})")
        for risk in verdict.risks:
            lines.append(f"  Risk:              {risk}")
        for rec in verdict.recommendations:
            lines.append(f"  Recommendation:    {rec}")

    return "\n".join(lines)
