"""
Interactive Rich CLI for the Car Ownership Cost Calculator.

Flow:
  1. Banner (profile data date + staleness warning)
  2. Optional snapshot load
  3. Input prompts (choosing a model applies its defaults)
  4. Monthly breakdown + triggered risk items
  5. Same inputs across all models
  6. Optional AI prefill (merge on confirm, then recompute)
  7. Optional AI analysis
  8. Optional snapshot save, report and chart export
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from car_cost_calculator.advisory import AdvisoryClient, AdvisoryOutcome, ParseStatus, Verdict
from car_cost_calculator.calculator import calculate
from car_cost_calculator.charts import build_breakdown_figure, build_comparison_figure, save_figure
from car_cost_calculator.comparison import RankedModel, compare_models, monthly_difference
from car_cost_calculator.config import Settings, get_settings
from car_cost_calculator.data.defaults import default_input
from car_cost_calculator.data.profiles import MODEL_KEYS, PROFILES_DATE, lookup_profile
from car_cost_calculator.errors import AdvisoryUnavailable
from car_cost_calculator.models import (
    AffordabilityLevel,
    CalcInput,
    CalcResult,
    CarCondition,
    CarInput,
    DepreciationInput,
    FinanceInput,
    FixedCostsInput,
    IncomeInput,
    MaintenanceInput,
    ModelKey,
    ServiceLocation,
    UsageInput,
)
from car_cost_calculator.prefill import PrefillClient, PrefillSource, merge_suggestions
from car_cost_calculator.report import LEVEL_LABELS, fmt_money, fmt_pct, generate_report_text
from car_cost_calculator.snapshots import SnapshotStore

console = Console()

LEVEL_STYLES = {
    AffordabilityLevel.AFFORDABLE: "green",
    AffordabilityLevel.TIGHT: "yellow",
    AffordabilityLevel.RISKY: "red",
}

VERDICT_STYLES = {
    Verdict.BUY: "bold green",
    Verdict.RECONSIDER: "bold yellow",
    Verdict.DO_NOT_BUY: "bold red",
}


# ── Step 1: Banner ────────────────────────────────────────────────────────────

def show_banner(settings: Settings) -> None:
    profiles_date = datetime.strptime(PROFILES_DATE, "%Y-%m-%d").date()
    age_days = (date.today() - profiles_date).days

    title = Text("Car Ownership Cost Calculator", style="bold cyan")
    ai_state = "enabled" if settings.LLM_API_KEY else "disabled (LLM_API_KEY not set)"
    subtitle = Text(f"Profile data as of {PROFILES_DATE}  |  AI features: {ai_state}", style="dim")

    staleness = ""
    if age_days > 365:
        staleness = (
            f"\n[bold red]WARNING:[/bold red] Profile data is {age_days} days old. "
            "Repair reserves and fuel economy figures may be out of date."
        )
    elif age_days > 180:
        staleness = f"\n[yellow]Note:[/yellow] Profile data is {age_days} days old."

    body = f"[bold]{title}[/bold]\n{subtitle}{staleness}"
    console.print(Panel(body, expand=False, border_style="cyan"))
    console.print()


# ── Step 2: Snapshot load ─────────────────────────────────────────────────────

def choose_starting_input(store: SnapshotStore) -> CalcInput:
    snapshots = store.list_snapshots()
    if not snapshots or not Confirm.ask("  Load a saved snapshot?", default=False):
        return default_input()

    table = Table(title="Saved Snapshots", border_style="blue")
    table.add_column("Id", style="dim")
    table.add_column("Name")
    table.add_column("Saved", justify="right")
    table.add_column("Model")
    for s in snapshots:
        saved = datetime.fromtimestamp(s.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        table.add_row(s.id, s.name, saved, lookup_profile(s.data.car.model_key).display_name)
    console.print(table)

    snapshot_id = Prompt.ask(
        "  Snapshot id", choices=[s.id for s in snapshots], default=snapshots[-1].id
    )
    snapshot = store.get(snapshot_id)
    console.print(f"  [green]Loaded '{snapshot.name}'[/green]\n")
    return snapshot.data


# ── Step 3: Input prompts ─────────────────────────────────────────────────────

def _prompt_resale(current: float | None) -> float | None:
    default = "" if current is None else f"{current:.0f}"
    while True:
        raw = Prompt.ask(
            "  Expected resale price (blank = estimate from depreciation rate)",
            default=default,
            show_default=bool(default),
        ).strip()
        if not raw:
            return None
        try:
            return float(raw.replace(",", ""))
        except ValueError:
            console.print("[red]Enter a number or leave blank.[/red]")


def prompt_calc_input(base: CalcInput) -> CalcInput:
    console.print("[bold]Step 1: Car[/bold]\n")

    for key in MODEL_KEYS:
        console.print(f"  [dim]{key.value:<14}[/dim] {lookup_profile(key).display_name}")
    model_key = ModelKey(
        Prompt.ask(
            "  Model",
            choices=[k.value for k in MODEL_KEYS],
            default=base.car.model_key.value,
        )
    )
    if model_key is not base.car.model_key:
        base = base.with_profile_defaults(model_key)
        console.print(f"  [dim]Applied {model_key.value} defaults for fuel economy and depreciation.[/dim]")
    console.print(f"  [dim]{lookup_profile(model_key).notes}[/dim]")

    year = IntPrompt.ask("  Model year", default=base.car.year)
    mileage = FloatPrompt.ask("  Mileage (km)", default=base.car.mileage_km)
    condition = Prompt.ask(
        "  Condition",
        choices=[c.value for c in CarCondition],
        default=base.car.condition.value,
    )
    service_location = Prompt.ask(
        "  Servicing (center = dealer, outside = independent)",
        choices=[s.value for s in ServiceLocation],
        default=base.maintenance.service_location.value,
    )

    console.print("\n[bold]Step 2: Income & Finance[/bold]\n")
    monthly_income = FloatPrompt.ask("  Monthly income", default=base.income.monthly_income)
    car_price = FloatPrompt.ask("  Car price", default=base.finance.car_price)
    down_payment = FloatPrompt.ask("  Down payment", default=base.finance.down_payment_amount)
    months = IntPrompt.ask("  Loan term (months)", default=int(base.finance.months))
    apr = FloatPrompt.ask("  Flat interest (% per year)", default=base.finance.interest_apr_flat)

    console.print("\n[bold]Step 3: Usage & Fixed Costs[/bold]\n")
    km_per_month = FloatPrompt.ask("  Distance per month (km)", default=base.usage.km_per_month)
    fuel_price = FloatPrompt.ask("  Fuel price per liter", default=base.usage.fuel_price_per_liter)
    km_per_liter = FloatPrompt.ask("  Fuel economy (km/L)", default=base.usage.km_per_liter)
    insurance = FloatPrompt.ask(
        "  Insurance per year", default=base.fixed_costs.insurance_per_year
    )
    tax_and_act = FloatPrompt.ask(
        "  Road tax + compulsory insurance per year", default=base.fixed_costs.tax_and_act_per_year
    )
    parking = FloatPrompt.ask(
        "  Parking + tolls per month", default=base.fixed_costs.parking_toll_per_month
    )

    console.print("\n[bold]Step 4: Depreciation[/bold]\n")
    hold_years = FloatPrompt.ask("  Years you plan to keep the car", default=base.depreciation.hold_years)
    rate = FloatPrompt.ask(
        "  Depreciation rate (% per year, capped at 40)",
        default=base.depreciation.depreciation_rate_per_year,
    )
    resale = _prompt_resale(base.depreciation.expected_resale_price)
    console.print()

    return CalcInput(
        income=IncomeInput(monthly_income=monthly_income),
        finance=FinanceInput(
            car_price=car_price,
            down_payment_amount=down_payment,
            months=months,
            interest_apr_flat=apr,
        ),
        car=CarInput(
            model_key=model_key,
            year=year,
            mileage_km=mileage,
            condition=CarCondition(condition),
        ),
        usage=UsageInput(
            km_per_month=km_per_month,
            fuel_price_per_liter=fuel_price,
            km_per_liter=km_per_liter,
        ),
        fixed_costs=FixedCostsInput(
            insurance_per_year=insurance,
            tax_and_act_per_year=tax_and_act,
            parking_toll_per_month=parking,
        ),
        depreciation=DepreciationInput(
            hold_years=hold_years,
            expected_resale_price=resale,
            depreciation_rate_per_year=rate,
        ),
        maintenance=MaintenanceInput(
            profile_key=model_key,
            service_location=ServiceLocation(service_location),
        ),
    )


# ── Step 4: Breakdown ─────────────────────────────────────────────────────────

def show_breakdown(calc_input: CalcInput, result: CalcResult) -> None:
    console.print("[bold]Monthly Cost Breakdown[/bold]\n")

    loan = result.loan
    dep = result.depreciation
    maint = result.maintenance
    level = result.affordability.level
    style = LEVEL_STYLES[level]
    resale_note = "estimated" if dep.resale_is_estimated else "given"

    text = (
        f"  Loan payment:            {fmt_money(loan.payment_per_month)}\n"
        f"    [dim]principal {fmt_money(loan.principal)} ({100 - loan.down_payment_percent:.1f}% financed), "
        f"{loan.months} months, interest {fmt_money(loan.total_interest)}[/dim]\n"
        f"  Fuel:                    {fmt_money(result.fuel.cost_per_month)}\n"
        f"    [dim]{result.fuel.liters_per_month:.1f} L per month[/dim]\n"
        f"  Fixed costs:             {fmt_money(result.fixed_costs.per_month)}\n"
        f"  Depreciation:            {fmt_money(dep.per_month)}\n"
        f"    [dim]resale {fmt_money(dep.expected_resale_price)} ({resale_note}) "
        f"after {dep.hold_years:g} years[/dim]\n"
        f"  Maintenance:             {fmt_money(maint.avg_per_month)}\n"
        f"    [dim]base {fmt_money(maint.base_service_per_month)}  "
        f"wear {fmt_money(maint.wear_per_month)}  "
        f"risk reserve {fmt_money(maint.risk_reserve_per_month)}[/dim]\n"
        f"  ─────────────────────────────────────\n"
        f"  Total per month:         [bold]{fmt_money(result.total_per_month)}[/bold]\n\n"
        f"  Share of income:         [{style}]{fmt_pct(result.affordability.ratio_to_monthly_income)}"
        f"  ({LEVEL_LABELS[level]})[/{style}]"
    )
    title = lookup_profile(calc_input.car.model_key).display_name
    console.print(Panel(text, title=title, border_style=style))

    if maint.risk_items:
        table = Table(title="Triggered Risk Items", border_style="red")
        table.add_column("Item")
        table.add_column("Reserve / month", justify="right")
        for item in maint.risk_items:
            table.add_row(item.name, fmt_money(item.monthly_reserve))
        console.print(table)
        console.print(
            f"  [dim]Reserves scaled by condition x{maint.condition_multiplier:g}[/dim]"
        )
    else:
        console.print("  [dim]No risk items triggered at this mileage and model year.[/dim]")
    console.print()


# ── Step 5: Model comparison ──────────────────────────────────────────────────

def show_comparison_table(ranked: list[RankedModel], current_key: ModelKey) -> None:
    console.print("[bold]Same Inputs, Every Model[/bold]\n")

    current = next(r for r in ranked if r.model_key is current_key)

    table = Table(
        title="All Models Ranked by Total Monthly Cost",
        border_style="blue",
        show_lines=True,
    )
    table.add_column("Rank", justify="center", style="bold")
    table.add_column("Model", min_width=22)
    table.add_column("Total / month", justify="right")
    table.add_column("Maintenance", justify="right")
    table.add_column("Risk reserve", justify="right")
    table.add_column("vs yours", justify="right")
    table.add_column("Level")

    for r in ranked:
        is_current = r.model_key is current_key
        is_cheapest = r.rank == 1

        style = ""
        if is_cheapest and is_current:
            style = "bold green"
        elif is_cheapest:
            style = "green"
        elif is_current:
            style = "bold cyan"

        rank_str = f"#{r.rank}"
        if is_cheapest:
            rank_str += " ★"

        diff = monthly_difference(current, r)
        diff_str = "—" if is_current else f"{diff:+,.0f}"

        table.add_row(
            rank_str,
            r.display_name,
            fmt_money(r.total_per_month),
            fmt_money(r.maintenance_per_month),
            fmt_money(r.risk_reserve_per_month),
            diff_str,
            LEVEL_LABELS[r.level],
            style=style,
        )

    console.print(table)
    console.print(
        "  [dim]★ = cheapest  |  cyan = your model  |  "
        "each model uses its own fuel economy and depreciation defaults[/dim]"
    )
    console.print()


# ── Step 6: AI prefill ────────────────────────────────────────────────────────

def offer_prefill(calc_input: CalcInput, settings: Settings) -> CalcInput | None:
    """Returns the merged input if the user accepts suggestions, else None."""
    if not Confirm.ask("  Ask AI to suggest fuel economy, insurance and depreciation?", default=False):
        return None

    try:
        with console.status("Requesting suggestions..."):
            outcome = PrefillClient(settings).suggest(calc_input)
    except AdvisoryUnavailable as e:
        console.print(f"  [red]AI suggestions unavailable: {e.reason}[/red]\n")
        return None

    s = outcome.suggestions
    if outcome.source is PrefillSource.REASONING_RAW:
        console.print(
            Panel(s.explanation or "", title="AI reasoning (no values found)", border_style="dim")
        )
        return None

    table = Table(title="Suggested Inputs", border_style="magenta")
    table.add_column("Field")
    table.add_column("Current", justify="right")
    table.add_column("Suggested", justify="right")
    rows = [
        ("Fuel economy (km/L)", calc_input.usage.km_per_liter, s.km_per_liter),
        ("Insurance per year", calc_input.fixed_costs.insurance_per_year, s.insurance_per_year),
        (
            "Depreciation (% / year)",
            calc_input.depreciation.depreciation_rate_per_year,
            s.depreciation_rate_per_year,
        ),
        ("Parking + tolls / month", calc_input.fixed_costs.parking_toll_per_month, s.parking_toll_per_month),
    ]
    for label, current, suggested in rows:
        table.add_row(label, f"{current:,.1f}", "—" if suggested is None else f"{suggested:,.1f}")
    console.print(table)
    if s.explanation:
        console.print(f"  [dim]{s.explanation}[/dim]")
    if outcome.status is ParseStatus.PARTIAL:
        console.print("  [yellow]Values were read from the model's reasoning; check them.[/yellow]")

    if not s.has_values or not Confirm.ask("  Apply these suggestions?", default=True):
        return None
    return merge_suggestions(calc_input, s)


# ── Step 7: AI analysis ───────────────────────────────────────────────────────

def offer_analysis(
    calc_input: CalcInput, result: CalcResult, settings: Settings
) -> AdvisoryOutcome | None:
    if not Confirm.ask("  Ask AI for a buy / reconsider verdict?", default=False):
        return None

    try:
        with console.status("Requesting analysis..."):
            outcome = AdvisoryClient(settings).analyze(calc_input, result)
    except AdvisoryUnavailable as e:
        console.print(f"  [red]Analysis incomplete: {e.reason}[/red]")
        console.print("  [dim]The cost breakdown above is unaffected.[/dim]\n")
        return None

    v = outcome.verdict
    style = VERDICT_STYLES[v.verdict]
    lines = [
        f"[{style}]{v.verdict.value.upper()}[/{style}]  ({v.confidence}% confidence)",
        "",
        v.summary,
    ]
    if v.detailed_analysis:
        lines += ["", v.detailed_analysis]
    if v.risks:
        lines += ["", "[bold]Risks[/bold]"] + [f"  • {r}" for r in v.risks]
    if v.recommendations:
        lines += ["", "[bold]Recommendations[/bold]"] + [f"  • {r}" for r in v.recommendations]
    if v.comparison_with_standard:
        lines += ["", f"[dim]{v.comparison_with_standard}[/dim]"]
    if outcome.status is not ParseStatus.PARSED:
        lines += ["", f"[yellow]Analysis incomplete: {outcome.note or outcome.status.value}[/yellow]"]

    console.print(Panel("\n".join(lines), title="AI Advisory", border_style="magenta"))
    console.print()
    return outcome


# ── Step 8: Save + export ─────────────────────────────────────────────────────

def offer_snapshot_save(store: SnapshotStore, calc_input: CalcInput) -> None:
    if not Confirm.ask("  Save these inputs as a snapshot?", default=False):
        return
    name = Prompt.ask("  Snapshot name (blank = automatic)", default="", show_default=False)
    snapshot = store.save(calc_input, name=name)
    console.print(f"  [green]Saved '{snapshot.name}' to {store.path}[/green]")


def export_report(
    calc_input: CalcInput,
    result: CalcResult,
    ranked: list[RankedModel],
    outcome: AdvisoryOutcome | None = None,
) -> None:
    path = Path(Prompt.ask("  Output file path", default="car_cost_report.txt"))
    path.write_text(
        generate_report_text(calc_input, result, ranked=ranked, outcome=outcome),
        encoding="utf-8",
    )
    console.print(f"  [green]Report saved to {path.resolve()}[/green]")


def export_charts(result: CalcResult, ranked: list[RankedModel]) -> None:
    path = Path(Prompt.ask("  Breakdown chart path", default="car_cost_breakdown.png"))
    saved = save_figure(build_breakdown_figure(result), path)
    comparison = save_figure(
        build_comparison_figure(ranked), saved.with_name(f"{saved.stem}_models{saved.suffix}")
    )
    console.print(f"  [green]Charts saved to {saved.resolve()} and {comparison.resolve()}[/green]")


# ── Main entry point ──────────────────────────────────────────────────────────

def _evaluate(calc_input: CalcInput) -> tuple[CalcResult, list[RankedModel]]:
    result = calculate(calc_input)
    show_breakdown(calc_input, result)
    ranked = compare_models(calc_input)
    show_comparison_table(ranked, calc_input.car.model_key)
    return result, ranked


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    try:
        show_banner(settings)

        store = SnapshotStore(settings.SNAPSHOT_PATH)
        calc_input = prompt_calc_input(choose_starting_input(store))
        result, ranked = _evaluate(calc_input)

        outcome = None
        if settings.LLM_API_KEY:
            merged = offer_prefill(calc_input, settings)
            if merged is not None:
                calc_input = merged
                console.print("[dim]Recomputing with suggested inputs...[/dim]\n")
                result, ranked = _evaluate(calc_input)
            outcome = offer_analysis(calc_input, result, settings)
        else:
            console.print("  [dim]AI features disabled: set LLM_API_KEY to enable.[/dim]\n")

        offer_snapshot_save(store, calc_input)

        console.print()
        if Confirm.ask("  Export plain-text report?", default=False):
            export_report(calc_input, result, ranked, outcome)
        if Confirm.ask("  Export charts?", default=False):
            export_charts(result, ranked)

        console.print("\n[bold cyan]Done.[/bold cyan]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
