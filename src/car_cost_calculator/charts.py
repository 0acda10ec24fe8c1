"""
Matplotlib figures for the cost breakdown and model comparison.

Figures are built with matplotlib.figure.Figure directly (no pyplot state),
so they can be saved headless from the CLI or embedded by any front end.
"""

from pathlib import Path

from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter

from car_cost_calculator.comparison import RankedModel
from car_cost_calculator.models import AffordabilityLevel, CalcResult

COMPONENT_COLORS = {
    "Loan": "#6baed6",
    "Fuel": "#f4a460",
    "Fixed costs": "#9e9ac8",
    "Depreciation": "#fd8d3c",
    "Maintenance": "#74c476",
}

MAINTENANCE_COLORS = {
    "Base service": "#74c476",
    "Wear": "#a1d99b",
    "Risk reserve": "#d9534f",
}

LEVEL_COLORS = {
    AffordabilityLevel.AFFORDABLE: "#2ca02c",
    AffordabilityLevel.TIGHT: "#ff7f0e",
    AffordabilityLevel.RISKY: "#d62728",
}


def _money_fmt(x: float, _: object) -> str:
    """Compact axis label: 1,500,000 → '1.5M', 25,000 → '25k', 800 → '800'."""
    if abs(x) >= 1_000_000:
        return f"{x / 1_000_000:.1f}M"
    if abs(x) >= 1_000:
        return f"{x / 1_000:.0f}k"
    return f"{x:.0f}"


def breakdown_components(result: CalcResult) -> dict[str, float]:
    """The five monthly components in display order. They sum to the total."""
    return {
        "Loan": result.loan.payment_per_month,
        "Fuel": result.fuel.cost_per_month,
        "Fixed costs": result.fixed_costs.per_month,
        "Depreciation": result.depreciation.per_month,
        "Maintenance": result.maintenance.avg_per_month,
    }


# ── Monthly breakdown ─────────────────────────────────────────────────────────

def build_breakdown_figure(result: CalcResult) -> Figure:
    """
    Two panels:
      - Left:  one horizontal bar per monthly component, total in the title
      - Right: maintenance split into base service, wear and risk reserve
    """
    fig = Figure(figsize=(10, 4), constrained_layout=True)
    ax_total, ax_maint = fig.subplots(1, 2, width_ratios=[2, 1])

    components = breakdown_components(result)
    labels = list(components)
    values = list(components.values())
    y = range(len(labels))
    ax_total.barh(y, values, color=[COMPONENT_COLORS[k] for k in labels])
    ax_total.set_yticks(list(y))
    ax_total.set_yticklabels(labels)
    ax_total.invert_yaxis()
    ax_total.set_xlabel("Per month")
    ax_total.set_title(f"Monthly cost: {result.total_per_month:,.0f}")
    ax_total.xaxis.set_major_formatter(FuncFormatter(_money_fmt))

    maint = result.maintenance
    split = {
        "Base service": maint.base_service_per_month,
        "Wear": maint.wear_per_month,
        "Risk reserve": maint.risk_reserve_per_month,
    }
    left = 0.0
    for name, value in split.items():
        ax_maint.barh([0], [value], left=left, label=name, color=MAINTENANCE_COLORS[name])
        left += value
    ax_maint.set_yticks([])
    ax_maint.set_xlabel("Per month")
    ax_maint.set_title("Maintenance split")
    ax_maint.xaxis.set_major_formatter(FuncFormatter(_money_fmt))
    ax_maint.legend(loc="upper right", fontsize=8)

    return fig


# ── Model comparison ──────────────────────────────────────────────────────────

def build_comparison_figure(ranked: list[RankedModel]) -> Figure:
    """One bar per model, cheapest first, coloured by affordability level."""
    fig = Figure(figsize=(10, 4), constrained_layout=True)
    ax = fig.add_subplot(111)

    x = range(len(ranked))
    ax.bar(
        x,
        [r.total_per_month for r in ranked],
        color=[LEVEL_COLORS[r.level] for r in ranked],
    )
    ax.set_xticks(list(x))
    ax.set_xticklabels([f"#{r.rank} {r.display_name}" for r in ranked], fontsize=8, rotation=20)
    ax.set_ylabel("Total per month")
    ax.set_title("Same inputs across all models")
    ax.yaxis.set_major_formatter(FuncFormatter(_money_fmt))

    return fig


def save_figure(fig: Figure, path: Path | str) -> Path:
    """Write `fig` to `path`; the format follows the file extension."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path)
    return path
