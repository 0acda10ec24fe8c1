"""
Model comparison: run the cost engine across every vehicle profile and rank by
total monthly cost.
"""

from dataclasses import dataclass

from car_cost_calculator.calculator import calculate
from car_cost_calculator.data.profiles import MODEL_KEYS, lookup_profile
from car_cost_calculator.models import AffordabilityLevel, CalcInput, CalcResult, ModelKey


@dataclass
class RankedModel:
    rank: int
    model_key: ModelKey
    display_name: str
    total_per_month: float
    maintenance_per_month: float
    risk_reserve_per_month: float
    level: AffordabilityLevel
    result: CalcResult


def compare_models(
    calc_input: CalcInput,
    apply_profile_defaults: bool = True,
) -> list[RankedModel]:
    """
    Run calculate() for every model with the same buyer, finance and usage
    inputs. Returns results sorted ascending by total_per_month (cheapest first).

    The row for the input's own model is calculate(calc_input) unchanged.
    For the other models, apply_profile_defaults switches in each profile's
    fuel economy and depreciation rate; otherwise only the profile key changes.
    """
    results: list[RankedModel] = []

    for model_key in MODEL_KEYS:
        if model_key is calc_input.car.model_key:
            scenario = calc_input
        elif apply_profile_defaults:
            scenario = calc_input.with_profile_defaults(model_key)
        else:
            scenario = calc_input.model_copy(
                update={
                    "car": calc_input.car.model_copy(update={"model_key": model_key}),
                    "maintenance": calc_input.maintenance.model_copy(
                        update={"profile_key": model_key}
                    ),
                }
            )
        result = calculate(scenario)

        results.append(
            RankedModel(
                rank=0,  # assigned after sorting
                model_key=model_key,
                display_name=lookup_profile(model_key).display_name,
                total_per_month=result.total_per_month,
                maintenance_per_month=result.maintenance.avg_per_month,
                risk_reserve_per_month=result.maintenance.risk_reserve_per_month,
                level=result.affordability.level,
                result=result,
            )
        )

    results.sort(key=lambda r: r.total_per_month)
    for i, r in enumerate(results):
        r.rank = i + 1

    return results


def monthly_difference(current: RankedModel, alternative: RankedModel) -> float:
    """
    Extra monthly cost of `alternative` over `current`.
    Negative means the alternative is cheaper.
    """
    return alternative.total_per_month - current.total_per_month
