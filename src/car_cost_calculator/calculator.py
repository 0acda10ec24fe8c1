"""
Core ownership-cost math: flat-rate loan, fuel, fixed costs, depreciation,
maintenance reserves and affordability.

Key conventions:
- Every input is clamped, never rejected. Non-finite numbers count as missing.
- Loan interest is flat: charged once on the original principal for the whole
  term, so the monthly payment is constant (no amortization schedule).
- Depreciation uses the explicit resale price when given; otherwise the
  yearly rate (capped at 40%) is compounded over the holding period.
- The service-location multiplier scales base service AND wear; the
  condition multiplier scales risk reserves only.
- total_per_month is the sum of exactly five components: loan payment, fuel,
  fixed costs, depreciation and average maintenance.
"""

import math

from car_cost_calculator.data.profiles import lookup_profile
from car_cost_calculator.models import (
    Affordability,
    AffordabilityLevel,
    CalcInput,
    CalcResult,
    CarCondition,
    CarInput,
    DepreciationBreakdown,
    DepreciationInput,
    FinanceInput,
    FixedCostsBreakdown,
    FixedCostsInput,
    FuelBreakdown,
    LoanBreakdown,
    MaintenanceBreakdown,
    MaintenanceInput,
    ServiceLocation,
    TriggeredRiskItem,
    UsageInput,
)

SERVICE_LOCATION_MULTIPLIERS: dict[ServiceLocation, float] = {
    ServiceLocation.CENTER: 1.0,
    ServiceLocation.OUTSIDE: 0.65,
}

CONDITION_RISK_MULTIPLIERS: dict[CarCondition, float] = {
    CarCondition.EXCELLENT: 0.7,
    CarCondition.NORMAL: 1.0,
    CarCondition.POOR: 1.5,
}

MAX_DEPRECIATION_RATE_PCT = 40.0
MIN_KM_PER_LITER = 0.1
MIN_HOLD_YEARS = 0.5
MIN_MONTHLY_INCOME = 1.0

# Upper bounds of each affordability band (inclusive)
AFFORDABLE_MAX_RATIO = 0.18
TIGHT_MAX_RATIO = 0.28


def _finite(value: float | None, default: float = 0.0) -> float:
    """Replace None/NaN/inf with `default`."""
    if value is None or not math.isfinite(value):
        return default
    return float(value)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def compute_loan(finance: FinanceInput) -> LoanBreakdown:
    """
    Flat-rate loan.

    Down payment is capped into [0, car_price]; months are floored to a whole
    number and at least 1.
    """
    car_price = max(0.0, _finite(finance.car_price))
    down_payment = _clamp(max(0.0, _finite(finance.down_payment_amount)), 0.0, car_price)
    down_payment_percent = down_payment / car_price * 100 if car_price > 0 else 0.0
    principal = car_price - down_payment

    months = max(1, math.floor(_finite(finance.months, 1.0)))
    years = months / 12

    apr = max(0.0, _finite(finance.interest_apr_flat)) / 100
    total_interest = principal * apr * years
    total_payable = principal + total_interest

    return LoanBreakdown(
        down_payment_amount=down_payment,
        down_payment_percent=down_payment_percent,
        principal=principal,
        months=months,
        years=years,
        total_interest=total_interest,
        total_payable=total_payable,
        payment_per_month=total_payable / months,
    )


def compute_fuel(usage: UsageInput) -> FuelBreakdown:
    km_per_month = max(0.0, _finite(usage.km_per_month))
    # Floor avoids dividing by zero for a blank economy figure
    km_per_liter = max(MIN_KM_PER_LITER, _finite(usage.km_per_liter))
    liters_per_month = km_per_month / km_per_liter
    return FuelBreakdown(
        km_per_month=km_per_month,
        liters_per_month=liters_per_month,
        cost_per_month=liters_per_month * max(0.0, _finite(usage.fuel_price_per_liter)),
    )


def compute_fixed_costs(fixed: FixedCostsInput) -> FixedCostsBreakdown:
    per_month = (
        max(0.0, _finite(fixed.insurance_per_year)) / 12
        + max(0.0, _finite(fixed.tax_and_act_per_year)) / 12
        + max(0.0, _finite(fixed.parking_toll_per_month))
    )
    return FixedCostsBreakdown(per_month=per_month)


def estimate_resale_by_rate(
    car_price: float,
    rate_pct_per_year: float,
    hold_years: float,
) -> float:
    """
    Resale value after compounding yearly decay:
        price * (1 - rate)^years,  rate capped at 40% per year.
    """
    rate = _clamp(_finite(rate_pct_per_year), 0.0, MAX_DEPRECIATION_RATE_PCT) / 100
    return car_price * (1 - rate) ** hold_years


def compute_depreciation(
    depreciation: DepreciationInput,
    car_price: float,
) -> DepreciationBreakdown:
    """
    Monthly loss of value over the holding period (at least half a year).

    `car_price` is the already-clamped purchase price.
    """
    hold_years = max(MIN_HOLD_YEARS, _finite(depreciation.hold_years, MIN_HOLD_YEARS))
    hold_months = hold_years * 12

    explicit = depreciation.expected_resale_price
    if explicit is not None and math.isfinite(explicit):
        resale = max(0.0, explicit)
        estimated = False
    else:
        resale = estimate_resale_by_rate(
            car_price, depreciation.depreciation_rate_per_year, hold_years
        )
        estimated = True

    return DepreciationBreakdown(
        hold_years=hold_years,
        expected_resale_price=resale,
        resale_is_estimated=estimated,
        per_month=(car_price - resale) / hold_months,
    )


def compute_maintenance(
    maintenance: MaintenanceInput,
    car: CarInput,
    km_per_month: float,
) -> MaintenanceBreakdown:
    """
    Average monthly maintenance = base service + wear + triggered risk reserves.

    Base service and wear scale with where the car is serviced. Each risk
    item whose mileage/year bounds all hold for this car contributes the
    midpoint of its reserve range, scaled by the car's condition.
    """
    profile = lookup_profile(maintenance.profile_key)

    service_multiplier = SERVICE_LOCATION_MULTIPLIERS[maintenance.service_location]
    base_service = max(0.0, profile.defaults.base_service_per_year) / 12 * service_multiplier
    wear = (
        (max(0.0, profile.wear_items.tires_per_km) + max(0.0, profile.wear_items.brakes_per_km))
        * km_per_month
        * service_multiplier
    )

    condition_multiplier = CONDITION_RISK_MULTIPLIERS[car.condition]
    # Infinite mileage compares against the bounds as is; NaN counts as 0 km
    mileage_km = 0.0 if math.isnan(car.mileage_km) else car.mileage_km
    risk_items = [
        TriggeredRiskItem(
            name=item.name,
            monthly_reserve=item.monthly_reserve_mid * condition_multiplier,
        )
        for item in profile.risk_items
        if item.is_triggered(car.year, mileage_km)
    ]
    risk_reserve = sum(item.monthly_reserve for item in risk_items)

    return MaintenanceBreakdown(
        base_service_per_month=base_service,
        wear_per_month=wear,
        risk_reserve_per_month=risk_reserve,
        avg_per_month=base_service + wear + risk_reserve,
        risk_items=risk_items,
        service_location_multiplier=service_multiplier,
        condition_multiplier=condition_multiplier,
    )


def classify_affordability(ratio: float) -> AffordabilityLevel:
    """
    Map cost/income ratio to a band (upper bound inclusive):
      <= 0.18 -> affordable
      <= 0.28 -> tight
      else    -> risky
    """
    if ratio <= AFFORDABLE_MAX_RATIO:
        return AffordabilityLevel.AFFORDABLE
    if ratio <= TIGHT_MAX_RATIO:
        return AffordabilityLevel.TIGHT
    return AffordabilityLevel.RISKY


def calculate(calc_input: CalcInput) -> CalcResult:
    """
    Full monthly ownership cost and affordability for one scenario.
    Pure function: same input, same result; no I/O.
    """
    loan = compute_loan(calc_input.finance)
    fuel = compute_fuel(calc_input.usage)
    fixed_costs = compute_fixed_costs(calc_input.fixed_costs)

    car_price = max(0.0, _finite(calc_input.finance.car_price))
    depreciation = compute_depreciation(calc_input.depreciation, car_price)

    maintenance = compute_maintenance(
        calc_input.maintenance, calc_input.car, fuel.km_per_month
    )

    total_per_month = (
        loan.payment_per_month
        + fuel.cost_per_month
        + fixed_costs.per_month
        + depreciation.per_month
        + maintenance.avg_per_month
    )

    monthly_income = max(
        MIN_MONTHLY_INCOME, _finite(calc_input.income.monthly_income, MIN_MONTHLY_INCOME)
    )
    ratio = total_per_month / monthly_income

    return CalcResult(
        loan=loan,
        fuel=fuel,
        fixed_costs=fixed_costs,
        depreciation=depreciation,
        maintenance=maintenance,
        affordability=Affordability(
            ratio_to_monthly_income=ratio,
            level=classify_affordability(ratio),
        ),
        total_per_month=total_per_month,
    )
