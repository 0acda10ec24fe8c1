"""
Default scenario used to pre-fill the calculator: a 2016 F30 320d with
120,000 km, financed over five years.
"""

from car_cost_calculator.data.profiles import DEFAULT_MODEL_KEY, lookup_profile
from car_cost_calculator.models import (
    CalcInput,
    CarCondition,
    CarInput,
    DepreciationInput,
    FinanceInput,
    FixedCostsInput,
    IncomeInput,
    MaintenanceInput,
    ServiceLocation,
    UsageInput,
)

# ── Car ───────────────────────────────────────────────────────────────────────
DEFAULT_CAR_YEAR = 2016
DEFAULT_MILEAGE_KM = 120_000
DEFAULT_KM_PER_MONTH = 1_200

# ── Income & finance ──────────────────────────────────────────────────────────
DEFAULT_MONTHLY_INCOME = 40_000
DEFAULT_CAR_PRICE = 1_200_000
DEFAULT_DOWN_PAYMENT = 240_000
DEFAULT_MONTHS = 60
DEFAULT_INTEREST_APR_FLAT = 4.0

# ── Running costs ─────────────────────────────────────────────────────────────
DEFAULT_FUEL_PRICE_PER_LITER = 33
DEFAULT_INSURANCE_PER_YEAR = 25_000
DEFAULT_TAX_AND_ACT_PER_YEAR = 6_000
DEFAULT_PARKING_TOLL_PER_MONTH = 1_500

# ── Ownership horizon ─────────────────────────────────────────────────────────
DEFAULT_HOLD_YEARS = 3


def default_input() -> CalcInput:
    """Fresh default scenario; fuel economy and depreciation come from the profile."""
    profile = lookup_profile(DEFAULT_MODEL_KEY)
    return CalcInput(
        income=IncomeInput(monthly_income=DEFAULT_MONTHLY_INCOME),
        finance=FinanceInput(
            car_price=DEFAULT_CAR_PRICE,
            down_payment_amount=DEFAULT_DOWN_PAYMENT,
            months=DEFAULT_MONTHS,
            interest_apr_flat=DEFAULT_INTEREST_APR_FLAT,
        ),
        car=CarInput(
            model_key=DEFAULT_MODEL_KEY,
            year=DEFAULT_CAR_YEAR,
            mileage_km=DEFAULT_MILEAGE_KM,
            condition=CarCondition.NORMAL,
        ),
        usage=UsageInput(
            km_per_month=DEFAULT_KM_PER_MONTH,
            fuel_price_per_liter=DEFAULT_FUEL_PRICE_PER_LITER,
            km_per_liter=profile.defaults.km_per_liter,
        ),
        fixed_costs=FixedCostsInput(
            insurance_per_year=DEFAULT_INSURANCE_PER_YEAR,
            tax_and_act_per_year=DEFAULT_TAX_AND_ACT_PER_YEAR,
            parking_toll_per_month=DEFAULT_PARKING_TOLL_PER_MONTH,
        ),
        depreciation=DepreciationInput(
            hold_years=DEFAULT_HOLD_YEARS,
            expected_resale_price=None,
            depreciation_rate_per_year=profile.defaults.depreciation_rate_per_year,
        ),
        maintenance=MaintenanceInput(
            profile_key=DEFAULT_MODEL_KEY,
            service_location=ServiceLocation.CENTER,
        ),
    )
