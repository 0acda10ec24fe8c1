"""Pydantic v2 models for the car cost calculator."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ModelKey(str, Enum):
    F30_320D = "F30_320D"
    F30_328I = "F30_328I"
    G20_330E = "G20_330E"
    F10_520D = "F10_520D"
    F48_X1_20D = "F48_X1_20D"
    G01_X3_20D = "G01_X3_20D"


class CarCondition(str, Enum):
    EXCELLENT = "excellent"
    NORMAL = "normal"
    POOR = "poor"


class ServiceLocation(str, Enum):
    CENTER = "center"      # Dealer service centre
    OUTSIDE = "outside"    # Independent garage


class AffordabilityLevel(str, Enum):
    AFFORDABLE = "affordable"
    TIGHT = "tight"
    RISKY = "risky"


# ── Reference data ────────────────────────────────────────────────────────────

class RiskItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    min_mileage_km: float | None = None   # Trigger bounds, inclusive;
    max_mileage_km: float | None = None   # None = no constraint on that side
    min_year: int | None = None
    max_year: int | None = None
    monthly_reserve_min: float            # Currency / month
    monthly_reserve_max: float
    note: str | None = None

    def is_triggered(self, car_year: int, mileage_km: float) -> bool:
        """True iff every defined bound holds for this car."""
        if self.min_mileage_km is not None and mileage_km < self.min_mileage_km:
            return False
        if self.max_mileage_km is not None and mileage_km > self.max_mileage_km:
            return False
        if self.min_year is not None and car_year < self.min_year:
            return False
        if self.max_year is not None and car_year > self.max_year:
            return False
        return True

    @property
    def monthly_reserve_mid(self) -> float:
        return (self.monthly_reserve_min + self.monthly_reserve_max) / 2


class ProfileDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    km_per_liter: float
    depreciation_rate_per_year: float     # Percent, not clamped here
    base_service_per_year: float


class WearItems(BaseModel):
    model_config = ConfigDict(frozen=True)

    tires_per_km: float                   # Currency per km, averaged
    brakes_per_km: float


class VehicleProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_name: str
    notes: str
    defaults: ProfileDefaults
    wear_items: WearItems
    risk_items: tuple[RiskItem, ...] = ()


# ── Calculation input ─────────────────────────────────────────────────────────

class InputModel(BaseModel):
    # NaN and inf are written to JSON as NaN / Infinity, not null
    model_config = ConfigDict(ser_json_inf_nan="constants")


class IncomeInput(InputModel):
    monthly_income: float
    annual_income: float | None = None    # None or <= 0 -> 12 x monthly

    @property
    def effective_annual_income(self) -> float:
        if self.annual_income is not None and self.annual_income > 0:
            return self.annual_income
        return self.monthly_income * 12


class FinanceInput(InputModel):
    car_price: float
    down_payment_amount: float
    months: float                         # Floored to a whole month >= 1
    interest_apr_flat: float              # Percent per year, flat rate


class CarInput(InputModel):
    model_key: ModelKey
    year: int                             # Model year of the car
    mileage_km: float
    condition: CarCondition = CarCondition.NORMAL


class UsageInput(InputModel):
    km_per_month: float
    fuel_price_per_liter: float
    km_per_liter: float


class FixedCostsInput(InputModel):
    insurance_per_year: float = 0.0
    tax_and_act_per_year: float = 0.0
    parking_toll_per_month: float = 0.0


class DepreciationInput(InputModel):
    hold_years: float
    expected_resale_price: float | None = None   # None -> estimated by rate
    depreciation_rate_per_year: float = 0.0      # Percent, capped at 40 by engine


class MaintenanceInput(InputModel):
    profile_key: ModelKey
    service_location: ServiceLocation = ServiceLocation.CENTER


class CalcInput(InputModel):
    income: IncomeInput
    finance: FinanceInput
    car: CarInput
    usage: UsageInput
    fixed_costs: FixedCostsInput = Field(default_factory=FixedCostsInput)
    depreciation: DepreciationInput
    maintenance: MaintenanceInput

    def with_profile_defaults(self, model_key: ModelKey | str) -> "CalcInput":
        """
        Copy of this input switched to another model, with that model's
        fuel economy and depreciation rate filled in.
        """
        from car_cost_calculator.data.profiles import lookup_profile

        profile = lookup_profile(model_key)
        key = ModelKey(model_key)
        return self.model_copy(
            update={
                "car": self.car.model_copy(update={"model_key": key}),
                "maintenance": self.maintenance.model_copy(update={"profile_key": key}),
                "usage": self.usage.model_copy(
                    update={"km_per_liter": profile.defaults.km_per_liter}
                ),
                "depreciation": self.depreciation.model_copy(
                    update={
                        "depreciation_rate_per_year": profile.defaults.depreciation_rate_per_year
                    }
                ),
            }
        )


# ── Calculation result ────────────────────────────────────────────────────────

class LoanBreakdown(BaseModel):
    down_payment_amount: float       # After clamping into [0, car_price]
    down_payment_percent: float
    principal: float
    months: int
    years: float
    total_interest: float            # Flat: principal * apr * years
    total_payable: float
    payment_per_month: float


class FuelBreakdown(BaseModel):
    km_per_month: float
    liters_per_month: float
    cost_per_month: float


class FixedCostsBreakdown(BaseModel):
    per_month: float


class DepreciationBreakdown(BaseModel):
    hold_years: float
    expected_resale_price: float
    resale_is_estimated: bool        # True when derived from the yearly rate
    per_month: float


class TriggeredRiskItem(BaseModel):
    name: str
    monthly_reserve: float           # Mid-range reserve * condition multiplier


class MaintenanceBreakdown(BaseModel):
    base_service_per_month: float
    wear_per_month: float
    risk_reserve_per_month: float
    avg_per_month: float             # base + wear + risk reserve
    risk_items: list[TriggeredRiskItem]
    service_location_multiplier: float
    condition_multiplier: float


class Affordability(BaseModel):
    ratio_to_monthly_income: float
    level: AffordabilityLevel


class CalcResult(BaseModel):
    loan: LoanBreakdown
    fuel: FuelBreakdown
    fixed_costs: FixedCostsBreakdown
    depreciation: DepreciationBreakdown
    maintenance: MaintenanceBreakdown
    affordability: Affordability
    total_per_month: float           # Sum of the five monthly components only
