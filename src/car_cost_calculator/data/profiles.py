"""
Hardcoded vehicle profiles: fuel economy, depreciation and maintenance
reference data per supported model.
Update these values when service prices change.
"""

from types import MappingProxyType

from car_cost_calculator.errors import ConfigurationError, UnknownProfileError
from car_cost_calculator.models import (
    ModelKey,
    ProfileDefaults,
    RiskItem,
    VehicleProfile,
    WearItems,
)

PROFILES_DATE = "2026-01-15"

# ── Profile table ─────────────────────────────────────────────────────────────
# Wear rates are averaged currency per km over a full replacement cycle.
# Risk reserves are monthly ranges; the engine reserves the midpoint once a
# mileage/year trigger is crossed.

_PROFILES: dict[ModelKey, VehicleProfile] = {
    ModelKey.F30_320D: VehicleProfile(
        display_name="BMW 3 Series F30 320d (Diesel)",
        notes=(
            "Economical diesel, but budget for wear, servicing and "
            "mileage-driven repairs."
        ),
        defaults=ProfileDefaults(
            km_per_liter=15, depreciation_rate_per_year=12, base_service_per_year=18_000
        ),
        wear_items=WearItems(
            tires_per_km=0.35,    # ~28k per set of tyres over 80k km
            brakes_per_km=0.18,   # ~18k pads/discs over 100k km
        ),
        risk_items=(
            RiskItem(
                name="Suspension, bushings and ball joints",
                min_mileage_km=100_000,
                monthly_reserve_min=800,
                monthly_reserve_max=1_500,
            ),
            RiskItem(
                name="Cooling system / water pump (reserve)",
                min_mileage_km=120_000,
                monthly_reserve_min=600,
                monthly_reserve_max=1_200,
            ),
            RiskItem(
                name="EGR / DPF (reserve)",
                min_mileage_km=140_000,
                monthly_reserve_min=700,
                monthly_reserve_max=1_600,
            ),
        ),
    ),
    ModelKey.F30_328I: VehicleProfile(
        display_name="BMW 3 Series F30 328i (Petrol)",
        notes=(
            "More power, higher fuel use; set aside extra for the cooling "
            "system and water pump."
        ),
        defaults=ProfileDefaults(
            km_per_liter=10.5, depreciation_rate_per_year=12, base_service_per_year=20_000
        ),
        wear_items=WearItems(tires_per_km=0.38, brakes_per_km=0.20),
        risk_items=(
            RiskItem(
                name="Water pump / thermostat (reserve)",
                min_mileage_km=90_000,
                monthly_reserve_min=700,
                monthly_reserve_max=1_500,
            ),
            RiskItem(
                name="Oil leaks and seals",
                min_mileage_km=120_000,
                monthly_reserve_min=600,
                monthly_reserve_max=1_400,
            ),
        ),
    ),
    ModelKey.G20_330E: VehicleProfile(
        display_name="BMW 3 Series G20 330e (PHEV)",
        notes=(
            "Fuel cost can be low with regular charging; reserve for the "
            "hybrid system and battery as the car ages."
        ),
        defaults=ProfileDefaults(
            km_per_liter=14, depreciation_rate_per_year=13, base_service_per_year=22_000
        ),
        wear_items=WearItems(tires_per_km=0.40, brakes_per_km=0.16),
        risk_items=(
            RiskItem(
                name="Battery / hybrid system (reserve)",
                max_year=2019,
                monthly_reserve_min=900,
                monthly_reserve_max=2_000,
            ),
            RiskItem(
                name="Suspension",
                min_mileage_km=100_000,
                monthly_reserve_min=800,
                monthly_reserve_max=1_500,
            ),
        ),
    ),
    ModelKey.F10_520D: VehicleProfile(
        display_name="BMW 5 Series F10 520d (Diesel)",
        notes=(
            "Larger body, slightly higher running costs; reserve for "
            "suspension and cooling."
        ),
        defaults=ProfileDefaults(
            km_per_liter=13.5, depreciation_rate_per_year=11, base_service_per_year=22_000
        ),
        wear_items=WearItems(tires_per_km=0.45, brakes_per_km=0.24),
        risk_items=(
            RiskItem(
                name="Suspension (vehicle weight)",
                min_mileage_km=90_000,
                monthly_reserve_min=1_000,
                monthly_reserve_max=2_000,
            ),
            RiskItem(
                name="Cooling system / water pump (reserve)",
                min_mileage_km=120_000,
                monthly_reserve_min=800,
                monthly_reserve_max=1_600,
            ),
        ),
    ),
    ModelKey.F48_X1_20D: VehicleProfile(
        display_name="BMW X1 F48 20d (Diesel)",
        notes=(
            "Small SUV with reasonable economy; tyres and suspension cost a "
            "little more on average."
        ),
        defaults=ProfileDefaults(
            km_per_liter=14, depreciation_rate_per_year=12, base_service_per_year=20_000
        ),
        wear_items=WearItems(tires_per_km=0.42, brakes_per_km=0.22),
        risk_items=(
            RiskItem(
                name="Suspension and bushings",
                min_mileage_km=90_000,
                monthly_reserve_min=900,
                monthly_reserve_max=1_600,
            ),
        ),
    ),
    ModelKey.G01_X3_20D: VehicleProfile(
        display_name="BMW X3 G01 20d (Diesel)",
        notes=(
            "Higher fixed costs (tyres, brakes, insurance); diesel pays off "
            "for high-mileage drivers."
        ),
        defaults=ProfileDefaults(
            km_per_liter=13, depreciation_rate_per_year=12, base_service_per_year=24_000
        ),
        wear_items=WearItems(tires_per_km=0.55, brakes_per_km=0.30),
        risk_items=(
            RiskItem(
                name="Suspension",
                min_mileage_km=80_000,
                monthly_reserve_min=1_100,
                monthly_reserve_max=2_200,
            ),
            RiskItem(
                name="Cooling system (reserve)",
                min_mileage_km=120_000,
                monthly_reserve_min=900,
                monthly_reserve_max=1_800,
            ),
        ),
    ),
}

_missing = [key.value for key in ModelKey if key not in _PROFILES]
if _missing:
    raise ConfigurationError(f"No vehicle profile defined for: {_missing}")

VEHICLE_PROFILES = MappingProxyType(_PROFILES)

MODEL_KEYS: list[ModelKey] = list(ModelKey)

DEFAULT_MODEL_KEY = ModelKey.F30_320D


def lookup_profile(model_key: ModelKey | str) -> VehicleProfile:
    """
    Return the profile for a model key (enum member or its string value).
    Unknown keys raise UnknownProfileError; there is no fallback profile.
    """
    try:
        key = ModelKey(model_key)
    except ValueError:
        raise UnknownProfileError(model_key) from None
    return VEHICLE_PROFILES[key]
