"""
BMI engine.

Pure functions: input validation, unit normalization, BMI formula,
classification and rounding. BMI = weight_kg / (height_m)²
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple, Union

from app.schemas import BMICategory, BMIResult, CATEGORY_COLORS, UnitMode
from app.utils.error_handler import ValidationError

RawValue = Union[str, float, int, None]

INCH_TO_METER = 0.0254
POUND_TO_KG = 0.453592

# Lower bounds of the upper categories; a value equal to a bound belongs to the upper category
UNDERWEIGHT_LIMIT = 18.5
NORMAL_LIMIT = 25.0
OVERWEIGHT_LIMIT = 30.0

# Visible range of the result gauge
GAUGE_MIN = 15.0
GAUGE_MAX = 40.0

MISSING_DATA = ("Missing Data", "Please enter height and weight.")
NOT_A_NUMBER = ("Invalid Input", "Height and weight must be numbers.")
NOT_POSITIVE = ("Invalid Input", "Values must be greater than zero.")
OUT_OF_RANGE = ("Invalid Input", "Values are out of range.")


def _is_missing(raw: RawValue) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def parse_measurement(raw: RawValue, field: str) -> float:
    """Convert one raw input value to a positive float or raise ValidationError."""
    if _is_missing(raw):
        raise ValidationError(*MISSING_DATA, details={"field": field})

    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        raise ValidationError(*NOT_A_NUMBER, details={"field": field, "value": raw})

    if not math.isfinite(value):
        raise ValidationError(*NOT_A_NUMBER, details={"field": field, "value": raw})
    if value <= 0:
        raise ValidationError(*NOT_POSITIVE, details={"field": field, "value": raw})
    return value


def unit_mode(unit: Union[UnitMode, str]) -> UnitMode:
    try:
        return UnitMode(unit)
    except ValueError:
        raise ValidationError("Invalid Input", f"Unknown unit mode: {unit!r}")


def normalize(height: RawValue, weight: RawValue, unit: Union[UnitMode, str]) -> Tuple[float, float]:
    """
    Convert raw input to (height in meters, weight in kg).

    Metric input is cm/kg, imperial input is in/lbs. Missing values are
    reported before malformed ones, as the form does.
    """
    mode = unit_mode(unit)
    if _is_missing(height) or _is_missing(weight):
        raise ValidationError(*MISSING_DATA)

    height_value = parse_measurement(height, "height")
    weight_value = parse_measurement(weight, "weight")

    if mode is UnitMode.IMPERIAL:
        height_m, weight_kg = height_value * INCH_TO_METER, weight_value * POUND_TO_KG
    else:
        height_m, weight_kg = height_value / 100, weight_value

    # height_m² must not underflow to zero or overflow
    squared = height_m * height_m
    if squared == 0 or not math.isfinite(squared) or not math.isfinite(weight_kg):
        raise ValidationError(*OUT_OF_RANGE, details={"height": height, "weight": weight})
    return height_m, weight_kg


def compute_bmi(height_m: float, weight_kg: float) -> float:
    # Zero height is rejected by normalize()
    return weight_kg / (height_m * height_m)


def classify(bmi_value: float) -> Tuple[BMICategory, str]:
    """Map a BMI value to its (category, color). Boundaries go to the upper category."""
    if bmi_value < UNDERWEIGHT_LIMIT:
        category = BMICategory.UNDERWEIGHT
    elif bmi_value < NORMAL_LIMIT:
        category = BMICategory.NORMAL_WEIGHT
    elif bmi_value < OVERWEIGHT_LIMIT:
        category = BMICategory.OVERWEIGHT
    else:
        category = BMICategory.OBESE
    return category, CATEGORY_COLORS[category]


def round_bmi(bmi_value: float) -> float:
    """
    Round to one decimal digit, half away from zero, on the exact binary value.

    Decimal(float) keeps the exact binary expansion, so 22.45 (stored as
    22.449999...) rounds to 22.4 the same way a display toFixed(1) would.
    """
    return float(Decimal(bmi_value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def calculate(height: RawValue, weight: RawValue, unit: Union[UnitMode, str] = UnitMode.METRIC) -> BMIResult:
    """Validate, convert, compute and classify one measurement."""
    height_m, weight_kg = normalize(height, weight, unit)
    bmi_value = compute_bmi(height_m, weight_kg)
    if not math.isfinite(bmi_value):
        raise ValidationError(*OUT_OF_RANGE, details={"height": height, "weight": weight})

    # Classify the unrounded value: 24.96 is Normal Weight even though it displays as 25.0
    category, color = classify(bmi_value)
    return BMIResult(
        bmi=round_bmi(bmi_value),
        category=category,
        color=color,
        unit=unit_mode(unit),
    )


def gauge_position(bmi_value: float) -> float:
    """Needle position on the result gauge in percent, clamped to 0..100."""
    percentage = (bmi_value - GAUGE_MIN) / (GAUGE_MAX - GAUGE_MIN) * 100
    return min(max(percentage, 0.0), 100.0)
