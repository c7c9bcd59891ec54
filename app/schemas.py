"""Pydantic схемы: результат расчета и запись истории"""
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UnitMode(str, Enum):
    """How raw height/weight input is interpreted"""
    METRIC = "metric"  # cm / kg
    IMPERIAL = "imperial"  # in / lbs

    @property
    def height_suffix(self) -> str:
        return "cm" if self is UnitMode.METRIC else "in"

    @property
    def weight_suffix(self) -> str:
        return "kg" if self is UnitMode.METRIC else "lbs"


class BMICategory(str, Enum):
    UNDERWEIGHT = "Underweight"
    NORMAL_WEIGHT = "Normal Weight"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"


CATEGORY_COLORS = {
    BMICategory.UNDERWEIGHT: "#38bdf8",
    BMICategory.NORMAL_WEIGHT: "#4ade80",
    BMICategory.OVERWEIGHT: "#fbbf24",
    BMICategory.OBESE: "#f87171",
}


class BMIResult(BaseModel):
    """Результат одного успешного расчета"""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    bmi: float = Field(..., description="BMI rounded to one decimal place")
    category: BMICategory
    color: str = Field(..., description="Hex color token of the category")
    unit: UnitMode

    @property
    def bmi_display(self) -> str:
        return f"{self.bmi:.1f}"


class HistoryEntry(BaseModel):
    """Persisted record of one past calculation"""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str
    bmi: float
    category: BMICategory
    date: str = Field(..., description="Calculation date as shown in the list, e.g. '19 Oct'")
    color: str
    unit: Optional[UnitMode] = None

    @field_validator('bmi', mode='before')
    @classmethod
    def parse_bmi(cls, v):
        """Older payloads keep bmi as the display string ("22.9")"""
        if isinstance(v, str):
            return float(v.strip())
        return v

    @field_validator('bmi')
    @classmethod
    def validate_bmi_finite(cls, v: float) -> float:
        """NaN or infinity cannot be written back as JSON"""
        if not math.isfinite(v):
            raise ValueError(f'bmi must be a finite number, got {v!r}')
        return v

    @property
    def bmi_display(self) -> str:
        return f"{self.bmi:.1f}"
