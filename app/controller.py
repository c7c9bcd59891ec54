"""State of the BMI screen, owned by one controller and handed to the renderer"""
import logging
from typing import Optional, Tuple, Union

from app import engine
from app.schemas import BMIResult, HistoryEntry, UnitMode
from app.services import HistoryStore
from app.utils.error_handler import ValidationError, log_error

logger = logging.getLogger(__name__)


class BMIController:
    """Form values, current result and history snapshot of the calculator screen"""

    def __init__(self, store: HistoryStore):
        self.store = store
        self.height: str = ""
        self.weight: str = ""
        self.unit: UnitMode = UnitMode.METRIC
        self.result: Optional[BMIResult] = None

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return self.store.entries

    async def start(self) -> Tuple[HistoryEntry, ...]:
        """Load persisted history when the screen opens"""
        await self.store.load()
        return self.history

    def set_unit(self, unit: Union[UnitMode, str]) -> None:
        self.unit = engine.unit_mode(unit)

    async def calculate(self) -> BMIResult:
        """
        Compute BMI from the current form values and save it to history.

        Raises ValidationError with a title and a user-facing message when the
        input is missing, non-numeric or not positive. Nothing is saved then.
        """
        try:
            result = engine.calculate(self.height, self.weight, self.unit)
        except ValidationError as e:
            log_error(e, context={"unit": self.unit.value})
            raise

        self.result = result
        await self.store.append(result)
        return result

    def clear_form(self) -> None:
        """Reset inputs and the current result; history stays"""
        self.height = ""
        self.weight = ""
        self.result = None

    async def delete_item(self, entry_id: str) -> Tuple[HistoryEntry, ...]:
        await self.store.remove(entry_id)
        return self.history

    async def clear_history(self) -> None:
        await self.store.clear()

    def indicator_position(self) -> float:
        """Gauge needle position in percent for the current result"""
        if self.result is None:
            return 0.0
        return engine.gauge_position(self.result.bmi)
