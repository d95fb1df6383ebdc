"""
Static market tables used by the farm calculator.

Prices are in FCFA (Cameroon). Another market is a different ``MarketTables``
instance passed to ``FarmCalculator``; nothing in the algorithm reads these
values directly.
"""
from functools import lru_cache
from typing import Dict

from pydantic import BaseModel, ConfigDict

from ecoloop.core.enums import CycleType, ExperienceLevel


class MarketTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str = "FCFA"

    # ---- costs ----
    chick_price: float = 500
    feed_price_per_kg: float = 300
    feed_kg_per_bird: Dict[CycleType, float] = {
        CycleType.SHORT: 1.2,
        CycleType.STANDARD: 2.0,
        CycleType.EXTENDED: 3.5,
    }
    medicine_per_bird: float = 150
    misc_percentage: float = 0.15
    mortality_rate: Dict[ExperienceLevel, float] = {
        ExperienceLevel.BEGINNER: 0.15,
        ExperienceLevel.INTERMEDIATE: 0.08,
        ExperienceLevel.ADVANCED: 0.05,
    }

    # ---- market ----
    selling_price_per_kg: float = 2500
    average_weight_kg: Dict[CycleType, float] = {
        CycleType.SHORT: 1.2,
        CycleType.STANDARD: 1.8,
        CycleType.EXTENDED: 2.5,
    }

    # ---- space (birds per m²), conservative for beginners ----
    density_per_m2: Dict[ExperienceLevel, float] = {
        ExperienceLevel.BEGINNER: 8,
        ExperienceLevel.INTERMEDIATE: 10,
        ExperienceLevel.ADVANCED: 12,
    }

    # ---- thresholds for advice and insufficient resources ----
    minimum_budget: float = 50_000
    minimum_space_m2: float = 5
    small_space_m2: float = 10
    low_roi_percentage: float = 20
    excellent_roi_percentage: float = 50

    def feed_cost_per_bird(self, cycle_type: CycleType) -> float:
        return self.feed_kg_per_bird[cycle_type] * self.feed_price_per_kg

    def unit_revenue(self, cycle_type: CycleType) -> float:
        """Revenue of one surviving bird at market weight."""
        return self.average_weight_kg[cycle_type] * self.selling_price_per_kg


@lru_cache
def get_market_tables() -> MarketTables:
    return MarketTables()
