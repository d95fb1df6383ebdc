from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from ecoloop.core.enums import CycleType, ExperienceLevel


# ---------- Calculator input ----------

class PlanningInput(BaseModel):
    budget: float = Field(gt=0)
    space_m2: float = Field(gt=0)
    experience_level: ExperienceLevel
    duration_days: int = Field(ge=21, le=60)


# ---------- Calculator output ----------

class CostBreakdown(BaseModel):
    chicks: int
    feed: int
    medicine: int
    subtotal: int
    misc: int
    mortality_buffer: int
    total: int

    model_config = ConfigDict(frozen=True)


class ProfitabilityResult(BaseModel):
    surviving_count: int
    revenue: int
    net_profit: int
    profit_per_bird: int
    roi_percentage: float
    break_even_count: int

    model_config = ConfigDict(frozen=True)


class LimitingFactor(BaseModel):
    factor: Literal["space", "budget"]
    current_value: float
    suggestion: str

    model_config = ConfigDict(frozen=True)


class RecommendationSummary(BaseModel):
    optimal_flock_size: int
    total_investment: int
    estimated_profit: int
    roi_percentage: float
    cycle_label: str  # "21 days", "30 days", "45 days"
    profitable: bool

    model_config = ConfigDict(frozen=True)


class Recommendation(BaseModel):
    success: Literal[True] = True
    cycle_type: CycleType
    flock_size: int
    summary: RecommendationSummary
    cost_breakdown: CostBreakdown
    profitability: ProfitabilityResult
    advice: List[str]
    limiting_factors: List[LimitingFactor]

    model_config = ConfigDict(frozen=True)


class InsufficientResources(BaseModel):
    success: Literal[False] = False
    message: str = "Insufficient resources to start a profitable flock"
    suggestions: List[str]

    model_config = ConfigDict(frozen=True)
