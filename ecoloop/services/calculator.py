"""
Resource & profitability calculator.

Given a budget, floor space, experience level and cycle duration, works out
how many broilers the farmer can raise, what that flock costs, what it should
earn, and which of space or budget holds it back.

Example usage:
    calculator = FarmCalculator()
    result = calculator.compute_recommendation(planning_input)
    if not result.success:
        print(result.suggestions)

The calculator is pure: identical input gives an identical result. Input is
validated at the boundary (``PlanningInput``) and not re-checked here.
"""
import math
from typing import List, Optional, Union

from ecoloop.core.enums import (
    CYCLE_NOMINAL_DAYS,
    CycleType,
    ExperienceLevel,
    determine_cycle_type,
)
from ecoloop.core.logging import get_logger
from ecoloop.core.market import MarketTables, get_market_tables
from ecoloop.schemas.planning import (
    CostBreakdown,
    InsufficientResources,
    LimitingFactor,
    PlanningInput,
    ProfitabilityResult,
    Recommendation,
    RecommendationSummary,
)

logger = get_logger(module="calculator")

BEGINNER_ADVICE = [
    "Start small to gain experience",
    "Follow the task calendar rigorously",
    "Monitor temperature and humidity closely",
]
LOW_ROI_ADVICE = "Low profitability - consider increasing space or budget"
EXCELLENT_ROI_ADVICE = "Excellent profitability potential!"
SMALL_SPACE_ADVICE = "Limited space - optimise litter management"
SAFETY_FUND_ADVICE = "Set aside an emergency fund of 10% of the budget"
BUYERS_ADVICE = "Identify your buyers before you start"

SPACE_SUGGESTION = "Increase the space to raise more chickens"
BUDGET_SUGGESTION = "Increase the budget to raise more chickens"

# Float products such as 1.2 * 300 must not be pushed over an integer by ceil
_PRECISION = 6


def _ceil(value: float) -> int:
    return math.ceil(round(value, _PRECISION))


def _floor(value: float) -> int:
    return math.floor(round(value, _PRECISION))


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(round(value * factor, _PRECISION) + 0.5) / factor


class FarmCalculator:
    """
    Flock sizing and profitability engine.

    Args:
        tables: market constants (prices, densities, mortality). Defaults to
            the FCFA tables from ``get_market_tables``.
    """

    def __init__(self, tables: Optional[MarketTables] = None):
        self.tables = tables or get_market_tables()

    # ---------- capacity ----------

    def max_from_space(self, space_m2: float, experience_level: ExperienceLevel) -> int:
        return _floor(space_m2 * self.tables.density_per_m2[experience_level])

    def cost_per_bird(self, cycle_type: CycleType, experience_level: ExperienceLevel) -> int:
        t = self.tables
        base = t.chick_price + t.feed_cost_per_bird(cycle_type) + t.medicine_per_bird
        misc = base * t.misc_percentage
        # Buffer on the per-bird base; the breakdown recomputes it on the subtotal
        mortality_buffer = base * t.mortality_rate[experience_level]
        return _ceil(base + misc + mortality_buffer)

    def max_from_budget(
        self,
        budget: float,
        cycle_type: CycleType,
        experience_level: ExperienceLevel,
    ) -> int:
        return _floor(budget / self.cost_per_bird(cycle_type, experience_level))

    # ---------- main entry point ----------

    def compute_recommendation(
        self,
        planning_input: PlanningInput,
    ) -> Union[Recommendation, InsufficientResources]:
        cycle_type = determine_cycle_type(planning_input.duration_days)
        level = planning_input.experience_level

        from_space = self.max_from_space(planning_input.space_m2, level)
        from_budget = self.max_from_budget(planning_input.budget, cycle_type, level)
        optimal = min(from_space, from_budget)

        if optimal <= 0:
            logger.info(
                "Insufficient resources",
                budget=planning_input.budget,
                space_m2=planning_input.space_m2,
                max_from_space=from_space,
                max_from_budget=from_budget,
            )
            return self.insufficient_resources()

        costs = self.cost_breakdown(optimal, cycle_type, level)
        profitability = self.profitability(optimal, costs.total, cycle_type, level)

        summary = RecommendationSummary(
            optimal_flock_size=optimal,
            total_investment=costs.total,
            estimated_profit=profitability.net_profit,
            roi_percentage=profitability.roi_percentage,
            cycle_label=f"{CYCLE_NOMINAL_DAYS[cycle_type]} days",
            profitable=profitability.net_profit > 0,
        )

        return Recommendation(
            cycle_type=cycle_type,
            flock_size=optimal,
            summary=summary,
            cost_breakdown=costs,
            profitability=profitability,
            advice=self.advice(planning_input, profitability),
            limiting_factors=self.limiting_factors(planning_input),
        )

    # ---------- breakdown ----------

    def cost_breakdown(
        self,
        flock_size: int,
        cycle_type: CycleType,
        experience_level: ExperienceLevel,
    ) -> CostBreakdown:
        t = self.tables
        chicks = _ceil(flock_size * t.chick_price)
        feed = _ceil(flock_size * t.feed_cost_per_bird(cycle_type))
        medicine = _ceil(flock_size * t.medicine_per_bird)

        subtotal = chicks + feed + medicine
        misc = _ceil(subtotal * t.misc_percentage)
        mortality_buffer = _ceil(subtotal * t.mortality_rate[experience_level])

        return CostBreakdown(
            chicks=chicks,
            feed=feed,
            medicine=medicine,
            subtotal=subtotal,
            misc=misc,
            mortality_buffer=mortality_buffer,
            total=subtotal + misc + mortality_buffer,
        )

    def profitability(
        self,
        flock_size: int,
        total_cost: int,
        cycle_type: CycleType,
        experience_level: ExperienceLevel,
    ) -> ProfitabilityResult:
        mortality = self.tables.mortality_rate[experience_level]
        surviving = _floor(flock_size * (1 - mortality))

        unit_revenue = self.tables.unit_revenue(cycle_type)
        revenue = _ceil(surviving * unit_revenue)
        net_profit = revenue - total_cost

        return ProfitabilityResult(
            surviving_count=surviving,
            revenue=revenue,
            net_profit=net_profit,
            profit_per_bird=_ceil(net_profit / flock_size),
            roi_percentage=_round_half_up(net_profit / total_cost * 100, 2),
            break_even_count=_ceil(total_cost / unit_revenue),
        )

    # ---------- advice ----------

    def advice(
        self,
        planning_input: PlanningInput,
        profitability: ProfitabilityResult,
    ) -> List[str]:
        t = self.tables
        advice: List[str] = []

        if planning_input.experience_level == ExperienceLevel.BEGINNER:
            advice.extend(BEGINNER_ADVICE)

        if profitability.roi_percentage < t.low_roi_percentage:
            advice.append(LOW_ROI_ADVICE)
        elif profitability.roi_percentage > t.excellent_roi_percentage:
            advice.append(EXCELLENT_ROI_ADVICE)

        if planning_input.space_m2 < t.small_space_m2:
            advice.append(SMALL_SPACE_ADVICE)

        advice.append(SAFETY_FUND_ADVICE)
        advice.append(BUYERS_ADVICE)
        return advice

    def limiting_factors(self, planning_input: PlanningInput) -> List[LimitingFactor]:
        cycle_type = determine_cycle_type(planning_input.duration_days)
        level = planning_input.experience_level
        from_space = self.max_from_space(planning_input.space_m2, level)
        from_budget = self.max_from_budget(planning_input.budget, cycle_type, level)

        factors: List[LimitingFactor] = []
        if from_space <= from_budget:
            factors.append(
                LimitingFactor(
                    factor="space",
                    current_value=planning_input.space_m2,
                    suggestion=SPACE_SUGGESTION,
                )
            )
        if from_budget <= from_space:
            factors.append(
                LimitingFactor(
                    factor="budget",
                    current_value=planning_input.budget,
                    suggestion=BUDGET_SUGGESTION,
                )
            )
        return factors

    def insufficient_resources(self) -> InsufficientResources:
        t = self.tables
        return InsufficientResources(
            suggestions=[
                f"Recommended minimum budget: {t.minimum_budget:,.0f} {t.currency}",
                f"Recommended minimum space: {t.minimum_space_m2:g} m²",
            ]
        )
