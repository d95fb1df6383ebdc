"""
Calculator tests: flock sizing, cost breakdown, profitability and advice.
"""
import pytest

from ecoloop.core.enums import CycleType, ExperienceLevel, determine_cycle_type
from ecoloop.core.market import MarketTables
from ecoloop.schemas.planning import InsufficientResources, PlanningInput, Recommendation
from ecoloop.services.calculator import (
    BEGINNER_ADVICE,
    BUYERS_ADVICE,
    EXCELLENT_ROI_ADVICE,
    LOW_ROI_ADVICE,
    SAFETY_FUND_ADVICE,
    SMALL_SPACE_ADVICE,
    FarmCalculator,
)


def planning(budget=150000, space_m2=20, level="beginner", duration=21) -> PlanningInput:
    return PlanningInput(
        budget=budget,
        space_m2=space_m2,
        experience_level=level,
        duration_days=duration,
    )


@pytest.fixture
def calculator():
    return FarmCalculator()


class TestCycleType:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (21, CycleType.SHORT),
            (22, CycleType.STANDARD),
            (30, CycleType.STANDARD),
            (31, CycleType.EXTENDED),
            (60, CycleType.EXTENDED),
        ],
    )
    def test_bucket_boundaries(self, days, expected):
        assert determine_cycle_type(days) == expected


class TestBeginnerShortCycle:
    """budget=150000, space=20 m², beginner, 21 days."""

    def test_capacity_limits(self, calculator):
        assert calculator.cost_per_bird(CycleType.SHORT, ExperienceLevel.BEGINNER) == 1313
        assert calculator.max_from_space(20, ExperienceLevel.BEGINNER) == 160
        assert calculator.max_from_budget(150000, CycleType.SHORT, ExperienceLevel.BEGINNER) == 114

    def test_recommendation(self, calculator):
        result = calculator.compute_recommendation(planning())

        assert isinstance(result, Recommendation)
        assert result.cycle_type == CycleType.SHORT
        assert result.flock_size == 114
        assert result.flock_size * 1313 <= 150000

    def test_cost_breakdown(self, calculator):
        costs = calculator.compute_recommendation(planning()).cost_breakdown

        assert costs.chicks == 57000
        assert costs.feed == 41040
        assert costs.medicine == 17100
        assert costs.subtotal == 115140
        assert costs.misc == 17271
        assert costs.mortality_buffer == 17271
        assert costs.total == 149682
        assert costs.total == costs.subtotal + costs.misc + costs.mortality_buffer

    def test_profitability(self, calculator):
        result = calculator.compute_recommendation(planning())
        profit = result.profitability

        assert profit.surviving_count == 96
        assert profit.revenue == 288000
        assert profit.net_profit == 288000 - 149682
        assert profit.profit_per_bird == 1214
        assert profit.roi_percentage == 92.41
        assert profit.break_even_count == 50

    def test_summary(self, calculator):
        summary = calculator.compute_recommendation(planning()).summary

        assert summary.optimal_flock_size == 114
        assert summary.total_investment == 149682
        assert summary.cycle_label == "21 days"
        assert summary.profitable is True

    def test_advice_order(self, calculator):
        advice = calculator.compute_recommendation(planning()).advice

        assert advice == BEGINNER_ADVICE + [
            EXCELLENT_ROI_ADVICE,
            SAFETY_FUND_ADVICE,
            BUYERS_ADVICE,
        ]

    def test_budget_is_the_limit(self, calculator):
        factors = calculator.compute_recommendation(planning()).limiting_factors

        assert [f.factor for f in factors] == ["budget"]
        assert factors[0].current_value == 150000


class TestInsufficientResources:
    def test_tiny_budget(self, calculator):
        result = calculator.compute_recommendation(
            planning(budget=1000, space_m2=1, level="advanced", duration=30)
        )

        assert isinstance(result, InsufficientResources)
        assert result.success is False
        assert result.suggestions == [
            "Recommended minimum budget: 50,000 FCFA",
            "Recommended minimum space: 5 m²",
        ]

    def test_tiny_space(self, calculator):
        # 0.1 m² * 8 birds/m² floors to zero
        result = calculator.compute_recommendation(planning(space_m2=0.1))
        assert isinstance(result, InsufficientResources)


class TestLimitingFactors:
    def test_space_limit(self, calculator):
        factors = calculator.compute_recommendation(planning(budget=10_000_000)).limiting_factors

        assert [f.factor for f in factors] == ["space"]
        assert factors[0].current_value == 20

    def test_tie_reports_both(self, calculator):
        # advanced/standard costs 1500 per bird; 10 m² * 12 = 120 = 180000 / 1500
        result = calculator.compute_recommendation(
            planning(budget=180000, space_m2=10, level="advanced", duration=30)
        )

        assert result.flock_size == 120
        assert [f.factor for f in result.limiting_factors] == ["space", "budget"]


class TestAdvice:
    def test_small_space_tip(self, calculator):
        result = calculator.compute_recommendation(planning(budget=1_000_000, space_m2=5))
        assert SMALL_SPACE_ADVICE in result.advice

    def test_no_beginner_tips_for_advanced(self, calculator):
        result = calculator.compute_recommendation(planning(level="advanced"))
        assert not set(BEGINNER_ADVICE) & set(result.advice)
        assert result.advice[-2:] == [SAFETY_FUND_ADVICE, BUYERS_ADVICE]

    def test_low_roi_with_cheap_market(self):
        calculator = FarmCalculator(MarketTables(selling_price_per_kg=1000))
        result = calculator.compute_recommendation(
            planning(budget=100000, space_m2=50, level="intermediate")
        )

        assert result.flock_size == 80
        assert result.cost_breakdown.total == 99384
        assert result.profitability.surviving_count == 73
        assert result.profitability.net_profit < 0
        assert result.summary.profitable is False
        assert LOW_ROI_ADVICE in result.advice


class TestProperties:
    CASES = [
        (budget, space, level, duration)
        for budget in (60000, 150000, 2_500_000)
        for space in (3, 12.5, 40)
        for level in ExperienceLevel
        for duration in (21, 28, 45, 60)
    ]

    @pytest.mark.parametrize("budget,space,level,duration", CASES)
    def test_invariants(self, calculator, budget, space, level, duration):
        planning_in = planning(budget, space, level, duration)
        cycle = determine_cycle_type(duration)
        from_space = calculator.max_from_space(space, level)
        from_budget = calculator.max_from_budget(budget, cycle, level)

        assert from_space >= 0 and from_budget >= 0

        result = calculator.compute_recommendation(planning_in)
        if not result.success:
            assert min(from_space, from_budget) <= 0
            return

        assert result.flock_size == min(from_space, from_budget)
        assert result.flock_size * calculator.cost_per_bird(cycle, level) <= budget

        costs = result.cost_breakdown
        parts = [costs.chicks, costs.feed, costs.medicine, costs.misc, costs.mortality_buffer]
        assert all(isinstance(p, int) and p >= 0 for p in parts)
        assert costs.total == sum(parts)
        assert result.profitability.surviving_count <= result.flock_size

    def test_same_input_same_output(self, calculator):
        first = calculator.compute_recommendation(planning())
        second = calculator.compute_recommendation(planning())
        assert first.model_dump_json() == second.model_dump_json()


def test_planning_input_rejects_out_of_range_duration():
    with pytest.raises(ValueError):
        planning(duration=61)
    with pytest.raises(ValueError):
        planning(duration=20)
