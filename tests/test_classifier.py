"""
测试结果判定
"""
import pytest

from src.dice.classifier import (
    classify_expression,
    classify_total,
    count_successes,
    is_critical_failure,
    is_full_roll_critical_failure,
)
from src.dice.models import (
    DiceGroup,
    DiceGroupResult,
    DieRoll,
    ExpressionResult,
    ExpressionState,
    Modifier,
    Operator,
)


def dice(*values, dropped=()):
    rolls = tuple(DieRoll(v, dropped=i in dropped) for i, v in enumerate(values))
    total = sum(r.value for r in rolls if not r.dropped)
    return DiceGroupResult(group=DiceGroup(len(values), 6), rolls=rolls, total=total)


def modifier(value):
    return DiceGroupResult(group=Modifier(value), total=value)


def expression(*group_results, state=None):
    pairs = tuple((g, Operator.PLUS) for g in group_results)
    return ExpressionResult(group_results=pairs, total=sum(g.total for g in group_results), state=state)


class TestThresholds:
    @pytest.mark.parametrize("total,state", [
        (8, ExpressionState.SUCCESS),
        (10, ExpressionState.RAISE),
        (5, ExpressionState.FAILED),
        (6, ExpressionState.SUCCESS),
        (9, ExpressionState.SUCCESS),
    ])
    def test_target_six(self, total, state):
        assert classify_total(total, 6) is state

    def test_no_target(self):
        assert classify_total(20, None) is ExpressionState.NOT_APPLICABLE


class TestCriticalFailure:
    def test_two_ones(self):
        assert is_critical_failure(expression(dice(1, 1)))

    def test_one_and_two(self):
        assert not is_critical_failure(expression(dice(1, 2)))

    def test_single_die_never_critical(self):
        assert not is_critical_failure(expression(dice(1)))

    def test_across_groups(self):
        assert is_critical_failure(expression(dice(1), dice(1)))

    def test_modifiers_excluded(self):
        assert is_critical_failure(expression(dice(1, 1), modifier(5)))
        assert not is_critical_failure(expression(dice(1), modifier(1)))

    def test_dropped_dice_ignored(self):
        assert is_critical_failure(expression(dice(1, 1, 6, dropped=(2,))))
        assert not is_critical_failure(expression(dice(1, 5, dropped=(1,))))

    def test_exploded_die_is_not_one(self):
        exploded = DiceGroupResult(
            group=DiceGroup(2, 6),
            rolls=(DieRoll(1), DieRoll(7, exploded=True, draws=(6, 1))),
            total=8,
        )
        assert not is_critical_failure(expression(exploded))

    def test_full_roll_counts_across_expressions(self):
        results = [expression(dice(1)), expression(dice(1))]
        assert not any(is_critical_failure(r) for r in results)
        assert is_full_roll_critical_failure(results)

    def test_full_roll_requires_all_ones(self):
        assert not is_full_roll_critical_failure([expression(dice(1, 1)), expression(dice(2))])


class TestClassifyExpression:
    def test_critical_failure_first(self):
        state = classify_expression(expression(dice(1, 1)), global_modifier=10, target_number=4)
        assert state is ExpressionState.CRITICAL_FAILURE

    def test_global_modifier_applied(self):
        state = classify_expression(expression(dice(3, 2)), global_modifier=5, target_number=6)
        assert state is ExpressionState.RAISE

    def test_without_target(self):
        assert classify_expression(expression(dice(3, 2))) is ExpressionState.NOT_APPLICABLE

    def test_count_successes(self):
        results = [
            expression(dice(6), state=ExpressionState.SUCCESS),
            expression(dice(6), state=ExpressionState.RAISE),
            expression(dice(2), state=ExpressionState.FAILED),
            expression(dice(1, 1), state=ExpressionState.CRITICAL_FAILURE),
        ]
        assert count_successes(results) == 2


def test_expression_states():
    assert [state.value for state in ExpressionState] == [
        "not_applicable", "critical_failure", "failed", "success", "raise",
    ]
