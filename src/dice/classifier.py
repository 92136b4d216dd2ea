"""
结果判定
纯函数，输入为掷骰结果与目标值，输出为表达式状态

注意两种大失败规则不同：
- 普通掷骰看最终点数 (爆骰后不可能为 1)
- 属性骰检定看首次自然点数 (见 trait.py)
"""
from typing import Iterable, Optional, Sequence

from .constants import MIN_CRITICAL_FAILURE_DICE, RAISE_THRESHOLD
from .models import DieRoll, ExpressionResult, ExpressionState


def _qualifying_rolls(results: Iterable[ExpressionResult]) -> Sequence[DieRoll]:
    """所有骰子组 (不含纯数字修正) 中未被剔除的骰子"""
    return [
        roll
        for result in results
        for group_result, _ in result.group_results
        if not group_result.group.is_modifier
        for roll in group_result.kept_rolls
    ]


def is_critical_failure(result: ExpressionResult) -> bool:
    """表达式内所有有效骰子均为 1，且有效骰子不少于 2 颗"""
    return is_full_roll_critical_failure([result])


def is_full_roll_critical_failure(results: Sequence[ExpressionResult]) -> bool:
    """跨所有表达式的大失败判定，规则同 is_critical_failure"""
    rolls = _qualifying_rolls(results)
    return len(rolls) >= MIN_CRITICAL_FAILURE_DICE and all(roll.value == 1 for roll in rolls)


def classify_total(total: int, target_number: Optional[int]) -> ExpressionState:
    """按目标值划分：>= 目标值 + 4 为加码成功，>= 目标值为成功，否则失败"""
    if target_number is None:
        return ExpressionState.NOT_APPLICABLE
    if total >= target_number + RAISE_THRESHOLD:
        return ExpressionState.RAISE
    if total >= target_number:
        return ExpressionState.SUCCESS
    return ExpressionState.FAILED


def classify_expression(
    result: ExpressionResult,
    global_modifier: Optional[int] = None,
    target_number: Optional[int] = None,
) -> ExpressionState:
    if is_critical_failure(result):
        return ExpressionState.CRITICAL_FAILURE
    return classify_total(result.total + (global_modifier or 0), target_number)


def count_successes(results: Iterable[ExpressionResult]) -> int:
    return sum(
        1 for result in results
        if result.state in (ExpressionState.SUCCESS, ExpressionState.RAISE)
    )
