"""
表达式求值
对一个表达式中的各骰子项掷骰并按运算符累加；整次掷骰时按表达式并发展开
"""
import asyncio
from typing import List

from ..core import get_logger
from .classifier import classify_expression, count_successes, is_full_roll_critical_failure
from .models import (
    DiceGroupResult,
    Expression,
    ExpressionResult,
    RollResult,
    RollSpecification,
)
from .roller import DiceRoller

logger = get_logger(__name__)


class ExpressionEvaluator:
    def __init__(self, roller: DiceRoller):
        self.roller = roller

    def evaluate(self, expression: Expression) -> ExpressionResult:
        """掷出表达式中的每一项并求带符号的和，不做判定"""
        group_results = []
        total = 0
        for term in expression.terms:
            result: DiceGroupResult = self.roller.roll(term.group)
            group_results.append((result, term.operator))
            total += term.operator.apply(result.total)
        return ExpressionResult(group_results=tuple(group_results), total=total)

    async def _evaluate_async(self, expression: Expression) -> ExpressionResult:
        return self.evaluate(expression)

    async def roll(self, spec: RollSpecification) -> RollResult:
        """
        执行一次完整掷骰

        每个表达式一个任务，全部完成后再判定：
        - 各表达式状态 (大失败 / 目标值阈值)
        - 总成功数 (仅在设置目标值时)
        - 整体大失败
        总值 = 各表达式总值之和 + 全局修正
        """
        raw_results: List[ExpressionResult] = await asyncio.gather(
            *(self._evaluate_async(expression) for expression in spec.expressions)
        )

        results = [
            ExpressionResult(
                group_results=result.group_results,
                total=result.total,
                state=classify_expression(result, spec.global_modifier, spec.target_number),
            )
            for result in raw_results
        ]

        grand_total = sum(result.total for result in results) + (spec.global_modifier or 0)
        total_successes = count_successes(results) if spec.target_number is not None else None

        roll_result = RollResult(
            expression_results=tuple(results),
            grand_total=grand_total,
            total_successes=total_successes,
            is_critical_failure=is_full_roll_critical_failure(results),
            target_number=spec.target_number,
            target_highest=spec.target_highest,
            global_modifier=spec.global_modifier,
            raw_expression=spec.raw_expression,
            comment=spec.comment,
        )
        logger.debug(
            f"掷骰完成 {spec.raw_expression!r}: 表达式 {len(results)} 个, 总值 {grand_total}, "
            f"成功数 {total_successes}, 大失败 {roll_result.is_critical_failure}"
        )
        return roll_result
