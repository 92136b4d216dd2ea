"""
掷骰结果格式化
统一的单行格式: 骰子 [点数] 修正 = **结果** [状态]
输出为 Markdown，爆骰点数后加 "!"，被剔除的点数用删除线
"""
import re
from typing import List, Optional

from ..dice.models import (
    DiceGroupResult,
    ExpressionResult,
    ExpressionState,
    Operator,
    RollResult,
    TraitResult,
)

STATE_LABELS = {
    ExpressionState.FAILED: "失败",
    ExpressionState.CRITICAL_FAILURE: "失败",
    ExpressionState.SUCCESS: "成功",
    ExpressionState.RAISE: "加码成功",
}
DISCARDED_LABEL = "舍弃"
CRITICAL_FAILURE_NOTICE = "❗**大失败**"

_MARKDOWN_SPECIAL = re.compile(r"([\\*_~`|\[\]])")


def escape_markdown(text: str) -> str:
    """转义 Markdown 特殊字符，用于玩家名等外部文本"""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def format_signed(value: int, spaced: bool = True) -> str:
    sign = "+" if value >= 0 else "-"
    return f" {sign} {abs(value)}" if spaced else f" {sign}{abs(value)}"


def format_rolls(group_result: DiceGroupResult) -> List[str]:
    displays = []
    for roll in group_result.rolls:
        display = str(roll.value)
        if roll.exploded:
            display += "!"
        if roll.dropped:
            display = f"~~{display}~~"
        displays.append(display)
    return displays


def _header(raw_expression: Optional[str], comment: Optional[str], display_name: Optional[str]) -> str:
    lines = []
    parts = ["> 🎲"]
    if display_name:
        parts.append(f"**{escape_markdown(display_name)}**")
    if raw_expression:
        parts.append(f"*{escape_markdown(raw_expression)}*")
    if len(parts) > 1:
        lines.append(" ".join(parts))
    if comment:
        lines.append(f"> 📝 {comment}")
    return "".join(line + "\n" for line in lines)


def format_expression_line(
    expression: ExpressionResult,
    global_modifier: Optional[int],
    show_state: bool,
) -> str:
    notation = ""
    modifiers = ""
    rolls: List[str] = []

    for group_result, operator in expression.group_results:
        group = group_result.group
        if group.is_modifier:
            modifiers += format_signed(operator.apply(group.value))
            continue
        if notation:
            notation += f" {operator.value} "
        elif operator is Operator.MINUS:
            notation += "-"
        notation += group.notation
        rolls.extend(format_rolls(group_result))

    total = expression.total
    if global_modifier:
        modifiers += format_signed(global_modifier)
        total += global_modifier

    line = notation
    if rolls:
        line += f" [{', '.join(rolls)}]"
    line += modifiers
    line = f"{line.strip()} = **{total}**"

    if show_state and expression.state in STATE_LABELS:
        line += f" {STATE_LABELS[expression.state]}"
    return line


def format_roll_result(result: RollResult, display_name: Optional[str] = None) -> str:
    """
    格式化普通掷骰结果

    Args:
        result: 掷骰结果
        display_name: 掷骰者名称，会做 Markdown 转义

    Returns:
        多行文本：可选的标题与注释、每个表达式一行、可选的成功数与大失败提示
    """
    show_state = result.target_number is not None
    lines = [
        format_expression_line(expression, result.global_modifier, show_state)
        for expression in result.expression_results
    ]

    response = _header(result.raw_expression, result.comment, display_name)
    response += "\n".join(lines)
    if len(lines) > 1 and show_state and result.total_successes is not None:
        response += f"\n成功数: **{result.total_successes}**"
    if result.is_critical_failure:
        response += f"\n{CRITICAL_FAILURE_NOTICE}"
    return response


def _trait_line(label: str, group_result: DiceGroupResult, modifier: Optional[int], total: int) -> str:
    line = f"{label}: {group_result.group.notation} [{', '.join(format_rolls(group_result))}]"
    if modifier:
        line += format_signed(modifier, spaced=False)
    return f"{line} = **{total}**"


def format_trait_result(result: TraitResult, display_name: Optional[str] = None) -> str:
    """
    格式化属性骰检定结果
    被采用的一方显示判定状态 (设置目标值时)，另一方标记为舍弃；大失败时两者都不标记
    """
    tdr = result.trait_die_result
    trait_line = _trait_line("属性骰", tdr.trait_result, result.global_modifier, tdr.trait_total)
    wild_line = _trait_line("百搭骰", tdr.wild_result, result.global_modifier, tdr.wild_total)

    if not tdr.is_critical_failure:
        chosen_state = STATE_LABELS.get(tdr.state) if result.target_number is not None else None
        if tdr.chosen_result == "trait":
            if chosen_state:
                trait_line += f" {chosen_state}"
            wild_line += f" {DISCARDED_LABEL}"
        else:
            trait_line += f" {DISCARDED_LABEL}"
            if chosen_state:
                wild_line += f" {chosen_state}"

    response = _header(result.raw_expression, result.comment, display_name)
    response += f"{trait_line}\n{wild_line}"
    if tdr.is_critical_failure:
        response += f"\n{CRITICAL_FAILURE_NOTICE}"
    return response
