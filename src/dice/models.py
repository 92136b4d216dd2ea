"""
掷骰数据模型
解析器、掷骰器、判定器之间传递的数据结构，全部为不可变 dataclass
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .constants import (
    DEFAULT_TRAIT_DIE_SIDES,
    DEFAULT_WILD_DIE_SIDES,
    DEFAULT_TRAIT_TARGET_NUMBER,
    DEFAULT_TRAIT_TARGET_HIGHEST,
)


class Operator(str, Enum):
    PLUS = "+"
    MINUS = "-"

    def apply(self, value: int) -> int:
        return value if self is Operator.PLUS else -value


class ExpressionState(str, Enum):
    NOT_APPLICABLE = "not_applicable"      # 未设置目标值
    CRITICAL_FAILURE = "critical_failure"  # 所有有效骰子均为 1
    FAILED = "failed"                      # < 目标值
    SUCCESS = "success"                    # >= 目标值
    RAISE = "raise"                        # >= 目标值 + 4


@dataclass(frozen=True)
class DiceGroup:
    """
    一组同质骰子
    quantity: 骰子数量 (1-100)
    sides: 面数 (2-1000)
    exploding: 是否爆骰
    exploding_number: 爆骰阈值，掷出 >= 该值时追加一次
    infinite: True 为连爆，False 为最多追加一次
    keep_*/drop_*: 保留/舍弃最高或最低的 N 颗，解析器保证最多只有一个生效
    """
    quantity: int
    sides: int
    exploding: bool = False
    exploding_number: Optional[int] = None
    infinite: bool = False
    keep_highest: Optional[int] = None
    keep_lowest: Optional[int] = None
    drop_highest: Optional[int] = None
    drop_lowest: Optional[int] = None

    is_modifier = False

    @property
    def notation(self) -> str:
        return f"{self.quantity}d{self.sides}"


@dataclass(frozen=True)
class Modifier:
    """纯数字修正项"""
    value: int

    is_modifier = True

    # 兼容 “quantity 为 0 的骰子组” 这一旧视图
    @property
    def quantity(self) -> int:
        return 0

    @property
    def sides(self) -> int:
        return self.value

    @property
    def notation(self) -> str:
        return str(self.value)


DiceTerm = Union[DiceGroup, Modifier]


def make_trait_die(sides: int) -> DiceGroup:
    """属性骰与百搭骰：单颗、连爆、阈值为自身面数"""
    return DiceGroup(quantity=1, sides=sides, exploding=True, exploding_number=sides, infinite=True)


@dataclass(frozen=True)
class Term:
    group: DiceTerm
    operator: Operator = Operator.PLUS


@dataclass(frozen=True)
class Expression:
    terms: Tuple[Term, ...] = ()

    @property
    def dice_group_count(self) -> int:
        return sum(1 for term in self.terms if not term.group.is_modifier)


@dataclass(frozen=True)
class RollSpecification:
    expressions: Tuple[Expression, ...] = ()
    target_number: Optional[int] = None
    target_highest: Optional[int] = None
    global_modifier: Optional[int] = None
    comment: Optional[str] = None
    raw_expression: Optional[str] = None
    validation_messages: Tuple[str, ...] = ()
    repetition: int = 1

    @property
    def is_valid(self) -> bool:
        return len(self.expressions) > 0


@dataclass(frozen=True)
class TraitSpecification:
    trait_die: DiceGroup = field(default_factory=lambda: make_trait_die(DEFAULT_TRAIT_DIE_SIDES))
    wild_die: DiceGroup = field(default_factory=lambda: make_trait_die(DEFAULT_WILD_DIE_SIDES))
    target_number: Optional[int] = DEFAULT_TRAIT_TARGET_NUMBER
    target_highest: Optional[int] = DEFAULT_TRAIT_TARGET_HIGHEST
    global_modifier: Optional[int] = None
    comment: Optional[str] = None
    raw_expression: Optional[str] = None
    validation_messages: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return len(self.validation_messages) == 0


# ============================================
# 掷骰结果
# ============================================

@dataclass(frozen=True)
class DieRoll:
    """
    单颗骰子的结果
    value: 爆骰累加后的点数
    exploded: 是否发生过爆骰
    dropped: 是否被保留/舍弃规则剔除
    draws: 依次抽到的原始点数，draws[0] 即首次自然点数
    """
    value: int
    exploded: bool = False
    dropped: bool = False
    draws: Tuple[int, ...] = ()

    @property
    def natural(self) -> int:
        return self.draws[0] if self.draws else self.value

    def as_tuple(self) -> Tuple[int, bool, bool]:
        return (self.value, self.exploded, self.dropped)


@dataclass(frozen=True)
class DiceGroupResult:
    group: DiceTerm
    rolls: Tuple[DieRoll, ...] = ()
    total: int = 0

    @property
    def kept_rolls(self) -> Tuple[DieRoll, ...]:
        return tuple(roll for roll in self.rolls if not roll.dropped)

    def to_dict(self) -> Dict[str, Any]:
        group = self.group
        data: Dict[str, Any] = {
            "notation": group.notation,
            "quantity": group.quantity,
            "sides": group.sides,
            "is_modifier": group.is_modifier,
            "rolls": [
                {"value": r.value, "exploded": r.exploded, "dropped": r.dropped, "draws": list(r.draws)}
                for r in self.rolls
            ],
            "total": self.total,
        }
        return data


@dataclass(frozen=True)
class ExpressionResult:
    group_results: Tuple[Tuple[DiceGroupResult, Operator], ...] = ()
    total: int = 0
    state: Optional[ExpressionState] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [
                {"operator": op.value, **result.to_dict()} for result, op in self.group_results
            ],
            "total": self.total,
            "state": self.state.value if self.state else None,
        }


@dataclass(frozen=True)
class RollResult:
    expression_results: Tuple[ExpressionResult, ...] = ()
    grand_total: int = 0
    total_successes: Optional[int] = None
    is_critical_failure: bool = False
    target_number: Optional[int] = None
    target_highest: Optional[int] = None
    global_modifier: Optional[int] = None
    raw_expression: Optional[str] = None
    comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "standard",
            "expressions": [expr.to_dict() for expr in self.expression_results],
            "grand_total": self.grand_total,
            "total_successes": self.total_successes,
            "is_critical_failure": self.is_critical_failure,
            "target_number": self.target_number,
            "target_highest": self.target_highest,
            "global_modifier": self.global_modifier,
            "raw_expression": self.raw_expression,
            "comment": self.comment,
        }


@dataclass(frozen=True)
class TraitDieResult:
    trait_result: DiceGroupResult
    wild_result: DiceGroupResult
    chosen_result: str  # "trait" | "wild"
    trait_total: int
    wild_total: int
    final_total: int
    is_critical_failure: bool
    state: ExpressionState


@dataclass(frozen=True)
class TraitResult:
    trait_die_result: TraitDieResult
    grand_total: int
    target_number: Optional[int] = None
    target_highest: Optional[int] = None
    global_modifier: Optional[int] = None
    raw_expression: Optional[str] = None
    comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        tdr = self.trait_die_result
        return {
            "type": "trait",
            "trait": tdr.trait_result.to_dict(),
            "wild": tdr.wild_result.to_dict(),
            "chosen_result": tdr.chosen_result,
            "trait_total": tdr.trait_total,
            "wild_total": tdr.wild_total,
            "final_total": tdr.final_total,
            "is_critical_failure": tdr.is_critical_failure,
            "state": tdr.state.value,
            "grand_total": self.grand_total,
            "target_number": self.target_number,
            "target_highest": self.target_highest,
            "global_modifier": self.global_modifier,
            "raw_expression": self.raw_expression,
            "comment": self.comment,
        }


