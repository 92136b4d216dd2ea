"""
Dice 模块
掷骰表达式的解析、掷骰与结果判定
"""
from .models import (
    Operator,
    ExpressionState,
    DiceGroup,
    Modifier,
    DiceTerm,
    Term,
    Expression,
    RollSpecification,
    TraitSpecification,
    DieRoll,
    DiceGroupResult,
    ExpressionResult,
    RollResult,
    TraitDieResult,
    TraitResult,
)
from .rng import (
    RandomSource,
    RandomContractError,
    CryptoRandomSource,
    SequenceRandomSource,
    random_sequence,
    default_random_source,
)
from .parser import parse_roll_expression, parse_trait_expression
from .roller import DiceRoller
from .evaluator import ExpressionEvaluator
from .classifier import (
    is_critical_failure,
    is_full_roll_critical_failure,
    classify_total,
    classify_expression,
    count_successes,
)
from .trait import TraitRollCoordinator
from .engine import DiceEngine, get_dice_engine

__all__ = [
    # 数据模型
    "Operator",
    "ExpressionState",
    "DiceGroup",
    "Modifier",
    "DiceTerm",
    "Term",
    "Expression",
    "RollSpecification",
    "TraitSpecification",
    "DieRoll",
    "DiceGroupResult",
    "ExpressionResult",
    "RollResult",
    "TraitDieResult",
    "TraitResult",
    # 随机数
    "RandomSource",
    "RandomContractError",
    "CryptoRandomSource",
    "SequenceRandomSource",
    "random_sequence",
    "default_random_source",
    # 解析
    "parse_roll_expression",
    "parse_trait_expression",
    # 掷骰与判定
    "DiceRoller",
    "ExpressionEvaluator",
    "is_critical_failure",
    "is_full_roll_critical_failure",
    "classify_total",
    "classify_expression",
    "count_successes",
    "TraitRollCoordinator",
    # 引擎
    "DiceEngine",
    "get_dice_engine",
]
