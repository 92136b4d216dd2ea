"""
掷骰引擎
对外统一入口：解析、普通掷骰、属性骰检定共享同一个随机数来源
"""
from typing import Optional, Union

from ..core import get_logger
from .evaluator import ExpressionEvaluator
from .models import RollResult, RollSpecification, TraitResult, TraitSpecification
from .parser import parse_roll_expression, parse_trait_expression
from .rng import RandomSource, default_random_source
from .roller import DiceRoller
from .trait import TraitRollCoordinator

logger = get_logger(__name__)


class DiceEngine:
    """
    掷骰引擎

    Usage:
        engine = DiceEngine()
        spec = engine.parse("2d6+3 t8")
        result = await engine.roll(spec)
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_random_source()
        self.roller = DiceRoller(self.rng)
        self.evaluator = ExpressionEvaluator(self.roller)
        self.trait_coordinator = TraitRollCoordinator(self.roller)

    def parse(self, text: str) -> RollSpecification:
        return parse_roll_expression(text)

    def parse_trait(self, text: str) -> TraitSpecification:
        return parse_trait_expression(text)

    async def roll(self, spec: Union[RollSpecification, str]) -> RollResult:
        """执行普通掷骰，可直接传入表达式文本"""
        if isinstance(spec, str):
            spec = self.parse(spec)
        return await self.evaluator.roll(spec)

    def roll_trait(self, spec: Union[TraitSpecification, str]) -> TraitResult:
        """执行属性骰检定，可直接传入表达式文本"""
        if isinstance(spec, str):
            spec = self.parse_trait(spec)
        return self.trait_coordinator.roll(spec)


_engine: Optional[DiceEngine] = None


def get_dice_engine() -> DiceEngine:
    """获取进程级共享的掷骰引擎 (使用密码学随机数)"""
    global _engine
    if _engine is None:
        _engine = DiceEngine()
        logger.debug("掷骰引擎已初始化")
    return _engine
