"""
骰子组掷骰器
负责单个骰子组的抽取、爆骰累加与保留/舍弃标记，不做任何判定
"""
from typing import List, Optional

from ..core import get_logger
from .constants import MAX_DRAWS_PER_DIE
from .models import DiceGroup, DiceGroupResult, DiceTerm, DieRoll
from .rng import RandomSource, default_random_source

logger = get_logger(__name__)


class DiceRoller:
    """
    骰子组掷骰器

    随机数来源通过构造参数注入，测试中可替换为 SequenceRandomSource
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_random_source()

    def roll(self, group: DiceTerm) -> DiceGroupResult:
        """掷一个骰子组；纯数字修正直接返回其数值，不消耗随机数"""
        if group.is_modifier:
            return DiceGroupResult(group=group, rolls=(), total=group.value)

        rolls = [self.roll_die(group) for _ in range(group.quantity)]
        rolls = self.apply_selection(group, rolls)
        total = sum(roll.value for roll in rolls if not roll.dropped)

        logger.debug(
            f"掷骰 {group.notation}: {[roll.value for roll in rolls]} -> {total}"
        )
        return DiceGroupResult(group=group, rolls=tuple(rolls), total=total)

    def roll_die(self, group: DiceGroup) -> DieRoll:
        """
        掷单颗骰子
        抽到 >= 爆骰阈值时追加抽取：连爆无限追加，普通爆骰只追加一次；
        无论哪种，单颗骰子最多抽取 MAX_DRAWS_PER_DIE 次
        """
        draws: List[int] = []
        exploded = False
        while True:
            face = self.rng.random_int(1, group.sides)
            draws.append(face)
            if not group.exploding or face < group.exploding_number:
                break
            exploded = True
            if len(draws) >= MAX_DRAWS_PER_DIE:
                break
            if not group.infinite and len(draws) >= 2:
                break
        return DieRoll(value=sum(draws), exploded=exploded, draws=tuple(draws))

    @staticmethod
    def apply_selection(group: DiceGroup, rolls: List[DieRoll]) -> List[DieRoll]:
        """按保留/舍弃规则标记被剔除的骰子，排序稳定 (同点数按原始顺序)"""
        if group.keep_highest is not None:
            ranked, count = _ranked(rolls, highest=True), group.keep_highest
            dropped = set(ranked[count:])
        elif group.keep_lowest is not None:
            ranked, count = _ranked(rolls, highest=False), group.keep_lowest
            dropped = set(ranked[count:])
        elif group.drop_highest is not None:
            dropped = set(_ranked(rolls, highest=True)[:group.drop_highest])
        elif group.drop_lowest is not None:
            dropped = set(_ranked(rolls, highest=False)[:group.drop_lowest])
        else:
            return rolls

        return [
            DieRoll(roll.value, roll.exploded, True, roll.draws) if index in dropped else roll
            for index, roll in enumerate(rolls)
        ]


def _ranked(rolls: List[DieRoll], highest: bool) -> List[int]:
    """按点数排序后的下标列表，同点数时原始下标小者在前"""
    if highest:
        return sorted(range(len(rolls)), key=lambda i: (-rolls[i].value, i))
    return sorted(range(len(rolls)), key=lambda i: (rolls[i].value, i))
