"""
属性骰检定
同时掷属性骰与百搭骰 (均为连爆)，取较高者，平局取属性骰
"""
from ..core import get_logger
from .classifier import classify_total
from .models import ExpressionState, TraitDieResult, TraitResult, TraitSpecification
from .roller import DiceRoller

logger = get_logger(__name__)


class TraitRollCoordinator:
    def __init__(self, roller: DiceRoller):
        self.roller = roller

    def roll(self, spec: TraitSpecification) -> TraitResult:
        modifier = spec.global_modifier or 0

        trait_result = self.roller.roll(spec.trait_die)
        wild_result = self.roller.roll(spec.wild_die)

        trait_total = trait_result.total + modifier
        wild_total = wild_result.total + modifier
        chosen = "trait" if trait_total >= wild_total else "wild"
        final_total = max(trait_total, wild_total)

        # 只看两颗骰子的首次自然点数，后续爆骰不影响
        is_critical_failure = (
            trait_result.rolls[0].natural == 1 and wild_result.rolls[0].natural == 1
        )
        if is_critical_failure:
            state = ExpressionState.CRITICAL_FAILURE
        else:
            state = classify_total(final_total, spec.target_number)

        logger.debug(
            f"属性骰检定 {spec.raw_expression!r}: 属性骰 {trait_total} / 百搭骰 {wild_total} "
            f"-> {chosen} {final_total} ({state.value})"
        )

        return TraitResult(
            trait_die_result=TraitDieResult(
                trait_result=trait_result,
                wild_result=wild_result,
                chosen_result=chosen,
                trait_total=trait_total,
                wild_total=wild_total,
                final_total=final_total,
                is_critical_failure=is_critical_failure,
                state=state,
            ),
            grand_total=final_total,
            target_number=spec.target_number,
            target_highest=spec.target_highest,
            global_modifier=spec.global_modifier,
            raw_expression=spec.raw_expression,
            comment=spec.comment,
        )
