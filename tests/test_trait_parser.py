"""
测试属性骰表达式解析
"""
import pytest

from src.dice.models import make_trait_die
from src.dice.parser import parse_trait_expression


class TestTraitDefaults:
    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_uses_defaults(self, text):
        spec = parse_trait_expression(text)
        assert spec.trait_die == make_trait_die(4)
        assert spec.wild_die == make_trait_die(6)
        assert spec.target_number == 4
        assert spec.target_highest == 1
        assert spec.global_modifier is None
        assert spec.is_valid

    def test_trait_dice_always_explode_on_max(self):
        die = parse_trait_expression("d8").trait_die
        assert die.quantity == 1
        assert die.exploding and die.infinite
        assert die.exploding_number == 8


class TestTraitOptions:
    def test_inline_modifier_and_target(self):
        spec = parse_trait_expression("d8+1 tn6")
        assert spec.trait_die.sides == 8
        assert spec.global_modifier == 1
        assert spec.target_number == 6
        assert spec.is_valid

    def test_negative_inline_modifier(self):
        assert parse_trait_expression("1d8-2").global_modifier == -2

    def test_wild_die_override(self):
        spec = parse_trait_expression("d10 wd8")
        assert spec.trait_die.sides == 10
        assert spec.wild_die == make_trait_die(8)

    def test_parenthetical_modifier(self):
        assert parse_trait_expression("d8 (+2)").global_modifier == 2

    def test_inline_modifier_beats_parenthetical(self):
        spec = parse_trait_expression("d8+1 (+2)")
        assert spec.global_modifier == 1
        assert spec.is_valid

    def test_bare_modifier_without_die(self):
        spec = parse_trait_expression("+2")
        assert spec.global_modifier == 2
        assert spec.trait_die.sides == 4
        assert spec.is_valid

    def test_target_highest(self):
        assert parse_trait_expression("d6 t5 th2").target_highest == 2

    def test_comment(self):
        spec = parse_trait_expression('d8 "Shooting"')
        assert spec.comment == "Shooting"
        assert spec.is_valid


class TestTraitValidation:
    def test_quantity_must_be_one(self):
        spec = parse_trait_expression("2d8")
        assert not spec.is_valid
        assert spec.trait_die.sides == 8

    @pytest.mark.parametrize("text", ["d7", "d200", "d1"])
    def test_trait_sides_rejected(self, text):
        spec = parse_trait_expression(text)
        assert not spec.is_valid
        assert spec.trait_die.sides == 4

    def test_wild_sides_rejected(self):
        spec = parse_trait_expression("d8 wd3")
        assert len(spec.validation_messages) == 1
        assert spec.wild_die.sides == 6
        assert spec.trait_die.sides == 8

    def test_unparseable(self):
        spec = parse_trait_expression("hello")
        assert not spec.is_valid

    def test_leftover_content(self):
        spec = parse_trait_expression("d8 zz")
        assert spec.validation_messages == ("无法识别的内容: zz",)

    def test_messages_are_idempotent(self):
        assert (
            parse_trait_expression("3d7 wd5").validation_messages
            == parse_trait_expression("3d7 wd5").validation_messages
        )

    def test_long_input_rejected(self):
        spec = parse_trait_expression("d" + "8" * 5000)
        assert not spec.is_valid
        assert spec.validation_messages == ("表达式过长: 5001 个字符，最多 1000",)
        assert spec.trait_die == make_trait_die(4)
