"""
测试普通掷骰表达式解析
"""
import pytest

from src.dice.models import DiceGroup, Modifier, Operator
from src.dice.parser import (
    clean_expression,
    extract_comment,
    extract_repetition,
    parse_roll_expression,
)


def only_group(spec):
    assert len(spec.expressions) == 1
    assert len(spec.expressions[0].terms) == 1
    return spec.expressions[0].terms[0].group


class TestPreprocessing:
    @pytest.mark.parametrize("text,count,rest", [
        ("2d6 x3", 3, "2d6"),
        ("2d6x 3", 3, "2d6"),
        ("2d6 X4 ", 4, "2d6"),
        ("2d6 x1", 1, "2d6"),
        ("2d6 x", 1, "2d6"),
        ("2d6", 1, "2d6"),
    ])
    def test_extract_repetition(self, text, count, rest):
        assert extract_repetition(text) == (count, rest)

    def test_extract_comment_keeps_case_and_spaces(self):
        comment, rest = extract_comment('2d6 "Fire Bolt" t4')
        assert comment == "Fire Bolt"
        assert rest == "2d6  t4"

    def test_empty_comment(self):
        assert extract_comment('2d6 ""')[0] is None
        assert extract_comment('2d6 "   "')[0] is None

    def test_clean_expression(self):
        assert clean_expression(" 2D6 +\t1 ") == "2d6+1"


class TestBasicExpressions:
    def test_single_group(self):
        spec = parse_roll_expression("2d6")
        assert only_group(spec) == DiceGroup(quantity=2, sides=6)
        assert spec.validation_messages == ()
        assert spec.is_valid
        assert spec.raw_expression == "2d6"

    def test_implicit_quantity(self):
        assert only_group(parse_roll_expression("d20")) == DiceGroup(quantity=1, sides=20)

    def test_uppercase_and_spaces(self):
        assert only_group(parse_roll_expression(" 3 D 8 ")) == DiceGroup(quantity=3, sides=8)

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_input_defaults_to_d6(self, text):
        spec = parse_roll_expression(text)
        assert only_group(spec) == DiceGroup(quantity=1, sides=6)
        assert spec.validation_messages == ()

    def test_repetition_alone_gives_single_default(self):
        spec = parse_roll_expression("x3")
        assert len(spec.expressions) == 1

    def test_number_only_is_modifier(self):
        assert only_group(parse_roll_expression("5")) == Modifier(5)

    def test_terms_and_operators(self):
        spec = parse_roll_expression("2d6+1d4-3")
        terms = spec.expressions[0].terms
        assert [t.group for t in terms] == [DiceGroup(2, 6), DiceGroup(1, 4), Modifier(3)]
        assert [t.operator for t in terms] == [Operator.PLUS, Operator.PLUS, Operator.MINUS]
        assert spec.expressions[0].dice_group_count == 2

    def test_last_operator_wins(self):
        terms = parse_roll_expression("1d6+-1d4").expressions[0].terms
        assert terms[1].operator is Operator.MINUS

    def test_leading_minus(self):
        terms = parse_roll_expression("-1d4").expressions[0].terms
        assert terms[0].operator is Operator.MINUS

    def test_trailing_operator_ignored(self):
        terms = parse_roll_expression("1d6+").expressions[0].terms
        assert len(terms) == 1

    def test_multiple_expressions(self):
        spec = parse_roll_expression("1d6; 1d8, 1d10")
        assert [e.terms[0].group.sides for e in spec.expressions] == [6, 8, 10]

    def test_empty_chunks_skipped(self):
        spec = parse_roll_expression("1d6;;1d8;")
        assert len(spec.expressions) == 2


class TestGlobalOptions:
    def test_target_number(self):
        assert parse_roll_expression("2d6 t4").target_number == 4
        assert parse_roll_expression("2d6 tn7").target_number == 7

    def test_target_number_inside_later_expression(self):
        spec = parse_roll_expression("1d6;2d6 tn5")
        assert spec.target_number == 5
        assert len(spec.expressions) == 2

    def test_target_highest_requires_target_number(self):
        spec = parse_roll_expression("2d6 th1")
        assert spec.target_highest is None
        assert any("th" in m for m in spec.validation_messages)
        assert spec.is_valid

    def test_target_highest_with_target_number(self):
        spec = parse_roll_expression("2d6 t6 th2")
        assert spec.target_number == 6
        assert spec.target_highest == 2
        assert spec.validation_messages == ()

    @pytest.mark.parametrize("text,value", [("2d6 (+2)", 2), ("2d6 (-3)", -3), ("2d6 (4)", 4)])
    def test_global_modifier(self, text, value):
        spec = parse_roll_expression(text)
        assert spec.global_modifier == value
        assert only_group(spec) == DiceGroup(2, 6)

    def test_comment(self):
        spec = parse_roll_expression('1d20+5 "Attack Roll"')
        assert spec.comment == "Attack Roll"
        assert spec.expressions[0].terms[0].group == DiceGroup(1, 20)


class TestModifiers:
    def test_exploding_default_threshold(self):
        group = only_group(parse_roll_expression("1d6!"))
        assert group.exploding and not group.infinite
        assert group.exploding_number == 6

    def test_infinite_exploding(self):
        group = only_group(parse_roll_expression("1d8!!"))
        assert group.exploding and group.infinite
        assert group.exploding_number == 8

    def test_explicit_threshold(self):
        group = only_group(parse_roll_expression("2d10!!>9"))
        assert group.exploding_number == 9
        assert group.infinite

    @pytest.mark.parametrize("text", ["1d6!>7", "1d6!>1", "1d6!>0"])
    def test_threshold_out_of_range_disables_exploding(self, text):
        spec = parse_roll_expression(text)
        group = only_group(spec)
        assert not group.exploding
        assert group.exploding_number is None
        assert len(spec.validation_messages) == 1

    def test_keep_highest(self):
        assert only_group(parse_roll_expression("4d6kh3")).keep_highest == 3

    def test_suffixes_in_any_order(self):
        group = only_group(parse_roll_expression("4d6kh3!"))
        assert group.keep_highest == 3
        assert group.exploding

    def test_keep_out_of_range(self):
        spec = parse_roll_expression("4d6kh5")
        group = only_group(spec)
        assert group.keep_highest is None
        assert len(spec.validation_messages) == 1

    def test_drop_all_rejected(self):
        spec = parse_roll_expression("4d6dl4")
        assert only_group(spec).drop_lowest is None
        assert len(spec.validation_messages) == 1

    def test_keep_and_drop_conflict(self):
        spec = parse_roll_expression("4d6kh2dl1")
        group = only_group(spec)
        assert group.keep_highest == 2
        assert group.drop_lowest is None
        assert len(spec.validation_messages) == 1

    def test_keep_highest_and_lowest_conflict(self):
        group = only_group(parse_roll_expression("4d6kh2kl1"))
        assert group.keep_highest == 2
        assert group.keep_lowest is None

    def test_drop_both_covering_all(self):
        group = only_group(parse_roll_expression("4d6dh2dl2"))
        assert group.drop_highest is None
        assert group.drop_lowest is None

    def test_drop_both_within_bounds(self):
        group = only_group(parse_roll_expression("5d6dh1dl1"))
        assert group.drop_highest == 1
        assert group.drop_lowest == 1


class TestInvalidInput:
    def test_quantity_out_of_range(self):
        spec = parse_roll_expression("0d6")
        assert spec.expressions == ()
        assert not spec.is_valid
        assert len(spec.validation_messages) == 1

    def test_too_many_dice(self):
        assert not parse_roll_expression("101d6").is_valid

    def test_sides_out_of_range(self):
        assert not parse_roll_expression("1d1").is_valid
        assert not parse_roll_expression("1d1001").is_valid
        assert parse_roll_expression("100d1000").is_valid

    def test_invalid_term_dropped_others_kept(self):
        spec = parse_roll_expression("1d6+1d0")
        assert len(spec.expressions[0].terms) == 1
        assert len(spec.validation_messages) == 1

    def test_garbage(self):
        spec = parse_roll_expression("abc")
        assert not spec.is_valid
        assert spec.validation_messages == ("无法解析骰子组: abc",)

    def test_duplicate_suffix(self):
        assert not parse_roll_expression("2d6kh1kh1").is_valid

    def test_never_raises(self):
        for text in ["d", "2d", "!!", "1d6!>", "kh3", "((", "t", "1d6;;;", "\"unterminated"]:
            parse_roll_expression(text)

    def test_messages_are_idempotent(self):
        first = parse_roll_expression("1d0; zz; 4d6kh9")
        second = parse_roll_expression("1d0; zz; 4d6kh9")
        assert first.validation_messages == second.validation_messages
        assert first.expressions == second.expressions


class TestRepetition:
    def test_repeats_expressions(self):
        spec = parse_roll_expression("2d6 x3")
        assert len(spec.expressions) == 3
        assert spec.repetition == 3
        assert spec.expressions[0] == spec.expressions[1] == spec.expressions[2]
        assert spec.expressions[0] is not spec.expressions[1]

    @pytest.mark.parametrize("text", ["2d6 x1", "2d6 x"])
    def test_single_repetition(self, text):
        assert len(parse_roll_expression(text).expressions) == 1

    def test_repetition_after_comment(self):
        spec = parse_roll_expression('2d6 "伤害" x3')
        assert len(spec.expressions) == 3
        assert spec.comment == "伤害"
        assert spec.validation_messages == ()

    def test_trailing_comment_hides_repetition(self):
        spec = parse_roll_expression('2d6 x3 "伤害"')
        assert spec.repetition == 1
        assert spec.comment == "伤害"
        assert len(spec.expressions) <= 1

    def test_comment_ending_in_x_is_not_repetition(self):
        spec = parse_roll_expression('2d6 "box"')
        assert len(spec.expressions) == 1
        assert spec.comment == "box"

    def test_repeats_all_expressions_in_order(self):
        spec = parse_roll_expression("1d4;1d8 x2")
        assert [e.terms[0].group.sides for e in spec.expressions] == [4, 8, 4, 8]

    def test_too_many_groups_after_repetition(self):
        spec = parse_roll_expression("+".join(["1d6"] * 34) + " x3")
        assert spec.expressions == ()
        assert any("骰子组过多" in m for m in spec.validation_messages)

    def test_modifiers_not_counted(self):
        spec = parse_roll_expression("+".join(["1d6"] * 50) + "+1 x2")
        assert len(spec.expressions) == 2

    def test_huge_repetition_rejected_without_expanding(self):
        spec = parse_roll_expression("1d6 x100000000")
        assert spec.expressions == ()
        assert spec.repetition == 100000000
        assert spec.validation_messages == ("骰子组过多: 100000000，最多 100",)

    def test_modifier_only_repetition_capped(self):
        spec = parse_roll_expression("5 x200000")
        assert spec.expressions == ()
        assert spec.validation_messages == ("表达式过多: 200000，最多 100",)

    def test_expression_limit_boundary(self):
        assert len(parse_roll_expression("5 x100").expressions) == 100
        assert parse_roll_expression("5;5 x51").expressions == ()


class TestInputLength:
    def test_long_digit_run_rejected(self):
        spec = parse_roll_expression("1d" + "9" * 5000)
        assert spec.expressions == ()
        assert not spec.is_valid
        assert spec.validation_messages == ("表达式过长: 5002 个字符，最多 1000",)

    def test_limit_is_inclusive(self):
        text = "1d6" + " " * 997
        assert len(text) == 1000
        assert parse_roll_expression(text).is_valid
        assert not parse_roll_expression(text + " ").is_valid
