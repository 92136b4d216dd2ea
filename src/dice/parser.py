"""
掷骰表达式解析

两类入口：
- parse_roll_expression: 普通掷骰，如 "4d6kh3+2; 1d20!! t15 (+1) \"攻击\" x3"
- parse_trait_expression: 属性骰检定，如 "d8+1 wd6 tn6"

解析从不抛异常。格式错误的片段转为校验信息 (validation_messages)，
由调用方决定是警告还是拒绝执行。会清空整个结果的只有输入过长与重复展开后的数量超限。

校验辅助函数都返回 (结果, 信息列表)，在调用处合并，避免共享的可变状态。
"""
import copy
import re
from typing import List, Optional, Sequence, Tuple

from ..core import get_logger
from .constants import (
    MIN_DICE_QUANTITY,
    MAX_DICE_QUANTITY,
    MIN_DICE_SIDES,
    MAX_DICE_SIDES,
    MAX_DICE_GROUPS,
    MAX_EXPRESSIONS,
    MAX_RAW_EXPRESSION_LEN,
    DEFAULT_DICE_SIDES,
    DEFAULT_TRAIT_DIE_SIDES,
    DEFAULT_WILD_DIE_SIDES,
    DEFAULT_TRAIT_TARGET_NUMBER,
    DEFAULT_TRAIT_TARGET_HIGHEST,
    MAX_TRAIT_DIE_SIDES,
    MAX_WILD_DIE_SIDES,
    VALID_TRAIT_DICE_SIDES,
)
from .models import (
    DiceGroup,
    DiceTerm,
    Expression,
    Modifier,
    Operator,
    RollSpecification,
    Term,
    TraitSpecification,
    make_trait_die,
)
from .tokenizer import Token, TokenKind, split_tokens, take_first, tokenize, tokens_text

logger = get_logger(__name__)

Messages = List[str]

_REPETITION_RE = re.compile(r"\s*x\s*(\d*)\s*$", re.IGNORECASE)
_COMMENT_RE = re.compile(r'"([^"]*)"')
_WHITESPACE_RE = re.compile(r"\s+")

_SIGNS = (TokenKind.PLUS, TokenKind.MINUS)
_SELECTIONS = {
    TokenKind.KEEP_HIGHEST: "keep_highest",
    TokenKind.KEEP_LOWEST: "keep_lowest",
    TokenKind.DROP_HIGHEST: "drop_highest",
    TokenKind.DROP_LOWEST: "drop_lowest",
}


# ============================================
# 预处理
# ============================================

def extract_repetition(text: str) -> Tuple[int, str]:
    """
    提取末尾的重复后缀 "x N"
    在提取注释与去除空白之前进行，以便同时支持 "x3" 与 "x 3"；
    没有数字或 N < 2 时视为 1
    """
    match = _REPETITION_RE.search(text)
    if not match:
        return 1, text
    count = int(match.group(1)) if match.group(1) else 1
    return (count if count >= 2 else 1), text[:match.start()]


def extract_comment(text: str) -> Tuple[Optional[str], str]:
    """提取第一段双引号内容作为注释，空引号视为没有注释"""
    match = _COMMENT_RE.search(text)
    if not match:
        return None, text
    comment = match.group(1).strip() or None
    return comment, text[:match.start()] + text[match.end():]


def clean_expression(text: str) -> str:
    return _WHITESPACE_RE.sub("", text).lower()


def check_length(text: str) -> Messages:
    """超长输入直接拒绝，不进入词法分析"""
    if len(text) > MAX_RAW_EXPRESSION_LEN:
        return [f"表达式过长: {len(text)} 个字符，最多 {MAX_RAW_EXPRESSION_LEN}"]
    return []


# ============================================
# 校验辅助
# ============================================

def validate_dimensions(quantity: int, sides: int) -> Messages:
    if not MIN_DICE_QUANTITY <= quantity <= MAX_DICE_QUANTITY:
        return [f"骰子数量 {quantity} 无效，必须在 {MIN_DICE_QUANTITY}-{MAX_DICE_QUANTITY} 之间"]
    if not MIN_DICE_SIDES <= sides <= MAX_DICE_SIDES:
        return [f"骰子面数 {sides} 无效，必须在 {MIN_DICE_SIDES}-{MAX_DICE_SIDES} 之间"]
    return []


def resolve_exploding(
    exploding: bool, threshold: Optional[int], sides: int
) -> Tuple[bool, Optional[int], Messages]:
    """未指定阈值时取面数；阈值越界则取消爆骰但保留骰子组"""
    if not exploding:
        return False, None, []
    if threshold is None:
        return True, sides, []
    if not MIN_DICE_SIDES <= threshold <= sides:
        return False, None, [
            f"爆骰阈值 {threshold} 无效，必须在 {MIN_DICE_SIDES}-{sides} 之间，已取消爆骰"
        ]
    return True, threshold, []


def validate_selection_bounds(
    selections: dict, quantity: int
) -> Tuple[dict, Messages]:
    """保留类上限为 quantity，舍弃类上限为 quantity - 1，越界的单项被移除"""
    labels = {
        "keep_highest": "保留最高 (kh)",
        "keep_lowest": "保留最低 (kl)",
        "drop_highest": "舍弃最高 (dh)",
        "drop_lowest": "舍弃最低 (dl)",
    }
    kept = {}
    messages: Messages = []
    for name, value in selections.items():
        upper = quantity if name.startswith("keep") else quantity - 1
        if 1 <= value <= upper:
            kept[name] = value
        else:
            messages.append(f"{labels[name]} {value} 无效，必须在 1-{upper} 之间")
    return kept, messages


def resolve_selection_conflicts(selections: dict, quantity: int) -> Tuple[dict, Messages]:
    """
    冲突处理顺序：
    1. 保留与舍弃同时存在 → 移除舍弃
    2. 同时保留最高与最低 → 移除保留最低
    3. 舍弃最高 + 舍弃最低 >= 数量 → 两者都移除
    """
    resolved = dict(selections)
    messages: Messages = []
    has_keep = "keep_highest" in resolved or "keep_lowest" in resolved
    has_drop = "drop_highest" in resolved or "drop_lowest" in resolved

    if has_keep and has_drop:
        messages.append("不能同时使用保留与舍弃，已移除舍弃修饰")
        resolved.pop("drop_highest", None)
        resolved.pop("drop_lowest", None)

    if "keep_highest" in resolved and "keep_lowest" in resolved:
        messages.append("不能同时保留最高与最低，已移除保留最低 (kl)")
        resolved.pop("keep_lowest")

    if (
        "drop_highest" in resolved
        and "drop_lowest" in resolved
        and resolved["drop_highest"] + resolved["drop_lowest"] >= quantity
    ):
        messages.append("不能舍弃全部骰子，已移除舍弃修饰")
        resolved.pop("drop_highest")
        resolved.pop("drop_lowest")

    return resolved, messages


# ============================================
# 骰子项 (递归下降)
# ============================================

class _TermCursor:
    def __init__(self, tokens: Sequence[Token]):
        self.tokens = tokens
        self.index = 0

    def peek(self, *kinds: TokenKind) -> bool:
        return self.index < len(self.tokens) and self.tokens[self.index].kind in kinds

    def take(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    @property
    def done(self) -> bool:
        return self.index >= len(self.tokens)


def parse_term(tokens: Sequence[Token]) -> Tuple[Optional[DiceTerm], Messages]:
    """
    term      := NUMBER | NUMBER? "d" NUMBER suffix*
    suffix    := explode | selection
    explode   := ("!" | "!!") (">" NUMBER)?
    selection := ("kh" | "kl" | "dh" | "dl") NUMBER
    每种后缀至多出现一次，顺序不限
    """
    failure = [f"无法解析骰子组: {tokens_text(tokens)}"]

    if len(tokens) == 1 and tokens[0].kind is TokenKind.NUMBER:
        return Modifier(tokens[0].value), []

    cursor = _TermCursor(tokens)
    quantity = cursor.take().value if cursor.peek(TokenKind.NUMBER) else 1
    if not cursor.peek(TokenKind.DICE):
        return None, failure
    cursor.take()
    if not cursor.peek(TokenKind.NUMBER):
        return None, failure
    sides = cursor.take().value

    exploding = False
    infinite = False
    threshold: Optional[int] = None
    seen_explode = False
    selections = {}

    while not cursor.done:
        if cursor.peek(TokenKind.EXPLODE, TokenKind.EXPLODE_INFINITE):
            if seen_explode:
                return None, failure
            seen_explode = True
            exploding = True
            infinite = cursor.take().kind is TokenKind.EXPLODE_INFINITE
            if cursor.peek(TokenKind.GREATER):
                cursor.take()
                if not cursor.peek(TokenKind.NUMBER):
                    return None, failure
                threshold = cursor.take().value
        elif cursor.peek(*_SELECTIONS):
            name = _SELECTIONS[cursor.take().kind]
            if name in selections or not cursor.peek(TokenKind.NUMBER):
                return None, failure
            selections[name] = cursor.take().value
        else:
            return None, failure

    messages = validate_dimensions(quantity, sides)
    if messages:
        return None, messages

    exploding, exploding_number, explode_messages = resolve_exploding(exploding, threshold, sides)
    messages.extend(explode_messages)

    selections, bound_messages = validate_selection_bounds(selections, quantity)
    messages.extend(bound_messages)
    selections, conflict_messages = resolve_selection_conflicts(selections, quantity)
    messages.extend(conflict_messages)

    group = DiceGroup(
        quantity=quantity,
        sides=sides,
        exploding=exploding,
        exploding_number=exploding_number,
        infinite=infinite if exploding else False,
        **selections,
    )
    return group, messages


def parse_expression_tokens(tokens: Sequence[Token]) -> Tuple[Optional[Expression], Messages]:
    """按顶层 +/- 切分骰子项，每项使用其前面最近的运算符，开头隐含 +"""
    pending: List[Tuple[Operator, List[Token]]] = []
    operator = Operator.PLUS
    current: List[Token] = []

    for token in tokens:
        if token.kind in _SIGNS:
            if current:
                pending.append((operator, current))
                current = []
            operator = Operator.PLUS if token.kind is TokenKind.PLUS else Operator.MINUS
        else:
            current.append(token)
    if current:
        pending.append((operator, current))

    terms: List[Term] = []
    messages: Messages = []
    for op, term_tokens in pending:
        group, term_messages = parse_term(term_tokens)
        messages.extend(term_messages)
        if group is not None:
            terms.append(Term(group, op))

    if not terms:
        return None, messages
    return Expression(tuple(terms)), messages


# ============================================
# 普通掷骰
# ============================================

def parse_roll_expression(text: str) -> RollSpecification:
    """
    解析普通掷骰表达式

    处理顺序：长度校验 → 重复后缀 → 注释 → 清洗 → th → t/tn → 全局修正
    → 按 ; , 拆分表达式 → 按 +/- 拆分骰子项 → 数量校验 → 重复展开
    """
    raw = text or ""
    messages = check_length(raw)
    if messages:
        logger.debug(f"校验信息: {messages[0]}")
        return RollSpecification(raw_expression=raw, validation_messages=tuple(messages))

    repetition, working = extract_repetition(raw)
    comment, working = extract_comment(working)
    tokens = tokenize(clean_expression(working))

    target_highest_token = take_first(tokens, TokenKind.TARGET_HIGHEST)
    target_number_token = take_first(tokens, TokenKind.TARGET_NUMBER)
    global_modifier_token = take_first(tokens, TokenKind.GLOBAL_MODIFIER)

    target_number = target_number_token.value if target_number_token else None
    global_modifier = global_modifier_token.value if global_modifier_token else None
    target_highest = None
    if target_highest_token:
        if target_number is not None:
            target_highest = target_highest_token.value
        else:
            messages.append("目标最高值 (th) 需要同时指定目标值 (t/tn)")

    def build(expressions, reps=1) -> RollSpecification:
        spec = RollSpecification(
            expressions=tuple(expressions),
            target_number=target_number,
            target_highest=target_highest,
            global_modifier=global_modifier,
            comment=comment,
            raw_expression=raw,
            validation_messages=tuple(messages),
            repetition=reps,
        )
        for message in messages:
            logger.debug(f"校验信息: {message} | 表达式: {raw!r}")
        return spec

    if not tokens:
        default = Expression((Term(DiceGroup(quantity=1, sides=DEFAULT_DICE_SIDES)),))
        return build([default])

    expressions: List[Expression] = []
    for chunk in split_tokens(tokens, (TokenKind.SEPARATOR,)):
        if not chunk:
            continue
        expression, chunk_messages = parse_expression_tokens(chunk)
        messages.extend(chunk_messages)
        if expression is not None:
            expressions.append(expression)

    # 先按展开后的数量校验，超限时不做复制
    total_groups = sum(expr.dice_group_count for expr in expressions) * repetition
    total_expressions = len(expressions) * repetition
    if total_groups > MAX_DICE_GROUPS:
        messages.append(f"骰子组过多: {total_groups}，最多 {MAX_DICE_GROUPS}")
        expressions = []
    elif total_expressions > MAX_EXPRESSIONS:
        messages.append(f"表达式过多: {total_expressions}，最多 {MAX_EXPRESSIONS}")
        expressions = []
    elif repetition > 1:
        originals = expressions
        expressions = [copy.deepcopy(expr) for _ in range(repetition) for expr in originals]

    return build(expressions, repetition)


# ============================================
# 属性骰检定
# ============================================

def _validate_trait_sides(label: str, sides: int, maximum: int) -> Messages:
    if not MIN_DICE_SIDES <= sides <= maximum:
        return [f"{label}面数 {sides} 无效，必须在 {MIN_DICE_SIDES}-{maximum} 之间"]
    if sides not in VALID_TRAIT_DICE_SIDES:
        allowed = ", ".join(str(s) for s in VALID_TRAIT_DICE_SIDES)
        return [f"{label}面数 {sides} 无效，必须为以下之一: {allowed}"]
    return []


def _find_trait_die(tokens: List[Token]) -> Optional[Tuple[int, int, Optional[int]]]:
    """
    查找第一个 NUMBER? "d" NUMBER (("+"|"-") NUMBER)? 片段并从列表中移除
    返回 (数量, 面数, 行内修正)
    """
    for index in range(len(tokens) - 1):
        if tokens[index].kind is TokenKind.DICE and tokens[index + 1].kind is TokenKind.NUMBER:
            start = index
            quantity = 1
            if index > 0 and tokens[index - 1].kind is TokenKind.NUMBER:
                start = index - 1
                quantity = tokens[index - 1].value
            sides = tokens[index + 1].value
            end = index + 2
            inline = None
            if (
                end + 1 < len(tokens)
                and tokens[end].kind in _SIGNS
                and tokens[end + 1].kind is TokenKind.NUMBER
            ):
                inline = tokens[end + 1].value
                if tokens[end].kind is TokenKind.MINUS:
                    inline = -inline
                end += 2
            del tokens[start:end]
            return quantity, sides, inline
    return None


def parse_trait_expression(text: str) -> TraitSpecification:
    """
    解析属性骰检定表达式

    支持: 属性骰 "d8" / "1d8+1"、百搭骰覆盖 "wd8"、目标值 "t6"/"tn6"、
    目标最高值 "th1"、全局修正 "(+2)"、注释 "\"射击\""
    行内修正 (d8+1) 优先于括号修正；两种骰子都必须在 2-100 之内且属于常用骰型
    """
    raw = text or ""
    messages = check_length(raw)
    if messages:
        logger.debug(f"校验信息: {messages[0]}")
        return TraitSpecification(raw_expression=raw, validation_messages=tuple(messages))

    comment, working = extract_comment(raw)
    tokens = tokenize(clean_expression(working))

    target_number = DEFAULT_TRAIT_TARGET_NUMBER
    target_highest = DEFAULT_TRAIT_TARGET_HIGHEST
    trait_sides = DEFAULT_TRAIT_DIE_SIDES
    wild_sides = DEFAULT_WILD_DIE_SIDES
    global_modifier: Optional[int] = None

    token = take_first(tokens, TokenKind.TARGET_NUMBER)
    if token:
        target_number = token.value
    token = take_first(tokens, TokenKind.TARGET_HIGHEST)
    if token:
        target_highest = token.value

    for index, token in enumerate(tokens):
        if (
            token.kind is TokenKind.WILD_DIE
            and index + 1 < len(tokens)
            and tokens[index + 1].kind is TokenKind.NUMBER
        ):
            sides = tokens[index + 1].value
            wild_messages = _validate_trait_sides("百搭骰", sides, MAX_WILD_DIE_SIDES)
            messages.extend(wild_messages)
            if not wild_messages:
                wild_sides = sides
            del tokens[index:index + 2]
            break

    trait_die = _find_trait_die(tokens)
    if trait_die is not None:
        quantity, sides, inline = trait_die
        if quantity != 1:
            messages.append(f"属性骰数量必须为 1，实际为 {quantity}")
        trait_messages = _validate_trait_sides("属性骰", sides, MAX_TRAIT_DIE_SIDES)
        messages.extend(trait_messages)
        if not trait_messages:
            trait_sides = sides
        if inline is not None:
            global_modifier = inline

    modifier_token = take_first(tokens, TokenKind.GLOBAL_MODIFIER)
    if modifier_token and global_modifier is None:
        global_modifier = modifier_token.value

    if tokens:
        bare = _bare_modifier(tokens)
        if trait_die is None and bare is not None and global_modifier is None:
            global_modifier = bare
        elif trait_die is None:
            messages.append("无法从表达式中解析属性骰")
        else:
            messages.append(f"无法识别的内容: {tokens_text(tokens)}")

    for message in messages:
        logger.debug(f"校验信息: {message} | 表达式: {raw!r}")

    return TraitSpecification(
        trait_die=make_trait_die(trait_sides),
        wild_die=make_trait_die(wild_sides),
        target_number=target_number,
        target_highest=target_highest,
        global_modifier=global_modifier,
        comment=comment,
        raw_expression=raw,
        validation_messages=tuple(messages),
    )


def _bare_modifier(tokens: Sequence[Token]) -> Optional[int]:
    """剩余记号恰好为 [+|-]NUMBER 时返回其数值"""
    if len(tokens) == 1 and tokens[0].kind is TokenKind.NUMBER:
        return tokens[0].value
    if len(tokens) == 2 and tokens[0].kind in _SIGNS and tokens[1].kind is TokenKind.NUMBER:
        value = tokens[1].value
        return -value if tokens[0].kind is TokenKind.MINUS else value
    return None
