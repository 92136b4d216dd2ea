"""
掷骰表达式词法分析

输入为已去除空白并转为小写的文本。每个位置按固定顺序尝试匹配，
先匹配的规则优先，以此处理前缀重叠的记号：
- "(±N)" 整体识别为全局修正，其余括号为未知字符
- "th<N>" 先于 "t<N>"/"tn<N>"，因此 t 后接 h 时不会被当作目标值
- "wd" 先于 "d"，"kh"/"kl"/"dh"/"dl" 先于 "d"
- "!!" 先于 "!"
无法识别的字符逐个产出 UNKNOWN 记号，由解析器决定如何报错
"""
import re
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Sequence


class TokenKind(Enum):
    NUMBER = "number"
    DICE = "d"
    KEEP_HIGHEST = "kh"
    KEEP_LOWEST = "kl"
    DROP_HIGHEST = "dh"
    DROP_LOWEST = "dl"
    EXPLODE = "!"
    EXPLODE_INFINITE = "!!"
    GREATER = ">"
    TARGET_NUMBER = "tn"
    TARGET_HIGHEST = "th"
    GLOBAL_MODIFIER = "(n)"
    WILD_DIE = "wd"
    PLUS = "+"
    MINUS = "-"
    SEPARATOR = ";"
    UNKNOWN = "?"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int
    value: Optional[int] = None


# 顺序即优先级
_RULES = [
    (TokenKind.GLOBAL_MODIFIER, re.compile(r"\(([+-]?\d+)\)")),
    (TokenKind.TARGET_HIGHEST, re.compile(r"th(\d+)")),
    (TokenKind.TARGET_NUMBER, re.compile(r"tn?(\d+)")),
    (TokenKind.WILD_DIE, re.compile(r"wd")),
    (TokenKind.KEEP_HIGHEST, re.compile(r"kh")),
    (TokenKind.KEEP_LOWEST, re.compile(r"kl")),
    (TokenKind.DROP_HIGHEST, re.compile(r"dh")),
    (TokenKind.DROP_LOWEST, re.compile(r"dl")),
    (TokenKind.DICE, re.compile(r"d")),
    (TokenKind.EXPLODE_INFINITE, re.compile(r"!!")),
    (TokenKind.EXPLODE, re.compile(r"!")),
    (TokenKind.GREATER, re.compile(r">")),
    (TokenKind.NUMBER, re.compile(r"(\d+)")),
    (TokenKind.PLUS, re.compile(r"\+")),
    (TokenKind.MINUS, re.compile(r"-")),
    (TokenKind.SEPARATOR, re.compile(r"[;,]")),
]


def tokenize(text: str) -> List[Token]:
    """将清洗后的表达式切分为记号序列"""
    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        for kind, pattern in _RULES:
            match = pattern.match(text, pos)
            if match:
                value = int(match.group(1)) if match.groups() else None
                tokens.append(Token(kind, match.group(0), pos, value))
                pos = match.end()
                break
        else:
            tokens.append(Token(TokenKind.UNKNOWN, text[pos], pos))
            pos += 1
    return tokens


def tokens_text(tokens: Sequence[Token]) -> str:
    """还原记号对应的原始文本"""
    return "".join(token.text for token in tokens)


def take_first(tokens: List[Token], kind: TokenKind) -> Optional[Token]:
    """移除并返回第一个指定类型的记号"""
    for index, token in enumerate(tokens):
        if token.kind is kind:
            return tokens.pop(index)
    return None


def split_tokens(tokens: Sequence[Token], kinds) -> List[List[Token]]:
    """按指定类型的记号切分，分隔记号本身丢弃"""
    chunks: List[List[Token]] = [[]]
    for token in tokens:
        if token.kind in kinds:
            chunks.append([])
        else:
            chunks[-1].append(token)
    return chunks
