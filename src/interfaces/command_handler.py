"""
通用掷骰命令处理
所有掷骰类命令共用同一流程：
1. 长度检查
2. 解析输入
3. 校验失败时返回错误信息与帮助
4. 有校验信息但仍可执行时附加警告
5. 执行掷骰
6. 格式化结果
"""
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..core import get_logger, get_settings
from ..dice.engine import DiceEngine
from ..dice.models import RollSpecification, TraitSpecification
from .formatter import format_roll_result, format_trait_result
from .messages import format_error_message, format_warning_message, get_command_config, load_messages

logger = get_logger(__name__)


@dataclass
class DiceCommand:
    """
    掷骰命令定义

    name: 命令名，同时用于查找文案
    parse: 文本 -> 规格
    validate: 规格是否可以执行
    execute: 规格 -> 结果，可以是协程函数
    format: (结果, 显示名) -> 文本
    """
    name: str
    parse: Callable[[str], Any]
    validate: Callable[[Any], bool]
    execute: Callable[[Any], Any]
    format: Callable[..., str]
    aliases: List[str] = field(default_factory=list)

    @property
    def description(self) -> str:
        config = get_command_config(self.name) or {}
        return config.get("description", "")


@dataclass
class CommandReply:
    ok: bool
    text: str
    messages: List[str] = field(default_factory=list)
    result: Optional[Any] = None


class CommandRegistry:
    def __init__(self):
        self.commands: Dict[str, DiceCommand] = {}

    def register(self, command: DiceCommand):
        self.commands[command.name] = command
        for alias in command.aliases:
            self.commands[alias] = command

    def get(self, name: str) -> Optional[DiceCommand]:
        return self.commands.get(name)

    def names(self) -> List[str]:
        """已注册的命令名 (不含别名)，按注册顺序"""
        seen = []
        for command in self.commands.values():
            if command.name not in seen:
                seen.append(command.name)
        return seen


async def handle_dice_command(
    command: DiceCommand, text: str, display_name: Optional[str] = None
) -> CommandReply:
    """执行一条掷骰命令并返回回复"""
    text = (text or "").strip()
    max_length = get_settings().MAX_EXPRESSION_LENGTH
    if len(text) > max_length:
        errors = load_messages()["errors"]
        message = errors["inputTooLong"].format(length=len(text), maximum=max_length)
        logger.info(f"/{command.name} 输入过长: {len(text)} 个字符")
        return CommandReply(
            ok=False,
            text=format_error_message(command.name, text[:50] + "...", [message]),
            messages=[message],
        )

    spec = command.parse(text)
    messages = list(spec.validation_messages)

    if not command.validate(spec):
        logger.info(f"/{command.name} 表达式无效: {text!r} ({len(messages)} 条校验信息)")
        return CommandReply(ok=False, text=format_error_message(command.name, text, messages), messages=messages)

    warning = format_warning_message(messages)

    result = command.execute(spec)
    if inspect.isawaitable(result):
        result = await result

    response = command.format(result, display_name)
    logger.info(f"/{command.name} {text!r} -> {result.grand_total}")
    return CommandReply(ok=True, text=warning + response, messages=messages, result=result)


def _roll_is_valid(spec: RollSpecification) -> bool:
    return spec.is_valid


def _trait_is_valid(spec: TraitSpecification) -> bool:
    return spec.is_valid


def build_registry(engine: DiceEngine) -> CommandRegistry:
    """注册 roll 与 trait 命令，共享同一个掷骰引擎"""
    registry = CommandRegistry()
    registry.register(DiceCommand(
        name="roll",
        parse=engine.parse,
        validate=_roll_is_valid,
        execute=engine.roll,
        format=format_roll_result,
        aliases=["r"],
    ))
    registry.register(DiceCommand(
        name="trait",
        parse=engine.parse_trait,
        validate=_trait_is_valid,
        execute=engine.roll_trait,
        format=format_trait_result,
        aliases=["t"],
    ))
    return registry
