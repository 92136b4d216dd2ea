"""
命令文案与帮助文本
文案集中在同目录的 messages.yaml 中，首次使用时加载并缓存
"""
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from ..core import get_logger

logger = get_logger(__name__)

MESSAGES_PATH = Path(__file__).parent / "messages.yaml"


@lru_cache(maxsize=1)
def load_messages() -> Dict[str, Any]:
    with open(MESSAGES_PATH, "r", encoding="utf-8") as f:
        messages = yaml.safe_load(f) or {}
    logger.debug(f"已加载命令文案: {list(messages.get('commands', {}))}")
    return messages


def get_command_config(command_name: str) -> Optional[Dict[str, Any]]:
    """获取命令配置，未知命令返回 None"""
    return load_messages()["commands"].get(command_name)


def get_available_commands() -> List[str]:
    """可在帮助中查看的命令名 (不含 help 本身)"""
    return list(load_messages()["commands"].keys())


def _bullets(items: Sequence[str]) -> str:
    template = load_messages()["format"]["listItem"]
    return "\n".join(template.format(message=item) for item in items)


def format_help_text(command_name: str) -> str:
    """单个命令的详细帮助：标题、格式、示例、相关命令"""
    messages = load_messages()
    config = get_command_config(command_name)
    if config is None:
        help_cfg = messages["help"]
        return (
            f"{help_cfg['unknownCommand'].format(command=command_name)}\n"
            f"{help_cfg['unknownCommandHint']}"
        )

    fmt = messages["format"]
    lines = [
        f"**{config['helpTitle']}**",
        "",
        fmt["formulaHeader"],
        f"`{config['formula']}`",
    ]
    examples = config.get("examples") or []
    if examples:
        lines.append("")
        lines.append(fmt["examplesHeader"])
        lines.extend(
            fmt["bulletPoint"].format(syntax=example["syntax"], description=example["description"])
            for example in examples
        )
    related = config.get("related") or []
    if related:
        lines.append("")
        lines.append(
            f"{messages['help']['relatedHeader']} " + ", ".join(f"`/{name}`" for name in related)
        )
    return "\n".join(lines)


def format_overview_help() -> str:
    """所有命令的概览帮助"""
    messages = load_messages()
    help_cfg = messages["help"]
    lines = [help_cfg["title"], "", help_cfg["overviewHeader"]]
    for name, config in messages["commands"].items():
        lines.append(f"**/{name}**: {config['description']}")
    lines.append("")
    lines.append(help_cfg["detailedHelpPrompt"])
    return "\n".join(lines)


def format_error_message(command_name: str, text: str, validation_messages: Sequence[str]) -> str:
    """无效表达式的错误回复，附带该命令的帮助"""
    errors = load_messages()["errors"]
    parts = [errors["invalidExpression"].format(type=command_name, input=text)]
    if validation_messages:
        parts.append(errors["errorPrefix"].strip())
        parts.append(_bullets(validation_messages))
    parts.append("")
    parts.append(format_help_text(command_name))
    return "\n".join(parts)


def format_warning_message(validation_messages: Sequence[str]) -> str:
    """仍可执行但有校验信息时的警告前缀；没有信息时返回空串"""
    if not validation_messages:
        return ""
    errors = load_messages()["errors"]
    return f"{errors['warningPrefix'].strip()}\n{_bullets(validation_messages)}\n"
