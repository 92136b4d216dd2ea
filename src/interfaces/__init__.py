"""
Interfaces 模块
接口层：命令处理、结果格式化、API、CLI
"""
from .formatter import format_roll_result, format_trait_result
from .command_handler import (
    DiceCommand,
    CommandReply,
    CommandRegistry,
    handle_dice_command,
    build_registry,
)
from .api_server import app, run_server

__all__ = [
    # 格式化
    "format_roll_result",
    "format_trait_result",
    # 命令处理
    "DiceCommand",
    "CommandReply",
    "CommandRegistry",
    "handle_dice_command",
    "build_registry",
    # HTTP 服务
    "app",
    "run_server",
]
