"""
命令行掷骰工具
交互式输入 /roll、/trait、/help 命令，结果直接打印
"""
import sys
import asyncio
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.core.logger import get_logger
from src.dice.engine import get_dice_engine
from src.interfaces.command_handler import CommandRegistry, build_registry, handle_dice_command
from src.interfaces.messages import format_help_text, format_overview_help

logger = get_logger(__name__)

QUIT_COMMANDS = ("quit", "exit", "q")


def split_command(user_input: str):
    """拆分 "/roll 2d6" 为 ("roll", "2d6")，不以 / 开头时返回 (None, None)"""
    if not user_input.startswith("/"):
        return None, None
    parts = user_input[1:].split(" ", 1)
    name = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""
    return name, arg


async def process_input(registry: CommandRegistry, user_input: str, display_name: str = None) -> str:
    """处理一行输入并返回要打印的文本"""
    name, arg = split_command(user_input)
    if name is None:
        return "❓ 请输入命令，如 /roll 2d6，输入 /help 查看帮助"

    if name == "help":
        return format_help_text(arg.lower()) if arg else format_overview_help()

    command = registry.get(name)
    if command is None:
        return format_help_text(name)

    reply = await handle_dice_command(command, arg, display_name)
    return reply.text


async def run_interactive_session():
    """运行交互式掷骰会话"""
    print("\n" + "=" * 70)
    print("  DiceKeeper - 掷骰命令行工具")
    print("=" * 70)

    try:
        registry = build_registry(get_dice_engine())
    except Exception as e:
        logger.error(f"初始化失败: {e}", exc_info=True)
        print(f"\n❌ 初始化失败: {e}")
        return

    print("\n💡 提示:")
    print("  - /roll <表达式>   普通掷骰，如 /roll 4d6kh3+2")
    print("  - /trait <表达式>  属性骰检定，如 /trait d8+1 tn6")
    print("  - /help [命令]     查看帮助")
    print("  - 输入 'quit' 或 'exit' 退出")
    print("\n" + "=" * 70)

    while True:
        try:
            user_input = input("\n🎲 >>> ").strip()

            if not user_input:
                continue

            if user_input.lower() in QUIT_COMMANDS:
                print("\n👋 再见！")
                break

            print(await process_input(registry, user_input))

        except KeyboardInterrupt:
            print("\n\n⚠️  检测到中断信号...")
            confirm = input("确定要退出吗? (y/n): ").strip().lower()
            if confirm == 'y':
                print("\n👋 再见！")
                break
        except EOFError:
            print("\n👋 再见！")
            break
        except Exception as e:
            logger.error(f"处理输入时出错: {e}", exc_info=True)
            print(f"\n❌ 发生错误: {e}")
            print("系统将继续运行...\n")


def main():
    """主入口"""
    try:
        asyncio.run(run_interactive_session())
    except KeyboardInterrupt:
        print("\n\n程序已终止")
    except Exception as e:
        logger.error(f"程序异常退出: {e}", exc_info=True)
        print(f"\n❌ 程序异常: {e}")


if __name__ == "__main__":
    main()
