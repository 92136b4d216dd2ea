"""
测试命令文案与帮助文本
"""
from src.interfaces.messages import (
    format_error_message,
    format_help_text,
    format_overview_help,
    format_warning_message,
    get_available_commands,
    get_command_config,
    load_messages,
)


class TestCommandConfig:
    def test_available_commands(self):
        assert get_available_commands() == ["roll", "trait"]
        assert "help" not in get_available_commands()

    def test_config_fields(self):
        for name in get_available_commands():
            config = get_command_config(name)
            assert config["description"]
            assert config["formula"]
            assert config["examples"]

    def test_unknown_command(self):
        assert get_command_config("invalid") is None


class TestHelpText:
    def test_overview(self):
        text = format_overview_help()
        help_cfg = load_messages()["help"]
        assert help_cfg["title"] in text
        assert help_cfg["detailedHelpPrompt"] in text
        for name in get_available_commands():
            assert f"**/{name}**" in text

    def test_detailed_help(self):
        fmt = load_messages()["format"]
        for name in get_available_commands():
            config = get_command_config(name)
            text = format_help_text(name)
            assert config["helpTitle"] in text
            assert fmt["formulaHeader"] in text
            assert config["formula"] in text
            assert fmt["examplesHeader"] in text
            assert config["examples"][0]["syntax"] in text
            assert config["examples"][0]["description"] in text
            assert load_messages()["help"]["relatedHeader"] in text
            assert len(text) <= 2000

    def test_unknown_command_help(self):
        text = format_help_text("invalid")
        assert "`invalid`" in text
        assert "/help" in text


class TestErrorAndWarning:
    def test_error_without_messages(self):
        text = format_error_message("roll", "invalid", [])
        errors = load_messages()["errors"]
        assert "❌ **无效的 roll 表达式:** `invalid`" in text
        assert errors["errorPrefix"].strip() not in text
        assert get_command_config("roll")["helpTitle"] in text

    def test_error_with_messages(self):
        text = format_error_message("trait", "d7", ["第一条", "第二条"])
        assert "❌ **无效的 trait 表达式:** `d7`" in text
        assert "• 第一条" in text
        assert "• 第二条" in text
        assert get_command_config("trait")["helpTitle"] in text

    def test_no_warning(self):
        assert format_warning_message([]) == ""

    def test_warning(self):
        text = format_warning_message(["骰子数量较多", "已取消爆骰"])
        assert text.startswith(load_messages()["errors"]["warningPrefix"].strip())
        assert "• 骰子数量较多" in text
        assert "• 已取消爆骰" in text
        assert text.endswith("\n")
