"""
日志模块
控制台 + 按日期滚动的文件日志，调试开关与文件开关均来自 config.yaml
"""

import sys
import logging
import yaml
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
from typing import Any, Dict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"


def _load_logging_options() -> Dict[str, Any]:
    """从 config.yaml 读取 debug 与日志文件配置"""
    options = {"debug": False, "log_to_file": True}
    try:
        config_path = PROJECT_ROOT / "config.yaml"
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            options["debug"] = bool(config.get("project", {}).get("debug", False))
            options["log_to_file"] = bool(config.get("logging", {}).get("log_to_file", True))
    except Exception as e:
        # 日志系统尚未就绪，只能写标准错误
        sys.stderr.write(f"Warning: Failed to load logging config: {e}\n")
    return options


_OPTIONS = _load_logging_options()
DEBUG_MODE = _OPTIONS["debug"]
LOG_TO_FILE = _OPTIONS["log_to_file"]


class ConditionalFormatter(logging.Formatter):
    """WARNING 及以上级别额外输出模块名与行号"""

    BASE_FMT = "[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s"
    DETAIL_FMT = "[%(asctime)s] [%(levelname)s] [%(name)s] [%(module)s:%(lineno)d] - %(message)s"

    def format(self, record):
        if record.levelno >= logging.WARNING:
            self._style._fmt = self.DETAIL_FMT
        else:
            self._style._fmt = self.BASE_FMT
        return super().format(record)


def setup_logger(name="DiceKeeper", log_level=logging.INFO):
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # 防止重复添加 handler
    if logger.handlers:
        return logger

    formatter = ConditionalFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if LOG_TO_FILE:
        LOG_DIR.mkdir(exist_ok=True)
        # 使用日期作为文件名
        today = datetime.now().strftime("%Y-%m-%d")
        file_handler = RotatingFileHandler(
            LOG_DIR / f"{today}.log",
            maxBytes=10*1024*1024, # 最大10MB
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str, log_level: str = "INFO"):
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL
    }

    # 调试模式下 INFO 提升为 DEBUG
    if DEBUG_MODE and log_level.upper() == "INFO":
        log_level = "DEBUG"

    actual_level = level_map.get(log_level.upper(), logging.INFO)

    return setup_logger(name=module_name, log_level=actual_level)
