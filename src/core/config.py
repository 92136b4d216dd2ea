"""
配置读取模块
"""

import yaml
from pathlib import Path
from typing import Any, Dict
from pydantic import BaseModel, Field
from .logger import get_logger

logger = get_logger(__name__)

# 项目根目录
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class ProjectConfig(BaseModel):
    """项目基础配置"""
    name: str = Field("DiceKeeper", description="项目名称")
    debug: bool = Field(False, description="调试模式")


class LoggingConfig(BaseModel):
    """日志配置"""
    log_to_file: bool = Field(True, description="是否写入 logs/ 目录下的日志文件")


class DiceConfig(BaseModel):
    """掷骰配置"""
    max_expression_length: int = Field(
        1000, ge=1, le=1000, description="单条掷骰表达式的最大长度"
    )


class ApiServerConfig(BaseModel):
    """HTTP 接口服务配置"""
    host: str = Field("0.0.0.0", description="监听地址")
    port: int = Field(8000, ge=1, le=65535, description="监听端口")
    reload: bool = Field(False, description="是否启用热重载")


# ============================================
# 主配置类
# ============================================

class Settings(BaseModel):
    """
    应用总配置
    """

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    dice: DiceConfig = Field(default_factory=DiceConfig)
    api_server: ApiServerConfig = Field(default_factory=ApiServerConfig)

    @property
    def PROJECT_NAME(self) -> str:
        """项目名称"""
        return self.project.name

    @property
    def DEBUG(self) -> bool:
        """调试模式"""
        return self.project.debug

    @property
    def MAX_EXPRESSION_LENGTH(self) -> int:
        """表达式最大长度"""
        return self.dice.max_expression_length

    @classmethod
    def load_config(cls, config_path: Path = None) -> "Settings":
        """
        读取 config.yaml 并实例化 Settings 对象
        文件缺失或无法解析时使用默认配置
        """
        yaml_path = config_path or PROJECT_ROOT / "config.yaml"
        yaml_config: Dict[str, Any] = {}

        if yaml_path.exists():
            try:
                with open(yaml_path, "r", encoding="utf-8") as f:
                    yaml_config = yaml.safe_load(f) or {}
            except Exception as e:
                logger.warning(f"无法读取 {yaml_path.name}: {e}，将使用默认配置")
                yaml_config = {}
        else:
            logger.warning(f"未找到 {yaml_path}，将使用默认配置")

        return cls(**yaml_config)

    def get_absolute_path(self, relative_path: str) -> Path:
        """
        将相对路径转换为绝对路径
        """
        return PROJECT_ROOT / relative_path


# 实例化配置 (应用启动时自动加载)
settings = Settings.load_config()


# ============================================
# 便捷函数
# ============================================

def get_settings() -> Settings:
    """
    获取全局配置实例
    """
    return settings


def reload_config(config_path: Path = None) -> Settings:
    """
    重新加载配置
    """
    global settings
    settings = Settings.load_config(config_path)
    return settings
