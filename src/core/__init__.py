from .logger import get_logger
from .config import get_settings, reload_config, Settings, DiceConfig, ApiServerConfig, PROJECT_ROOT

__all__ = [
    # 日志
    'get_logger',
    # 配置
    'get_settings',
    'reload_config',
    'Settings',
    'DiceConfig',
    'ApiServerConfig',
    'PROJECT_ROOT',
]
