"""
FastAPI 接口服务
提供掷骰与属性骰检定的 HTTP API 接口
"""
from typing import Any, Dict, List, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..core import get_logger, get_settings
from ..dice.constants import MAX_RAW_EXPRESSION_LEN
from ..dice.engine import get_dice_engine
from .command_handler import CommandRegistry, build_registry, handle_dice_command
from .messages import format_help_text, format_overview_help, get_command_config

logger = get_logger(__name__)

API_VERSION = "1.0.0"


# ============================================
# Pydantic 模型
# ============================================

class RollRequest(BaseModel):
    """掷骰请求"""
    expression: str = Field(
        ..., description="掷骰表达式", min_length=1, max_length=MAX_RAW_EXPRESSION_LEN
    )
    display_name: Optional[str] = Field(default=None, description="掷骰者名称", max_length=100)


class RollResponse(BaseModel):
    """掷骰响应"""
    ok: bool
    text: str
    messages: List[str] = Field(default_factory=list)
    result: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str
    commands: List[str]
    version: str = API_VERSION


# ============================================
# FastAPI 应用
# ============================================

_registry: Optional[CommandRegistry] = None


def get_registry() -> CommandRegistry:
    global _registry
    if _registry is None:
        _registry = build_registry(get_dice_engine())
    return _registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("API 服务启动中...")
    registry = get_registry()
    logger.info(f"已注册命令: {registry.names()}")

    yield

    logger.info("API 服务关闭中...")


app = FastAPI(
    title="DiceKeeper API",
    description="掷骰表达式解析与掷骰 API 服务",
    version=API_VERSION,
    lifespan=lifespan
)

# CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制来源
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# API 端点
# ============================================

@app.get("/health", response_model=HealthResponse, tags=["系统"])
async def health_check():
    """健康检查"""
    return HealthResponse(status="healthy", commands=get_registry().names())


async def _run_command(name: str, request: RollRequest) -> RollResponse:
    command = get_registry().get(name)
    try:
        reply = await handle_dice_command(command, request.expression, request.display_name)
    except Exception as e:
        logger.error(f"/{name} 执行失败: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return RollResponse(
        ok=reply.ok,
        text=reply.text,
        messages=reply.messages,
        result=reply.result.to_dict() if reply.result is not None else None,
    )


@app.post("/roll", response_model=RollResponse, tags=["掷骰"])
async def roll(request: RollRequest):
    """
    普通掷骰

    - **expression**: 掷骰表达式，如 `4d6kh3 + 2; 1d20 t15 x2 "攻击"`
    - **display_name**: 可选，显示在结果标题中

    表达式无效时 `ok` 为 false，`text` 为错误信息与帮助
    """
    return await _run_command("roll", request)


@app.post("/trait", response_model=RollResponse, tags=["掷骰"])
async def trait(request: RollRequest):
    """
    属性骰检定

    - **expression**: 属性骰表达式，如 `d8+1 wd6 tn6`
    - **display_name**: 可选，显示在结果标题中
    """
    return await _run_command("trait", request)


@app.get("/commands", tags=["系统"])
async def list_commands():
    """列出所有可用命令"""
    registry = get_registry()
    return {
        "commands": [
            {"name": name, "description": registry.get(name).description}
            for name in registry.names()
        ],
        "help": format_overview_help(),
    }


@app.get("/help/{command}", tags=["系统"])
async def command_help(command: str):
    """查看单个命令的详细帮助"""
    if get_command_config(command) is None:
        raise HTTPException(status_code=404, detail=format_help_text(command))
    return {"command": command, "help": format_help_text(command)}


# ============================================
# 启动函数
# ============================================

def run_server(host: str = None, port: int = None, reload: bool = None):
    """
    启动 API 服务器

    Args:
        host: 监听地址，默认读取配置
        port: 监听端口，默认读取配置
        reload: 是否启用热重载，默认读取配置
    """
    import uvicorn

    api_config = get_settings().api_server
    host = host if host is not None else api_config.host
    port = port if port is not None else api_config.port
    reload = reload if reload is not None else api_config.reload

    logger.info(f"启动 API 服务器: http://{host}:{port}")

    uvicorn.run(
        "src.interfaces.api_server:app",
        host=host,
        port=port,
        reload=reload
    )


if __name__ == "__main__":
    run_server()
