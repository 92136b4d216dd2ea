"""
测试公共夹具
"""
# 添加项目根目录到路径
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from src.dice.engine import DiceEngine
from src.dice.rng import SequenceRandomSource
from src.dice.roller import DiceRoller


@pytest.fixture
def scripted_rng():
    """按给定序列返回点数的随机数来源工厂"""
    def _make(*values):
        return SequenceRandomSource(values)
    return _make


@pytest.fixture
def scripted_roller(scripted_rng):
    def _make(*values):
        return DiceRoller(scripted_rng(*values))
    return _make


@pytest.fixture
def scripted_engine(scripted_rng):
    def _make(*values):
        return DiceEngine(scripted_rng(*values))
    return _make
