"""
随机数来源

掷骰器只依赖 RandomSource.random_int 这一原语：
- CryptoRandomSource: 基于 secrets.SystemRandom 的密码学随机数，线程安全
- SequenceRandomSource: 按脚本序列依次返回，用于测试与结果重放
"""
import secrets
import threading
from typing import Iterable, List, Protocol, runtime_checkable


class RandomContractError(ValueError):
    """随机数原语的调用契约被违反 (非整数边界、上下界颠倒等)，属于编程错误"""


def _check_bounds(minimum: int, maximum: int) -> None:
    for bound in (minimum, maximum):
        if isinstance(bound, bool) or not isinstance(bound, int):
            raise RandomContractError(f"随机数边界必须为整数: min={minimum!r}, max={maximum!r}")
    if maximum < minimum:
        raise RandomContractError(f"随机数上界必须 >= 下界: min={minimum}, max={maximum}")


@runtime_checkable
class RandomSource(Protocol):
    def random_int(self, minimum: int, maximum: int) -> int:
        """返回闭区间 [minimum, maximum] 内均匀分布的整数"""
        ...


class CryptoRandomSource:
    """密码学安全的随机数来源"""

    def __init__(self):
        self._rng = secrets.SystemRandom()

    def random_int(self, minimum: int, maximum: int) -> int:
        _check_bounds(minimum, maximum)
        return self._rng.randint(minimum, maximum)


class SequenceRandomSource:
    """
    脚本化随机数来源
    依次返回预设的数值，序列耗尽或数值超出请求区间时抛出 RandomContractError
    """

    def __init__(self, values: Iterable[int]):
        self._values: List[int] = list(values)
        self._position = 0
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        """已消耗的数值个数"""
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._values) - self._position

    def random_int(self, minimum: int, maximum: int) -> int:
        _check_bounds(minimum, maximum)
        with self._lock:
            if self._position >= len(self._values):
                raise RandomContractError(f"脚本序列已耗尽 (共 {len(self._values)} 个数值)")
            value = self._values[self._position]
            self._position += 1
        if not minimum <= value <= maximum:
            raise RandomContractError(f"脚本数值 {value} 不在区间 [{minimum}, {maximum}] 内")
        return value


def random_sequence(size: int, rng: RandomSource = None) -> List[int]:
    """
    生成 1..size 的随机排列 (Fisher–Yates 洗牌)
    与 random_int 共用同一原语
    """
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise RandomContractError(f"序列长度必须为 >= 1 的整数: {size!r}")

    rng = rng or default_random_source()
    seq = list(range(1, size + 1))
    for i in range(size - 1, 0, -1):
        j = rng.random_int(0, i)
        seq[i], seq[j] = seq[j], seq[i]
    return seq


_default_source: CryptoRandomSource = None
_default_lock = threading.Lock()


def default_random_source() -> CryptoRandomSource:
    """获取进程级共享的密码学随机数来源"""
    global _default_source
    with _default_lock:
        if _default_source is None:
            _default_source = CryptoRandomSource()
        return _default_source
