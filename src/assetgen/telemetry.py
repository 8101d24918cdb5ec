"""Telemetry - 日志与指标

- get_logger / configure_logging: 包内 logger，可选安装 rich handler
- format_component_log: 组件相关日志前缀 [module:<component_id>@<layer_id>]
- metrics: 进程内指标（counter / gauge / 耗时统计），由 config.METRICS_ENABLED 控制是否记录

常用指标: render.issued, render.placed, render.failed, render.cancelled,
render.stale, render.duration, components.count, changes.invalid, queue.depth
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any

from rich.logging import RichHandler

_LOG_FORMAT = "[%(name)s] %(message)s"
_PACKAGE_LOGGER = "assetgen"

# (name, sorted label pairs)
MetricKey = tuple[str, tuple[tuple[str, str], ...]]


def get_logger(name: str) -> logging.Logger:
    """获取模块 logger（通常传入 __name__）"""
    return logging.getLogger(name)


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """为 assetgen 包安装 rich 日志 handler

    重复调用只会调整级别，不会重复添加 handler。

    Args:
        level: 日志级别，None 使用 config.LOG_LEVEL

    Returns:
        包根 logger
    """
    from . import config

    root = logging.getLogger(_PACKAGE_LOGGER)
    root.setLevel(level if level is not None else config.LOG_LEVEL)

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)

    return root


def format_component_log(module: str, component_id: int, layer_id: Any, msg: str) -> str:
    """格式化组件日志: [module:component_id@layer_id] msg

    layer_id 为 None 时显示为 "?"。
    """
    layer = layer_id if layer_id is not None else "?"
    return f"[{module}:{component_id}@{layer}] {msg}"


@dataclass
class Timing:
    """耗时统计（秒）"""

    count: int = 0
    total: float = 0.0
    max: float = 0.0

    def add(self, seconds: float) -> None:
        self.count += 1
        self.total += seconds
        self.max = max(self.max, seconds)

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class Metrics:
    """进程内指标

    标签以排序后的 (key, value) 元组参与 key，{"a": 1, "b": 2} 与
    {"b": 2, "a": 1} 是同一个序列。
    """

    def __init__(self):
        self._counters: Counter[MetricKey] = Counter()
        self._gauges: dict[MetricKey, float] = {}
        self._timings: dict[MetricKey, Timing] = {}

    @staticmethod
    def _key(name: str, labels: dict[str, Any] | None) -> MetricKey:
        pairs = tuple(sorted((str(k), str(v)) for k, v in (labels or {}).items()))
        return name, pairs

    @staticmethod
    def _render(key: MetricKey) -> str:
        name, pairs = key
        if not pairs:
            return name
        return name + "{" + ",".join(f"{k}={v}" for k, v in pairs) + "}"

    def inc(self, name: str, labels: dict[str, Any] | None = None, value: int = 1) -> None:
        self._counters[self._key(name, labels)] += value

    def gauge(self, name: str, value: float, labels: dict[str, Any] | None = None) -> None:
        self._gauges[self._key(name, labels)] = value

    def observe(self, name: str, seconds: float, labels: dict[str, Any] | None = None) -> None:
        """记录一次耗时"""
        self._timings.setdefault(self._key(name, labels), Timing()).add(seconds)

    def get_counter(self, name: str, labels: dict[str, Any] | None = None) -> int:
        return self._counters[self._key(name, labels)]

    def get_gauge(self, name: str, labels: dict[str, Any] | None = None) -> float:
        return self._gauges.get(self._key(name, labels), 0.0)

    def get_timing(self, name: str, labels: dict[str, Any] | None = None) -> Timing:
        return self._timings.get(self._key(name, labels), Timing())

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """导出当前全部指标（key 形如 name{k=v}）"""
        return {
            "counters": {self._render(k): v for k, v in self._counters.items() if v},
            "gauges": {self._render(k): v for k, v in self._gauges.items()},
            "timings": {
                self._render(k): {"count": t.count, "mean": t.mean, "max": t.max}
                for k, t in self._timings.items()
            },
        }

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()
        self._timings.clear()


metrics = Metrics()
