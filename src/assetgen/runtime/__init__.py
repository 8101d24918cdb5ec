"""Runtime - 组装一个文档的资源维护组件"""

from .bootstrap import (
    RuntimeComponents,
    bootstrap,
)

__all__ = [
    "bootstrap",
    "RuntimeComponents",
]
