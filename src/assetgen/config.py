"""assetgen 配置

配置分为以下几类：
- 输出配置：资源目录位置
- 队列配置：变更队列参数
- 日志配置
- 指标配置
"""

import os

# === 输出配置 ===
ASSETS_DIR_SUFFIX = "-assets"  # /dir/name.psd -> /dir/name-assets
FALLBACK_BASE_DIR = os.environ.get(
    "ASSETGEN_FALLBACK_DIR", os.path.join(os.path.expanduser("~"), "Desktop")
)  # 未保存文档的资源根目录

# === 变更队列配置 ===
CHANGE_QUEUE_WARN_SIZE = 64  # 积压达到此值打印 warning
CHANGE_QUEUE_HIGH_WATERMARK = 0.75  # 高水位阈值（打印 debug 日志）

# === 日志配置 ===
LOG_LEVEL = os.environ.get("ASSETGEN_LOG_LEVEL", "INFO")  # 日志级别
LOG_MAX_NAME_LEN = 40  # 图层名日志截断长度

# === 指标配置 ===
METRICS_ENABLED = True  # 是否启用指标收集
