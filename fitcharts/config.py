"""
应用配置中心（Configuration Center）

说明：
- 本模块统一管理图表渲染与导出的运行配置（日志、导出网格、采样、渲染节流等）
- 配置优先从环境变量中读取，未设置或无法解析时使用安全的默认值

常用环境变量（全部可选）：
1) 日志
   - `LOG_LEVEL`：日志等级，默认 INFO（可选 DEBUG/INFO/WARN/ERROR 等）

2) 导出（合成图网格）
   - `EXPORT_CELL_WIDTH` / `EXPORT_CELL_HEIGHT`：每个单元格的像素尺寸，默认 800x400
   - `EXPORT_PADDING`：单元格之间的间距（像素），默认 20

3) 渲染
   - `DEFAULT_MAX_POINTS`：每条曲线的最大点数，默认 250
   - `RENDER_DEBOUNCE_SECONDS`：设置连续变化时的渲染节流延迟（秒），默认 0.25
   - `RENDER_DPI`：matplotlib 栅格化 DPI，默认 100
   - `MPL_CACHE_DIR`：matplotlib 缓存目录（写入 MPLCONFIGDIR），默认 ./data/.mpl-cache
"""

import logging
import os

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[config] invalid %s=%r, using %s", name, raw, default)
        return default
    return value if value > 0 else default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[config] invalid %s=%r, using %s", name, raw, default)
        return default
    return value if value >= 0 else default


# 日志（Logging）
# LOG_LEVEL 用于控制 logging 的根等级，详见 fitcharts/logging_config.py
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# 导出网格（Export grid）
EXPORT_CELL_WIDTH = _int_env('EXPORT_CELL_WIDTH', 800)
EXPORT_CELL_HEIGHT = _int_env('EXPORT_CELL_HEIGHT', 400)
EXPORT_PADDING = _int_env('EXPORT_PADDING', 20)

# 渲染（Rendering）
DEFAULT_MAX_POINTS = _int_env('DEFAULT_MAX_POINTS', 250)
RENDER_DEBOUNCE_SECONDS = _float_env('RENDER_DEBOUNCE_SECONDS', 0.25)
RENDER_DPI = _int_env('RENDER_DPI', 100)
MPL_CACHE_DIR = os.environ.get('MPL_CACHE_DIR', os.path.join(os.getcwd(), 'data', '.mpl-cache'))
