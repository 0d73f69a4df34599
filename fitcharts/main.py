"""
活动图表分析与导出API主应用文件。

本文件是FastAPI应用的入口点，负责：
1. 初始化日志
2. 创建FastAPI应用实例
3. 注册各个模块的路由
"""

from fastapi import FastAPI
from .logging_config import setup_logging
from .config import LOG_LEVEL

from .api.charts import router as charts_router
from .api.export import router as export_router

setup_logging(LOG_LEVEL)
app = FastAPI(title="活动图表分析 API")

# 路由注册
app.include_router(charts_router, tags=["图表"])
app.include_router(export_router, tags=["导出"])
