"""
本文件定义了图表渲染与导出相关的Pydantic模型，用于API请求和响应。

包含：
1. 活动记录与区间消息的输入模型
2. 数据集（ChartDataset）与样式模型
3. 渲染/导出请求与响应模型
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.analytics.zone_histogram import ZoneChart
from ..core.analytics.zones import ZoneMessage, ZoneResolutionContext


class ActivityRecord(BaseModel):
    """单条采样记录；除时间戳外的字段（含开发者字段）原样保留"""
    model_config = ConfigDict(extra="allow")

    timestamp: Any = Field(None, description="时间戳：epoch 秒/毫秒、datetime 或 ISO-8601 字符串")


class ChartPoint(BaseModel):
    x: int = Field(..., description="相对活动开始的秒数")
    y: float = Field(..., description="数值")


class DatasetStyle(BaseModel):
    """交给渲染端的样式参数"""
    chart_type: str = Field("line", description="line/bar/scatter/area")
    fill: bool = True
    show_points: bool = False
    show_line: bool = True
    tension: float = 0.4
    stepped: bool = False
    border_color: str
    background_color: str
    border_width: int = 2
    point_radius: int = 0
    animation_duration: int = Field(1000, description="动画时长（毫秒）")
    animation_easing: str = Field("easeOutQuart", description="动画缓动函数，由动画风格决定")
    cubic_interpolation_mode: str = Field("default", description="default 或 monotone（单调三次插值）")


class ChartDataset(BaseModel):
    field: str = Field(..., description="字段名")
    display_label: str = Field(..., description="显示名称")
    color: str = Field(..., description="最终生效的颜色")
    points: List[ChartPoint] = Field(default_factory=list, description="降采样后的数据点")
    original_size: int = Field(0, description="降采样前的数据点数量")
    style: DatasetStyle


class RenderRequest(BaseModel):
    """渲染请求模型"""
    records: List[ActivityRecord] = Field(default_factory=list, description="活动采样记录（按时间排序）")
    zone_messages: List[ZoneMessage] = Field(default_factory=list, description="区间时间消息")
    session_records: List[Dict[str, Any]] = Field(default_factory=list, description="旧版 session 汇总记录")
    settings: Dict[str, Any] = Field(default_factory=dict, description="chartjs_ 前缀的设置键值")
    theme: str = Field("light", description="应用主题（light/dark），用于 exportTheme=auto")


class RenderResponse(BaseModel):
    """渲染响应模型"""
    status: str = Field(..., description="ok 或 no_records")
    datasets: List[ChartDataset] = Field(default_factory=list)
    zone_charts: List[ZoneChart] = Field(default_factory=list)
    skipped_fields: List[str] = Field(default_factory=list, description="可见但无有效数值的字段")
    total_records: int = 0


class ZonesResponse(BaseModel):
    """区间解析响应模型"""
    context: ZoneResolutionContext
    zone_charts: List[ZoneChart] = Field(default_factory=list)


class ExportRequest(RenderRequest):
    """导出请求模型：先执行一次渲染，再导出结果"""
    include_zone_charts: bool = Field(False, description="合成图/ZIP 中是否包含区间图")
    only_fields: Optional[List[str]] = Field(None, description="仅导出这些字段；为空表示全部")
