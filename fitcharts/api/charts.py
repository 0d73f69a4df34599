"""
图表渲染 API 路由

包含：
- POST /charts/render：执行一次完整渲染（时间归一化、字段过滤、降采样、区间解析），返回数据集与区间图描述；
- POST /charts/zones：仅解析心率/功率区间数据，返回解析上下文与区间图描述。

说明：
- 路由仅做参数校验与调用 charts.pipeline；
- 没有采样记录不是错误，返回 status=no_records，区间图照常输出。
"""

from fastapi import APIRouter, HTTPException

from ..charts.pipeline import run_render_pass
from ..charts.schemas import RenderRequest, RenderResponse, ZonesResponse
from ..charts.settings import ChartSettings
from ..core.analytics.zone_histogram import build_zone_charts
from ..core.analytics.zones import ZoneDataResolver


router = APIRouter(prefix="/charts", tags=["charts"])


@router.post("/render", response_model=RenderResponse)
def render_charts(request: RenderRequest):
    try:
        settings = ChartSettings.from_store(request.settings, app_theme=request.theme)
        result = run_render_pass(
            request.records,
            request.zone_messages,
            settings,
            session_records=request.session_records,
        )
        return result.to_response()
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"渲染图表时发生错误: {str(e)}",
        )


@router.post("/zones", response_model=ZonesResponse)
def resolve_zones(request: RenderRequest):
    try:
        settings = ChartSettings.from_store(request.settings, app_theme=request.theme)
        context = ZoneDataResolver(settings.zone_colors).resolve(
            request.zone_messages,
            request.session_records,
        )
        return ZonesResponse(
            context=context,
            zone_charts=build_zone_charts(context, settings.zone_chart_visibility),
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"解析区间数据时发生错误: {str(e)}",
        )
