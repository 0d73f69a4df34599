"""
图表导出 API 路由

包含：
- POST /export/csv：合并所有数据集为一个 CSV（按时间戳外连接）；
- POST /export/json：合并 JSON 文档；
- POST /export/composite：所有图表按网格合成一张 PNG；
- POST /export/bundle：ZIP 打包（单图 PNG/CSV/JSON + 合成图 + 合并 CSV/JSON）。

说明：
- 每个导出都会先按请求重新执行一次渲染；
- 没有可导出的数据集时返回 400；导出过程中的异常统一返回 500。
"""

from typing import List, Tuple

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ..charts.pipeline import RenderResult, run_render_pass
from ..charts.schemas import ExportRequest
from ..charts.settings import ChartSettings
from ..core.analytics.zone_histogram import ZoneChart
from ..export.bundle import (
    ExportError,
    export_bundle_zip,
    export_combined_csv,
    export_combined_json,
    export_composite_png,
)


router = APIRouter(prefix="/export", tags=["export"])


def _render(request: ExportRequest) -> Tuple[ChartSettings, RenderResult, List[ZoneChart]]:
    try:
        settings = ChartSettings.from_store(request.settings, app_theme=request.theme)
        result = run_render_pass(
            request.records,
            request.zone_messages,
            settings,
            session_records=request.session_records,
        )
        if request.only_fields:
            wanted = set(request.only_fields)
            result.datasets = [dataset for dataset in result.datasets if dataset.field in wanted]
        if not result.datasets:
            raise HTTPException(status_code=400, detail="没有可导出的图表数据")
        zone_charts = result.zone_charts if request.include_zone_charts else []
        return settings, result, zone_charts
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"渲染导出数据时发生错误: {str(e)}")


@router.post("/csv")
def export_csv(request: ExportRequest):
    _, result, _ = _render(request)
    try:
        content = export_combined_csv(result.datasets)
    except ExportError as e:
        raise HTTPException(status_code=500, detail=f"导出 CSV 时发生错误: {str(e)}")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="combined-data.csv"'},
    )


@router.post("/json")
def export_json(request: ExportRequest):
    _, result, _ = _render(request)
    try:
        return export_combined_json(result.datasets)
    except ExportError as e:
        raise HTTPException(status_code=500, detail=f"导出 JSON 时发生错误: {str(e)}")


@router.post("/composite")
def export_composite(request: ExportRequest):
    settings, result, zone_charts = _render(request)
    try:
        content = export_composite_png(result.datasets, settings, zone_charts)
    except ExportError as e:
        raise HTTPException(status_code=500, detail=f"导出合成图时发生错误: {str(e)}")
    return Response(content=content, media_type="image/png")


@router.post("/bundle")
def export_bundle(request: ExportRequest):
    settings, result, zone_charts = _render(request)
    try:
        content = export_bundle_zip(result.datasets, settings, zone_charts)
    except ExportError as e:
        raise HTTPException(status_code=500, detail=f"导出 ZIP 时发生错误: {str(e)}")
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="charts-export.zip"'},
    )
