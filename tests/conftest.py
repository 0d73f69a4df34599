"""
pytest配置文件，定义共享的测试夹具（fixtures）。

主要功能：
1. 提供FastAPI测试客户端
2. 提供采样记录与区间消息样本
3. 提供数据集构造辅助函数
"""

import pytest
from fastapi.testclient import TestClient

from fitcharts.charts.schemas import ChartDataset, ChartPoint, DatasetStyle
from fitcharts.main import app

BASE_MS = 1_700_000_000_000


@pytest.fixture
def client():
    """提供FastAPI测试客户端"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_records():
    """10 条按秒递增的采样记录（毫秒时间戳）；power 全部缺失，cadence 无法解析"""
    return [
        {
            "timestamp": BASE_MS + i * 1000,
            "heartRate": 120 + i,
            "speed": 3.0 + i * 0.5,
            "power": None,
            "cadence": "n/a",
        }
        for i in range(10)
    ]


@pytest.fixture
def session_zone_message():
    return {"referenceMesg": "session", "timeInHrZone": [5, 10, 0, 20, 0]}


@pytest.fixture
def lap_zone_messages():
    """两圈心率区间：去掉首个 below-zone 桶后 zone1=3+1, zone2=1+3, 其余为 0"""
    return [
        {"referenceMesg": "lap", "referenceIndex": 0, "timeInHrZone": [1, 3, 1, 0, 0]},
        {"referenceMesg": "lap", "referenceIndex": 1, "timeInHrZone": [0, 1, 3, 0, 0]},
    ]


def make_dataset(field, xs, ys, chart_type="line", label=None):
    return ChartDataset(
        field=field,
        display_label=label or field,
        color="#000000",
        points=[ChartPoint(x=x, y=y) for x, y in zip(xs, ys)],
        original_size=len(xs),
        style=DatasetStyle(
            chart_type=chart_type,
            border_color="#000000",
            background_color="transparent",
        ),
    )


@pytest.fixture
def dataset_factory():
    return make_dataset
