"""Chart payload helpers.

Operations that produce a renderable series attach a ``charts`` list of
``{"spec": {...}, "data": [...]}`` entries. Consumers that don't render can
ignore it.
"""

from typing import Any

from src.config.constants import ChartType


def build_chart(
    chart_id: str,
    title: str,
    chart_type: ChartType,
    x_field: str,
    y_field: str,
    data: list[dict[str, Any]],
) -> dict[str, Any]:
    return {
        "spec": {
            "id": chart_id,
            "title": title,
            "type": chart_type.value,
            "xField": x_field,
            "yField": y_field,
        },
        "data": data,
    }
