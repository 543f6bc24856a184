"""Chart import adapters."""

from .base import ChartAdapter
from .json_chart import JsonChartAdapter

__all__ = ["ChartAdapter", "JsonChartAdapter"]
