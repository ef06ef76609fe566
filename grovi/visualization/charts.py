"""
Time-series chart rendering for the analysis view
"""

import base64
import io
import logging
from typing import Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from ..schemas import AnalysisType, TimeSeries
from ..services.timeseries_service import chart_labels

logger = logging.getLogger(__name__)

LINE_COLOR = "#2b7a4b"
FILL_COLOR = (43 / 255, 122 / 255, 75 / 255, 0.1)


def render_timeseries_chart(series: TimeSeries, title: Optional[str] = None, dpi: int = 120) -> bytes:
    """PNG line chart of the series. Raises ValueError for an empty series."""
    if series.is_empty:
        raise ValueError("Cannot chart an empty time series")

    labels = chart_labels(series, locale="en")
    values = np.array([p.value for p in series.points], dtype=float)
    x = np.arange(len(values))

    fig, ax = plt.subplots(figsize=(8, 4), dpi=dpi, facecolor='white')
    try:
        ax.plot(x, values, color=LINE_COLOR, linewidth=2, marker='o', markersize=4, label=series.vi_type.value)
        ax.fill_between(x, values, values.min(), color=FILL_COLOR)

        ax.set_xticks(x)
        ax.set_xticklabels(labels, rotation=45 if len(labels) > 6 else 0, ha='right' if len(labels) > 6 else 'center')
        ax.set_ylabel(f"{series.vi_type.value} value")
        ax.set_xlabel("Year" if series.analysis_type == AnalysisType.TEN_YEAR_AVG else "Month")
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper left')
        ax.set_title(title or f"{series.vi_type.value} {series.start_date:%Y-%m-%d} to {series.end_date:%Y-%m-%d}")

        buffer = io.BytesIO()
        fig.savefig(buffer, format='png', bbox_inches='tight', facecolor='white', edgecolor='none')
    finally:
        plt.close(fig)

    logger.debug(f"Rendered {series.vi_type.value} chart with {len(values)} points")
    return buffer.getvalue()


def chart_data_url(series: TimeSeries, title: Optional[str] = None) -> str:
    image_base64 = base64.b64encode(render_timeseries_chart(series, title)).decode('utf-8')
    return f"data:image/png;base64,{image_base64}"
