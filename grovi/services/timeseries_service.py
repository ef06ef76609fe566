"""
Vegetation-index time series for the analysis view
Window selection, retrieval, chart labels, summary statistics and CSV export
"""

import calendar
import csv
import io
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Union

import numpy as np

from ..config import settings
from ..data.messages import get_message
from ..errors import GroviError
from ..http_client import ApiClient
from ..schemas import AnalysisType, IndexType, TimeSeries, TimeSeriesPoint
from ..utils.geo_export import CSV_BOM
from .session_store import SessionStore

logger = logging.getLogger(__name__)

THAI_MONTHS_SHORT = [
    "ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
    "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค.",
]

CSV_HEADERS = {
    "th": ["ชื่อแปลง", "ประเภท VI", "ปี", "เดือน", "ค่า VI"],
    "en": ["field_name", "vi_type", "year", "month", "vi_value"],
}


def analysis_window(
    analysis_type: Union[AnalysisType, str],
    year: Optional[int] = None,
    start_month: int = 1,
    end_month: int = 12,
    today: Optional[date] = None,
) -> Dict[str, datetime]:
    """Start/end datetimes the backend should aggregate over"""
    analysis_type = AnalysisType(analysis_type)
    today = today or date.today()
    year = year or today.year

    if analysis_type == AnalysisType.MONTHLY_RANGE:
        if not 1 <= start_month <= end_month <= 12:
            raise ValueError(f"Invalid month range {start_month}-{end_month}")
        last_day = calendar.monthrange(year, end_month)[1]
        return {
            "start": datetime(year, start_month, 1),
            "end": datetime(year, end_month, last_day),
        }

    if analysis_type == AnalysisType.FULL_YEAR:
        return {"start": datetime(year, 1, 1), "end": datetime(year, 12, 31)}

    end = datetime(today.year, today.month, today.day)
    try:
        start = end.replace(year=end.year - 10)
    except ValueError:
        # Feb 29 has no counterpart ten years back
        start = end.replace(year=end.year - 10, day=28)
    return {"start": start, "end": end}


def available_years(today: Optional[date] = None, span: int = 10) -> List[int]:
    """Most recent first; Sentinel-2 coverage makes older years pointless"""
    current_year = (today or date.today()).year
    return [current_year - i for i in range(span)]


class TimeSeriesService:
    """Fetches aggregated index values for a field over a period"""

    def __init__(self, client: ApiClient, session: SessionStore):
        self.client = client
        self.session = session

    def fetch(
        self,
        field_id: Union[str, int],
        index_type: Union[IndexType, str],
        analysis_type: Union[AnalysisType, str],
        year: Optional[int] = None,
        start_month: int = 1,
        end_month: int = 12,
        today: Optional[date] = None,
    ) -> TimeSeries:
        """An empty series means no imagery for the period; that is not an error"""
        self.session.require_authenticated()

        index_type = IndexType(index_type)
        analysis_type = AnalysisType(analysis_type)
        window = analysis_window(analysis_type, year, start_month, end_month, today)

        try:
            response = self.client.get(
                f"/vi/timeseries/{field_id}",
                params={
                    "vi_type": index_type.value,
                    "start_date": window["start"].isoformat(),
                    "end_date": window["end"].isoformat(),
                    "analysis_type": analysis_type.value,
                },
                default_message=get_message("timeseries_failed"),
            )
            raw_points = response.json().get("timeseries") or []
        except GroviError as e:
            logger.error(f"Failed to fetch time series for field {field_id}: {e}")
            raise
        except (ValueError, AttributeError) as e:
            logger.error(f"Time series for field {field_id} could not be parsed: {e}")
            raise GroviError(get_message("timeseries_failed")) from e

        points = []
        for item in raw_points:
            try:
                points.append(TimeSeriesPoint.model_validate(item))
            except ValueError:
                logger.debug(f"Skipping incomplete time-series point: {item}")
        points.sort(key=lambda p: p.date)

        if not points:
            logger.warning(f"⚠️ No time-series data returned for field {field_id}")
        else:
            logger.info(f"📊 Processed {len(points)} data points for field {field_id}")

        return TimeSeries(
            field_id=field_id,
            vi_type=index_type,
            analysis_type=analysis_type,
            start_date=window["start"],
            end_date=window["end"],
            points=points,
        )

# =====================================
# PRESENTATION HELPERS
# =====================================

def chart_labels(series: TimeSeries, locale: Optional[str] = None, today: Optional[date] = None) -> List[str]:
    """
    X-axis labels: years for ten-year averages, short month names otherwise.
    A month-range chart for a past year carries the year in each label.
    """
    locale = locale or settings.LOCALE
    current_year = (today or date.today()).year

    if series.analysis_type == AnalysisType.TEN_YEAR_AVG:
        return [str(p.date.year) for p in series.points]

    labels = []
    for point in series.points:
        if locale == "th":
            month = THAI_MONTHS_SHORT[point.date.month - 1]
        else:
            month = calendar.month_abbr[point.date.month]
        if series.analysis_type == AnalysisType.MONTHLY_RANGE and point.date.year != current_year:
            # Thai labels use the Buddhist era
            shown_year = point.date.year + 543 if locale == "th" else point.date.year
            month = f"{month} {shown_year}"
        labels.append(month)
    return labels


def summarize(series: TimeSeries) -> Dict[str, Optional[float]]:
    """Count, mean, min, max and the per-step linear trend of the values"""
    values = np.array([p.value for p in series.points], dtype=float)
    if values.size == 0:
        return {"count": 0, "mean": None, "min": None, "max": None, "trend": None}

    trend = None
    if values.size > 1:
        trend = float(np.polyfit(np.arange(values.size), values, 1)[0])

    return {
        "count": int(values.size),
        "mean": float(np.mean(values)),
        "min": float(np.min(values)),
        "max": float(np.max(values)),
        "trend": trend,
    }


def timeseries_to_csv(series: TimeSeries, field_name: Optional[str] = None, locale: Optional[str] = None) -> str:
    """Quoted, BOM-prefixed CSV so spreadsheet tools read Thai names correctly"""
    locale = locale or settings.LOCALE
    field_name = field_name or get_message("unknown", locale)
    yearly = series.analysis_type == AnalysisType.TEN_YEAR_AVG

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS.get(locale, CSV_HEADERS["th"]))
    for point in series.points:
        writer.writerow([
            field_name,
            series.vi_type.value,
            point.date.year,
            "" if yearly else point.date.month,
            f"{point.value:.4f}",
        ])
    return CSV_BOM + buffer.getvalue()


def timeseries_filename(series: TimeSeries, field_name: str, extension: str = "csv") -> str:
    start, end = series.start_date, series.end_date
    return (
        f"{field_name}_{series.vi_type.value}_{series.analysis_type.value}_"
        f"{start:%Y%m}-{end:%Y%m}.{extension}"
    )
