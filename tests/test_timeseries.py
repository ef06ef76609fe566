"""
Tests for time-series windows, retrieval, labels, statistics and CSV
"""

from datetime import date, datetime

import pytest

from grovi.errors import ServerError
from grovi.schemas import AnalysisType, IndexType, TimeSeries
from grovi.services.timeseries_service import (
    analysis_window,
    available_years,
    chart_labels,
    summarize,
    timeseries_filename,
    timeseries_to_csv,
)
from grovi.utils.geo_export import CSV_BOM

TODAY = date(2025, 3, 15)


def series(points, analysis_type=AnalysisType.FULL_YEAR, start=datetime(2024, 1, 1), end=datetime(2024, 12, 31)):
    return TimeSeries(
        field_id="f1",
        vi_type=IndexType.NDVI,
        analysis_type=analysis_type,
        start_date=start,
        end_date=end,
        points=[{"date": d, "value": v} for d, v in points],
    )

# =====================================
# WINDOWS
# =====================================

def test_monthly_range_window():
    window = analysis_window("monthly_range", 2024, 2, 4, today=TODAY)

    assert window == {"start": datetime(2024, 2, 1), "end": datetime(2024, 4, 30)}


def test_monthly_range_ends_on_leap_day():
    window = analysis_window(AnalysisType.MONTHLY_RANGE, 2024, 1, 2, today=TODAY)

    assert window["end"] == datetime(2024, 2, 29)


@pytest.mark.parametrize("start_month, end_month", [(5, 3), (0, 4), (1, 13)])
def test_invalid_month_range(start_month, end_month):
    with pytest.raises(ValueError):
        analysis_window("monthly_range", 2024, start_month, end_month, today=TODAY)


def test_full_year_window_defaults_to_current_year():
    assert analysis_window("full_year", today=TODAY) == {
        "start": datetime(2025, 1, 1),
        "end": datetime(2025, 12, 31),
    }


def test_ten_year_window():
    assert analysis_window("ten_year_avg", today=TODAY) == {
        "start": datetime(2015, 3, 15),
        "end": datetime(2025, 3, 15),
    }


def test_ten_year_window_from_leap_day():
    window = analysis_window("ten_year_avg", today=date(2024, 2, 29))

    assert window["start"] == datetime(2014, 2, 28)


def test_available_years():
    years = available_years(today=TODAY)

    assert years[0] == 2025
    assert years[-1] == 2016
    assert len(years) == 10

# =====================================
# RETRIEVAL
# =====================================

def test_fetch_sends_window_and_sorts_points(signed_in, backend):
    backend.add("GET", "/vi/timeseries/f1", (200, {"timeseries": [
        {"measurement_date": "2024-03-01T00:00:00", "vi_value": 0.52},
        {"measurement_date": "2024-01-01T00:00:00", "vi_value": 0.31},
        {"date": "2024-02-01T00:00:00", "value": 0.44},
        {"measurement_date": "2024-04-01T00:00:00"},
    ]}))

    result = signed_in.timeseries.fetch("f1", "NDVI", "monthly_range", year=2024, start_month=1, end_month=4)

    assert [p.value for p in result.points] == [0.31, 0.44, 0.52]
    assert result.end_date == datetime(2024, 4, 30)
    assert backend.called("GET", "/vi/timeseries/f1")[0]["params"] == {
        "vi_type": "NDVI",
        "start_date": "2024-01-01T00:00:00",
        "end_date": "2024-04-30T00:00:00",
        "analysis_type": "monthly_range",
    }


def test_fetch_without_data_is_empty_not_error(signed_in, backend):
    backend.add("GET", "/vi/timeseries/f1", (200, {"timeseries": []}))

    result = signed_in.timeseries.fetch("f1", "EVI", "full_year", year=2024)

    assert result.is_empty
    assert summarize(result)["count"] == 0


def test_fetch_failure_uses_default_message(signed_in, backend):
    backend.add("GET", "/vi/timeseries/f1", (500, None))

    with pytest.raises(ServerError) as exc_info:
        signed_in.timeseries.fetch("f1", "NDVI", "full_year", year=2024)

    assert "Google Earth Engine" in exc_info.value.message

# =====================================
# PRESENTATION
# =====================================

def test_ten_year_labels_are_years():
    data = series([(datetime(2016, 1, 1), 0.4), (datetime(2017, 1, 1), 0.5)], AnalysisType.TEN_YEAR_AVG)

    assert chart_labels(data, locale="en", today=TODAY) == ["2016", "2017"]


def test_month_labels_in_thai():
    data = series([(datetime(2025, 1, 1), 0.4), (datetime(2025, 2, 1), 0.5)])

    assert chart_labels(data, locale="th", today=TODAY) == ["ม.ค.", "ก.พ."]


def test_past_year_month_range_labels_carry_year():
    data = series([(datetime(2024, 1, 1), 0.4)], AnalysisType.MONTHLY_RANGE)

    assert chart_labels(data, locale="en", today=TODAY) == ["Jan 2024"]
    assert chart_labels(data, locale="th", today=TODAY) == ["ม.ค. 2567"]


def test_summarize():
    data = series([(datetime(2024, m, 1), v) for m, v in [(1, 0.2), (2, 0.4), (3, 0.6)]])

    stats = summarize(data)

    assert stats["count"] == 3
    assert stats["mean"] == pytest.approx(0.4)
    assert stats["min"] == pytest.approx(0.2)
    assert stats["max"] == pytest.approx(0.6)
    assert stats["trend"] == pytest.approx(0.2)


def test_summarize_single_point_has_no_trend():
    stats = summarize(series([(datetime(2024, 1, 1), 0.5)]))

    assert stats["count"] == 1
    assert stats["trend"] is None


def test_monthly_csv():
    data = series([(datetime(2024, 1, 1), 0.31234), (datetime(2024, 2, 1), 0.5)])

    text = timeseries_to_csv(data, field_name="Rice West", locale="en")

    assert text.startswith(CSV_BOM)
    assert text[len(CSV_BOM):].splitlines() == [
        '"field_name","vi_type","year","month","vi_value"',
        '"Rice West","NDVI","2024","1","0.3123"',
        '"Rice West","NDVI","2024","2","0.5000"',
    ]


def test_yearly_csv_leaves_month_blank():
    data = series([(datetime(2016, 1, 1), 0.4)], AnalysisType.TEN_YEAR_AVG)

    lines = timeseries_to_csv(data, field_name="X", locale="th").splitlines()

    assert lines[1] == '"X","NDVI","2016","","0.4000"'


def test_timeseries_filename():
    data = series([], AnalysisType.FULL_YEAR)

    assert timeseries_filename(data, "rice_west") == "rice_west_NDVI_full_year_202401-202412.csv"
