"""
Display formatting for field details: Thai land units and Buddhist-era dates
"""

from datetime import date, datetime
from typing import Optional, Union

from ..config import settings
from ..data.messages import get_message
from ..schemas import CropField

THAI_MONTHS = [
    "มกราคม", "กุมภาพันธ์", "มีนาคม", "เมษายน", "พฤษภาคม", "มิถุนายน",
    "กรกฎาคม", "สิงหาคม", "กันยายน", "ตุลาคม", "พฤศจิกายน", "ธันวาคม",
]

BUDDHIST_ERA_OFFSET = 543

# 1 rai = 4 ngan = 400 square wah = 1600 m²
SQM_PER_RAI = 1600
SQM_PER_NGAN = 400
SQM_PER_WAH = 4


def format_area(area_m2: float) -> str:
    rai = int(area_m2 // SQM_PER_RAI)
    remainder = area_m2 - rai * SQM_PER_RAI
    ngan = int(remainder // SQM_PER_NGAN)
    remainder -= ngan * SQM_PER_NGAN
    wah = round(remainder / SQM_PER_WAH)
    return f"{rai} ไร่ {ngan} งาน {wah} ตร.วา"


def format_coordinates(field: CropField) -> str:
    return f"{field.centroid_lat:.6f}, {field.centroid_lng:.6f}"


def format_address(field: CropField, locale: Optional[str] = None) -> str:
    return field.address or get_message("no_address", locale)


def format_thai_date(
    value: Union[str, date, datetime, None],
    missing_key: str = "not_specified",
    locale: Optional[str] = None,
) -> str:
    """'5 มีนาคม พ.ศ. 2567' style date; placeholder text when missing or unparsable"""
    locale = locale or settings.LOCALE
    if value is None or value == "":
        return get_message(missing_key, locale)

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return get_message("invalid_date", locale)

    if locale != "th":
        return f"{value.day} {value:%B} {value.year}"
    return f"{value.day} {THAI_MONTHS[value.month - 1]} พ.ศ. {value.year + BUDDHIST_ERA_OFFSET}"


def format_planting_date(field: CropField, locale: Optional[str] = None) -> str:
    return format_thai_date(field.planting_date, "not_specified", locale)


def format_created_date(field: CropField, locale: Optional[str] = None) -> str:
    return format_thai_date(field.created_at, "unknown", locale)
