"""
User-facing default messages, keyed by situation and locale.
Used whenever the backend error body carries no usable `detail`.
"""

from typing import Dict, Optional

MESSAGES: Dict[str, Dict[str, str]] = {
    "th": {
        "login_failed": "เข้าสู่ระบบไม่สำเร็จ",
        "register_failed": "ลงทะเบียนไม่สำเร็จ",
        "session_expired": "กรุณาเข้าสู่ระบบใหม่",
        "not_authenticated": "กรุณาเข้าสู่ระบบก่อนใช้งาน",
        "load_fields_failed": "โหลดข้อมูลแปลงไม่สำเร็จ",
        "create_field_failed": "สร้างแปลงไม่สำเร็จ",
        "update_field_failed": "อัปเดตแปลงไม่สำเร็จ",
        "delete_field_failed": "ลบแปลงไม่สำเร็จ",
        "field_not_found": "ไม่พบข้อมูลแปลง",
        "load_snapshots_failed": "โหลดข้อมูลดัชนีพืชไม่สำเร็จ",
        "analysis_failed": "การวิเคราะห์ไม่สำเร็จ",
        "no_satellite_data": "ไม่สามารถดึงข้อมูลดาวเทียมได้",
        "timeseries_failed": "เกิดข้อผิดพลาดในการดึงข้อมูลจาก Google Earth Engine",
        "no_timeseries_data": "ไม่พบข้อมูลในช่วงเวลาที่เลือก",
        "export_failed": "ไม่สามารถส่งออกไฟล์ได้ โปรดลองอีกครั้ง",
        "validation_failed": "ข้อมูลไม่ถูกต้อง กรุณาตรวจสอบข้อมูลที่กรอก",
        "not_found": "ไม่พบข้อมูลที่ร้องขอ",
        "forbidden": "คุณไม่มีสิทธิ์เข้าถึงข้อมูลนี้",
        "network_error": "ไม่สามารถเชื่อมต่อเซิร์ฟเวอร์ได้ กรุณาลองใหม่อีกครั้ง",
        "unknown_error": "ไม่ทราบสาเหตุ",
        "unknown": "ไม่ทราบ",
        "not_specified": "ยังไม่ได้ระบุ",
        "invalid_date": "วันที่ไม่ถูกต้อง",
        "no_address": "ยังไม่ได้ระบุตำแหน่ง",
    },
    "en": {
        "login_failed": "Sign-in failed",
        "register_failed": "Registration failed",
        "session_expired": "Please sign in again",
        "not_authenticated": "Please sign in first",
        "load_fields_failed": "Could not load fields",
        "create_field_failed": "Could not create field",
        "update_field_failed": "Could not update field",
        "delete_field_failed": "Could not delete field",
        "field_not_found": "Field not found",
        "load_snapshots_failed": "Could not load vegetation index snapshots",
        "analysis_failed": "Analysis failed",
        "no_satellite_data": "No usable satellite imagery is available",
        "timeseries_failed": "Could not retrieve data from Google Earth Engine",
        "no_timeseries_data": "No data for the selected period",
        "export_failed": "Export failed, please try again",
        "validation_failed": "Invalid data, please check your input",
        "not_found": "The requested record was not found",
        "forbidden": "You are not permitted to access this record",
        "network_error": "Could not reach the server, please try again",
        "unknown_error": "Unknown error",
        "unknown": "Unknown",
        "not_specified": "Not specified",
        "invalid_date": "Invalid date",
        "no_address": "No location set",
    },
}


def get_message(key: str, locale: Optional[str] = None) -> str:
    """Look up a message, falling back to Thai and then to the key itself"""
    if locale is None:
        from ..config import settings
        locale = settings.LOCALE
    table = MESSAGES.get(locale, MESSAGES["th"])
    return table.get(key) or MESSAGES["th"].get(key, key)
