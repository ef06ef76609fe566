"""
Field geometry export: GeoJSON to KML, WKT and CSV, plus safe download names.
All functions are pure.
"""

import csv
import io
import re
import unicodedata
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from ..schemas import CropField

CSV_BOM = "\ufeff"
CSV_HEADERS = ["name", "crop_type", "area_m2", "planting_date", "wkt"]

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_]+")
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")


def safe_filename(name: str, fallback: str) -> str:
    """
    Reduce a display name to [a-z0-9-_].

    Diacritics are stripped after NFKD decomposition, any other run of
    characters becomes a single underscore. When nothing alphanumeric
    survives (e.g. a purely Thai name) the fallback is returned unchanged.
    """
    try:
        ascii_name = unicodedata.normalize("NFKD", name or "")
    except TypeError:
        return fallback
    ascii_name = _COMBINING_MARKS.sub("", ascii_name)
    ascii_name = _UNSAFE_FILENAME_CHARS.sub("_", ascii_name)
    ascii_name = ascii_name.strip("_").lower()
    if ascii_name and re.search(r"[a-z0-9]", ascii_name):
        return ascii_name
    return fallback


def field_file_base(field: CropField) -> str:
    return safe_filename(field.name, f"field_{field.id}")

# =====================================
# GEOJSON
# =====================================

def field_to_geojson(field: CropField) -> Dict[str, Any]:
    """FeatureCollection with the field as its single feature"""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": field.geometry,
                "properties": {
                    "name": field.name,
                    "crop_type": field.crop_type,
                    "area_m2": field.area_m2,
                    "planting_date": field.planting_date,
                },
            }
        ],
    }

# =====================================
# KML
# =====================================

def _polygons(geometry: Optional[Dict[str, Any]]) -> List[list]:
    if not geometry:
        return []
    if geometry.get("type") == "Polygon":
        return [geometry.get("coordinates") or []]
    if geometry.get("type") == "MultiPolygon":
        return list(geometry.get("coordinates") or [])
    return []


def _kml_placemark(field: CropField, rings: list, name: str) -> str:
    outer = rings[0] if rings else []
    coords = " ".join(f"{_format_number(pos[0])},{_format_number(pos[1])},0" for pos in outer)
    return (
        "\n        <Placemark>"
        f"\n          <name>{escape(name)}</name>"
        "\n          <ExtendedData>"
        f"\n            <Data name=\"crop_type\"><value>{escape(field.crop_type or '')}</value></Data>"
        f"\n            <Data name=\"area_m2\"><value>{field.area_m2}</value></Data>"
        f"\n            <Data name=\"planting_date\"><value>{escape(field.planting_date or '')}</value></Data>"
        "\n          </ExtendedData>"
        "\n          <Style><LineStyle><color>ff2b7a4b</color><width>2</width></LineStyle>"
        "<PolyStyle><color>1a2b7a4b</color></PolyStyle></Style>"
        "\n          <Polygon>"
        f"\n            <outerBoundaryIs><LinearRing><coordinates>{coords}</coordinates></LinearRing></outerBoundaryIs>"
        "\n          </Polygon>"
        "\n        </Placemark>"
    )


def geojson_to_kml(field: CropField) -> str:
    """
    KML document with one Placemark per polygon.
    Multi-part fields get "<name> 1", "<name> 2", ... as placemark names.
    """
    polygons = _polygons(field.geometry)
    numbered = len(polygons) > 1
    placemarks = "\n".join(
        _kml_placemark(field, rings, f"{field.name} {idx + 1}" if numbered else field.name)
        for idx, rings in enumerate(polygons)
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<kml xmlns="http://www.opengis.net/kml/2.2">\n'
        "  <Document>\n"
        f"    <name>{escape(field.name)}</name>{placemarks}\n"
        "  </Document>\n"
        "</kml>"
    )

# =====================================
# WKT
# =====================================

def _pair(position) -> str:
    return f"{_format_number(position[0])} {_format_number(position[1])}"


def _ring(ring) -> str:
    return "(" + ", ".join(_pair(p) for p in ring) + ")"


def geojson_to_wkt(geometry: Optional[Dict[str, Any]]) -> str:
    """WKT for Point, LineString, Polygon and MultiPolygon; '' for anything else"""
    if not geometry:
        return ""
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates")

    if geom_type == "Point":
        return f"POINT ({_pair(coordinates)})"
    if geom_type == "LineString":
        return "LINESTRING (" + ", ".join(_pair(p) for p in coordinates) + ")"
    if geom_type == "Polygon":
        return "POLYGON (" + ", ".join(_ring(r) for r in coordinates) + ")"
    if geom_type == "MultiPolygon":
        polygons = ", ".join("(" + ", ".join(_ring(r) for r in poly) + ")" for poly in coordinates)
        return f"MULTIPOLYGON ({polygons})"
    return ""

# =====================================
# CSV
# =====================================

def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def field_to_csv(field: CropField) -> str:
    """Header plus one row, every value quoted, BOM-prefixed for spreadsheet tools"""
    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="")
    writer.writerow([
        field.name,
        field.crop_type or "",
        _format_number(field.area_m2),
        field.planting_date or "",
        geojson_to_wkt(field.geometry),
    ])
    return CSV_BOM + buffer.getvalue()
