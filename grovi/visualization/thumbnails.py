"""
Field thumbnails: a small PNG of the field outline on a per-field colour
"""

import base64
import colorsys
import io
import logging
from typing import List, Tuple

from PIL import Image, ImageDraw

from ..schemas import CropField

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (120, 90)
PADDING = 10


def field_hash(field_id: str) -> int:
    """Stable 32-bit hash of the id, so a field always gets the same colours"""
    value = 0
    for char in field_id:
        value = ((value << 5) - value + ord(char)) & 0xffffffff
    return value


def _hsl(hue: float, sat: float, light: float) -> Tuple[int, int, int]:
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360, light / 100, sat / 100)
    return int(r * 255), int(g * 255), int(b * 255)


def _outer_rings(geometry: dict) -> List[list]:
    if geometry.get("type") == "Polygon":
        return [geometry["coordinates"][0]] if geometry.get("coordinates") else []
    if geometry.get("type") == "MultiPolygon":
        return [poly[0] for poly in geometry.get("coordinates") or [] if poly]
    return []


def render_field_thumbnail(field: CropField) -> bytes:
    """PNG bytes; geometry is fitted into the frame keeping its aspect ratio"""
    width, height = THUMBNAIL_SIZE
    seed = field_hash(field.id)
    hue = seed % 360
    sat = 40 + (seed % 30)
    light = 60 + (seed % 20)

    image = Image.new("RGB", THUMBNAIL_SIZE)
    draw = ImageDraw.Draw(image)

    # Diagonal gradient between two neighbouring hues
    start = _hsl(hue, sat, light)
    end = _hsl(hue + 30, sat, light - 10)
    steps = width + height
    for i in range(steps):
        t = i / (steps - 1)
        colour = tuple(int(s + (e - s) * t) for s, e in zip(start, end))
        draw.line([(i, 0), (i - height, height)], fill=colour)

    rings = _outer_rings(field.geometry)
    points = [pos for ring in rings for pos in ring]
    if points:
        min_x = min(p[0] for p in points)
        max_x = max(p[0] for p in points)
        min_y = min(p[1] for p in points)
        max_y = max(p[1] for p in points)
        span = max(max_x - min_x, max_y - min_y) or 1.0
        scale = min((width - 2 * PADDING), (height - 2 * PADDING)) / span
        offset_x = (width - (max_x - min_x) * scale) / 2
        offset_y = (height - (max_y - min_y) * scale) / 2

        for ring in rings:
            # Latitude grows northwards, image rows grow downwards
            xy = [
                (offset_x + (p[0] - min_x) * scale, height - (offset_y + (p[1] - min_y) * scale))
                for p in ring
            ]
            if len(xy) >= 3:
                draw.polygon(xy, fill=_hsl(hue, sat, light - 20), outline=(255, 255, 255))
    else:
        logger.debug(f"Field {field.id} has no drawable rings, rendering frame only")
        draw.rectangle([PADDING, PADDING, width - PADDING, height - PADDING], outline=(255, 255, 255), width=2)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def thumbnail_data_url(field: CropField) -> str:
    """Thumbnail in the data-URL form the thumbnail endpoint stores"""
    image_base64 = base64.b64encode(render_field_thumbnail(field)).decode('utf-8')
    return f"data:image/png;base64,{image_base64}"
