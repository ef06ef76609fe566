# Vegetation index catalogue: valid value range and display metadata per index

VI_TYPES = [
    {
        "code": "NDVI",
        "name": "NDVI",
        "description": "Normalized Difference Vegetation Index",
        "range": {"min": 0.0, "max": 1.0},
        "label": {"th": "ความหนาแน่นพืช", "en": "Vegetation density"},
        "color": "#4CAF50",
    },
    {
        "code": "EVI",
        "name": "EVI",
        "description": "Enhanced Vegetation Index",
        "range": {"min": 0.0, "max": 1.0},
        "label": {"th": "การเจริญเติบโต", "en": "Growth"},
        "color": "#8BC34A",
    },
    {
        "code": "GNDVI",
        "name": "GNDVI",
        "description": "Green Normalized Difference Vegetation Index",
        "range": {"min": 0.0, "max": 1.0},
        "label": {"th": "ใบสีเขียว", "en": "Leaf chlorophyll"},
        "color": "#CDDC39",
    },
    {
        "code": "NDWI",
        "name": "NDWI",
        "description": "Normalized Difference Water Index",
        "range": {"min": -0.5, "max": 0.5},
        "label": {"th": "ความชื้น", "en": "Moisture"},
        "color": "#2196F3",
    },
    {
        "code": "SAVI",
        "name": "SAVI",
        "description": "Soil Adjusted Vegetation Index",
        "range": {"min": 0.0, "max": 1.0},
        "label": {"th": "พืชปรับดิน", "en": "Soil-adjusted vegetation"},
        "color": "#FF9800",
    },
    {
        "code": "VCI",
        "name": "VCI",
        "description": "Vegetation Condition Index",
        "range": {"min": 0.0, "max": 100.0},
        "label": {"th": "สภาพพืช (%)", "en": "Vegetation condition (%)"},
        "color": "#9C27B0",
    },
]

VI_TYPES_BY_CODE = {vi["code"]: vi for vi in VI_TYPES}

# Health bands, checked in order against the clamped percentage.
# `upper` is exclusive; None closes the scale.
WATER_BANDS = [
    {"status": "dry", "upper": 30, "color": "#ef4444",
     "label": {"th": "แห้งแล้ง", "en": "Dry"},
     "description": {"th": "ความชื้นในดินต่ำ", "en": "Low soil moisture"}},
    {"status": "moderate", "upper": 70, "color": "#f59e0b",
     "label": {"th": "พอเหมาะ", "en": "Moderate"},
     "description": {"th": "ความชื้นปานกลาง", "en": "Moderate moisture"}},
    {"status": "saturated", "upper": None, "color": "#10b981",
     "label": {"th": "ชุ่มชื้น", "en": "Saturated"},
     "description": {"th": "ความชื้นสูง", "en": "High moisture"}},
]

VIGOR_BANDS = [
    {"status": "low", "upper": 30, "color": "#ef4444",
     "label": {"th": "ต่ำ", "en": "Low"},
     "description": {"th": "ต้องปรับปรุง", "en": "Needs attention"}},
    {"status": "moderate", "upper": 60, "color": "#f59e0b",
     "label": {"th": "ปานกลาง", "en": "Moderate"},
     "description": {"th": "สภาพพอใช้", "en": "Fair condition"}},
    {"status": "good", "upper": 80, "color": "#10b981",
     "label": {"th": "ดี", "en": "Good"},
     "description": {"th": "สภาพดี", "en": "Good condition"}},
    {"status": "excellent", "upper": None, "color": "#059669",
     "label": {"th": "ดีเยี่ยม", "en": "Excellent"},
     "description": {"th": "สภาพดีมาก", "en": "Excellent condition"}},
]
