"""
Pydantic models for backend payloads
Responses are normalised here so the services only ever see one canonical shape
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

# Backends hand out ids as ints or strings; the client always uses strings
Identifier = Annotated[str, BeforeValidator(lambda v: str(v) if v is not None else v)]

SUPPORTED_FIELD_GEOMETRIES = ("Polygon", "MultiPolygon")


class IndexType(str, Enum):
    NDVI = "NDVI"
    EVI = "EVI"
    GNDVI = "GNDVI"
    NDWI = "NDWI"
    SAVI = "SAVI"
    VCI = "VCI"


class AnalysisType(str, Enum):
    MONTHLY_RANGE = "monthly_range"
    FULL_YEAR = "full_year"
    TEN_YEAR_AVG = "ten_year_avg"


class SessionStatus(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


def to_iso_timestamp(value: Union[str, date, datetime, None]) -> Optional[str]:
    """
    Normalise a date-ish value to an ISO-8601 UTC timestamp with millisecond
    precision, e.g. 1990-05-01T00:00:00.000Z. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _check_timestamp(value):
    # Fail at validation time rather than when the payload is built
    try:
        to_iso_timestamp(value)
    except ValueError:
        raise ValueError(f"not an ISO-8601 date: {value!r}")
    return value


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None

# =====================================
# AUTH
# =====================================

class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Identifier
    name: str
    username: str
    email: str
    age: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    user: User


class RegisterProfile(BaseModel):
    name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    date_of_birth: Optional[Union[datetime, date, str]] = None

    @field_validator("date_of_birth")
    @classmethod
    def check_date_of_birth(cls, v):
        return _check_timestamp(v)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "username": self.username,
            "email": self.email,
            "password": self.password,
            "date_of_birth": to_iso_timestamp(self.date_of_birth),
        }

# =====================================
# FIELDS
# =====================================

class CropField(BaseModel):
    """A field record as confirmed by the backend"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Identifier
    user_id: Identifier
    name: str
    crop_type: Optional[str] = None
    variety: Optional[str] = None
    planting_season: Optional[str] = None
    planting_date: Optional[str] = None
    geometry: Dict[str, Any]
    area_m2: float = 0.0
    centroid_lat: float = 0.0
    centroid_lng: float = 0.0
    address: Optional[str] = None
    created_at: Optional[datetime] = None


class FieldCreate(BaseModel):
    name: str = Field(..., min_length=1)
    geometry: Dict[str, Any]
    crop_type: Optional[str] = None
    variety: Optional[str] = None
    planting_season: Optional[str] = None
    planting_date: Optional[Union[datetime, date, str]] = None
    address: Optional[str] = None

    @field_validator("planting_date")
    @classmethod
    def check_planting_date(cls, v):
        return _check_timestamp(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("geometry")
    @classmethod
    def check_geometry(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if v.get("type") not in SUPPORTED_FIELD_GEOMETRIES or not v.get("coordinates"):
            raise ValueError("geometry must be a GeoJSON Polygon or MultiPolygon with coordinates")
        return v

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", exclude={"address"})
        payload["planting_season"] = self.planting_season or None
        payload["planting_date"] = to_iso_timestamp(self.planting_date)
        if self.address:
            payload["address"] = self.address
        return payload


class FieldUpdate(BaseModel):
    """Descriptive attributes only. Geometry cannot be edited once a field exists."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1)
    crop_type: Optional[str] = None
    variety: Optional[str] = None
    planting_season: Optional[str] = None
    planting_date: Optional[Union[datetime, date, str]] = None
    address: Optional[str] = None

    @field_validator("planting_date")
    @classmethod
    def check_planting_date(cls, v):
        return _check_timestamp(v)

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", exclude_unset=True)
        if "planting_date" in payload:
            payload["planting_date"] = to_iso_timestamp(self.planting_date)
        return payload


class ThumbnailPayload(BaseModel):
    field_id: Identifier
    image_data: str

# =====================================
# VEGETATION INDEX
# =====================================

class VISnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Identifier
    field_id: Identifier
    vi_type: IndexType
    snapshot_date: datetime
    mean_value: float
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    overlay_data: Optional[str] = None
    status_message: Optional[str] = None
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        data["snapshot_date"] = _first_present(data, "snapshot_date", "measurement_date", "date")
        data["mean_value"] = _first_present(data, "mean_value", "vi_value", "value")
        data["overlay_data"] = _first_present(data, "overlay_data", "overlay_url")
        data["status_message"] = _first_present(data, "status_message", "analysis_message")
        if isinstance(data.get("vi_type"), str):
            data["vi_type"] = data["vi_type"].upper()
        return data


class AnalysisResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    snapshots_created: int = 0
    unique_dates: int = 0
    message: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return self.snapshots_created > 0


class HealthStatus(BaseModel):
    status: str
    label: str
    description: str
    color: str
    percentage: float


class TimeSeriesPoint(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: datetime
    value: float

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            "date": _first_present(data, "measurement_date", "date"),
            "value": _first_present(data, "vi_value", "value"),
        }


class TimeSeries(BaseModel):
    field_id: Identifier
    vi_type: IndexType
    analysis_type: AnalysisType
    start_date: datetime
    end_date: datetime
    points: List[TimeSeriesPoint] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.points

# =====================================
# SEARCH / EXPORT
# =====================================

class SearchResult(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    display_name: str
    lat: float
    lon: float
    type: str = ""
    category: str = Field("", alias="class")


class ExportFile(BaseModel):
    filename: str
    content: bytes
    media_type: str
