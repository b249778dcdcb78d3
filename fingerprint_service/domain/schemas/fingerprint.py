import json
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


class FingerprintSubmission(BaseModel):
    """
    Visitor-addressed fingerprint submission.
    `components` is stored verbatim; objects are serialized before storage.
    """

    visitor_id: str = Field(..., description="Visitor identity (dedup key)")
    user_agent: Optional[str] = Field(
        None, description="User-Agent; defaults to the request header"
    )
    components: Union[str, dict[str, Any]] = Field(
        ..., description="Serialized component bundle or the bundle itself"
    )
    dpr: Union[str, float] = Field(..., description="Device pixel ratio")

    @field_validator("components")
    @classmethod
    def serialize_components(cls, v: Union[str, dict[str, Any]]) -> str:
        if isinstance(v, dict):
            return json.dumps(v, separators=(",", ":"), ensure_ascii=False)
        return v

    @field_validator("dpr", mode="before")
    @classmethod
    def reject_boolean_dpr(cls, v: Any) -> Any:
        # JSON true/false would otherwise coerce to 1.0/0.0
        if isinstance(v, bool):
            raise ValueError("dpr must be a number or numeric string")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "visitor_id": "8f14e45fceea167a5a36dedd4bea2543",
                "user_agent": "Mozilla/5.0",
                "components": '{"platform":{"value":"MacIntel","duration":0}}',
                "dpr": "2",
            }
        }


class ArchiveResponse(BaseModel):
    filename: str
    key: str
    duplicate: bool = False


class CountResponse(BaseModel):
    count: int


class TouchSupport(BaseModel):
    max_touch_points: int = 0
    touch_event: bool = False
    touch_start: bool = False


class GpuIdentity(BaseModel):
    vendor: str = ""
    renderer: str = ""


class CanonicalComponents(BaseModel):
    """Normalized, fallback-resolved view of a component bundle."""

    screen_resolution: list[int] = Field(default_factory=list)
    hardware_concurrency: int = 0
    platform: str = ""
    touch_support: TouchSupport = Field(default_factory=TouchSupport)
    gpu: GpuIdentity = Field(default_factory=GpuIdentity)
    architecture: int = 0


class FingerprintResponse(BaseModel):
    row: int
    visitor_id: str
    user_agent: str
    dpr: float
    created_at: datetime
    updated_at: datetime
    components: CanonicalComponents
