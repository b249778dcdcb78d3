"""
Component Normalization Service
Turns a stored FingerprintJS component bundle into CanonicalComponents.

Every component is an envelope {"value": ..., "duration": ...}; durations are
collection telemetry and are dropped. Absent components default to zero values.
"""
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from fingerprint_service.core.exceptions import ComponentsParseError
from fingerprint_service.domain.schemas.fingerprint import (
    CanonicalComponents,
    GpuIdentity,
    TouchSupport,
)

T = TypeVar("T")


class _Envelope(BaseModel, Generic[T]):
    value: Optional[T] = None
    duration: Optional[float] = None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _TouchSupport(_CamelModel):
    max_touch_points: Optional[int] = None
    touch_event: Optional[bool] = None
    touch_start: Optional[bool] = None


class _VideoCard(_CamelModel):
    vendor: Optional[str] = None
    renderer: Optional[str] = None


class _WebGlBasics(_CamelModel):
    vendor_unmasked: Optional[str] = None
    renderer_unmasked: Optional[str] = None


class _RawComponents(_CamelModel):
    screen_resolution: Optional[_Envelope[list[Optional[int]]]] = None
    hardware_concurrency: Optional[_Envelope[int]] = None
    platform: Optional[_Envelope[str]] = None
    touch_support: Optional[_Envelope[_TouchSupport]] = None
    architecture: Optional[_Envelope[int]] = None
    video_card: Optional[_Envelope[_VideoCard]] = None
    # Negative integer codes mean WebGL is unavailable
    web_gl_basics: Optional[_Envelope[Union[_WebGlBasics, int]]] = None


def _value(envelope: Optional[_Envelope[T]]) -> Optional[T]:
    return envelope.value if envelope is not None else None


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


def resolve_gpu(raw: _RawComponents) -> GpuIdentity:
    """
    Prefer the unmasked WebGL vendor/renderer when the browser exposed it,
    otherwise fall back to the plain video card pair.
    """
    basics = _value(raw.web_gl_basics)
    if isinstance(basics, _WebGlBasics) and basics.vendor_unmasked:
        return GpuIdentity(
            vendor=basics.vendor_unmasked,
            renderer=basics.renderer_unmasked or "",
        )

    card = _value(raw.video_card) or _VideoCard()
    return GpuIdentity(vendor=card.vendor or "", renderer=card.renderer or "")


def normalize_components(raw: Union[str, bytes]) -> CanonicalComponents:
    """
    Parse and normalize a component bundle.

    Raises:
        ComponentsParseError: Invalid JSON, non-object bundle or malformed envelope
    """
    try:
        parsed = _RawComponents.model_validate_json(raw)
    except ValidationError as e:
        raise ComponentsParseError(_format_errors(e)) from e

    touch = _value(parsed.touch_support) or _TouchSupport()

    return CanonicalComponents(
        screen_resolution=[
            dimension or 0 for dimension in (_value(parsed.screen_resolution) or [])
        ],
        hardware_concurrency=_value(parsed.hardware_concurrency) or 0,
        platform=_value(parsed.platform) or "",
        touch_support=TouchSupport(
            max_touch_points=touch.max_touch_points or 0,
            touch_event=bool(touch.touch_event),
            touch_start=bool(touch.touch_start),
        ),
        gpu=resolve_gpu(parsed),
        architecture=_value(parsed.architecture) or 0,
    )
