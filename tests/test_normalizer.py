"""Unit tests for component bundle normalization."""

from __future__ import annotations

import json
from typing import Any

import pytest

from fingerprint_service.application.services.normalizer import normalize_components
from fingerprint_service.core.exceptions import ComponentsParseError


def _bundle(**components: Any) -> str:
    """Wrap each component value in a FingerprintJS-style envelope."""
    return json.dumps(
        {name: {"value": value, "duration": 3} for name, value in components.items()}
    )


FULL_BUNDLE = dict(
    screenResolution=[2560, 1440],
    hardwareConcurrency=8,
    platform="MacIntel",
    touchSupport={"maxTouchPoints": 5, "touchEvent": True, "touchStart": False},
    architecture=127,
    videoCard={"vendor": "WebKit", "renderer": "WebKit WebGL"},
    webGlBasics={
        "version": "WebGL 1.0",
        "vendor": "WebKit",
        "vendorUnmasked": "Apple Inc.",
        "renderer": "WebKit WebGL",
        "rendererUnmasked": "Apple M1",
    },
)


def test_normalize_full_bundle() -> None:
    """Every supported component lands in the canonical record."""
    canonical = normalize_components(_bundle(**FULL_BUNDLE))

    assert canonical.screen_resolution == [2560, 1440]
    assert canonical.hardware_concurrency == 8
    assert canonical.platform == "MacIntel"
    assert canonical.touch_support.max_touch_points == 5
    assert canonical.touch_support.touch_event is True
    assert canonical.touch_support.touch_start is False
    assert canonical.architecture == 127


def test_unmasked_gpu_wins_over_video_card() -> None:
    """A non-empty vendorUnmasked selects the unmasked pair."""
    canonical = normalize_components(_bundle(**FULL_BUNDLE))

    assert canonical.gpu.vendor == "Apple Inc."
    assert canonical.gpu.renderer == "Apple M1"


def test_empty_unmasked_vendor_falls_back_to_video_card() -> None:
    bundle = dict(FULL_BUNDLE)
    bundle["webGlBasics"] = {"vendorUnmasked": "", "rendererUnmasked": "Apple M1"}

    canonical = normalize_components(_bundle(**bundle))

    assert canonical.gpu.vendor == "WebKit"
    assert canonical.gpu.renderer == "WebKit WebGL"


def test_missing_webgl_basics_falls_back_to_video_card() -> None:
    bundle = dict(FULL_BUNDLE)
    del bundle["webGlBasics"]

    canonical = normalize_components(_bundle(**bundle))

    assert canonical.gpu.vendor == "WebKit"


def test_webgl_error_code_falls_back_to_video_card() -> None:
    """Browsers without WebGL report a negative code instead of an object."""
    bundle = dict(FULL_BUNDLE)
    bundle["webGlBasics"] = -1

    canonical = normalize_components(_bundle(**bundle))

    assert canonical.gpu.vendor == "WebKit"
    assert canonical.gpu.renderer == "WebKit WebGL"


def test_partial_bundle_defaults_to_zero_values() -> None:
    canonical = normalize_components(_bundle(platform="Linux x86_64"))

    assert canonical.platform == "Linux x86_64"
    assert canonical.screen_resolution == []
    assert canonical.hardware_concurrency == 0
    assert canonical.architecture == 0
    assert canonical.touch_support.max_touch_points == 0
    assert canonical.touch_support.touch_event is False
    assert canonical.gpu.vendor == ""
    assert canonical.gpu.renderer == ""


def test_null_screen_dimensions_become_zero() -> None:
    canonical = normalize_components(_bundle(screenResolution=[1920, None]))

    assert canonical.screen_resolution == [1920, 0]


def test_durations_are_not_part_of_the_canonical_record() -> None:
    canonical = normalize_components(_bundle(**FULL_BUNDLE))

    assert "duration" not in canonical.model_dump_json()


def test_bytes_input_is_accepted() -> None:
    canonical = normalize_components(_bundle(platform="Win32").encode("utf-8"))

    assert canonical.platform == "Win32"


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"screenResolution": {"value": "wide", "duration": 1}}),
    ],
)
def test_malformed_bundles_raise_parse_error(raw: str) -> None:
    with pytest.raises(ComponentsParseError) as exc_info:
        normalize_components(raw)

    assert exc_info.value.reason
    assert exc_info.value.status_code == 500
