"""Load orchestration: the driver, its state and the sinks it pushes to."""

from feedspine.orchestration.driver import LAYER_TASKS, SWEEP_DOMAINS, LoadDriver, to_geo_events, to_tracks
from feedspine.orchestration.hotspots import CONFLICT_ZONES, INTEL_HOTSPOTS, Hotspot, find_flash_location
from feedspine.orchestration.sinks import (
    FreshnessSink,
    RecordingFreshnessSink,
    RecordingRenderSink,
    RenderSink,
)
from feedspine.orchestration.state import IntelligenceCache, LoaderState

__all__ = [
    "LoadDriver",
    "LAYER_TASKS",
    "SWEEP_DOMAINS",
    "to_geo_events",
    "to_tracks",
    "Hotspot",
    "INTEL_HOTSPOTS",
    "CONFLICT_ZONES",
    "find_flash_location",
    "RenderSink",
    "FreshnessSink",
    "RecordingRenderSink",
    "RecordingFreshnessSink",
    "IntelligenceCache",
    "LoaderState",
]
