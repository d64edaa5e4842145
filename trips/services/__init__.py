"""Trip services module."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trips.services.geocoding import PlaceNameResolver
    from trips.services.playback import TripPlaybackOrchestrator
    from trips.services.position_source import PositionSource
    from trips.services.trajectory import TrajectoryAssembler

__all__ = (
    "PlaceNameResolver",
    "PositionSource",
    "TrajectoryAssembler",
    "TripPlaybackOrchestrator",
)


def __getattr__(name: str):
    if name == "PlaceNameResolver":
        from trips.services.geocoding import PlaceNameResolver

        return PlaceNameResolver
    if name == "PositionSource":
        from trips.services.position_source import PositionSource

        return PositionSource
    if name == "TrajectoryAssembler":
        from trips.services.trajectory import TrajectoryAssembler

        return TrajectoryAssembler
    if name == "TripPlaybackOrchestrator":
        from trips.services.playback import TripPlaybackOrchestrator

        return TripPlaybackOrchestrator
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
