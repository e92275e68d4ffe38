"""
Location resolution with one lower-accuracy retry and a default fallback.

The browser performs the actual lookups; it reports each attempt's outcome
(coordinates or a W3C ``GeolocationPositionError`` code) and this module
applies the same rules the client follows: high accuracy first, then once
at low accuracy, then the configured default location with an advisory.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from ..errors import BeanThereError
from ..models import CamelModel, Coordinates
from .config import (
    DEFAULT_GEOLOCATION_CONFIG,
    DEFAULT_PLACES_CONFIG,
    GeolocationConfig,
    PlacesConfig,
)

logger = logging.getLogger(__name__)

UNSUPPORTED = 0
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

_PREFIX = "Unable to get your location. "
_MESSAGES = {
    PERMISSION_DENIED: "Please allow location access in your browser settings.",
    POSITION_UNAVAILABLE: "Location information is unavailable.",
    TIMEOUT: "Location request timed out.",
}


def error_message(code: int) -> str:
    if code == UNSUPPORTED:
        return "Geolocation is not supported by your browser."
    return _PREFIX + _MESSAGES.get(code, "Please try again.")


class GeolocationError(BeanThereError):
    status_code = 400
    kind = "geolocation"

    def __init__(self, code: int) -> None:
        super().__init__(error_message(code))
        self.code = code


@dataclass(frozen=True)
class PositionRequest:
    high_accuracy: bool
    timeout_ms: int
    maximum_age_ms: int


class PositionSource(Protocol):
    def get_position(self, request: PositionRequest) -> Coordinates:
        """Return a fix or raise ``GeolocationError``."""
        ...


class PositionAttempt(CamelModel):
    coordinates: Coordinates | None = None
    error_code: int | None = None


class LocationReport(CamelModel):
    supported: bool = True
    high_accuracy: PositionAttempt | None = None
    low_accuracy: PositionAttempt | None = None


class ReportedPositionSource:
    """Replays a client's reported attempts.

    A missing low-accuracy attempt repeats the high-accuracy outcome.
    """

    def __init__(self, report: LocationReport) -> None:
        self.report = report

    def get_position(self, request: PositionRequest) -> Coordinates:
        if not self.report.supported:
            raise GeolocationError(UNSUPPORTED)
        attempt = self.report.high_accuracy
        if not request.high_accuracy and self.report.low_accuracy is not None:
            attempt = self.report.low_accuracy
        if attempt is None:
            raise GeolocationError(POSITION_UNAVAILABLE)
        if attempt.coordinates is not None:
            return attempt.coordinates
        raise GeolocationError(attempt.error_code if attempt.error_code is not None else POSITION_UNAVAILABLE)


class LocationResult(CamelModel):
    location: Coordinates
    accuracy: Literal["high", "low", "default"]
    message: str | None = None

    @property
    def is_default(self) -> bool:
        return self.accuracy == "default"


def default_location(config: PlacesConfig = DEFAULT_PLACES_CONFIG) -> Coordinates:
    return Coordinates(lat=config.default_lat, lng=config.default_lng)


def locate(
    source: PositionSource,
    config: GeolocationConfig = DEFAULT_GEOLOCATION_CONFIG,
    places_config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> LocationResult:
    high = PositionRequest(True, config.high_accuracy_timeout_ms, config.high_accuracy_max_age_ms)
    low = PositionRequest(False, config.low_accuracy_timeout_ms, config.low_accuracy_max_age_ms)

    try:
        return LocationResult(location=source.get_position(high), accuracy="high")
    except GeolocationError as exc:
        logger.info("High accuracy location failed: %s", exc.message)
        failure = exc

    if failure.code != UNSUPPORTED:
        try:
            return LocationResult(location=source.get_position(low), accuracy="low")
        except GeolocationError as exc:
            logger.info("Low accuracy location failed: %s", exc.message)
            failure = exc

    return LocationResult(
        location=default_location(places_config),
        accuracy="default",
        message=f"{failure.message} Using {places_config.default_location_name}.",
    )
