from __future__ import annotations

from typing import Literal, Protocol

from pydantic import Field

from ..models import CamelModel, Coordinates
from .models import Cafe

DEFAULT_ZOOM = 12
INFO_WINDOW_TAGS = 3


class InfoWindow(CamelModel):
    name: str
    address: str
    rating: float | None = None
    review_count: int | None = None
    tags: list[str] = Field(default_factory=list)


class Marker(CamelModel):
    kind: Literal["user", "cafe"]
    position: Coordinates
    title: str
    cafe_id: str | None = None
    info_window: InfoWindow | None = None


class MapHandle(Protocol):
    """The only surface the app needs from a map SDK instance."""

    def set_center(self, center: Coordinates, zoom: int | None = None) -> None: ...

    def add_marker(self, marker: Marker) -> None: ...

    def clear_markers(self) -> None: ...


class MarkerPlan(CamelModel):
    """Recording ``MapHandle``; the client replays it on its own map SDK."""

    center: Coordinates | None = None
    zoom: int = DEFAULT_ZOOM
    markers: list[Marker] = Field(default_factory=list)

    def set_center(self, center: Coordinates, zoom: int | None = None) -> None:
        self.center = center
        if zoom is not None:
            self.zoom = zoom

    def add_marker(self, marker: Marker) -> None:
        self.markers.append(marker)

    def clear_markers(self) -> None:
        self.markers.clear()


def info_window_for(cafe: Cafe) -> InfoWindow:
    return InfoWindow(
        name=cafe.name,
        address=cafe.address,
        rating=cafe.rating,
        review_count=cafe.review_count if cafe.rating else None,
        tags=[tag.replace("-", " ") for tag in cafe.tags[:INFO_WINDOW_TAGS]],
    )


def render_cafe_map(
    handle: MapHandle,
    center: Coordinates,
    cafes: list[Cafe],
    user_location: Coordinates | None = None,
    zoom: int | None = None,
) -> int:
    """Redraw every marker on ``handle``. Returns the number of cafe markers."""
    handle.clear_markers()
    handle.set_center(center, zoom)

    if user_location is not None:
        handle.add_marker(Marker(kind="user", position=user_location, title="Your Location"))

    placed = 0
    for cafe in cafes:
        if cafe.coordinates is None:
            continue
        handle.add_marker(Marker(
            kind="cafe",
            position=cafe.coordinates,
            title=cafe.name,
            cafe_id=cafe.id,
            info_window=info_window_for(cafe),
        ))
        placed += 1
    return placed
