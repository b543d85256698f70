"""Location model: a single Australia Post locality."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from auslocator.utils.states import format_suburb_name


class Location(BaseModel):
    """Normalized upstream locality record."""

    model_config = ConfigDict(extra="ignore")

    id: int
    location: str
    postcode: int
    state: str
    latitude: float | None = None
    longitude: float | None = None
    category: str | None = None

    def display_name(self) -> str:
        return f"{format_suburb_name(self.location)}, {self.state} {self.postcode}"


class Coordinates(BaseModel):
    """Elasticsearch geo_point object."""

    lat: float
    lon: float


class SelectedLocation(Location):
    """A location picked by the user, with derived ``coordinates``.

    ``coordinates`` is always recomputed from latitude/longitude so it is
    present exactly when both are set.
    """

    coordinates: Coordinates | None = None

    @model_validator(mode="after")
    def _derive_coordinates(self) -> SelectedLocation:
        if self.latitude is not None and self.longitude is not None:
            self.coordinates = Coordinates(lat=self.latitude, lon=self.longitude)
        else:
            self.coordinates = None
        return self
