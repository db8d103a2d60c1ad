import math

from pydantic import BaseModel, ConfigDict, Field


def _clamp(value: float, limit: float) -> float:
    return max(-limit, min(limit, value))


class DegreesCoordinate(BaseModel):
    """Geographic coordinate in degrees, for display and interchange."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_radians(self) -> "Coordinate":
        return Coordinate(lat=math.radians(self.lat), lng=math.radians(self.lng))


class Coordinate(BaseModel):
    """Geographic coordinate in radians. The grid works in radians internally."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., description="Latitude in radians")
    lng: float = Field(..., description="Longitude in radians")

    def to_degrees(self) -> DegreesCoordinate:
        # clamp away the last-ulp drift of the radians round trip at the poles/antimeridian
        return DegreesCoordinate(
            lat=_clamp(math.degrees(self.lat), 90.0),
            lng=_clamp(math.degrees(self.lng), 180.0),
        )

    def chord_to(self, other: "Coordinate") -> float:
        """Straight-line distance to another point, both on the unit sphere."""
        return math.dist(self.to_unit_vector(), other.to_unit_vector())

    def to_unit_vector(self) -> tuple[float, float, float]:
        """Point on the unit sphere."""
        cos_lat = math.cos(self.lat)
        return cos_lat * math.cos(self.lng), cos_lat * math.sin(self.lng), math.sin(self.lat)
