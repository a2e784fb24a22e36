"""GeoPoint value object — a validated latitude/longitude pair."""

import math

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float

from streetmarket.domain import streetmarket


@streetmarket.value_object
class GeoPoint:
    """A point on the globe in decimal degrees.

    Both coordinates are required and must be finite; an absent location is
    modelled by leaving the owning field empty, never by a partial point.
    """

    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)

    @invariant.post
    def coordinates_must_be_finite(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationError({"coordinates": ["Both latitude and longitude are required"]})
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise ValidationError({"coordinates": ["Coordinates must be finite numbers"]})

    @property
    def pair(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_json(self) -> dict:
        return {"lat": self.latitude, "lng": self.longitude}
