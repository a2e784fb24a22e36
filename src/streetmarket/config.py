"""Marketplace settings.

Defaults can be overridden with ``STREETMARKET_*`` environment variables,
e.g. ``STREETMARKET_PROXIMITY_RADIUS_KM=2.5``. The radius and notification
mode are user preferences and travel with the snapshot.
"""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "STREETMARKET_"

# Settings a user may change at runtime; the rest are deployment knobs
USER_SETTINGS = ("proximity_radius_km", "notification_mode")


class MarketSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    proximity_radius_km: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    notification_mode: Literal["popup", "browser"] = "popup"
    scan_interval_seconds: float = Field(default=12, gt=0)
    cooldown_seconds: float = Field(default=120, ge=0)
    schedule_grace_ms: int = Field(default=500, ge=0)
    activity_limit: int = Field(default=50, ge=1, le=50)

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "MarketSettings":
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw not in (None, ""):
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)

    def user_preferences(self) -> dict:
        return self.model_dump(include=set(USER_SETTINGS))

    def merged(self, changes: dict) -> "MarketSettings":
        """A validated copy with ``changes`` applied; unknown keys are ignored."""
        return MarketSettings.model_validate({**self.model_dump(), **(changes or {})})
