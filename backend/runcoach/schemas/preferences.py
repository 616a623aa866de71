from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from runcoach.core.constants import DEFAULT_TARGET_PACE_S_PER_KM


class Preferences(BaseModel):
    """User preferences kept in the key-value store."""

    target_pace_s_per_km: int = Field(DEFAULT_TARGET_PACE_S_PER_KM, gt=0)
    auto_pause: bool = True
    voice_cues: bool = True
    race_date: Optional[date] = None

    # Be lenient with keys written by older clients
    model_config = ConfigDict(extra="ignore")
