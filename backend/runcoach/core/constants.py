"""Shared telemetry constants.

Centralizes the thresholds used by the live tracking pipeline so we can
document and adjust them in one place.
"""

# Mean Earth radius used by the haversine distance (meters)
EARTH_RADIUS_M = 6_371_000.0

# Samples with a worse horizontal accuracy are dropped (meters)
MAX_ACCURACY_M = 30.0

# Minimum step between accepted points; smaller moves are stationary jitter (meters)
MIN_STEP_M = 2.0

# Floor on the time between two points when deriving segment speed (seconds)
MIN_SEGMENT_DT_S = 0.5

# Weight of the segment-derived speed when a device speed is also reported
SEGMENT_SPEED_WEIGHT = 0.6

# Sanity ceiling for foot running (m/s). ~32.4 km/h.
MAX_SPEED_MPS = 9.0

# EMA weight of the newest speed estimate
SPEED_SMOOTHING_ALPHA = 0.35

# Ascents at or below this are altimeter noise (meters)
MIN_ASCENT_M = 0.5

# Auto-pause hysteresis band (m/s): pause below the first, resume at or above the second
AUTO_PAUSE_SPEED_MPS = 0.5
AUTO_RESUME_SPEED_MPS = 0.8

# One split per kilometer
SPLIT_DISTANCE_M = 1000.0

# Most seconds a single clock tick may add after the process was suspended
MAX_CLOCK_CATCHUP_S = 3

# Runs shorter than this are discarded at stop
MIN_SAVED_DISTANCE_M = 50.0
MIN_SAVED_POINTS = 5

# Default target pace (seconds per km) until the user sets one. 4:40/km.
DEFAULT_TARGET_PACE_S_PER_KM = 280
