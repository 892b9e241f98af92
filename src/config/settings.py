"""Global configuration and constants for the icon color engine."""

from __future__ import annotations

import os
from typing import Final

DATA_DIR: Final = os.environ.get("ICONSTUDIO_DATA_DIR", "data")
VARIANTS_FILENAME: Final = os.environ.get("ICONSTUDIO_VARIANTS_FILE", "icon_variants.json")

# Bump when the persisted profile document changes shape
STORE_VERSION: Final = 1

# Filter estimation: lightness window for the representative color and the
# divisor guard for saturation / lightness ratios.
ESTIMATOR_MIN_LIGHTNESS: Final = 0.1
ESTIMATOR_MAX_LIGHTNESS: Final = 0.9
ESTIMATOR_EPSILON: Final = 0.01

# Saturation / brightness percent range accepted by the filter pipeline
FILTER_PERCENT_MIN: Final = 0
FILTER_PERCENT_MAX: Final = 200

LOG_BUFFER_CAPACITY: Final = 500
