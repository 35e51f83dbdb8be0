"""Constants shared by the sampling, scoring and reporting layers."""

# Session cadence
DEFAULT_INTERVAL_SECONDS = 10.0
DEFAULT_DURATION_SECONDS = 300.0

# Normalizer
DEFAULT_TOP_K = 10
INSTANCE_SUFFIX_SEPARATOR = "#"
# Pseudo-processes reported by counter providers, compared case-insensitively
AGGREGATE_INSTANCE_NAMES = frozenset({"_total", "idle", "system idle process"})
BYTES_PER_MB = 1024 * 1024

# Scorer
DEFAULT_TOP_N = 5
PEAK_LOAD_WEIGHT = 0.3
MEMORY_PRESSURE_DIVISOR_MB = 1000.0
MEMORY_PRESSURE_CAP = 10.0
SCORE_DECIMALS = 2

# Throttle detector
DEFAULT_THROTTLE_THRESHOLD_PERCENT = 85.0

# Temperature
DEFAULT_HIGH_TEMPERATURE_C = 85.0
PLAUSIBLE_TEMPERATURE_MIN_C = 0.0
PLAUSIBLE_TEMPERATURE_MAX_C = 150.0
KELVIN_OFFSET = 273.15

# Environment variables
ENV_LOG_LEVEL = "HEATRANK_LOG_LEVEL"
ENV_INTERVAL = "HEATRANK_INTERVAL"
ENV_DURATION = "HEATRANK_DURATION"
ENV_TOP_K = "HEATRANK_TOP_K"
ENV_TOP_N = "HEATRANK_TOP_N"
ENV_INCLUDE_GPU = "HEATRANK_INCLUDE_GPU"
