"""
Constants for the contest analytics engine.
"""

# Version stamped on every snapshot; bump when aggregate semantics change
CACHE_VERSION = "1.0.0"

# Snapshots older than this many whole hours should be re-synced
DEFAULT_REFRESH_MAX_AGE_HOURS = 24

# Maximum number of player snapshots kept in memory
DEFAULT_MEMORY_CAPACITY = 100

# =============================================================================
# Approximate in-memory footprint per entry (bytes)
# Used for advisory size estimates only, never for allocation.
# =============================================================================

CONTEST_RECORD_BYTES = 344
GAME_ENTRY_BYTES = 80
VENUE_ENTRY_BYTES = 152
OPPONENT_ENTRY_BYTES = 128
CORE_STATS_BYTES = 64
