"""
In-Memory Analytics Cache

Provides:
- Immutable per-player analytics snapshots (replace, never mutate)
- Freshness checks and advisory size estimates
- Snapshot fingerprints for detecting divergence from the server
- An LRU-bounded manager holding snapshots for many players
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from boardstats.analysis.lookups import LookupIndex, build_lookups
from boardstats.analysis.query import run_query
from boardstats.analysis.stats import StreakMode, compute_core_stats
from boardstats.core.constants import (
    CACHE_VERSION,
    CONTEST_RECORD_BYTES,
    CORE_STATS_BYTES,
    DEFAULT_MEMORY_CAPACITY,
    DEFAULT_REFRESH_MAX_AGE_HOURS,
    GAME_ENTRY_BYTES,
    OPPONENT_ENTRY_BYTES,
    VENUE_ENTRY_BYTES,
)
from boardstats.core.models import (
    DEFAULT_SKILL_RATING,
    AnalyticsQuery,
    ClientGame,
    ClientVenue,
    ComputedAnalytics,
    ContestRecord,
    CoreStats,
    Opponent,
    parse_timestamp,
)
from boardstats.core.utils import (
    PerformanceMonitor,
    compute_content_hash,
    utc_now,
    whole_hours_between,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """
    A player's contest history plus its whole-history aggregates.

    Snapshots are values: refreshing produces a new snapshot that callers
    swap in atomically, so readers always see a complete, consistent view.
    """

    player_id: str
    last_updated: datetime
    contests: tuple[ContestRecord, ...] = ()
    core_stats: CoreStats = field(default_factory=CoreStats)
    lookups: LookupIndex = field(default_factory=LookupIndex)
    streak_mode: StreakMode = StreakMode.FULL_SCAN
    skill_rating: float = DEFAULT_SKILL_RATING
    cache_version: str = CACHE_VERSION

    @classmethod
    def empty(cls, player_id: str, now: datetime | None = None) -> AnalyticsSnapshot:
        """Create a snapshot with no contests."""
        return cls(player_id=player_id, last_updated=parse_timestamp(now) if now else utc_now())

    @classmethod
    def build(
        cls,
        player_id: str,
        contests: Iterable[ContestRecord],
        *,
        last_updated: datetime | None = None,
        streak_mode: StreakMode | str = StreakMode.FULL_SCAN,
        skill_rating: float = DEFAULT_SKILL_RATING,
    ) -> AnalyticsSnapshot:
        """Create a snapshot and materialize its whole-history aggregates."""
        contests = tuple(contests)
        mode = StreakMode.parse(streak_mode)
        return cls(
            player_id=player_id,
            last_updated=parse_timestamp(last_updated) if last_updated else utc_now(),
            contests=contests,
            core_stats=compute_core_stats(
                contests, streak_mode=mode, skill_rating=skill_rating
            ),
            lookups=build_lookups(contests, player_id),
            streak_mode=mode,
            skill_rating=skill_rating,
        )

    def with_contests(
        self, contests: Iterable[ContestRecord], last_updated: datetime | None = None
    ) -> AnalyticsSnapshot:
        """Return a replacement snapshot holding a new record list."""
        return AnalyticsSnapshot.build(
            self.player_id,
            contests,
            last_updated=last_updated,
            streak_mode=self.streak_mode,
            skill_rating=self.skill_rating,
        )

    def recompute(self) -> AnalyticsSnapshot:
        """Rebuild the whole-history aggregates from the current records."""
        return AnalyticsSnapshot.build(
            self.player_id,
            self.contests,
            last_updated=self.last_updated,
            streak_mode=self.streak_mode,
            skill_rating=self.skill_rating,
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def games(self) -> list[ClientGame]:
        return list(self.lookups.games.values())

    @property
    def venues(self) -> list[ClientVenue]:
        return list(self.lookups.venues.values())

    @property
    def opponents(self) -> list[Opponent]:
        return list(self.lookups.opponents.values())

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def query(self, query: AnalyticsQuery, now: datetime | None = None) -> ComputedAnalytics:
        """Run an analytics query against this snapshot's records."""
        return run_query(
            self.contests,
            query,
            owner_id=self.player_id,
            lookups=self.lookups,
            now=now,
            skill_rating=self.skill_rating,
        )

    # -------------------------------------------------------------------------
    # Freshness
    # -------------------------------------------------------------------------

    def estimate_size(self) -> int:
        """Approximate in-memory footprint in bytes (advisory)."""
        return (
            len(self.contests) * CONTEST_RECORD_BYTES
            + len(self.lookups.games) * GAME_ENTRY_BYTES
            + len(self.lookups.venues) * VENUE_ENTRY_BYTES
            + len(self.lookups.opponents) * OPPONENT_ENTRY_BYTES
            + CORE_STATS_BYTES
        )

    def age_hours(self, now: datetime | None = None) -> int:
        return whole_hours_between(self.last_updated, parse_timestamp(now) if now else utc_now())

    def needs_refresh(
        self, max_age_hours: int = DEFAULT_REFRESH_MAX_AGE_HOURS, now: datetime | None = None
    ) -> bool:
        """True when the snapshot is older than max_age_hours whole hours."""
        return self.age_hours(now) > max_age_hours

    def fingerprint(self) -> str:
        """SHA256 over the owner and the sorted contest ids."""
        ids = sorted(c.id for c in self.contests)
        return compute_content_hash("\n".join([self.player_id, *ids]))


# =============================================================================
# Manager
# =============================================================================


@dataclass
class CacheStatus:
    """Status of one player's snapshot."""

    player_id: str
    last_updated: datetime
    contest_count: int
    data_size_bytes: int
    needs_refresh: bool

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "last_updated": self.last_updated.isoformat(),
            "contest_count": self.contest_count,
            "data_size_bytes": self.data_size_bytes,
            "needs_refresh": self.needs_refresh,
        }


@dataclass
class ManagerStats:
    """Snapshot manager statistics."""

    total_entries: int
    expired_entries: int
    total_size_bytes: int
    hit_count: int = 0
    miss_count: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hit_count + self.miss_count
        return (self.hit_count / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "total_entries": self.total_entries,
            "expired_entries": self.expired_entries,
            "total_size_bytes": self.total_size_bytes,
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "hit_rate_pct": round(self.hit_rate, 1),
        }


class SnapshotManager:
    """
    In-memory store of analytics snapshots, one per player.

    Features:
    - Least-recently-used eviction beyond a fixed capacity
    - Freshness-aware retrieval
    - Query dispatch with timing logged at debug level

    Not thread-safe; callers serialize access.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_MEMORY_CAPACITY,
        max_age_hours: int = DEFAULT_REFRESH_MAX_AGE_HOURS,
        streak_mode: StreakMode | str = StreakMode.FULL_SCAN,
        skill_rating: float = DEFAULT_SKILL_RATING,
    ):
        if capacity < 1:
            raise ValueError(f"Capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.max_age_hours = max_age_hours
        self.streak_mode = StreakMode.parse(streak_mode)
        self.skill_rating = skill_rating
        self._snapshots: OrderedDict[str, AnalyticsSnapshot] = OrderedDict()
        self._hit_count = 0
        self._miss_count = 0

    @classmethod
    def from_config(cls, config) -> SnapshotManager:
        """Create a manager from a BoardStatsConfig."""
        return cls(
            capacity=config.cache.memory_capacity,
            max_age_hours=config.analytics.refresh_max_age_hours,
            streak_mode=config.analytics.streak_mode,
            skill_rating=config.analytics.default_skill_rating,
        )

    def __len__(self) -> int:
        return len(self._snapshots)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._snapshots

    def contains(self, player_id: str) -> bool:
        return player_id in self._snapshots

    def put(self, snapshot: AnalyticsSnapshot) -> None:
        """Store a snapshot, replacing any previous one for the same player."""
        self._snapshots[snapshot.player_id] = snapshot
        self._snapshots.move_to_end(snapshot.player_id)
        while len(self._snapshots) > self.capacity:
            evicted, _ = self._snapshots.popitem(last=False)
            logger.info(f"Evicted analytics snapshot for {evicted}")

    def load(
        self,
        player_id: str,
        contests: Iterable[ContestRecord],
        now: datetime | None = None,
    ) -> AnalyticsSnapshot:
        """Build a snapshot from records and store it."""
        with PerformanceMonitor(f"building snapshot for {player_id}"):
            snapshot = AnalyticsSnapshot.build(
                player_id,
                contests,
                last_updated=now,
                streak_mode=self.streak_mode,
                skill_rating=self.skill_rating,
            )
        self.put(snapshot)
        logger.info(f"Loaded {len(snapshot.contests)} contests for {player_id}")
        return snapshot

    def get(self, player_id: str) -> AnalyticsSnapshot | None:
        snapshot = self._snapshots.get(player_id)
        if snapshot is None:
            self._miss_count += 1
            return None
        self._hit_count += 1
        self._snapshots.move_to_end(player_id)
        return snapshot

    def get_fresh(self, player_id: str, now: datetime | None = None) -> AnalyticsSnapshot | None:
        """Return the snapshot only if it does not need a refresh."""
        snapshot = self.get(player_id)
        if snapshot is None or snapshot.needs_refresh(self.max_age_hours, now):
            return None
        return snapshot

    def pop(self, player_id: str) -> AnalyticsSnapshot | None:
        """Remove and return a player's snapshot."""
        snapshot = self._snapshots.pop(player_id, None)
        if snapshot is not None:
            logger.info(f"Cleared analytics snapshot for {player_id}")
        return snapshot

    def _require(self, player_id: str) -> AnalyticsSnapshot:
        snapshot = self.get(player_id)
        if snapshot is None:
            raise KeyError(f"Player analytics not loaded: {player_id}")
        return snapshot

    def query(
        self, player_id: str, query: AnalyticsQuery, now: datetime | None = None
    ) -> ComputedAnalytics:
        """Run a query against a loaded player's snapshot."""
        snapshot = self._require(player_id)
        with PerformanceMonitor(f"analytics query for {player_id}"):
            return snapshot.query(query, now=now)

    def core_stats(self, player_id: str) -> CoreStats:
        return self._require(player_id).core_stats

    def needs_refresh(self, player_id: str, now: datetime | None = None) -> bool:
        """True when the player has no snapshot or it is stale."""
        snapshot = self._snapshots.get(player_id)
        if snapshot is None:
            return True
        return snapshot.needs_refresh(self.max_age_hours, now)

    def status(self, player_id: str, now: datetime | None = None) -> CacheStatus | None:
        snapshot = self._snapshots.get(player_id)
        if snapshot is None:
            return None
        return CacheStatus(
            player_id=snapshot.player_id,
            last_updated=snapshot.last_updated,
            contest_count=len(snapshot.contests),
            data_size_bytes=snapshot.estimate_size(),
            needs_refresh=snapshot.needs_refresh(self.max_age_hours, now),
        )

    def cleanup(self, now: datetime | None = None) -> int:
        """
        Drop snapshots that are at least one whole hour old.

        Returns:
            Number of snapshots removed
        """
        expired = [pid for pid, s in self._snapshots.items() if s.needs_refresh(0, now)]
        for player_id in expired:
            del self._snapshots[player_id]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired analytics snapshots")
        return len(expired)

    def stats(self, now: datetime | None = None) -> ManagerStats:
        snapshots = list(self._snapshots.values())
        return ManagerStats(
            total_entries=len(snapshots),
            expired_entries=sum(1 for s in snapshots if s.needs_refresh(self.max_age_hours, now)),
            total_size_bytes=sum(s.estimate_size() for s in snapshots),
            hit_count=self._hit_count,
            miss_count=self._miss_count,
        )

    def cached_games(self, player_id: str) -> list[ClientGame] | None:
        snapshot = self._snapshots.get(player_id)
        return snapshot.games if snapshot else None

    def cached_venues(self, player_id: str) -> list[ClientVenue] | None:
        snapshot = self._snapshots.get(player_id)
        return snapshot.venues if snapshot else None

    def cached_opponents(self, player_id: str) -> list[Opponent] | None:
        snapshot = self._snapshots.get(player_id)
        return snapshot.opponents if snapshot else None
