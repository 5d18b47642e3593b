"""Event recording collaborator backed by an in-process memory store."""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, List, Optional, Protocol

from agentflow.core.models import new_id, utcnow
from agentflow.logging import get_logger

logger = get_logger(__name__)


class MemoryRecorder(Protocol):
    """Interface the orchestration core uses to reach the memory store."""

    async def record_event(
        self,
        event_type: str,
        data: Any,
        description: Optional[str] = None,
        task_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None: ...

    async def process_decay(self) -> int: ...


@dataclass(slots=True)
class ShortTermItem:
    key: str
    value: Any
    context: str
    priority: str = "normal"
    timestamp: datetime = field(default_factory=utcnow)
    access_count: int = 0
    decay_score: float = 0.0
    id: str = field(default_factory=new_id)


@dataclass(slots=True)
class LongTermEntry:
    event_type: str
    raw_data: Any
    analysis: Optional[str] = None
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class DecayConfig:
    default_ttl: timedelta = timedelta(hours=72)
    critical_ttl: timedelta = timedelta(days=7)
    archive_threshold: float = 0.7
    interval: float = 30 * 60
    # Oldest items are archived early once the cache holds more than this.
    max_short_term: int = 1_000
    max_long_term: int = 10_000


class MemoryStore:
    """Short-term cache with decay-driven archival into a long-term log.

    Every recorded event lands in both tiers: the short-term cache for quick
    lookups and the long-term log as the permanent record. ``process_decay``
    scores short-term items by age and access frequency and archives the
    stale ones; ``start`` runs it every ``DecayConfig.interval`` seconds.
    Both tiers are bounded, the long-term log dropping its oldest entries.
    """

    def __init__(self, decay: Optional[DecayConfig] = None) -> None:
        self._decay = decay or DecayConfig()
        self._short_term: Dict[str, ShortTermItem] = {}
        self._long_term: Deque[LongTermEntry] = deque(maxlen=self._decay.max_long_term)
        self._lock = asyncio.Lock()
        self._sequence = 0
        self._runner: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    async def record_event(
        self,
        event_type: str,
        data: Any,
        description: Optional[str] = None,
        task_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None:
        async with self._lock:
            self._sequence += 1
            key = f"event:{event_type}:{self._sequence}"
            self._short_term[key] = ShortTermItem(key=key, value=data, context=f"event:{event_type}")
            self._long_term.append(
                LongTermEntry(
                    event_type=event_type,
                    raw_data=data,
                    analysis=description,
                    task_id=task_id,
                    project_id=project_id,
                    tags=[event_type.lower()],
                )
            )
            while len(self._short_term) > self._decay.max_short_term:
                self._archive(next(iter(self._short_term)))
        logger.debug("memory_event_recorded", event_type=event_type, task_id=task_id)

    async def process_decay(self, now: Optional[datetime] = None) -> int:
        """Archive short-term items whose decay score crosses the threshold."""
        now = now or utcnow()
        archived = 0
        async with self._lock:
            for key, item in list(self._short_term.items()):
                ttl = self._decay.critical_ttl if item.priority == "critical" else self._decay.default_ttl
                age_score = (now - item.timestamp) / ttl
                access_score = 1 / (item.access_count + 1)
                item.decay_score = age_score * 0.7 + access_score * 0.3
                if item.decay_score > self._decay.archive_threshold:
                    self._archive(key)
                    archived += 1
        if archived:
            logger.info("memory_decay_archived", archived=archived)
        return archived

    def _archive(self, key: str) -> None:
        item = self._short_term.pop(key)
        self._long_term.append(
            LongTermEntry(
                event_type="STM_ARCHIVE",
                raw_data=item.value,
                analysis=f"Archived from STM: {item.context}",
                tags=[item.context.split(":")[0], item.priority],
            )
        )

    def query(self, event_type: Optional[str] = None, limit: Optional[int] = None) -> List[LongTermEntry]:
        entries = [e for e in self._long_term if event_type is None or e.event_type == event_type]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit] if limit is not None else entries

    def stats(self) -> Dict[str, Any]:
        items = list(self._short_term.values())
        avg_decay = sum(i.decay_score for i in items) / len(items) if items else 0.0
        return {
            "stm_item_count": len(items),
            "ltm_entry_count": len(self._long_term),
            "avg_decay_score": avg_decay,
            "pending_archival_count": sum(
                1 for i in items if i.decay_score > self._decay.archive_threshold
            ),
        }

    async def start(self) -> None:
        """Start the periodic decay pass."""
        if self._runner is not None:
            return
        self._stop_event.clear()
        self._runner = asyncio.create_task(self._run_decay())

    async def stop(self) -> None:
        if self._runner is None:
            return
        self._stop_event.set()
        await self._runner
        self._runner = None

    async def _run_decay(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._decay.interval)
            except asyncio.TimeoutError:
                try:
                    await self.process_decay()
                except Exception:  # noqa: BLE001
                    logger.exception("memory_decay_failed")
