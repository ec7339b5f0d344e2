"""
Target Registry - owns the monitored targets and serializes every mutation.

Targets are immutable values; each mutation swaps in a new Target for one id
(or, for a cycle commit, a whole new mapping), so a snapshot taken at any
point never exposes a half-applied update.
"""
import asyncio
import logging
import time
import uuid
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Set

from netpulse.models.target import Hop, ProbeResult, Target, Traced
from netpulse.services.aggregation import fold, truncate
from netpulse.services.name_resolver import NameResolver

logger = logging.getLogger(__name__)

UNRESOLVED_NAME = "unavailable"
RESOLVING_NAME = "Resolving..."
DEFAULT_NAME = "Network Target"


def _new_id(taken: Mapping[str, Target]) -> str:
    while True:
        candidate = uuid.uuid4().hex[:9]
        if candidate not in taken:
            return candidate


class TargetRegistry:
    def __init__(self, resolver: Optional[NameResolver] = None):
        self._targets: Dict[str, Target] = {}
        self._lock = asyncio.Lock()
        self._resolver = resolver
        self._pending: Set[asyncio.Task] = set()

    # ── reads ──────────────────────────────────────────────

    def snapshot(self) -> List[Target]:
        """Point-in-time view of every target, in insertion order."""
        return list(self._targets.values())

    def get(self, target_id: str) -> Optional[Target]:
        return self._targets.get(target_id)

    def __len__(self) -> int:
        return len(self._targets)

    # ── target set ─────────────────────────────────────────

    async def add(self, addresses: Sequence[str]) -> List[str]:
        """Create one target per address (duplicates allowed). Returns new ids in input order."""
        resolving = self._resolver is not None
        created: List[Target] = []
        async with self._lock:
            targets = dict(self._targets)
            for address in addresses:
                target = Target(
                    id=_new_id(targets),
                    ip=address,
                    label=address,
                    hostname=RESOLVING_NAME if resolving else DEFAULT_NAME,
                    is_resolving=resolving,
                )
                targets[target.id] = target
                created.append(target)
            self._targets = targets

        if created:
            logger.info("Added %d target(s)", len(created))
        if resolving:
            for target in created:
                task = asyncio.create_task(self._resolve(target.id, target.ip))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
        return [t.id for t in created]

    async def remove(self, target_id: str) -> bool:
        async with self._lock:
            if target_id not in self._targets:
                return False
            targets = dict(self._targets)
            del targets[target_id]
            self._targets = targets
        logger.info("Removed target %s", target_id)
        return True

    async def toggle(self, target_id: str) -> Optional[Target]:
        async with self._lock:
            target = self._targets.get(target_id)
            if target is None:
                return None
            return self._put(replace(target, is_monitoring=not target.is_monitoring))

    async def rename(self, target_id: str, name: Optional[str]) -> Optional[Target]:
        custom = name.strip() if name else None
        async with self._lock:
            target = self._targets.get(target_id)
            if target is None:
                return None
            return self._put(replace(target, custom_name=custom or None))

    async def set_graphed(self, target_id: str, graphed: bool) -> Optional[Target]:
        """Pin a target for the dashboard; pinning also resumes monitoring."""
        async with self._lock:
            target = self._targets.get(target_id)
            if target is None:
                return None
            changes = {"is_graphed": graphed}
            if graphed:
                changes["is_monitoring"] = True
            return self._put(replace(target, **changes))

    # ── trace fields ───────────────────────────────────────

    async def begin_trace(self, target_id: str) -> Optional[Target]:
        async with self._lock:
            target = self._targets.get(target_id)
            if target is None:
                return None
            return self._put(replace(target, is_tracing=True))

    async def finish_trace(self, target_id: str, hops: Sequence[Hop]) -> Optional[Target]:
        async with self._lock:
            target = self._targets.get(target_id)
            if target is None:
                return None
            trace = Traced(hops=tuple(hops), finished_at=time.time() * 1000)
            return self._put(replace(target, trace=trace, is_tracing=False))

    # ── scheduler commit ───────────────────────────────────

    async def commit(self, results: Mapping[str, ProbeResult], cap: int) -> int:
        """
        Fold a whole cycle's results in one step.
        Results for ids removed since the cycle started are dropped.
        Returns the number of targets updated.
        """
        async with self._lock:
            targets = dict(self._targets)
            updated = 0
            for target_id, result in results.items():
                target = targets.get(target_id)
                if target is None:
                    logger.debug("Discarding result for removed target %s", target_id)
                    continue
                targets[target_id] = fold(target, result, cap)
                updated += 1
            self._targets = targets
        return updated

    async def apply_retention(self, cap: int) -> None:
        """Truncate histories longer than a new cap. Larger caps apply on later inserts."""
        async with self._lock:
            self._targets = {tid: truncate(t, cap) for tid, t in self._targets.items()}

    # ── name resolution ────────────────────────────────────

    async def _resolve(self, target_id: str, address: str) -> None:
        try:
            name = await self._resolver.resolve(address)
        except Exception as e:
            logger.debug("Resolver error for %s: %s", address, e)
            name = None

        async with self._lock:
            target = self._targets.get(target_id)
            if target is None:
                return
            self._put(replace(target, hostname=name or UNRESOLVED_NAME, is_resolving=False))

    async def wait_for_pending(self) -> None:
        """Wait until every outstanding name lookup has been applied."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await self.wait_for_pending()

    def _put(self, target: Target) -> Target:
        # Caller holds the lock
        targets = dict(self._targets)
        targets[target.id] = target
        self._targets = targets
        return target
