"""On-demand path tracing, one in-flight trace per target."""
import asyncio
import logging
from typing import Dict, List

from netpulse.models.target import Hop
from netpulse.services.target_registry import TargetRegistry
from netpulse.services.traceroute import TraceExecutor

logger = logging.getLogger(__name__)


class TraceController:
    """
    Runs traces independently of the ping cycle. A trace only ever writes the
    target's trace fields; history, counters and incidents are untouched.
    """

    def __init__(self, registry: TargetRegistry, executor: TraceExecutor):
        self.registry = registry
        self.executor = executor
        self._in_flight: Dict[str, asyncio.Task] = {}

    def is_tracing(self, target_id: str) -> bool:
        return target_id in self._in_flight

    async def trace(self, target_id: str) -> List[Hop]:
        """
        Trace the path to a target and return its hops.
        A request for a target that is already being traced joins the running
        trace instead of starting a second one. Unknown ids yield [].
        """
        task = self._in_flight.get(target_id)
        if task is None:
            target = self.registry.get(target_id)
            if target is None:
                return []
            task = asyncio.create_task(self._run(target_id, target.ip))
            self._in_flight[target_id] = task
        else:
            logger.debug("Trace for %s already running, joining it", target_id)
        return list(await asyncio.shield(task))

    async def _run(self, target_id: str, address: str) -> List[Hop]:
        hops: List[Hop] = []
        await self.registry.begin_trace(target_id)
        try:
            hops = list(await self.executor.trace_route(address))
        except Exception as e:
            logger.warning("Trace executor failed for %s: %s", address, e)
            hops = []
        finally:
            await self.registry.finish_trace(target_id, hops)
            self._in_flight.pop(target_id, None)
        logger.info("Trace to %s finished with %d hops", address, len(hops))
        return hops

    async def close(self) -> None:
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
