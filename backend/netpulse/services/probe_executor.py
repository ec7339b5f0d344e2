"""ICMP probe executors: one latency measurement per call."""
import asyncio
import logging
import math
import platform
import random
import re
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

# Matches "time=15ms", "time<1ms", "time=0.512 ms"
_RTT_RE = re.compile(r"time[=<]\s*([\d.]+)\s*ms", re.IGNORECASE)


@dataclass(frozen=True)
class ProbeOutcome:
    rtt: float
    reachable: bool


UNREACHABLE = ProbeOutcome(rtt=0.0, reachable=False)


class ProbeExecutor(Protocol):
    """Must return within a bounded time and report errors as unreachable."""

    async def probe(self, address: str) -> ProbeOutcome:
        ...


def parse_ping_rtt(output: str) -> Optional[float]:
    """Extract the round-trip time of a single-packet ping, or None if no reply."""
    match = _RTT_RE.search(output)
    if not match:
        return None
    return float(match.group(1))


class SystemPingExecutor:
    """Runs the OS `ping` utility with one packet per probe."""

    def __init__(self, timeout_ms: int = 800):
        self.timeout_ms = timeout_ms
        self.is_windows = platform.system().lower() == "windows"

    def _command(self, address: str) -> list:
        if self.is_windows:
            return ["ping", "-n", "1", "-w", str(self.timeout_ms), address]
        # -W takes whole seconds on Linux
        return ["ping", "-c", "1", "-W", str(max(1, math.ceil(self.timeout_ms / 1000))), address]

    async def probe(self, address: str) -> ProbeOutcome:
        address = str(address).strip().split(" ")[0]
        proc = None
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command(address),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout_ms / 1000 + 1.5
            )
            output = stdout.decode("utf-8", errors="replace")
        except asyncio.TimeoutError:
            if proc is not None and proc.returncode is None:
                proc.kill()
            return UNREACHABLE
        except Exception as e:
            logger.debug(f"Ping {address} error: {e}")
            return UNREACHABLE

        rtt = parse_ping_rtt(output)
        if rtt is None:
            return UNREACHABLE
        return ProbeOutcome(rtt=rtt, reachable=True)


class SimulatedProbeExecutor:
    """
    Synthetic latency for running without raw-socket privileges.
    Each address gets a stable base latency; a few addresses are always down
    and every probe has a small random failure rate.
    """

    def __init__(self, failure_rate: float = 0.03, seed: Optional[int] = None):
        self.failure_rate = failure_rate
        self._random = random.Random(seed)

    @staticmethod
    def _address_seed(address: str) -> int:
        return sum(int(part) if part.isdigit() else len(part) for part in address.split(".")) % 100

    async def probe(self, address: str) -> ProbeOutcome:
        await asyncio.sleep(0)
        seed = self._address_seed(address)
        if seed > 98 or self._random.random() < self.failure_rate:
            return UNREACHABLE
        rtt = 10 + (seed % 40) + self._random.random() * 5
        return ProbeOutcome(rtt=round(rtt, 2), reachable=True)
