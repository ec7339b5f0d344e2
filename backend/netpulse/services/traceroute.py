"""Path trace executors (traceroute / tracert) and output parsing."""
import asyncio
import logging
import platform
import random
import re
from typing import List, Optional, Protocol

from netpulse.models.target import Hop

logger = logging.getLogger(__name__)

# "  3  10.0.0.1  4.211 ms" / "  3    <1 ms    2 ms    1 ms  10.0.0.1" / "  4  *  *  *"
_HOP_LINE_RE = re.compile(r"^\s*(?P<idx>\d+)\s+(?P<rest>.*)$")
_HOP_RTT_RE = re.compile(r"<?\s*([\d.]+)\s*ms")
_IPV4_RE = re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b")


class TraceExecutor(Protocol):
    """May return a partial or empty hop list on failure."""

    async def trace_route(self, address: str) -> List[Hop]:
        ...


def parse_trace_line(line: str) -> Optional[Hop]:
    m = _HOP_LINE_RE.match(line)
    if not m:
        return None
    rest = m.group("rest")
    # Windows prints "<1 ms"; drop the address part before pulling rtts
    addresses = _IPV4_RE.findall(rest)
    ip = addresses[-1] if addresses else None
    rtt_part = rest.replace(ip, " ") if ip else rest
    rtts = [float(v) for v in _HOP_RTT_RE.findall(rtt_part)]
    timeouts = rest.count("*")

    if ip is None and not timeouts:
        return None

    probes = len(rtts) + timeouts
    pl = (timeouts / probes) * 100 if probes else 100.0
    return Hop(
        number=int(m.group("idx")),
        ip=ip or "*",
        name="",
        avg=round(sum(rtts) / len(rtts), 2) if rtts else 0.0,
        min=min(rtts) if rtts else 0.0,
        cur=rtts[-1] if rtts else 0.0,
        pl=round(pl, 1),
    )


def parse_trace_output(raw: str) -> List[Hop]:
    """Extract Hop rows from traceroute/tracert output."""
    hops: List[Hop] = []
    for line in raw.splitlines():
        hop = parse_trace_line(line)
        if hop is not None:
            hops.append(hop)
    return hops


class SystemTraceExecutor:
    def __init__(self, max_hops: int = 20, wait_ms: int = 500):
        self.max_hops = max_hops
        self.wait_ms = wait_ms
        self.is_windows = platform.system().lower() == "windows"

    def _command(self, address: str) -> list:
        if self.is_windows:
            return ["tracert", "-d", "-h", str(self.max_hops), "-w", str(self.wait_ms), address]
        wait_s = max(1, round(self.wait_ms / 1000))
        return ["traceroute", "-n", "-q", "1", "-m", str(self.max_hops), "-w", str(wait_s), address]

    @property
    def timeout(self) -> float:
        # every hop may time out on each of up to 3 probes
        return self.max_hops * 3 * (self.wait_ms / 1000) + 5

    async def trace_route(self, address: str) -> List[Hop]:
        proc = None
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command(address),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            if proc is not None and proc.returncode is None:
                proc.kill()
            logger.warning("Trace to %s timed out", address)
            return []
        except Exception as e:
            logger.warning("Trace to %s failed: %s", address, e)
            return []
        return parse_trace_output(stdout.decode("utf-8", errors="replace"))


class SimulatedTraceExecutor:
    """Plausible 5-8 hop path ending at the target."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    async def trace_route(self, address: str) -> List[Hop]:
        await asyncio.sleep(0)
        count = self._random.randint(5, 8)
        hops: List[Hop] = []
        latency = 1.0
        for number in range(1, count + 1):
            latency += self._random.uniform(0.5, 12.0)
            ip = address if number == count else f"10.{number}.{self._random.randint(0, 255)}.1"
            cur = round(latency + self._random.uniform(0, 2), 2)
            hops.append(Hop(
                number=number, ip=ip, name="",
                avg=round(latency + 1, 2), min=round(latency, 2), cur=cur, pl=0.0,
            ))
        return hops
