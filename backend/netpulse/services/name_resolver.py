"""Display-name lookup for newly added targets."""
import asyncio
import ipaddress
import logging
import socket
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class NameResolver(Protocol):
    async def resolve(self, address: str) -> Optional[str]:
        ...


def _strip_hostname(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    name = name.strip().rstrip(".")
    return name or None


def _lookup(address: str) -> Optional[str]:
    try:
        ipaddress.ip_address(address)
    except ValueError:
        # Hostname target: show its canonical name
        return _strip_hostname(socket.gethostbyname_ex(address)[0])
    return _strip_hostname(socket.gethostbyaddr(address)[0])


class ReverseDnsResolver:
    """
    Resolves an IP to its PTR name (or a hostname to its canonical name).
    gethostbyaddr can block, so it runs in the default executor with a timeout.
    """

    def __init__(self, timeout: float = 2.0):
        self.timeout = timeout

    async def resolve(self, address: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, _lookup, address), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.debug("Name lookup for %s timed out", address)
        except OSError as e:
            logger.debug("Name lookup for %s failed: %s", address, e)
        return None
