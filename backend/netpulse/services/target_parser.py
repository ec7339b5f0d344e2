"""
Target Parser
Turns free-text input into a deduplicated list of addresses to monitor.

Accepted tokens (separated by whitespace, commas or semicolons):
  8.8.8.8           single IPv4 address
  dns.google        hostname
  10.0.0.1-50       range on the last octet, inclusive, at most 100 addresses
  192.168.1.0/24    subnet with a /24../32 mask, at most 254 hosts
Anything else is dropped silently.
"""
import ipaddress
import re
from typing import List

MAX_RANGE_ADDRESSES = 100
MAX_SUBNET_HOSTS = 254
MIN_SUBNET_MASK = 24

_SPLIT_RE = re.compile(r"[\s,;]+")
_RANGE_RE = re.compile(r"^(\d{1,3}\.\d{1,3}\.\d{1,3}\.)(\d{1,3})-(\d{1,3})$")
_DOTTED_RE = re.compile(r"^[\d.]+$")
_HOSTNAME_RE = re.compile(
    r"^(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]*[a-zA-Z0-9])\.)*"
    r"([A-Za-z0-9]|[A-Za-z0-9][A-Za-z0-9\-]*[A-Za-z0-9])$"
)


def is_valid_ip(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value.strip())
    except ValueError:
        return False
    return True


def is_valid_hostname(value: str) -> bool:
    value = value.strip()
    # "10.0.0.300" matches the hostname grammar but is a bad address, not a name
    if _DOTTED_RE.match(value):
        return False
    return bool(_HOSTNAME_RE.match(value))


def expand_range(token: str) -> List[str]:
    match = _RANGE_RE.match(token.strip())
    if not match:
        return []
    prefix = match.group(1)
    start, end = int(match.group(2)), int(match.group(3))
    if start > 255 or end > 255:
        return []
    low, high = min(start, end), max(start, end)
    if not is_valid_ip(f"{prefix}{low}"):
        return []
    high = min(high, low + MAX_RANGE_ADDRESSES - 1)
    return [f"{prefix}{i}" for i in range(low, high + 1)]


def expand_subnet(token: str) -> List[str]:
    parts = token.strip().split("/")
    if len(parts) != 2:
        return [token] if is_valid_ip(token) else []

    base, mask = parts
    if not is_valid_ip(base) or not mask.isdigit():
        return []
    if not MIN_SUBNET_MASK <= int(mask) <= 32:
        return [base]

    network = ipaddress.ip_network(f"{base}/{mask}", strict=False)
    hosts = []
    for host in network.hosts():
        if len(hosts) >= MAX_SUBNET_HOSTS:
            break
        hosts.append(str(host))
    return hosts


def parse_targets(text: str) -> List[str]:
    """Parse bulk input. Order of first appearance is preserved."""
    if not text:
        return []
    expanded: List[str] = []
    for token in _SPLIT_RE.split(text.strip()):
        if not token:
            continue
        if "/" in token:
            expanded.extend(expand_subnet(token))
        elif "-" in token and _RANGE_RE.match(token):
            expanded.extend(expand_range(token))
        elif is_valid_ip(token) or is_valid_hostname(token):
            expanded.append(token)

    seen, out = set(), []
    for address in expanded:
        if address not in seen:
            out.append(address)
            seen.add(address)
    return out
