"""Hostname resolution for the probe target."""

from __future__ import annotations

import ipaddress
import random
import socket
from typing import Optional

from ._exceptions import ResolveError
from ._models import AddressFamily, ProbeTarget
from ._tcping import logger

_FAMILY_LABELS = {
    AddressFamily.IPV4: "IPv4",
    AddressFamily.IPV6: "IPv6",
}


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _lookup(hostname: str) -> list[str]:
    """Return the unique addresses ``hostname`` resolves to, in resolver order."""
    infos = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    addresses: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        addr = sockaddr[0]
        if addr not in addresses:
            addresses.append(addr)
    return addresses


def _matches_family(addr: str, family: AddressFamily) -> bool:
    version = ipaddress.ip_address(addr).version
    if family is AddressFamily.IPV4:
        return version == 4
    if family is AddressFamily.IPV6:
        return version == 6
    return True


def _pick(candidates: list[str], rng: random.Random | None = None) -> str:
    if len(candidates) == 1:
        return candidates[0]
    return (rng or random).choice(candidates)


def resolve_hostname(
    target: ProbeTarget,
    previous_ip: Optional[str] = None,
    has_prior_probes: bool = False,
    *,
    rng: random.Random | None = None,
) -> str:
    """Turn ``target.hostname`` into a single IP address.

    A literal IP is returned untouched. A lookup failure is fatal on the first
    resolution of a run; once probes have completed the previous address is
    kept instead. When several addresses remain after the family filter one is
    chosen at random.

    Raises:
        ResolveError: the name cannot be resolved and there is nothing to fall
            back on, or no address of the requested family exists.
    """
    hostname = target.hostname
    if is_ip_address(hostname):
        return hostname

    try:
        addresses = _lookup(hostname)
    except OSError as exc:
        if has_prior_probes and previous_ip is not None:
            logger.debug("Resolving %s failed (%s); keeping %s", hostname, exc, previous_ip)
            return previous_ip
        raise ResolveError(f"Failed to resolve {hostname}") from exc

    if not addresses:
        if has_prior_probes and previous_ip is not None:
            logger.debug("Resolving %s returned nothing; keeping %s", hostname, previous_ip)
            return previous_ip
        raise ResolveError(f"Failed to resolve {hostname}")

    candidates = [addr for addr in addresses if _matches_family(addr, target.family)]
    if not candidates:
        label = _FAMILY_LABELS[target.family]
        raise ResolveError(f"Failed to find {label} address for {hostname}")

    chosen = _pick(candidates, rng)
    logger.debug("Resolved %s to %s (candidates: %s)", hostname, chosen, ", ".join(candidates))
    return chosen
