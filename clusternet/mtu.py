"""Discover the MTU of the host's default route."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

MAX_MTU = 65536
FALLBACK_MTU = 1500

_PROC_NET = Path("/proc/net")
_SYS_CLASS_NET = Path("/sys/class/net")
_RTF_REJECT = 0x0200


def _ipv4_routes(path: Path) -> Iterator[tuple[str, bool]]:
    lines = path.read_text().splitlines()
    for line in lines[1:]:
        fields = line.split()
        if len(fields) < 8:
            continue
        iface, destination, mask = fields[0], fields[1], fields[7]
        yield iface, int(destination, 16) == 0 and int(mask, 16) == 0


def _ipv6_routes(path: Path) -> Iterator[tuple[str, bool]]:
    try:
        text = path.read_text()
    except FileNotFoundError:
        # IPv6 is disabled on this host.
        return
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 10:
            continue
        if int(fields[8], 16) & _RTF_REJECT:
            continue
        yield fields[9], int(fields[0], 16) == 0 and int(fields[1], 16) == 0


def _routes(proc_net: Path) -> list[tuple[str, bool]]:
    """Return (interface, is_default) for every IPv4 and IPv6 route."""
    try:
        return [*_ipv4_routes(proc_net / "route"), *_ipv6_routes(proc_net / "ipv6_route")]
    except (OSError, ValueError) as exc:
        raise OSError(f"could not list routes: {exc}") from exc


def _link_mtu(sys_class_net: Path, iface: str) -> int:
    try:
        return int((sys_class_net / iface / "mtu").read_text().strip())
    except (OSError, ValueError) as exc:
        raise OSError(f"could not retrieve link {iface}: {exc}") from exc


def _lowest_default_mtu(proc_net: Path, sys_class_net: Path) -> int:
    """Return the smallest positive MTU among links that carry a default route."""
    routes = _routes(proc_net)
    if not routes:
        raise OSError("got no routes")

    mtus = (_link_mtu(sys_class_net, iface) for iface, is_default in routes if is_default)
    mtu = min((m for m in mtus if 0 < m <= MAX_MTU), default=None)
    if mtu is None:
        raise OSError("unable to determine MTU")
    return mtu


def get_default_mtu() -> int:
    """Return the MTU of the default route; 1500 on platforms other than Linux."""
    if not sys.platform.startswith("linux"):
        return FALLBACK_MTU
    return _lowest_default_mtu(_PROC_NET, _SYS_CLASS_NET)