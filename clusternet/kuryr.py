"""Validation and defaulting of the Kuryr network plugin configuration."""

from __future__ import annotations

import ipaddress

from clusternet.cluster_config import _parse_cidr
from clusternet.specs import KuryrConfig, NetworkSpec

OVN_PROVIDER = "ovn"

_IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def expand_net(network: _IPNetwork) -> _IPNetwork:
    """Return the network twice the size of the given one that contains it."""
    return network.supernet(prefixlen_diff=1)


def _nets_overlap(a: _IPNetwork, b: _IPNetwork) -> bool:
    return a.version == b.version and a.overlaps(b)


def _net_includes(outer: _IPNetwork, inner: _IPNetwork) -> bool:
    return outer.version == inner.version and inner.subnet_of(outer)


def _try_parse(text: str) -> _IPNetwork | None:
    try:
        return _parse_cidr(text)
    except ValueError:
        return None


def validate_kuryr(conf: NetworkSpec) -> list[str]:
    """Return the problems found in the Kuryr configuration."""
    errors: list[str] = []
    kc = conf.default_network.kuryr_config

    if len(conf.service_network) != 1:
        errors.append("serviceNetwork must have exactly 1 entry")
    if len(conf.cluster_network) != 1:
        errors.append("clusterNetwork must have exactly 1 entry")

    svc_net = _try_parse(conf.service_network[0])
    if svc_net is None:
        errors.append("cannot parse serviceNetwork[0] CIDR")

    cluster_net = _try_parse(conf.cluster_network[0].cidr)
    if cluster_net is None:
        errors.append("cannot parse clusterNetwork[0].CIDR CIDR")

    octavia_net: _IPNetwork | None = None
    if kc is not None and kc.open_stack_service_network:
        octavia_net = _try_parse(kc.open_stack_service_network)
        if octavia_net is None:
            errors.append("cannot parse defaultNetwork.kuryrConfig.octaviaServiceNetwork CIDR")
    elif svc_net is not None:
        octavia_net = expand_net(svc_net)

    if kc is not None and kc.pool_batch_ports is not None:
        batch = kc.pool_batch_ports
        if batch > 0:
            if kc.pool_min_ports > 0 and batch < kc.pool_min_ports:
                errors.append("poolBatchPorts cannot be set below poolMinPorts")
            if kc.pool_max_ports > 0 and batch > kc.pool_max_ports:
                errors.append("poolBatchPorts cannot be set above poolMaxPorts")
        else:
            errors.append("poolBatchPorts has to have at least value of 1")

    if octavia_net is not None:
        if cluster_net is not None and _nets_overlap(octavia_net, cluster_net):
            errors.append(
                f"octaviaServiceNetwork {octavia_net} will overlap with cluster network "
                f"{conf.cluster_network[0].cidr}"
            )
        if svc_net is not None:
            if not _net_includes(octavia_net, svc_net):
                errors.append(
                    f"octaviaServiceNetwork {octavia_net} does not include serviceNetwork "
                    f"{svc_net} (the octaviaServiceNetwork needs to be twice the size of "
                    "serviceNetwork and include it)"
                )
            if octavia_net.prefixlen >= svc_net.prefixlen:
                errors.append(
                    f"octaviaServiceNetwork {octavia_net} is too small comparing to "
                    f"serviceNetwork {svc_net} (the octaviaServiceNetwork needs to be twice "
                    "the size of the serviceNetwork and include it)"
                )

    if kc is not None and kc.mtu is not None and not 576 <= kc.mtu <= 65536:
        errors.append(f"invalid MTU {kc.mtu}")

    return errors


def is_kuryr_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Return the reasons a Kuryr change is unsafe.

    Only settings of kuryr.conf may change, not resources made at bootstrap.
    """
    prev_conf = prev.default_network.kuryr_config
    next_conf = next.default_network.kuryr_config
    if prev_conf == next_conf:
        return []
    prev_conf = prev_conf or KuryrConfig()
    next_conf = next_conf or KuryrConfig()

    errors: list[str] = []
    if prev_conf.open_stack_service_network != next_conf.open_stack_service_network:
        errors.append("cannot change kuryr openStackServiceNetwork")
    if prev_conf.mtu != next_conf.mtu:
        errors.append("cannot change mtu for the Pods Network")
    return errors


def fill_kuryr_defaults(conf: NetworkSpec, previous: NetworkSpec | None) -> None:
    """Fill in Kuryr defaults in place."""
    if conf.default_network.kuryr_config is None:
        conf.default_network.kuryr_config = KuryrConfig()
    kc = conf.default_network.kuryr_config

    if kc.daemon_probes_port is None:
        kc.daemon_probes_port = 8090
    if kc.controller_probes_port is None:
        kc.controller_probes_port = 8091
    if not kc.open_stack_service_network:
        svc_net = _parse_cidr(conf.service_network[0])
        kc.open_stack_service_network = str(expand_net(svc_net))
    if kc.pool_min_ports == 0:
        kc.pool_min_ports = 1
    if kc.pool_batch_ports is None:
        kc.pool_batch_ports = 3

    # MTU is the only field taken over from the previous configuration.
    if kc.mtu is None and previous is not None:
        prev_kc = previous.default_network.kuryr_config
        if prev_kc is not None and prev_kc.mtu is not None:
            kc.mtu = prev_kc.mtu