"""Validation and merging of the cluster network configuration."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import replace

from clusternet.specs import (
    MANAGEMENT_STATE_MANAGED,
    NETWORK_TYPE_KURYR,
    NETWORK_TYPE_OPENSHIFT_SDN,
    NETWORK_TYPE_OVN_KUBERNETES,
    ClusterNetworkEntry,
    ClusterNetworkSpec,
    ClusterNetworkStatus,
    MTUMigration,
    NetworkMigration,
    NetworkSpec,
)

_IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

# Plugins that need hostPrefix to be set.
_PLUGINS_USING_HOST_PREFIX = frozenset({NETWORK_TYPE_OPENSHIFT_SDN, NETWORK_TYPE_OVN_KUBERNETES})
_KNOWN_NETWORK_TYPES = frozenset(
    {NETWORK_TYPE_OPENSHIFT_SDN, NETWORK_TYPE_OVN_KUBERNETES, NETWORK_TYPE_KURYR}
)
_PREFIX_RE = re.compile(r"[0-9]+")
_TOO_MANY_SERVICE_NETWORKS = "spec.serviceNetwork must contain at most one IPv4 and one IPv6 network"


class ClusterConfigError(ValueError):
    """Raised when a cluster network configuration is invalid."""


def _parse_cidr(text: str) -> _IPNetwork:
    """Parse an address/prefix string into its network, host bits cleared."""
    address, sep, prefix = text.partition("/")
    if not sep or "%" in address or not _PREFIX_RE.fullmatch(prefix):
        raise ValueError(f"invalid CIDR address: {text}")
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError:
        raise ValueError(f"invalid CIDR address: {text}") from None


class _IPPool:
    """A set of networks that may not overlap each other."""

    def __init__(self) -> None:
        self._networks: list[_IPNetwork] = []

    def add(self, network: _IPNetwork) -> None:
        for existing in self._networks:
            if existing.version == network.version and existing.overlaps(network):
                raise ClusterConfigError(f"CIDRs {existing} and {network} overlap")
        self._networks.append(network)


def validate_cluster_config(cluster_config: ClusterNetworkSpec) -> None:
    """Raise ClusterConfigError if the cluster network configuration is invalid."""
    pool = _IPPool()
    ipv4_service = ipv6_service = ipv4_cluster = ipv6_cluster = False

    for snet in cluster_config.service_network:
        try:
            cidr = _parse_cidr(snet)
        except ValueError as exc:
            raise ClusterConfigError(f"could not parse spec.serviceNetwork {snet}: {exc}") from exc
        if cidr.version == 6:
            ipv6_service = True
        else:
            ipv4_service = True
        pool.add(cidr)

    count = len(cluster_config.service_network)
    if count == 0:
        raise ClusterConfigError("spec.serviceNetwork must have at least 1 entry")
    if count > 2 or (count == 2 and not (ipv4_service and ipv6_service)):
        raise ClusterConfigError(_TOO_MANY_SERVICE_NETWORKS)

    for cnet in cluster_config.cluster_network:
        try:
            cidr = _parse_cidr(cnet.cidr)
        except ValueError:
            raise ClusterConfigError(f"could not parse spec.clusterNetwork {cnet.cidr}") from None
        if cidr.version == 6:
            ipv6_cluster = True
        else:
            ipv4_cluster = True
        # hostPrefix is ignored when the plugin does not use it and it is unset.
        if cluster_config.network_type in _PLUGINS_USING_HOST_PREFIX or cnet.host_prefix != 0:
            ones, bits = cidr.prefixlen, cidr.max_prefixlen
            # A smaller prefix length is a larger block.
            if cnet.host_prefix < ones:
                raise ClusterConfigError(
                    f"hostPrefix {cnet.host_prefix} is larger than its cidr {cnet.cidr}"
                )
            if cnet.host_prefix > bits - 2:
                raise ClusterConfigError(
                    f"hostPrefix {cnet.host_prefix} is too small, must be a /{bits - 2} or larger"
                )
        pool.add(cidr)

    if not cluster_config.cluster_network:
        raise ClusterConfigError("spec.clusterNetwork must have at least 1 entry")
    if ipv4_cluster != ipv4_service or ipv6_cluster != ipv6_service:
        raise ClusterConfigError(
            "spec.clusterNetwork and spec.serviceNetwork must either both be IPv4-only, "
            "both be IPv6-only, or both be dual-stack"
        )
    if not cluster_config.network_type:
        raise ClusterConfigError("spec.networkType is required")


def merge_cluster_config(oper_conf: NetworkSpec, cluster_conf: ClusterNetworkSpec) -> None:
    """Copy the cluster configuration into the operator configuration in place."""
    oper_conf.service_network = list(cluster_conf.service_network)
    oper_conf.cluster_network = [
        ClusterNetworkEntry(cidr=cnet.cidr, host_prefix=cnet.host_prefix)
        for cnet in cluster_conf.cluster_network
    ]
    oper_conf.default_network.type = cluster_conf.network_type
    if not oper_conf.management_state:
        oper_conf.management_state = MANAGEMENT_STATE_MANAGED


def _configured_mtu(config, plugin: str) -> int:
    if config is None or config.mtu is None:
        raise ClusterConfigError(f"{plugin} MTU is not set")
    return int(config.mtu)


def status_from_operator_config(
    oper_conf: NetworkSpec, old_status: ClusterNetworkStatus
) -> ClusterNetworkStatus:
    """Build the cluster network status from the applied operator configuration."""
    network_type = oper_conf.default_network.type
    known = network_type in _KNOWN_NETWORK_TYPES
    if known:
        status = ClusterNetworkStatus()
    else:
        # Preserve whatever an unknown plugin wrote into the status itself.
        status = replace(
            old_status,
            cluster_network=list(old_status.cluster_network),
            service_network=list(old_status.service_network),
        )

    if not old_status.network_type or known:
        status.network_type = network_type
    if not old_status.service_network or known:
        status.service_network = list(oper_conf.service_network)
    if not old_status.cluster_network or known:
        status.cluster_network.extend(
            ClusterNetworkEntry(cidr=cnet.cidr, host_prefix=cnet.host_prefix)
            for cnet in oper_conf.cluster_network
        )

    default = oper_conf.default_network
    if network_type == NETWORK_TYPE_OPENSHIFT_SDN:
        status.cluster_network_mtu = _configured_mtu(default.openshift_sdn_config, network_type)
    elif network_type == NETWORK_TYPE_OVN_KUBERNETES:
        status.cluster_network_mtu = _configured_mtu(default.ovn_kubernetes_config, network_type)
    elif network_type == NETWORK_TYPE_KURYR:
        status.cluster_network_mtu = _configured_mtu(default.kuryr_config, network_type)

    migration = oper_conf.migration
    if migration is None:
        status.migration = None
    else:
        mtu = None
        if migration.mtu is not None:
            mtu = MTUMigration(network=migration.mtu.network, machine=migration.mtu.machine)
        status.migration = NetworkMigration(network_type=migration.network_type, mtu=mtu)
    return status