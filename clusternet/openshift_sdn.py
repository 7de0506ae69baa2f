"""Validation, defaulting and ClusterNetwork rendering for openshift-sdn."""

from __future__ import annotations

import yaml

from clusternet.cluster_config import _parse_cidr
from clusternet.kube_proxy import no_kube_proxy_config
from clusternet.specs import (
    NETWORK_TYPE_OPENSHIFT_SDN,
    SDN_MODE_MULTITENANT,
    SDN_MODE_NETWORK_POLICY,
    SDN_MODE_SUBNET,
    NetworkSpec,
    OpenShiftSDNConfig,
    ProxyConfig,
)

# Bytes taken by the VXLAN header.
SDN_OVERHEAD = 50
CLUSTER_NETWORK_DEFAULT = "default"

_PLUGIN_NAMES = {
    SDN_MODE_SUBNET: "redhat/openshift-ovs-subnet",
    SDN_MODE_MULTITENANT: "redhat/openshift-ovs-multitenant",
    SDN_MODE_NETWORK_POLICY: "redhat/openshift-ovs-networkpolicy",
}


def sdn_plugin_name(mode: str) -> str:
    """Return the openshift-sdn plugin name for a mode, or "" if the mode is unknown."""
    return _PLUGIN_NAMES.get(mode, "")


def validate_openshift_sdn(conf: NetworkSpec) -> list[str]:
    """Return the problems found in the openshift-sdn configuration."""
    errors: list[str] = []

    if not conf.cluster_network:
        errors.append("ClusterNetwork cannot be empty")
    if len(conf.service_network) != 1:
        errors.append("ServiceNetwork must have exactly 1 entry")

    sc = conf.default_network.openshift_sdn_config
    if sc is not None:
        if sc.mode and not sdn_plugin_name(sc.mode):
            errors.append(f'invalid openshift-sdn mode "{sc.mode}"')
        if sc.vxlan_port is not None and not 1 <= sc.vxlan_port <= 65535:
            errors.append(f"invalid VXLANPort {sc.vxlan_port}")
        if sc.mtu is not None and not 576 <= sc.mtu <= 65536:
            errors.append(f"invalid MTU {sc.mtu}")

        # Unidling only works with the iptables proxy mode.
        unidling = sc.enable_unidling is None or sc.enable_unidling
        proxy = conf.kube_proxy_config
        if unidling and proxy is not None and proxy.proxy_arguments is not None:
            mode = proxy.proxy_arguments.get("proxy-mode") or []
            if mode and mode[0] != "iptables":
                errors.append(
                    'invalid proxy-mode - when unidling is enabled, proxy-mode must be "iptables"'
                )

    if conf.deploy_kube_proxy:
        # An external kube-proxy is tolerated only in narrow testing setups;
        # the message deliberately does not say so.
        if (
            sc is None
            or sc.enable_unidling is None
            or sc.enable_unidling
            or not no_kube_proxy_config(conf)
        ):
            errors.append("openshift-sdn does not support 'deployKubeProxy: true'")

    return errors


def is_openshift_sdn_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Return the reasons a change of the openshift-sdn configuration is unsafe.

    Only useExternalOpenvswitch and enableUnidling may change freely; the MTU
    may change through a migration. Defaults are expected to be filled in.
    """
    pn = prev.default_network.openshift_sdn_config or OpenShiftSDNConfig()
    nn = next.default_network.openshift_sdn_config or OpenShiftSDNConfig()
    if pn == nn:
        return []

    errors: list[str] = []
    if pn.mode != nn.mode:
        errors.append("cannot change openshift-sdn mode")
    if pn.vxlan_port != nn.vxlan_port:
        errors.append("cannot change openshift-sdn vxlanPort")

    migration = next.migration
    if migration is not None and migration.mtu is not None:
        net = migration.mtu.network
        machine = migration.mtu.machine
        if (
            net is None
            or machine is None
            or net.from_ is None
            or net.to is None
            or machine.to is None
        ):
            errors.append("invalid Migration.MTU, at least one of the required fields is missing")
        else:
            prev_net = None
            if prev.migration is not None and prev.migration.mtu is not None:
                prev_net = prev.migration.mtu.network
            # The source MTU is only checked when it changes.
            check_prev = prev_net is None or prev_net.from_ != net.from_
            if check_prev and net.from_ != pn.mtu:
                errors.append(
                    f"invalid Migration.MTU.Network.From({net.from_}) not equal to the "
                    f"currently applied MTU({pn.mtu})"
                )
            if net.to + SDN_OVERHEAD > machine.to:
                errors.append(
                    f"invalid Migration.MTU.Machine.To({machine.to}), has to be at least "
                    f"{net.to + SDN_OVERHEAD}"
                )
    elif pn.mtu != nn.mtu:
        errors.append("cannot change openshift-sdn mtu without migration")

    return errors


def fill_openshift_sdn_defaults(
    conf: NetworkSpec, previous: NetworkSpec | None, host_mtu: int
) -> None:
    """Fill in openshift-sdn defaults in place.

    A default that is unsafe to change on a running cluster must come from
    the previous configuration.
    """
    if conf.deploy_kube_proxy is None:
        conf.deploy_kube_proxy = False

    if conf.kube_proxy_config is None:
        conf.kube_proxy_config = ProxyConfig()
    if not conf.kube_proxy_config.bind_address:
        conf.kube_proxy_config.bind_address = "0.0.0.0"
    if conf.kube_proxy_config.proxy_arguments is None:
        conf.kube_proxy_config.proxy_arguments = {}

    if conf.default_network.openshift_sdn_config is None:
        conf.default_network.openshift_sdn_config = OpenShiftSDNConfig()
    sc = conf.default_network.openshift_sdn_config

    if sc.vxlan_port is None:
        sc.vxlan_port = 4789
    if sc.enable_unidling is None:
        sc.enable_unidling = True

    # The MTU can never change, so the previous value always wins over the
    # one inferred from the host.
    if sc.mtu is None:
        mtu = host_mtu - SDN_OVERHEAD
        if previous is not None and previous.default_network.type == NETWORK_TYPE_OPENSHIFT_SDN:
            prev_sc = previous.default_network.openshift_sdn_config
            if prev_sc is not None and prev_sc.mtu is not None:
                mtu = prev_sc.mtu
        sc.mtu = mtu

    if not sc.mode:
        sc.mode = SDN_MODE_NETWORK_POLICY


def cluster_network(conf: NetworkSpec) -> str:
    """Return the YAML of the ClusterNetwork object used by controller and nodes."""
    sc = conf.default_network.openshift_sdn_config or OpenShiftSDNConfig()
    if not conf.cluster_network:
        raise ValueError("ClusterNetwork cannot be empty")

    networks = []
    for entry in conf.cluster_network:
        cidr = _parse_cidr(entry.cidr)
        networks.append(
            {"CIDR": entry.cidr, "hostSubnetLength": cidr.max_prefixlen - entry.host_prefix}
        )

    document = {
        "apiVersion": "network.openshift.io/v1",
        "kind": "ClusterNetwork",
        "metadata": {"creationTimestamp": None, "name": CLUSTER_NETWORK_DEFAULT},
        "pluginName": sdn_plugin_name(sc.mode),
        "network": networks[0]["CIDR"],
        "hostsubnetlength": networks[0]["hostSubnetLength"],
        "clusterNetworks": networks,
        "serviceNetwork": conf.service_network[0],
    }
    if sc.vxlan_port is not None:
        document["vxlanPort"] = sc.vxlan_port
    if sc.mtu is not None:
        document["mtu"] = sc.mtu
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=True)