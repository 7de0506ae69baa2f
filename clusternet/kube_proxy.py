"""Validation and defaulting of the kube-proxy configuration."""

from __future__ import annotations

import ipaddress
import re

from clusternet.cluster_config import _parse_cidr
from clusternet.specs import (
    NETWORK_TYPE_KURYR,
    NETWORK_TYPE_OPENSHIFT_SDN,
    NETWORK_TYPE_OVN_KUBERNETES,
    NetworkSpec,
    ProxyConfig,
)

# Plugins that handle services themselves and reject kube-proxy settings.
_SELF_PROXYING_TYPES = frozenset({NETWORK_TYPE_OVN_KUBERNETES, NETWORK_TYPE_KURYR})
# Plugins for which no standalone kube-proxy is deployed by default.
_NO_DEFAULT_KUBE_PROXY_TYPES = frozenset(
    {NETWORK_TYPE_OPENSHIFT_SDN, NETWORK_TYPE_OVN_KUBERNETES, NETWORK_TYPE_KURYR}
)
_DEFAULT_BIND_ADDRESSES = frozenset({"", "0.0.0.0", "::"})

# kube-proxy settings that may not change on a running cluster.
# At present every kube-proxy setting may be changed safely.
_IMMUTABLE_PROXY_FIELDS: tuple[str, ...] = ()

_DURATION_RE = re.compile(
    r"[-+]?(?:0|(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:ns|us|µs|μs|ms|s|m|h))+)"
)


def _is_duration(text: str) -> bool:
    """Return True if text is a duration such as "30s", "1m30s" or "1.5h"."""
    return _DURATION_RE.fullmatch(text) is not None


def _is_ip_address(text: str) -> bool:
    if "%" in text:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def accepts_kube_proxy_config(conf: NetworkSpec) -> bool:
    """Return True if the default network type allows kube-proxy settings.

    OpenShiftSDN runs its own kube-proxy, OVNKubernetes and Kuryr do without,
    and any other type is assumed to use an external kube-proxy.
    """
    return conf.default_network.type not in _SELF_PROXYING_TYPES


def no_kube_proxy_config(conf: NetworkSpec) -> bool:
    """Return True if no kube-proxy settings beyond the defaults are given."""
    proxy = conf.kube_proxy_config
    if proxy is None:
        return True
    if proxy.iptables_sync_period or proxy.proxy_arguments:
        return False
    # Either no value or the value fill_kube_proxy_defaults would choose.
    return proxy.bind_address in _DEFAULT_BIND_ADDRESSES


def validate_kube_proxy(conf: NetworkSpec) -> list[str]:
    """Return the problems found in the kube-proxy configuration."""
    proxy = conf.kube_proxy_config
    if proxy is None:
        return []
    if not accepts_kube_proxy_config(conf):
        if no_kube_proxy_config(conf):
            return []
        return [
            f'network type "{conf.default_network.type}" '
            "does not allow specifying kube-proxy options"
        ]

    errors: list[str] = []
    period = proxy.iptables_sync_period
    if period and not _is_duration(period):
        errors.append(
            f'IptablesSyncPeriod is not a valid duration (time: invalid duration "{period}")'
        )

    if proxy.bind_address and not _is_ip_address(proxy.bind_address):
        errors.append("BindAddress must be a valid IP address")

    # Ports may not be overridden, except by repeating the old defaults.
    arguments = proxy.proxy_arguments or {}
    if "metrics-port" in arguments and arguments["metrics-port"] != ["9101"]:
        errors.append("kube-proxy --metrics-port cannot be overridden")
    if "healthz-port" in arguments and arguments["healthz-port"] != ["10256"]:
        errors.append("kube-proxy --healthz-port cannot be overridden")
    if "feature-gates" in arguments:
        errors.append("kube-proxy --feature-gates cannot be overridden")
    return errors


def default_deploy_kube_proxy(conf: NetworkSpec) -> bool:
    """Return True if a standalone kube-proxy is deployed by default."""
    return conf.default_network.type not in _NO_DEFAULT_KUBE_PROXY_TYPES


def fill_kube_proxy_defaults(conf: NetworkSpec, previous: NetworkSpec | None) -> None:
    """Fill in kube-proxy defaults in place when kube-proxy is deployed."""
    if conf.deploy_kube_proxy is None:
        conf.deploy_kube_proxy = default_deploy_kube_proxy(conf)
    if not conf.deploy_kube_proxy:
        return

    if conf.kube_proxy_config is None:
        conf.kube_proxy_config = ProxyConfig()

    if not conf.kube_proxy_config.bind_address:
        cidr = conf.cluster_network[0].cidr
        try:
            _parse_cidr(cidr)
        except ValueError:
            return
        address = ipaddress.ip_address(cidr.partition("/")[0])
        is_v4 = address.version == 4 or address.ipv4_mapped is not None
        conf.kube_proxy_config.bind_address = "0.0.0.0" if is_v4 else "::"


def is_kube_proxy_change_safe(prev: NetworkSpec, next: NetworkSpec) -> list[str]:
    """Return the reasons a kube-proxy change is unsafe.

    Only the settings listed as immutable are compared; at present there are
    none, so every change is reported safe.
    """
    old = prev.kube_proxy_config or ProxyConfig()
    new = next.kube_proxy_config or ProxyConfig()
    return [
        f"cannot change kube-proxy {field}"
        for field in _IMMUTABLE_PROXY_FIELDS
        if getattr(old, field) != getattr(new, field)
    ]