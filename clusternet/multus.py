"""Multus-related paths and helpers."""

from __future__ import annotations

from clusternet.specs import NetworkSpec

SYSTEM_CNI_CONF_DIR = "/etc/kubernetes/cni/net.d"
MULTUS_CNI_CONF_DIR = "/var/run/multus/cni/net.d"
CNI_BIN_DIR = "/var/lib/cni/bin"


def plugin_cni_conf_dir(conf: NetworkSpec) -> str:
    """Return where the default plugin installs its CNI config.

    That is where multus looks, unless multus is disabled.
    """
    if conf.disable_multi_network:
        return SYSTEM_CNI_CONF_DIR
    return MULTUS_CNI_CONF_DIR