# clusternet

Validation, defaulting and status logic for a cluster's network configuration.

`clusternet` works on plain dataclasses that describe a network spec: service
and cluster CIDRs, the default network plugin (OpenShiftSDN, OVNKubernetes,
Kuryr or an external one), kube-proxy settings and additional networks. It
checks that a configuration makes sense, fills in default values, decides
whether a change can be applied safely, and works out the status that goes
back to the cluster.

## Installation

```
pip install clusternet
```

## Modules

- `clusternet.specs` holds the data model: `NetworkSpec`, `ClusterNetworkSpec`,
  `ClusterNetworkStatus`, `ClusterNetworkEntry`, `ProxyConfig`,
  `OpenShiftSDNConfig`, `KuryrConfig`, `OVNKubernetesConfig`,
  `DefaultNetworkDefinition`, `AdditionalNetworkDefinition`,
  `SimpleMacvlanConfig`, `IPAMConfig`, `NetworkMigration`, `MTUMigration` and
  `MTUMigrationValues`, plus string constants for network types
  (`NETWORK_TYPE_OPENSHIFT_SDN`, `NETWORK_TYPE_KURYR`, ...), SDN modes and
  IPAM types.
- `clusternet.cluster_config`:
  - `validate_cluster_config(spec)` raises `ClusterConfigError` (a
    `ValueError`) for unparsable or overlapping CIDRs, a wrong number of
    service networks, bad host prefixes, mismatched IPv4/IPv6 families between
    cluster and service networks, or a missing network type.
  - `merge_cluster_config(oper_conf, cluster_conf)` copies the cluster
    networks, service networks and network type into a `NetworkSpec` in place
    and sets `management_state` to `"Managed"` if it is empty.
  - `status_from_operator_config(oper_conf, old_status)` returns a new
    `ClusterNetworkStatus`. For OpenShiftSDN, OVNKubernetes and Kuryr it is
    rebuilt from the spec, including the plugin's MTU (a missing MTU raises
    `ClusterConfigError`); for any other network type, fields already set in
    the old status are kept.
- `clusternet.dhcp_daemon`: `use_dhcp(spec)` tells whether any additional
  network needs the DHCP daemon, via `use_dhcp_raw` (raw CNI JSON whose
  `ipam.type` is `"dhcp"`) and `use_dhcp_simple_macvlan` (no IPAM config, or
  DHCP IPAM). It is always `False` when multi-network is disabled.
- `clusternet.multus`: `plugin_cni_conf_dir(spec)` and the constants
  `SYSTEM_CNI_CONF_DIR`, `MULTUS_CNI_CONF_DIR` and `CNI_BIN_DIR`.
- `clusternet.kube_proxy`: `validate_kube_proxy`, `fill_kube_proxy_defaults`,
  `accepts_kube_proxy_config`, `no_kube_proxy_config`,
  `default_deploy_kube_proxy` and `is_kube_proxy_change_safe` (which at present
  reports every change as safe).
- `clusternet.kuryr`: `validate_kuryr`, `fill_kuryr_defaults`,
  `is_kuryr_change_safe`, and `expand_net`, which returns the network twice
  the size of an `ipaddress` network that contains it.
- `clusternet.openshift_sdn`: `validate_openshift_sdn`,
  `fill_openshift_sdn_defaults(spec, previous, host_mtu)`,
  `is_openshift_sdn_change_safe` (including MTU migration checks),
  `sdn_plugin_name`, and `cluster_network`, which renders the ClusterNetwork
  object as YAML.
- `clusternet.mtu`: `get_default_mtu()` returns the smallest MTU of the links
  that carry a default route, read from `/proc/net` and `/sys/class/net` on
  Linux; it raises `OSError` if none can be found. On other platforms it
  returns 1500.

The per-plugin validators do not stop at the first problem: they return a list
of error messages, and an empty list means the configuration is valid. The
`fill_*_defaults` functions change the spec they are given in place.

## Example

```python
from clusternet.cluster_config import ClusterConfigError, validate_cluster_config
from clusternet.openshift_sdn import cluster_network, fill_openshift_sdn_defaults
from clusternet.specs import (
    ClusterNetworkEntry,
    ClusterNetworkSpec,
    DefaultNetworkDefinition,
    NetworkSpec,
)

spec = ClusterNetworkSpec(
    cluster_network=[ClusterNetworkEntry(cidr="10.128.0.0/14", host_prefix=23)],
    service_network=["172.30.0.0/16"],
    network_type="OpenShiftSDN",
)

try:
    validate_cluster_config(spec)
except ClusterConfigError as err:
    print(f"invalid configuration: {err}")

conf = NetworkSpec(
    cluster_network=spec.cluster_network,
    service_network=spec.service_network,
    default_network=DefaultNetworkDefinition(type="OpenShiftSDN"),
)
fill_openshift_sdn_defaults(conf, None, host_mtu=1500)
print(cluster_network(conf))
```

## What it does not do

`clusternet` only decides about configuration. It does not render or apply
Kubernetes manifests for the network plugins, multus or kube-proxy, does not
generate a kube-proxy configuration file, does not talk to a cluster or a
cloud, and has no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```