"""Data model for cluster and operator network configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

NETWORK_TYPE_OPENSHIFT_SDN = "OpenShiftSDN"
NETWORK_TYPE_OVN_KUBERNETES = "OVNKubernetes"
NETWORK_TYPE_KURYR = "Kuryr"
NETWORK_TYPE_RAW = "Raw"
NETWORK_TYPE_SIMPLE_MACVLAN = "SimpleMacvlan"

SDN_MODE_SUBNET = "Subnet"
SDN_MODE_MULTITENANT = "Multitenant"
SDN_MODE_NETWORK_POLICY = "NetworkPolicy"

IPAM_TYPE_DHCP = "DHCP"
IPAM_TYPE_STATIC = "Static"

MACVLAN_MODE_BRIDGE = "Bridge"

LOG_LEVEL_NORMAL = "Normal"
MANAGEMENT_STATE_MANAGED = "Managed"


@dataclass
class ClusterNetworkEntry:
    """A pod network CIDR and the prefix length handed to each node."""

    cidr: str
    host_prefix: int = 0


@dataclass
class ClusterNetworkSpec:
    """The user-facing cluster network configuration."""

    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    network_type: str = ""


@dataclass
class ProxyConfig:
    """Settings passed on to kube-proxy."""

    iptables_sync_period: str = ""
    bind_address: str = ""
    proxy_arguments: dict[str, list[str]] | None = None


@dataclass
class OpenShiftSDNConfig:
    """Settings of the openshift-sdn plugin."""

    mode: str = ""
    vxlan_port: int | None = None
    mtu: int | None = None
    use_external_openvswitch: bool | None = None
    enable_unidling: bool | None = None


@dataclass
class KuryrConfig:
    """Settings of the Kuryr plugin."""

    daemon_probes_port: int | None = None
    controller_probes_port: int | None = None
    open_stack_service_network: str = ""
    enable_port_pools_prepopulation: bool = False
    pool_max_ports: int = 0
    pool_min_ports: int = 0
    pool_batch_ports: int | None = None
    mtu: int | None = None


@dataclass
class OVNKubernetesConfig:
    """Settings of the OVN-Kubernetes plugin."""

    mtu: int | None = None
    geneve_port: int | None = None


@dataclass
class IPAMConfig:
    """IP address management of a simple macvlan network."""

    type: str = ""
    static_ipam_config: dict[str, Any] | None = None


@dataclass
class SimpleMacvlanConfig:
    """A macvlan additional network described without raw CNI JSON."""

    master: str = ""
    ipam_config: IPAMConfig | None = None
    mode: str = ""
    mtu: int | None = None


@dataclass
class AdditionalNetworkDefinition:
    """A secondary network attached to pods."""

    type: str
    name: str = ""
    namespace: str = ""
    raw_cni_config: str = ""
    simple_macvlan_config: SimpleMacvlanConfig | None = None


@dataclass
class MTUMigrationValues:
    """A source and target MTU."""

    to: int | None = None
    from_: int | None = None


@dataclass
class MTUMigration:
    """MTU values for the pod network and the machines during migration."""

    network: MTUMigrationValues | None = None
    machine: MTUMigrationValues | None = None


@dataclass
class NetworkMigration:
    """A migration in progress to another network type or MTU."""

    network_type: str = ""
    mtu: MTUMigration | None = None


@dataclass
class ClusterNetworkStatus:
    """The network status published for the cluster."""

    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    network_type: str = ""
    cluster_network_mtu: int = 0
    migration: NetworkMigration | None = None


@dataclass
class DefaultNetworkDefinition:
    """The default pod network plugin and its settings."""

    type: str = ""
    openshift_sdn_config: OpenShiftSDNConfig | None = None
    ovn_kubernetes_config: OVNKubernetesConfig | None = None
    kuryr_config: KuryrConfig | None = None


@dataclass
class NetworkSpec:
    """The operator's full network configuration."""

    cluster_network: list[ClusterNetworkEntry] = field(default_factory=list)
    service_network: list[str] = field(default_factory=list)
    default_network: DefaultNetworkDefinition = field(default_factory=DefaultNetworkDefinition)
    additional_networks: list[AdditionalNetworkDefinition] | None = None
    disable_multi_network: bool | None = None
    use_multi_network_policy: bool | None = None
    deploy_kube_proxy: bool | None = None
    kube_proxy_config: ProxyConfig | None = None
    log_level: str = ""
    management_state: str = ""
    migration: NetworkMigration | None = None