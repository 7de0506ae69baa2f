import ipaddress

import pytest

from clusternet.kuryr import (
    expand_net,
    fill_kuryr_defaults,
    is_kuryr_change_safe,
    validate_kuryr,
)
from clusternet.specs import (
    ClusterNetworkEntry,
    DefaultNetworkDefinition,
    KuryrConfig,
    NetworkSpec,
)


def _kuryr_spec():
    return NetworkSpec(
        service_network=["172.30.0.0/16"],
        cluster_network=[ClusterNetworkEntry("10.128.0.0/15", 24)],
        default_network=DefaultNetworkDefinition(type="Kuryr", kuryr_config=KuryrConfig()),
    )


def _has_error(errors, substr):
    return any(substr in e for e in errors)


@pytest.mark.parametrize(
    "cidr, expected",
    [
        ("172.30.0.0/16", "172.30.0.0/15"),
        ("172.31.0.0/16", "172.30.0.0/15"),
        ("fd02::/112", "fd02::/111"),
    ],
)
def test_expand_net(cidr, expected):
    assert str(expand_net(ipaddress.ip_network(cidr))) == expected


def test_validate_kuryr_sequence():
    config = _kuryr_spec()
    assert validate_kuryr(config) == []

    config.service_network = ["172.30.0.0/16", "172.31.0.0/16"]
    assert _has_error(validate_kuryr(config), "serviceNetwork must have exactly 1 entry")

    config.cluster_network = [
        ClusterNetworkEntry("10.128.0.0/15", 24),
        ClusterNetworkEntry("10.129.0.0/15", 24),
    ]
    assert _has_error(validate_kuryr(config), "clusterNetwork must have exactly 1 entry")

    config.service_network = ["172.30.0.0/16"]
    config.cluster_network = [ClusterNetworkEntry("172.31.0.0/16", 16)]
    assert _has_error(validate_kuryr(config), "will overlap with cluster network")

    config.service_network = ["172.31.0.0/16"]
    config.cluster_network = [ClusterNetworkEntry("172.30.0.0/16", 16)]
    assert _has_error(validate_kuryr(config), "will overlap with cluster network")

    config.cluster_network = [ClusterNetworkEntry("10.128.0.0/15", 24)]
    config.service_network = ["172.30.0.0/16"]
    config.default_network.kuryr_config.open_stack_service_network = "172.31.0.0/16"
    assert _has_error(validate_kuryr(config), "does not include")

    config.default_network.kuryr_config.open_stack_service_network = "172.30.0.0/16"
    assert _has_error(validate_kuryr(config), "is too small")

    config.default_network.kuryr_config.open_stack_service_network = "172.30.0.0/15"
    assert validate_kuryr(config) == []

    config.default_network.kuryr_config.mtu = 70000
    assert _has_error(validate_kuryr(config), "invalid MTU 70000")


def test_validate_unparsable_networks():
    config = _kuryr_spec()
    config.service_network = ["bogus"]
    config.cluster_network = [ClusterNetworkEntry("junk", 24)]
    errors = validate_kuryr(config)
    assert "cannot parse serviceNetwork[0] CIDR" in errors
    assert "cannot parse clusterNetwork[0].CIDR CIDR" in errors


def test_validate_unparsable_octavia_network():
    config = _kuryr_spec()
    config.default_network.kuryr_config.open_stack_service_network = "nope"
    assert validate_kuryr(config) == [
        "cannot parse defaultNetwork.kuryrConfig.octaviaServiceNetwork CIDR"
    ]


@pytest.mark.parametrize(
    "batch, min_ports, max_ports, expected",
    [
        (3, 1, 0, []),
        (1, 2, 0, ["poolBatchPorts cannot be set below poolMinPorts"]),
        (10, 0, 5, ["poolBatchPorts cannot be set above poolMaxPorts"]),
        (0, 0, 0, ["poolBatchPorts has to have at least value of 1"]),
    ],
)
def test_validate_pool_batch_ports(batch, min_ports, max_ports, expected):
    config = _kuryr_spec()
    kc = config.default_network.kuryr_config
    kc.pool_batch_ports = batch
    kc.pool_min_ports = min_ports
    kc.pool_max_ports = max_ports
    assert validate_kuryr(config) == expected


@pytest.mark.parametrize("mtu, valid", [(575, False), (576, True), (65536, True), (65537, False)])
def test_validate_mtu_bounds(mtu, valid):
    config = _kuryr_spec()
    config.default_network.kuryr_config.mtu = mtu
    assert (validate_kuryr(config) == []) is valid


def test_fill_kuryr_defaults():
    conf = _kuryr_spec()
    fill_kuryr_defaults(conf, None)
    assert conf == NetworkSpec(
        service_network=["172.30.0.0/16"],
        cluster_network=[ClusterNetworkEntry("10.128.0.0/15", 24)],
        default_network=DefaultNetworkDefinition(
            type="Kuryr",
            kuryr_config=KuryrConfig(
                daemon_probes_port=8090,
                controller_probes_port=8091,
                open_stack_service_network="172.30.0.0/15",
                enable_port_pools_prepopulation=False,
                pool_max_ports=0,
                pool_min_ports=1,
                pool_batch_ports=3,
            ),
        ),
    )


def test_fill_kuryr_defaults_creates_config():
    conf = _kuryr_spec()
    conf.default_network.kuryr_config = None
    fill_kuryr_defaults(conf, None)
    assert conf.default_network.kuryr_config.open_stack_service_network == "172.30.0.0/15"
    assert conf.default_network.kuryr_config.pool_batch_ports == 3


def test_fill_kuryr_defaults_takes_mtu_from_previous():
    previous = _kuryr_spec()
    previous.default_network.kuryr_config.mtu = 1400
    conf = _kuryr_spec()
    fill_kuryr_defaults(conf, previous)
    assert conf.default_network.kuryr_config.mtu == 1400


def test_fill_kuryr_defaults_keeps_set_values():
    conf = _kuryr_spec()
    conf.default_network.kuryr_config = KuryrConfig(
        daemon_probes_port=1, open_stack_service_network="10.0.0.0/8", mtu=1300
    )
    previous = _kuryr_spec()
    previous.default_network.kuryr_config.mtu = 1400
    fill_kuryr_defaults(conf, previous)
    kc = conf.default_network.kuryr_config
    assert (kc.daemon_probes_port, kc.open_stack_service_network, kc.mtu) == (
        1,
        "10.0.0.0/8",
        1300,
    )


def test_change_safe_when_equal():
    prev = _kuryr_spec()
    fill_kuryr_defaults(prev, None)
    nxt = _kuryr_spec()
    fill_kuryr_defaults(nxt, None)
    assert is_kuryr_change_safe(prev, nxt) == []


def test_change_of_pool_settings_is_safe():
    prev = _kuryr_spec()
    fill_kuryr_defaults(prev, None)
    nxt = _kuryr_spec()
    fill_kuryr_defaults(nxt, None)
    nxt.default_network.kuryr_config.pool_max_ports = 10
    assert is_kuryr_change_safe(prev, nxt) == []


def test_unsafe_changes():
    prev = _kuryr_spec()
    fill_kuryr_defaults(prev, None)
    nxt = _kuryr_spec()
    fill_kuryr_defaults(nxt, None)
    nxt.default_network.kuryr_config.open_stack_service_network = "172.28.0.0/14"
    nxt.default_network.kuryr_config.mtu = 1400
    assert is_kuryr_change_safe(prev, nxt) == [
        "cannot change kuryr openStackServiceNetwork",
        "cannot change mtu for the Pods Network",
    ]