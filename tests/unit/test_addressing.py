import pytest

from ovn_mgmt_port import addressing
from ovn_mgmt_port.config import MAX_INTERFACE_NAME_LENGTH
from ovn_mgmt_port.exceptions import InvalidSubnet


def test_derive_addresses_for_slash_24():
    addresses = addressing.derive_addresses("10.1.2.0/24")

    assert addresses.router_cidr == "10.1.2.1/24"
    assert addresses.management_cidr == "10.1.2.2/24"
    assert str(addresses.router_ip) == "10.1.2.1"
    assert addresses.prefixlen == 24


@pytest.mark.parametrize(
    "subnet, router, management",
    [
        ("192.168.0.0/16", "192.168.0.1/16", "192.168.0.2/16"),
        ("10.244.3.0/30", "10.244.3.1/30", "10.244.3.2/30"),
        ("fd00:10:244:1::/64", "fd00:10:244:1::1/64", "fd00:10:244:1::2/64"),
    ],
)
def test_addresses_are_first_and_second_hosts(subnet, router, management):
    addresses = addressing.derive_addresses(subnet)

    assert addresses.router_cidr == router
    assert addresses.management_cidr == management


def test_host_bits_are_masked():
    addresses = addressing.derive_addresses("10.1.2.77/24")

    assert str(addresses.subnet) == "10.1.2.0/24"
    assert addresses.router_cidr == "10.1.2.1/24"


@pytest.mark.parametrize(
    "subnet", ["", "not-a-subnet", "10.1.2.0", "10.1.2.0/33", "300.1.2.0/24", "10.1.2.0/31", "10.1.2.1/32"]
)
def test_invalid_subnets_are_rejected(subnet):
    with pytest.raises(InvalidSubnet):
        addressing.derive_addresses(subnet)


def test_invalid_subnet_is_a_value_error():
    with pytest.raises(ValueError):
        addressing.parse_subnet("bogus/24")


def test_normalize_node_name_lowercases():
    assert addressing.normalize_node_name("Node-A") == "node-a"
    assert addressing.normalize_node_name("worker1") == "worker1"


def test_normalize_node_name_rejects_empty():
    with pytest.raises(ValueError):
        addressing.normalize_node_name("  ")


def test_object_names():
    assert addressing.router_port_name("node-a") == "rtos-node-a"
    assert addressing.switch_router_port_name("node-a") == "stor-node-a"
    assert addressing.management_port_name("node-a") == "k8s-node-a"


def test_short_interface_name_is_kept():
    assert addressing.interface_name("node-a") == "k8s-node-a"


def test_long_interface_name_is_truncated():
    name = addressing.interface_name("very-long-node-name.example.com")

    assert name == "k8s-very-long-n"
    assert len(name) == MAX_INTERFACE_NAME_LENGTH


def test_interface_name_is_deterministic():
    node = "compute-node-0042"

    assert addressing.interface_name(node) == addressing.interface_name(node)
    assert len(addressing.interface_name(node)) <= MAX_INTERFACE_NAME_LENGTH
