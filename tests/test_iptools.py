import ipaddress
from unittest.mock import patch

import pytest

from topohub.iptools import (
    IPValidationError,
    compare_ip,
    count_ips_in_range,
    is_ip_in_range,
    is_valid_interface_name,
    is_valid_ipv4,
    is_valid_unicast_mac,
    validate_host_interface_subnet,
    validate_interface_exists,
    validate_ip_in_subnet,
    validate_ip_range,
    validate_ip_range_expansion,
    validate_ip_with_subnet_match,
)

SUBNET = ipaddress.ip_network("192.168.1.0/24")


def test_ip_in_subnet():
    assert validate_ip_in_subnet("192.168.1.100", SUBNET) is True
    assert validate_ip_in_subnet("192.168.2.1", SUBNET) is False
    assert validate_ip_in_subnet(ipaddress.ip_address("192.168.1.1"), "192.168.1.0/24") is True


def test_ipv6_not_in_ipv4_subnet():
    assert validate_ip_in_subnet("fe80::1", SUBNET) is False


def test_ip_with_subnet_match_ok():
    assert validate_ip_with_subnet_match("192.168.1.100/24", SUBNET) is None


def test_ip_with_subnet_match_outside():
    with pytest.raises(IPValidationError, match="is not in subnet"):
        validate_ip_with_subnet_match("10.0.0.1/24", SUBNET)


def test_ip_with_subnet_match_bad_cidr():
    with pytest.raises(IPValidationError, match="invalid CIDR format"):
        validate_ip_with_subnet_match("192.168.1.100", SUBNET)


def test_validate_ip_range_ok():
    assert validate_ip_range("192.168.1.10-192.168.1.20,192.168.1.30", SUBNET) is None


@pytest.mark.parametrize(
    "ip_range, message",
    [
        ("192.168.1.1-192.168.1.2-192.168.1.3", "invalid IP range format"),
        ("192.168.1.1-bogus", "invalid IP address in range"),
        ("10.0.0.1-192.168.1.2", "start IP 10.0.0.1 is not within subnet"),
        ("192.168.1.1-10.0.0.1", "end IP 10.0.0.1 is not within subnet"),
        ("192.168.1.20-192.168.1.10", "is greater than end IP"),
        ("nope", "invalid IP address: nope"),
        ("10.1.1.1", "IP 10.1.1.1 is not within subnet 192.168.1.0/24"),
    ],
)
def test_validate_ip_range_errors(ip_range, message):
    with pytest.raises(IPValidationError, match=message):
        validate_ip_range(ip_range, SUBNET)


def test_range_expansion_covering():
    assert (
        validate_ip_range_expansion(
            "192.168.1.10-192.168.1.20,192.168.1.30", "192.168.1.5-192.168.1.30", SUBNET
        )
        is None
    )


def test_range_expansion_identical():
    rng = "192.168.1.10-192.168.1.20,192.168.1.30"
    assert validate_ip_range_expansion(rng, rng, SUBNET) is None


def test_range_expansion_shrink():
    with pytest.raises(IPValidationError, match="cannot be shrunk"):
        validate_ip_range_expansion(
            "192.168.1.10-192.168.1.20,192.168.1.30", "192.168.1.5-192.168.1.25", SUBNET
        )


def test_range_expansion_invalid_old_and_new():
    with pytest.raises(IPValidationError, match="invalid old IP range"):
        validate_ip_range_expansion("10.0.0.1", "192.168.1.1", SUBNET)
    with pytest.raises(IPValidationError, match="invalid new IP range"):
        validate_ip_range_expansion("192.168.1.1", "10.0.0.1", SUBNET)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("eth0", True),
        ("my@interface", False),
        ("a" * 15, True),
        ("a" * 16, False),
        ("", False),
        ("br-lan_1", True),
    ],
)
def test_interface_name(name, expected):
    assert is_valid_interface_name(name) is expected


def test_interface_exists():
    with patch("topohub.iptools.psutil.net_if_addrs", return_value={"eth0": [], "lo": []}):
        assert validate_interface_exists("eth0") is None
        with pytest.raises(IPValidationError, match="does not exist"):
            validate_interface_exists("eth9")


def test_interface_listing_failure():
    with patch("topohub.iptools.psutil.net_if_addrs", side_effect=OSError("boom")):
        with pytest.raises(IPValidationError, match="failed to get network interfaces"):
            validate_interface_exists("eth0")


def test_compare_ip():
    assert compare_ip("192.168.1.1", "192.168.1.2") == -1
    assert compare_ip("192.168.1.2", "192.168.1.1") == -compare_ip("192.168.1.1", "192.168.1.2")
    assert compare_ip("192.168.1.1", "::ffff:192.168.1.1") == 0


def test_count_doc_example():
    assert count_ips_in_range("192.168.1.1-192.168.1.10,192.168.1.20") == 11


def test_count_is_additive():
    whole = count_ips_in_range("10.0.0.1-10.0.1.255, 10.0.5.5")
    parts = count_ips_in_range("10.0.0.1-10.0.1.255") + count_ips_in_range("10.0.5.5")
    assert whole == parts


def test_count_single_range_equals_single_ip():
    assert count_ips_in_range("10.0.0.7-10.0.0.7") == count_ips_in_range("10.0.0.7")


@pytest.mark.parametrize(
    "ip_range, message",
    [
        ("1.1.1.1-1.1.1.2-1.1.1.3", "invalid IP range format"),
        ("1.1.1.1-x", "invalid IP address in range"),
        ("::1-::2", "invalid IP address in range|invalid IPv4"),
        ("1.1.1.5-1.1.1.1", "greater than"),
        ("x", "invalid IP address"),
        ("::1", "invalid IPv4 address"),
        ("", "invalid IP address"),
    ],
)
def test_count_errors(ip_range, message):
    with pytest.raises(IPValidationError, match=message):
        count_ips_in_range(ip_range)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("192.168.1.1", True),
        ("256.1.2.3", False),
        ("192.168.1", False),
        ("192.168.1.1.1", False),
        ("::1", False),
    ],
)
def test_is_valid_ipv4(value, expected):
    assert is_valid_ipv4(value) is expected


@pytest.mark.parametrize(
    "mac, expected",
    [
        ("02:00:00:00:00:01", True),
        ("01:00:5e:00:00:00", False),
        ("ff:ff:ff:ff:ff:ff", False),
        ("02:00:00:00:00", False),
        ("02-00-00-00-00-01", True),
        ("020000000001", True),
        ("0200.0000.0001", True),
        ("zz:00:00:00:00:01", False),
        ("02:00:00:00:00:00:00:01", False),
    ],
)
def test_unicast_mac(mac, expected):
    assert is_valid_unicast_mac(mac) is expected


@pytest.mark.parametrize(
    "ip, expected",
    [("192.168.1.15", True), ("192.168.1.30", True), ("192.168.1.25", False)],
)
def test_ip_in_range(ip, expected):
    assert is_ip_in_range(ip, "192.168.1.10-192.168.1.20,192.168.1.30") is expected


def test_ip_in_range_skips_malformed():
    assert is_ip_in_range("10.0.0.5", "bad,1-2-3,x-y,10.0.0.1-10.0.0.9") is True
    assert is_ip_in_range("10.0.0.5", "bad,1-2-3") is False


def test_host_subnet_exact_match():
    hosts = [ipaddress.ip_interface("192.168.1.2/24")]
    assert validate_host_interface_subnet(hosts, "192.168.1.2/24", 0, "eth1") is None


def test_host_subnet_other_network():
    assert validate_host_interface_subnet(["10.0.0.2/8"], "192.168.1.2/24", 5, "eth1") is None


def test_host_subnet_vlan_rejected():
    with pytest.raises(IPValidationError, match="VLAN ID is not allowed"):
        validate_host_interface_subnet(["192.168.1.2/24"], "192.168.1.2/24", 10, "eth1")


def test_host_subnet_mismatch():
    with pytest.raises(IPValidationError, match="doesn't match exactly"):
        validate_host_interface_subnet(["192.168.1.2/24"], "192.168.1.3/24", None, "eth1")


def test_host_subnet_invalid_address():
    with pytest.raises(IPValidationError, match="invalid subnet IP address"):
        validate_host_interface_subnet([], "192.168.1.3", None, "eth1")