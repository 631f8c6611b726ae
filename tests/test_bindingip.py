import pytest

from topohub.bindingip import BindingIPWebhook
from topohub.models import (
    LABEL_SUBNET_NAME,
    AdmissionError,
    BindingIp,
    BindingIpSpec,
    HostOperation,
    IPv4SubnetSpec,
    ObjectMeta,
    ResourceStore,
    Subnet,
    SubnetSpec,
)

RANGE = "192.168.1.10-192.168.1.20,192.168.1.30"


def _binding(name, ip, mac, subnet="net1"):
    return BindingIp(
        metadata=ObjectMeta(name=name),
        spec=BindingIpSpec(subnet=subnet, ip_addr=ip, mac_addr=mac),
    )


@pytest.fixture
def store():
    s = ResourceStore()
    s.add(
        Subnet(
            metadata=ObjectMeta(name="net1"),
            spec=SubnetSpec(ipv4_subnet=IPv4SubnetSpec(subnet="192.168.1.0/24", ip_range=RANGE)),
        )
    )
    return s


@pytest.fixture
def webhook(store):
    return BindingIPWebhook(store)


def test_default_sets_subnet_label(webhook):
    obj = _binding("b1", "192.168.1.15", "02:00:00:00:00:01")
    webhook.default(obj)
    assert obj.labels[LABEL_SUBNET_NAME] == "net1"


def test_default_wrong_type(webhook):
    with pytest.raises(AdmissionError, match="not a BindingIP"):
        webhook.default(HostOperation())


def test_valid_create(webhook):
    assert webhook.validate_create(_binding("b1", "192.168.1.15", "02:00:00:00:00:01")) == []


def test_single_ip_entry_accepted(webhook):
    assert webhook.validate_create(_binding("b1", "192.168.1.30", "02:00:00:00:00:01")) == []


def test_multicast_mac_rejected(webhook):
    with pytest.raises(AdmissionError, match="invalid unicast MAC"):
        webhook.validate_create(_binding("b1", "192.168.1.15", "01:00:5e:00:00:00"))


def test_missing_subnet(webhook):
    with pytest.raises(AdmissionError, match="failed to get subnet other"):
        webhook.validate_create(_binding("b1", "192.168.1.15", "02:00:00:00:00:01", "other"))


def test_invalid_ip(webhook):
    with pytest.raises(AdmissionError, match="invalid IP address"):
        webhook.validate_create(_binding("b1", "not-an-ip", "02:00:00:00:00:01"))


def test_ip_outside_range(webhook):
    with pytest.raises(AdmissionError, match="is not in subnet net1"):
        webhook.validate_create(_binding("b1", "192.168.1.25", "02:00:00:00:00:01"))


def test_duplicate_ip(store, webhook):
    store.add(_binding("first", "192.168.1.15", "02:00:00:00:00:02"))
    with pytest.raises(AdmissionError, match="already used by BindingIP first"):
        webhook.validate_create(_binding("b1", "192.168.1.15", "02:00:00:00:00:01"))


def test_duplicate_mac_case_insensitive(store, webhook):
    store.add(_binding("first", "192.168.1.11", "02:00:00:00:00:AA"))
    with pytest.raises(AdmissionError, match="Mac 02:00:00:00:00:aa is already used"):
        webhook.validate_create(_binding("b1", "192.168.1.15", "02:00:00:00:00:aa"))


def test_same_name_is_skipped(store, webhook):
    existing = _binding("b1", "192.168.1.15", "02:00:00:00:00:01")
    store.add(existing)
    assert webhook.validate_update(existing, _binding("b1", "192.168.1.15", "02:00:00:00:00:01")) == []


def test_update_validates_new_object(webhook):
    old = _binding("b1", "192.168.1.15", "02:00:00:00:00:01")
    with pytest.raises(AdmissionError, match="is not in subnet"):
        webhook.validate_update(old, _binding("b1", "10.0.0.1", "02:00:00:00:00:01"))


def test_create_wrong_type(webhook):
    with pytest.raises(AdmissionError, match="not a BindingIP"):
        webhook.validate_create(Subnet())


def test_delete_allowed(webhook):
    assert webhook.validate_delete(_binding("b1", "bad", "bad")) == []