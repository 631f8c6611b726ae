"""Admission webhook for Subnet resources."""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import List, Optional, Union

import psutil

from topohub.iptools import (
    IPValidationError,
    validate_host_interface_subnet,
    validate_interface_exists,
    validate_ip_in_subnet,
    validate_ip_range,
    validate_ip_range_expansion,
    validate_ip_with_subnet_match,
)
from topohub.models import (
    LABEL_CLUSTER_NAME,
    AdmissionError,
    AgentConfig,
    InterfaceSpec,
    ResourceStore,
    Subnet,
)

_log = logging.getLogger("topohub.subnetWebhook")

MAX_VLAN_ID = 4094

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def host_interface_addresses(name: str) -> List[ipaddress.IPv4Interface]:
    """Return the IPv4 addresses, with prefixes, configured on host interface ``name``."""
    try:
        interfaces = psutil.net_if_addrs()
    except (OSError, RuntimeError) as exc:
        raise IPValidationError(f"failed to list host interfaces: {exc}") from exc
    if name not in interfaces:
        raise IPValidationError("Link not found")
    addresses = []
    for entry in interfaces[name]:
        if entry.family != socket.AF_INET:
            continue
        netmask = entry.netmask or "255.255.255.255"
        addresses.append(ipaddress.IPv4Interface(f"{entry.address}/{netmask}"))
    return addresses


def _parse_subnet(text: str) -> IPNetwork:
    address, sep, prefix = text.partition("/")
    if not sep or not prefix.isdigit() or "%" in address:
        raise AdmissionError(f"invalid subnet format: invalid CIDR address: {text}")
    try:
        return ipaddress.ip_network(f"{address}/{int(prefix)}", strict=False)
    except ValueError:
        raise AdmissionError(
            f"invalid subnet format: invalid CIDR address: {text}"
        ) from None


def _is_ip(text: str) -> bool:
    if "%" in text:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


class SubnetWebhook:
    """Fills in Subnet defaults and validates addresses, ranges and interfaces."""

    def __init__(self, client: ResourceStore, config: Optional[AgentConfig] = None) -> None:
        self.client = client
        self.config = config if config is not None else AgentConfig()

    @staticmethod
    def _expect(obj: object, message: str = "object is not a Subnet") -> Subnet:
        if not isinstance(obj, Subnet):
            raise AdmissionError(message)
        return obj

    def _checked(self, obj: object, message: str = "object is not a Subnet") -> Subnet:
        try:
            return self._expect(obj, message)
        except AdmissionError as exc:
            _log.error("%s", exc)
            raise

    def default(self, obj: object) -> None:
        """Set the cluster-name label, the default interface and VLAN 0."""
        subnet = self._expect(obj)
        spec = subnet.spec
        _log.debug("Setting initial values for nil fields in Subnet %s", subnet.name)

        cluster = spec.feature.sync_redfishstatus.default_cluster_name
        subnet.labels[LABEL_CLUSTER_NAME] = cluster or ""

        if spec.interface.interface == "":
            spec.interface.interface = self.config.dhcp_server_interface
        if spec.interface.vlan_id is None:
            spec.interface.vlan_id = 0

    def validate_create(self, obj: object) -> List[str]:
        subnet = self._checked(obj)
        _log.info("Validating creation of Subnet %s", subnet.name)
        self._validate_and_log(subnet)
        return []

    def validate_update(self, old_obj: object, new_obj: object) -> List[str]:
        old = self._checked(old_obj, "old object is not a Subnet")
        new = self._checked(new_obj, "new object is not a Subnet")
        _log.info("Validating update of Subnet %s", new.name)

        old_v4, new_v4 = old.spec.ipv4_subnet, new.spec.ipv4_subnet
        if old_v4.subnet != new_v4.subnet:
            raise AdmissionError(f"subnet {old_v4.subnet} cannot be modified")

        network = _parse_subnet(new_v4.subnet)
        try:
            validate_ip_range_expansion(old_v4.ip_range, new_v4.ip_range, network)
        except IPValidationError as exc:
            raise AdmissionError(str(exc)) from exc

        old_if, new_if = old.spec.interface, new.spec.interface
        if old_if.interface != new_if.interface:
            raise AdmissionError("interface name cannot be modified")
        if old_if.vlan_id != new_if.vlan_id:
            raise AdmissionError("interface VLAN ID cannot be modified")
        if old_if.ipv4 != new_if.ipv4:
            raise AdmissionError("interface IPv4 address cannot be modified")

        self._validate_and_log(new)
        return []

    def validate_delete(self, obj: object) -> List[str]:
        """Deletion is always allowed for Subnet objects."""
        subnet = self._checked(obj)
        _log.debug("Allowing deletion of Subnet %s", subnet.name)
        return []

    def _validate_and_log(self, subnet: Subnet) -> None:
        try:
            self._validate(subnet)
        except AdmissionError as exc:
            _log.error("Failed to validate Subnet %s: %s", subnet.name, exc)
            raise

    def _validate(self, subnet: Subnet) -> None:
        v4 = subnet.spec.ipv4_subnet
        network = _parse_subnet(v4.subnet)

        try:
            validate_ip_range(v4.ip_range, network)
        except IPValidationError as exc:
            raise AdmissionError(f"invalid IP range: {exc}") from exc

        if v4.gateway is not None:
            if not _is_ip(v4.gateway):
                raise AdmissionError(f"invalid gateway IP: {v4.gateway}")
            if not validate_ip_in_subnet(v4.gateway, network):
                raise AdmissionError(
                    f"gateway {v4.gateway} is not within subnet {v4.subnet}"
                )

        if v4.dns is not None and not _is_ip(v4.dns):
            raise AdmissionError(f"invalid DNS IP: {v4.dns}")

        try:
            self._validate_interface(subnet.spec.interface, network, subnet)
        except (AdmissionError, IPValidationError) as exc:
            raise AdmissionError(f"invalid interface configuration: {exc}") from exc

    def _validate_interface(
        self, iface: InterfaceSpec, network: IPNetwork, subnet: Subnet
    ) -> None:
        validate_interface_exists(iface.interface)

        if iface.vlan_id is not None and not 0 <= iface.vlan_id <= MAX_VLAN_ID:
            raise AdmissionError(f"VLAN ID must be between 0 and {MAX_VLAN_ID}")

        try:
            validate_ip_with_subnet_match(iface.ipv4, network)
        except IPValidationError as exc:
            raise AdmissionError(f"interface IPv4 validation failed: {exc}") from exc

        try:
            host_addresses = host_interface_addresses(iface.interface)
        except IPValidationError as exc:
            raise AdmissionError(f"failed to get host interface: {exc}") from exc

        try:
            validate_host_interface_subnet(
                host_addresses, iface.ipv4, iface.vlan_id, iface.interface
            )
        except IPValidationError as exc:
            raise AdmissionError(f"interface IPv4 validation failed: {exc}") from exc

        for existing in self.client.list(Subnet):
            if existing.name == subnet.name:
                continue
            other = existing.spec.interface
            if other.interface != iface.interface:
                continue
            if other.vlan_id is not None and iface.vlan_id is not None:
                if other.vlan_id == iface.vlan_id:
                    raise AdmissionError(
                        f"interface {iface.interface} with VLAN ID {iface.vlan_id} "
                        f"is already used by subnet {existing.name}"
                    )
            elif other.vlan_id is None and iface.vlan_id is None:
                raise AdmissionError(
                    f"interface {iface.interface} is already used by subnet {existing.name}"
                )