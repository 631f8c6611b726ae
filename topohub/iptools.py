"""Validation helpers for IPv4 addresses, ranges, subnets, MACs and interfaces."""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable
from typing import Optional, Union

import psutil

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]

_INTERFACE_NAME = re.compile(r"[a-zA-Z0-9_-]+")
_MAC_COLON = re.compile(r"(?:[0-9a-fA-F]{2}:){5}[0-9a-fA-F]{2}")
_MAC_DOT = re.compile(r"(?:[0-9a-fA-F]{4}\.){2}[0-9a-fA-F]{4}")
_MAX_INTERFACE_NAME = 15


class IPValidationError(ValueError):
    """Raised when an address, range, subnet or interface fails validation."""


def _normalize(ip: IPAddress) -> IPAddress:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _parse_ip(text: str) -> Optional[IPAddress]:
    """Parse a bare address; IPv4-mapped IPv6 addresses come back as IPv4."""
    if "%" in text:
        return None
    try:
        return _normalize(ipaddress.ip_address(text))
    except ValueError:
        return None


def _parse_cidr(text: str) -> Optional[IPInterface]:
    """Parse ``address/prefix``, keeping the host part of the address."""
    address, sep, prefix = text.partition("/")
    if not sep or not prefix.isdigit() or "%" in address:
        return None
    try:
        return ipaddress.ip_interface(f"{address}/{int(prefix)}")
    except ValueError:
        return None


def _coerce_ip(ip: Union[str, IPAddress]) -> IPAddress:
    if isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return _normalize(ip)
    parsed = _parse_ip(ip)
    if parsed is None:
        raise IPValidationError(f"invalid IP address: {ip}")
    return parsed


def _coerce_network(subnet: Union[str, IPNetwork]) -> IPNetwork:
    if isinstance(subnet, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
        return subnet
    iface = _parse_cidr(subnet)
    if iface is None:
        raise IPValidationError(f"invalid CIDR address: {subnet}")
    return iface.network


def _coerce_interface(addr: Union[str, IPInterface]) -> IPInterface:
    if isinstance(addr, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
        return addr
    iface = _parse_cidr(addr)
    if iface is None:
        raise IPValidationError(f"invalid CIDR address: {addr}")
    return iface


def _contains(network: IPNetwork, ip: IPAddress) -> bool:
    ip = _normalize(ip)
    return ip.version == network.version and ip in network


def _as_bytes16(ip: IPAddress) -> bytes:
    ip = _normalize(ip)
    if ip.version == 4:
        return b"\x00" * 10 + b"\xff\xff" + ip.packed
    return ip.packed


def _split_range(part: str) -> tuple[Optional[IPAddress], Optional[IPAddress]]:
    """Return the start and end of one ``a-b`` or single-address entry."""
    if "-" in part:
        pieces = part.split("-")
        return _parse_ip(pieces[0].strip()), _parse_ip(pieces[1].strip())
    ip = _parse_ip(part)
    return ip, ip


def validate_ip_in_subnet(ip: Union[str, IPAddress], subnet: Union[str, IPNetwork]) -> bool:
    """Return whether ``ip`` lies inside ``subnet``."""
    return _contains(_coerce_network(subnet), _coerce_ip(ip))


def validate_ip_with_subnet_match(ip_cidr: str, subnet: Union[str, IPNetwork]) -> None:
    """Check that the address of ``ip_cidr`` belongs to ``subnet``."""
    network = _coerce_network(subnet)
    iface = _parse_cidr(ip_cidr)
    if iface is None:
        raise IPValidationError(f"invalid CIDR format: invalid CIDR address: {ip_cidr}")
    ip = _normalize(iface.ip)
    if not _contains(network, ip):
        raise IPValidationError(f"IP {ip} is not in subnet {network}")


def validate_ip_range(ip_range: str, subnet: Union[str, IPNetwork]) -> None:
    """Check that every address and ``start-end`` range lies within ``subnet``."""
    network = _coerce_network(subnet)
    for part in ip_range.split(","):
        if "-" in part:
            pieces = part.split("-")
            if len(pieces) != 2:
                raise IPValidationError(f"invalid IP range format: {part}")
            start = _parse_ip(pieces[0].strip())
            end = _parse_ip(pieces[1].strip())
            if start is None or end is None:
                raise IPValidationError(f"invalid IP address in range: {part}")
            if not _contains(network, start):
                raise IPValidationError(f"start IP {start} is not within subnet {network}")
            if not _contains(network, end):
                raise IPValidationError(f"end IP {end} is not within subnet {network}")
            if compare_ip(start, end) > 0:
                raise IPValidationError(f"start IP {start} is greater than end IP {end}")
        else:
            ip = _parse_ip(part.strip())
            if ip is None:
                raise IPValidationError(f"invalid IP address: {part}")
            if not _contains(network, ip):
                raise IPValidationError(f"IP {ip} is not within subnet {network}")


def validate_ip_range_expansion(
    old_ip_range: str, new_ip_range: str, subnet: Union[str, IPNetwork]
) -> None:
    """Check that each entry of the old range is covered by one entry of the new range."""
    try:
        validate_ip_range(old_ip_range, subnet)
    except IPValidationError as exc:
        raise IPValidationError(f"invalid old IP range: {exc}") from exc
    try:
        validate_ip_range(new_ip_range, subnet)
    except IPValidationError as exc:
        raise IPValidationError(f"invalid new IP range: {exc}") from exc

    new_spans = [_split_range(part.strip()) for part in new_ip_range.split(",")]
    for old_part in (part.strip() for part in old_ip_range.split(",")):
        start, end = _split_range(old_part)
        covered = any(
            compare_ip(new_start, start) <= 0 and compare_ip(new_end, end) >= 0
            for new_start, new_end in new_spans
        )
        if not covered:
            raise IPValidationError(
                f"IP range cannot be shrunk. The range {old_part} is not fully "
                "covered in the new configuration"
            )


def is_valid_interface_name(name: str) -> bool:
    """Return whether ``name`` is a legal Linux interface name."""
    return _INTERFACE_NAME.fullmatch(name) is not None and len(name) <= _MAX_INTERFACE_NAME


def validate_interface_exists(iface_name: str) -> None:
    """Check that a network interface called ``iface_name`` exists on this host."""
    try:
        names = psutil.net_if_addrs().keys()
    except (OSError, RuntimeError) as exc:
        raise IPValidationError(f"failed to get network interfaces: {exc}") from exc
    if iface_name not in names:
        raise IPValidationError(f"interface {iface_name} does not exist on the system")


def compare_ip(ip1: Union[str, IPAddress], ip2: Union[str, IPAddress]) -> int:
    """Compare two addresses byte-wise: -1, 0 or 1."""
    a = _as_bytes16(_coerce_ip(ip1))
    b = _as_bytes16(_coerce_ip(ip2))
    return (a > b) - (a < b)


def count_ips_in_range(ip_range: str) -> int:
    """Count the IPv4 addresses described by a comma-separated range list."""
    total = 0
    for part in (p.strip() for p in ip_range.split(",")):
        if "-" in part:
            pieces = part.split("-")
            if len(pieces) != 2:
                raise IPValidationError(f"invalid IP range format: {part}")
            start = _parse_ip(pieces[0].strip())
            end = _parse_ip(pieces[1].strip())
            if start is None or end is None:
                raise IPValidationError(f"invalid IP address in range: {part}")
            if start.version != 4 or end.version != 4:
                raise IPValidationError(f"invalid IPv4 address in range: {part}")
            if start > end:
                raise IPValidationError(f"start IP {start} is greater than end IP {end}")
            total += int(end) - int(start) + 1
        else:
            ip = _parse_ip(part)
            if ip is None:
                raise IPValidationError(f"invalid IP address: {part}")
            if ip.version != 4:
                raise IPValidationError(f"invalid IPv4 address: {part}")
            total += 1
    return total


def is_valid_ipv4(ip_str: str) -> bool:
    """Return whether ``ip_str`` is an IPv4 address."""
    ip = _parse_ip(ip_str)
    return ip is not None and ip.version == 4


def is_valid_unicast_mac(mac_str: str) -> bool:
    """Return whether ``mac_str`` is a 48-bit unicast MAC address.

    Colon, hyphen, dotted and separator-less forms are accepted.
    """
    mac = mac_str.replace("-", ":")
    if len(mac) == 12 and ":" not in mac:
        mac = ":".join(mac[i:i + 2] for i in range(0, 12, 2))
    if _MAC_COLON.fullmatch(mac) is None and _MAC_DOT.fullmatch(mac) is None:
        return False
    return int(mac[:2], 16) & 1 == 0


def is_ip_in_range(ip: Union[str, IPAddress], ip_range: str) -> bool:
    """Return whether ``ip`` falls inside any entry of ``ip_range``.

    Malformed entries are ignored.
    """
    target = _coerce_ip(ip)
    for part in (p.strip() for p in ip_range.split(",")):
        if "-" in part:
            pieces = part.split("-")
            if len(pieces) != 2:
                continue
            start = _parse_ip(pieces[0].strip())
            end = _parse_ip(pieces[1].strip())
            if start is None or end is None:
                continue
            if compare_ip(start, target) <= 0 and compare_ip(target, end) <= 0:
                return True
        else:
            single = _parse_ip(part)
            if single is not None and single == target:
                return True
    return False


def validate_host_interface_subnet(
    host_addresses: Iterable[Union[str, IPInterface]],
    ipv4: str,
    vlan_id: Optional[int],
    interface: str,
) -> None:
    """Check a subnet's interface address against the host interface's addresses.

    If the address lies in a subnet the host interface already has, no VLAN
    may be used and the address and prefix must equal the host's exactly.
    """
    subnet_addr = _parse_cidr(ipv4)
    if subnet_addr is None:
        raise IPValidationError(
            f"invalid subnet IP address {ipv4}: invalid CIDR address: {ipv4}"
        )
    for host in (_coerce_interface(a) for a in host_addresses):
        if not _contains(host.network, subnet_addr.ip):
            continue
        if vlan_id is not None and vlan_id > 0:
            raise IPValidationError(
                f"subnet IP {ipv4} is in the same subnet as host interface "
                f"{interface} ({host}), but VLAN ID is not allowed"
            )
        if host != subnet_addr:
            raise IPValidationError(
                f"subnet IP {ipv4} is in the same subnet as host interface "
                f"{interface} ({host}), but IP address or subnet mask doesn't "
                "match exactly"
            )
        return