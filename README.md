# topohub

This package holds the validation and defaulting rules for the resources of a
bare-metal host management service. The resources are subnets served by a
DHCP server, IP bindings, host endpoints, host operations, and the Redfish
and SSH status records of hosts.

## Installation

```
pip install .
```

The only runtime dependency is `psutil`. The package uses it to inspect the
network interfaces of the local machine.

## Resources and the store

`topohub.models` defines the resource types as dataclasses:

- `Subnet`
- `BindingIp`
- `HostEndpoint`
- `HostOperation`
- `RedfishStatus`
- `SSHStatus`
- `Secret`

It also defines the spec types these resources use, and `ObjectMeta`, which
holds the name, namespace and labels of a resource. `AgentConfig` carries three
settings: the default Redfish secret name and namespace, and the default DHCP
server interface.

`ResourceStore` is an in-memory collection of resources. It keeps them by
kind, namespace and name:

- `add(obj)` stores a resource, or replaces one with the same kind, namespace
  and name.
- `get(kind, name, namespace="")` returns a resource. It raises `NotFoundError`
  if no such resource is stored.
- `list(kind)` returns every stored resource of that kind, in the order they
  were inserted.

## Webhooks

There is one webhook class for each resource kind. Each class has the same
four methods:

- `default(obj)` fills in missing fields and labels, changing `obj` in place.
- `validate_create(obj)` raises `AdmissionError` when the object must be
  rejected. Otherwise it returns an empty list of warnings.
- `validate_update(old_obj, new_obj)` does the same for an update.
- `validate_delete(obj)` returns an empty list. Deletions are always allowed.

Every method raises `AdmissionError` when it is given an object of the wrong
kind.

| Class | Module | Rules |
| --- | --- | --- |
| `BindingIPWebhook` | `topohub.bindingip` | See below. |
| `HostEndpointWebhook` | `topohub.hostendpoint` | See below. |
| `HostOperationWebhook` | `topohub.hostoperation` | Creation needs a healthy `RedfishStatus` with the name in `spec.redfish_status_name`. Updates are always rejected. |
| `RedfishStatusWebhook` | `topohub.redfishstatus` | See below. Accepts every create and update. |
| `SSHStatusWebhook` | `topohub.sshstatus` | See below. Accepts every create and update. |
| `SubnetWebhook` | `topohub.subnet` | See below. |

**`BindingIPWebhook`**

- `default` labels the binding with the name of its subnet.
- On create and update, the MAC address must be unicast.
- The subnet must exist, and the IP must lie inside the subnet's IP range.
- No other binding may use the same IP, or the same MAC address (compared
  without regard to case).

**`HostEndpointWebhook`**

- `default` sets HTTPS to true and the port to 443 when they are missing.
- When HTTPS is on and no secret is given, `default` fills in the secret from
  `AgentConfig`.
- `default` also sets the cluster-name label.
- On create, the IP must be a valid address.
- No other endpoint may use the same IP, and no `RedfishStatus` may use it
  either.
- A named secret must exist and must hold `username` and `password` keys.
- The secret name and secret namespace must be both set or both unset.
- Updates are always rejected.

**`RedfishStatusWebhook`**

- `default` sets three labels from the status:
  - the cluster name;
  - the IP address, without any prefix length;
  - the mode: `dhcp`, or else `endpoint`.

**`SSHStatusWebhook`**

- `default` fills in the IP address, mode (`ssh`) and cluster-name labels, but
  only where they are absent.

**`SubnetWebhook`**

- `default` sets the cluster-name label.
- It sets the interface to the DHCP server interface from `AgentConfig` when
  the interface is empty.
- It sets the VLAN ID to 0 when the VLAN ID is missing.
- On create and update:
  - The IP range must lie inside the subnet.
  - The gateway and DNS, when given, must be valid addresses. The gateway must
    also lie inside the subnet.
  - The interface must exist on the local machine.
  - The VLAN ID must be between 0 and 4094.
  - The interface address must lie inside the subnet.
  - If the address shares a subnet with the host interface, no VLAN may be
    used, and the address and prefix must match the host's exactly.
  - No other subnet may use the same interface and VLAN.
- Updates may only widen the IP range. The subnet, interface name, VLAN ID and
  interface address may not change.

`host_interface_addresses(name)` returns the IPv4 addresses, with their
prefixes, that are configured on a local interface.

The following example creates a binding and validates it against an empty
store:

```python
from topohub.models import AgentConfig, BindingIp, BindingIpSpec, ObjectMeta, ResourceStore
from topohub.bindingip import BindingIPWebhook

store = ResourceStore()
webhook = BindingIPWebhook(store, AgentConfig())
binding = BindingIp(
    metadata=ObjectMeta(name="host-a"),
    spec=BindingIpSpec(subnet="net0", ip_addr="192.168.1.15", mac_addr="02:00:00:00:00:01"),
)
webhook.default(binding)          # labels the binding with its subnet name
webhook.validate_create(binding)  # raises AdmissionError: subnet net0 is not in the store
```

## IP helpers

`topohub.iptools` holds the address checks that the webhooks are built on.
When a check fails, these helpers raise `IPValidationError`, a subclass of
`ValueError`.

```python
import ipaddress
from topohub.iptools import count_ips_in_range, is_ip_in_range, validate_ip_range

net = ipaddress.ip_network("192.168.1.0/24")
validate_ip_range("192.168.1.10-192.168.1.20,192.168.1.30", net)  # raises IPValidationError if invalid
count_ips_in_range("192.168.1.1-192.168.1.10,192.168.1.20")         # 11
is_ip_in_range(ipaddress.ip_address("192.168.1.15"), "192.168.1.10-192.168.1.20")  # True
```

The module also provides these helpers:

- `validate_ip_in_subnet`
- `validate_ip_with_subnet_match`
- `validate_ip_range_expansion`, which checks that a new range only widens an
  old one
- `compare_ip`
- `is_valid_ipv4`
- `is_valid_unicast_mac`, which accepts colon, hyphen, dotted and
  separator-less forms
- `is_valid_interface_name`
- `validate_interface_exists`
- `validate_host_interface_subnet`

## What the package does not do

The webhooks are plain Python classes. They are not served over HTTP, and
nothing here receives admission requests from a cluster API server. Nothing
here talks to a cluster either: related resources are looked up only in the
`ResourceStore` you fill. The package does not run a DHCP server, does not
contact Redfish or SSH hosts, and does not store resources anywhere except in
memory.

## Running the tests

```
pip install .[test]
pytest
```