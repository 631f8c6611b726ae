"""Resource types handled by the admission webhooks, plus an in-memory store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Type, TypeVar

LABEL_SUBNET_NAME = "topohub.infrastructure.io/subnet-name"
LABEL_CLUSTER_NAME = "topohub.infrastructure.io/cluster-name"
LABEL_IP_ADDR = "topohub.infrastructure.io/ip-addr"
LABEL_CLIENT_MODE = "topohub.infrastructure.io/mode"

HOST_TYPE_DHCP = "dhcp"
HOST_TYPE_ENDPOINT = "endpoint"
HOST_TYPE_SSH = "ssh"


class AdmissionError(ValueError):
    """Raised when a webhook rejects an object."""


class NotFoundError(LookupError):
    """Raised when a resource is not present in the store."""


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class _Resource:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> Dict[str, str]:
        return self.metadata.labels


@dataclass
class InterfaceSpec:
    interface: str = ""
    ipv4: str = ""
    vlan_id: Optional[int] = None


@dataclass
class IPv4SubnetSpec:
    subnet: str = ""
    ip_range: str = ""
    gateway: Optional[str] = None
    dns: Optional[str] = None


@dataclass
class SyncRedfishstatusFeature:
    default_cluster_name: Optional[str] = None


@dataclass
class SubnetFeature:
    sync_redfishstatus: SyncRedfishstatusFeature = field(
        default_factory=SyncRedfishstatusFeature
    )


@dataclass
class SubnetSpec:
    ipv4_subnet: IPv4SubnetSpec = field(default_factory=IPv4SubnetSpec)
    interface: InterfaceSpec = field(default_factory=InterfaceSpec)
    feature: SubnetFeature = field(default_factory=SubnetFeature)


@dataclass
class Subnet(_Resource):
    spec: SubnetSpec = field(default_factory=SubnetSpec)


@dataclass
class BindingIpSpec:
    subnet: str = ""
    ip_addr: str = ""
    mac_addr: str = ""


@dataclass
class BindingIp(_Resource):
    spec: BindingIpSpec = field(default_factory=BindingIpSpec)


@dataclass
class HostEndpointSpec:
    ip_addr: str = ""
    cluster_name: Optional[str] = None
    secret_name: Optional[str] = None
    secret_namespace: Optional[str] = None
    https: Optional[bool] = None
    port: Optional[int] = None


@dataclass
class HostEndpoint(_Resource):
    spec: HostEndpointSpec = field(default_factory=HostEndpointSpec)


@dataclass
class HostOperationSpec:
    action: str = ""
    redfish_status_name: str = ""


@dataclass
class HostOperation(_Resource):
    spec: HostOperationSpec = field(default_factory=HostOperationSpec)


@dataclass
class BasicInfo:
    type: str = ""
    ip_addr: str = ""
    cluster_name: str = ""


@dataclass
class RedfishStatusStatus:
    healthy: bool = False
    basic: BasicInfo = field(default_factory=BasicInfo)


@dataclass
class RedfishStatus(_Resource):
    status: RedfishStatusStatus = field(default_factory=RedfishStatusStatus)


@dataclass
class SSHStatusStatus:
    healthy: bool = False
    basic: BasicInfo = field(default_factory=BasicInfo)


@dataclass
class SSHStatus(_Resource):
    status: SSHStatusStatus = field(default_factory=SSHStatusStatus)


@dataclass
class Secret(_Resource):
    data: Dict[str, bytes] = field(default_factory=dict)


@dataclass
class AgentConfig:
    redfish_secret_name: str = ""
    redfish_secret_namespace: str = ""
    dhcp_server_interface: str = ""


R = TypeVar("R", bound=_Resource)


class ResourceStore:
    """Keeps resources by kind, namespace and name, in insertion order."""

    def __init__(self) -> None:
        self._objects: Dict[Tuple[type, str, str], _Resource] = {}

    def add(self, obj: _Resource) -> None:
        """Store ``obj``, replacing any resource of the same kind and key."""
        self._objects[(type(obj), obj.namespace, obj.name)] = obj

    def get(self, kind: Type[R], name: str, namespace: str = "") -> R:
        """Return the resource of ``kind`` with the given name and namespace."""
        try:
            return self._objects[(kind, namespace, name)]  # type: ignore[return-value]
        except KeyError:
            where = f"{namespace}/{name}" if namespace else name
            raise NotFoundError(f"{kind.__name__} {where} not found") from None

    def list(self, kind: Type[R]) -> List[R]:
        """Return every stored resource of ``kind``."""
        return [obj for obj in self._objects.values() if type(obj) is kind]  # type: ignore[misc]