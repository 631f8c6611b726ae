"""Admission webhook for HostEndpoint resources."""

from __future__ import annotations

import ipaddress
import logging
from typing import List, Optional

from topohub.models import (
    LABEL_CLUSTER_NAME,
    AdmissionError,
    AgentConfig,
    HostEndpoint,
    HostEndpointSpec,
    NotFoundError,
    RedfishStatus,
    ResourceStore,
    Secret,
)

_log = logging.getLogger("topohub.hostendpointWebhook")

DEFAULT_HTTPS = True
DEFAULT_PORT = 443


def _is_ip(text: str) -> bool:
    if "%" in text:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def _is_set(value: Optional[str]) -> bool:
    return value is not None and value != ""


class HostEndpointWebhook:
    """Fills in defaults for HostEndpoints, validates creation and forbids updates."""

    def __init__(self, client: ResourceStore, config: Optional[AgentConfig] = None) -> None:
        self.client = client
        self.config = config if config is not None else AgentConfig()

    @staticmethod
    def _expect(obj: object) -> HostEndpoint:
        if not isinstance(obj, HostEndpoint):
            raise AdmissionError("object is not a HostEndpoint")
        return obj

    def _checked(self, obj: object) -> HostEndpoint:
        try:
            return self._expect(obj)
        except AdmissionError as exc:
            _log.error("%s", exc)
            raise

    def default(self, obj: object) -> None:
        """Set HTTPS, port, credentials secret and the cluster-name label."""
        endpoint = self._expect(obj)
        spec = endpoint.spec
        _log.info("Setting initial values for nil fields in HostEndpoint %s", endpoint.name)

        if spec.https is None:
            spec.https = DEFAULT_HTTPS
            _log.info("Setting default HTTPS to true for HostEndpoint %s", endpoint.name)

        if spec.port is None:
            spec.port = DEFAULT_PORT
            _log.info("Setting default Port to 443 for HostEndpoint %s", endpoint.name)

        if not _is_set(spec.secret_name) and not _is_set(spec.secret_namespace):
            if spec.https:
                spec.secret_name = self.config.redfish_secret_name
                spec.secret_namespace = self.config.redfish_secret_namespace

        endpoint.labels[LABEL_CLUSTER_NAME] = spec.cluster_name or ""

    def validate_create(self, obj: object) -> List[str]:
        endpoint = self._checked(obj)
        _log.info("Validating creation of HostEndpoint %s", endpoint.name)
        try:
            self._validate(endpoint)
        except AdmissionError as exc:
            _log.error("Failed to validate HostEndpoint %s: %s", endpoint.name, exc)
            raise
        return []

    def validate_update(self, old_obj: object, new_obj: object) -> List[str]:
        endpoint = self._checked(new_obj)
        _log.info(
            "Rejecting update of HostEndpoint %s: updates are not allowed", endpoint.name
        )
        raise AdmissionError("updates to HostEndpoint resources are not allowed")

    def validate_delete(self, obj: object) -> List[str]:
        """Deletion is always allowed for HostEndpoint objects."""
        endpoint = self._checked(obj)
        _log.debug("Allowing deletion of HostEndpoint %s", endpoint.name)
        return []

    def _validate(self, endpoint: HostEndpoint) -> None:
        spec = endpoint.spec
        if not _is_ip(spec.ip_addr):
            raise AdmissionError("invalid IP address, it should be like 192.168.0.10 ")

        for existing in self.client.list(HostEndpoint):
            if existing.name != endpoint.name and existing.spec.ip_addr == spec.ip_addr:
                raise AdmissionError(
                    f"IP address {spec.ip_addr} is already in use by another "
                    f'hostEndpoint "{existing.name}"'
                )

        for status in self.client.list(RedfishStatus):
            if status.status.basic.ip_addr == spec.ip_addr:
                raise AdmissionError(
                    f"IP address {spec.ip_addr} is already used by RedfishStatus {status.name}"
                )

        if _is_set(spec.secret_name) and _is_set(spec.secret_namespace):
            self._check_secret(spec)

        if _is_set(spec.secret_name) != _is_set(spec.secret_namespace):
            raise AdmissionError("secretName and secretNamespace must be both set or both unset")

    def _check_secret(self, spec: HostEndpointSpec) -> None:
        try:
            found = self.client.get(Secret, spec.secret_name, spec.secret_namespace)
        except NotFoundError as exc:
            raise AdmissionError(
                f"secret {spec.secret_namespace}/{spec.secret_name} not found"
            ) from exc
        if "username" not in found.data:
            raise AdmissionError("secret must contain username key")
        if "password" not in found.data:
            raise AdmissionError("secret must contain password key")