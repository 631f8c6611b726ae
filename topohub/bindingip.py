"""Admission webhook for BindingIp resources."""

from __future__ import annotations

import logging
from typing import List, Optional

from topohub.iptools import IPValidationError, is_ip_in_range, is_valid_unicast_mac
from topohub.models import (
    LABEL_SUBNET_NAME,
    AdmissionError,
    AgentConfig,
    BindingIp,
    NotFoundError,
    ResourceStore,
    Subnet,
)

_log = logging.getLogger("topohub.bindingipWebhook")


class BindingIPWebhook:
    """Defaults and validates BindingIp objects."""

    def __init__(self, client: ResourceStore, config: Optional[AgentConfig] = None) -> None:
        self.client = client
        self.config = config if config is not None else AgentConfig()

    @staticmethod
    def _expect(obj: object) -> BindingIp:
        if not isinstance(obj, BindingIp):
            raise AdmissionError("object is not a BindingIP")
        return obj

    def default(self, obj: object) -> None:
        """Label the object with the name of its subnet."""
        binding = self._expect(obj)
        binding.labels[LABEL_SUBNET_NAME] = binding.spec.subnet
        _log.debug("Setting initial values for nil fields in BindingIP %s", binding.name)

    def validate_create(self, obj: object) -> List[str]:
        binding = self._checked(obj)
        _log.debug("Validating creation of BindingIP %s", binding.name)
        self._validate_and_log(binding)
        return []

    def validate_update(self, old_obj: object, new_obj: object) -> List[str]:
        binding = self._checked(new_obj)
        _log.debug("Validating update of BindingIP %s", binding.name)
        self._validate_and_log(binding)
        return []

    def validate_delete(self, obj: object) -> List[str]:
        """Deletion is always allowed for BindingIp objects."""
        binding = self._checked(obj)
        _log.debug("Allowing deletion of BindingIP %s", binding.name)
        return []

    def _checked(self, obj: object) -> BindingIp:
        try:
            return self._expect(obj)
        except AdmissionError as exc:
            _log.error("%s", exc)
            raise

    def _validate_and_log(self, binding: BindingIp) -> None:
        try:
            self._validate(binding)
        except AdmissionError as exc:
            _log.error("Failed to validate BindingIP %s: %s", binding.name, exc)
            raise

    def _validate(self, binding: BindingIp) -> None:
        spec = binding.spec
        if not is_valid_unicast_mac(spec.mac_addr):
            raise AdmissionError(f"invalid unicast MAC address: {spec.mac_addr}")

        try:
            subnet = self.client.get(Subnet, spec.subnet)
        except NotFoundError as exc:
            raise AdmissionError(f"failed to get subnet {spec.subnet}: {exc}") from exc

        ip_range = subnet.spec.ipv4_subnet.ip_range
        try:
            in_range = is_ip_in_range(spec.ip_addr, ip_range)
        except IPValidationError as exc:
            raise AdmissionError(f"invalid IP address: {spec.ip_addr}") from exc
        if not in_range:
            raise AdmissionError(
                f"IP address {spec.ip_addr} is not in subnet {spec.subnet} "
                f"IP range: {ip_range}"
            )

        for existing in self.client.list(BindingIp):
            if existing.name == binding.name:
                continue
            if existing.spec.ip_addr == spec.ip_addr:
                raise AdmissionError(
                    f"IP address {spec.ip_addr} is already used by BindingIP {existing.name}"
                )
            if existing.spec.mac_addr.casefold() == spec.mac_addr.casefold():
                raise AdmissionError(
                    f"Mac {spec.mac_addr} is already used by BindingIP {existing.name} "
                )