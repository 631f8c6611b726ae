"""Admission webhook for HostOperation resources."""

from __future__ import annotations

import logging
from typing import List

from topohub.models import (
    AdmissionError,
    HostOperation,
    NotFoundError,
    RedfishStatus,
    ResourceStore,
)

_log = logging.getLogger("topohub.hostoperationWebhook")


class HostOperationWebhook:
    """Allows HostOperations only against healthy RedfishStatus objects; no updates."""

    def __init__(self, client: ResourceStore) -> None:
        self.client = client

    @staticmethod
    def _expect(obj: object) -> HostOperation:
        if not isinstance(obj, HostOperation):
            err = AdmissionError(
                f"expected a HostOperation but got a {type(obj).__name__}"
            )
            _log.error("%s", err)
            raise err
        return obj

    def default(self, obj: object) -> None:
        host_op = self._expect(obj)
        _log.debug("Processing Default webhook for HostOperation %s", host_op.name)

    def validate_create(self, obj: object) -> List[str]:
        host_op = self._expect(obj)
        _log.debug("Processing ValidateCreate webhook for HostOperation %s", host_op.name)
        status_name = host_op.spec.redfish_status_name
        try:
            status = self.client.get(RedfishStatus, status_name)
        except NotFoundError as exc:
            err = AdmissionError(f"RedfishStatus {status_name} not found: {exc}")
            _log.error("%s", err)
            raise err from exc
        if not status.status.healthy:
            err = AdmissionError(
                f"RedfishStatus {status_name} is not healthy, so it is not allowed "
                f"to create hostOperation {host_op.name}"
            )
            _log.error("%s", err)
            raise err
        return []

    def validate_update(self, old_obj: object, new_obj: object) -> List[str]:
        host_op = self._expect(old_obj)
        _log.debug("Rejecting update of HostOperation %s: updates are not allowed", host_op.name)
        raise AdmissionError("updates to HostOperation resources are not allowed")

    def validate_delete(self, obj: object) -> List[str]:
        host_op = self._expect(obj)
        _log.debug("Processing ValidateDelete webhook for HostOperation %s", host_op.name)
        return []