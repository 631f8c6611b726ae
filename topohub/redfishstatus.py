"""Admission webhook for RedfishStatus resources."""

from __future__ import annotations

import logging
from typing import List

from topohub.models import (
    HOST_TYPE_DHCP,
    HOST_TYPE_ENDPOINT,
    LABEL_CLIENT_MODE,
    LABEL_CLUSTER_NAME,
    LABEL_IP_ADDR,
    AdmissionError,
    RedfishStatus,
    ResourceStore,
)

_log = logging.getLogger("topohub.redfishstatusWebhook")


class RedfishStatusWebhook:
    """Labels RedfishStatus objects from their status; accepts all changes."""

    def __init__(self, client: ResourceStore) -> None:
        self.client = client

    @staticmethod
    def _expect(obj: object) -> RedfishStatus:
        if not isinstance(obj, RedfishStatus):
            err = AdmissionError("object is not a RedfishStatus")
            _log.error("%s", err)
            raise err
        return obj

    def default(self, obj: object) -> None:
        """Set the cluster-name, ip-addr and mode labels."""
        status = self._expect(obj)
        basic = status.status.basic
        _log.debug("Processing Default webhook for RedfishStatus %s", status.name)

        status.labels[LABEL_CLUSTER_NAME] = basic.cluster_name
        status.labels[LABEL_IP_ADDR] = basic.ip_addr.split("/")[0]
        status.labels[LABEL_CLIENT_MODE] = (
            HOST_TYPE_DHCP if basic.type == HOST_TYPE_DHCP else HOST_TYPE_ENDPOINT
        )
        _log.debug("Finished processing webhook for RedfishStatus %s", status.name)

    def validate_create(self, obj: object) -> List[str]:
        status = self._expect(obj)
        _log.debug("Validating creation of RedfishStatus %s", status.name)
        return []

    def validate_update(self, old_obj: object, new_obj: object) -> List[str]:
        status = self._expect(new_obj)
        _log.debug("Validating update of RedfishStatus %s", status.name)
        return []

    def validate_delete(self, obj: object) -> List[str]:
        """Deletion is always allowed for RedfishStatus objects."""
        status = self._expect(obj)
        _log.debug("Allowing deletion of RedfishStatus %s", status.name)
        return []