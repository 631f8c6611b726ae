"""Admission webhook for SSHStatus resources."""

from __future__ import annotations

import logging
from typing import List

from topohub.models import (
    HOST_TYPE_SSH,
    LABEL_CLIENT_MODE,
    LABEL_CLUSTER_NAME,
    LABEL_IP_ADDR,
    AdmissionError,
    ResourceStore,
    SSHStatus,
)

_log = logging.getLogger("topohub.sshstatusWebhook")


class SSHStatusWebhook:
    """Adds missing labels to SSHStatus objects; accepts all changes."""

    def __init__(self, client: ResourceStore) -> None:
        self.client = client

    @staticmethod
    def _expect(obj: object) -> SSHStatus:
        if not isinstance(obj, SSHStatus):
            err = AdmissionError("object is not a SSHStatus")
            _log.error("%s", err)
            raise err
        return obj

    def default(self, obj: object) -> None:
        """Fill in the ip-addr, mode and cluster-name labels where absent."""
        status = self._expect(obj)
        basic = status.status.basic
        labels = status.labels
        _log.debug("Processing Default webhook for SSHStatus %s", status.name)

        if basic.ip_addr and not labels.get(LABEL_IP_ADDR):
            labels[LABEL_IP_ADDR] = basic.ip_addr
        if not labels.get(LABEL_CLIENT_MODE):
            labels[LABEL_CLIENT_MODE] = HOST_TYPE_SSH
        if basic.cluster_name and not labels.get(LABEL_CLUSTER_NAME):
            labels[LABEL_CLUSTER_NAME] = basic.cluster_name

    def validate_create(self, obj: object) -> List[str]:
        status = self._expect(obj)
        _log.debug("Validating creation of SSHStatus %s", status.name)
        return []

    def validate_update(self, old_obj: object, new_obj: object) -> List[str]:
        status = self._expect(new_obj)
        _log.debug("Validating update of SSHStatus %s", status.name)
        return []

    def validate_delete(self, obj: object) -> List[str]:
        """Deletion is always allowed for SSHStatus objects."""
        status = self._expect(obj)
        _log.debug("Allowing deletion of SSHStatus %s", status.name)
        return []