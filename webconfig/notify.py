"""Status notifications sent back to the cloud for configuration documents."""

from __future__ import annotations

import enum
import json
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

logger = logging.getLogger(__name__)

_DEVICE_ID_MAX = 31
_DEST_MAX = 511
_VERSION_MAX = 31


class ErrorCode(enum.Enum):
    """Failure reasons reported in notifications."""

    DECODE_ROOT_FAILURE = enum.auto()
    INCORRECT_BLOB_TYPE = enum.auto()
    BLOB_PARAM_VALIDATION_FAILURE = enum.auto()
    WEBCONFIG_DATA_EMPTY = enum.auto()
    MULTIPART_BOUNDARY_NULL = enum.auto()
    INVALID_CONTENT_TYPE = enum.auto()
    ADD_TO_CACHE_LIST_FAILURE = enum.auto()
    FAILED_TO_SET_BLOB = enum.auto()
    MULTIPART_CACHE_NULL = enum.auto()
    AKER_SUBDOC_PROCESSING_FAILED = enum.auto()
    AKER_RESPONSE_PARSE_FAILURE = enum.auto()
    INVALID_AKER_RESPONSE = enum.auto()
    LIBPARODUS_RECEIVE_FAILURE = enum.auto()
    COMPONENT_EVENT_PARSE_FAILURE = enum.auto()
    SUBDOC_RETRY_FAILED = enum.auto()


_STATUS_ERRORS = {
    ErrorCode.DECODE_ROOT_FAILURE: (111, "decode_root_failure"),
    ErrorCode.INCORRECT_BLOB_TYPE: (211, "incorrect_blob_type"),
    ErrorCode.BLOB_PARAM_VALIDATION_FAILURE: (211, "blob_param_validation_failure"),
    ErrorCode.WEBCONFIG_DATA_EMPTY: (211, "webconfig_data_empty"),
    ErrorCode.MULTIPART_BOUNDARY_NULL: (211, "multipart_boundary_NULL"),
    ErrorCode.INVALID_CONTENT_TYPE: (211, "invalid_content_type"),
    ErrorCode.ADD_TO_CACHE_LIST_FAILURE: (311, "add_to_cache_list_failure"),
    ErrorCode.FAILED_TO_SET_BLOB: (311, "failed_to_set_blob"),
    ErrorCode.MULTIPART_CACHE_NULL: (311, "multipart_cache_NULL"),
    ErrorCode.AKER_SUBDOC_PROCESSING_FAILED: (411, "aker_subdoc_processing_failed"),
    ErrorCode.AKER_RESPONSE_PARSE_FAILURE: (411, "aker_response_parse_failure"),
    ErrorCode.INVALID_AKER_RESPONSE: (411, "invalid_aker_response"),
    ErrorCode.LIBPARODUS_RECEIVE_FAILURE: (411, "libparodus_receive_failure"),
    ErrorCode.COMPONENT_EVENT_PARSE_FAILURE: (511, "component_event_parse_failure"),
    ErrorCode.SUBDOC_RETRY_FAILED: (611, "subdoc_retry_failed"),
}


def status_error(code) -> Tuple[int, str]:
    """Return the numeric code and message reported for an error reason."""
    try:
        return _STATUS_ERRORS[code]
    except (KeyError, TypeError):
        logger.error("Error detected is unknown")
        return 0, "Unknown Error"


def _device_id(device_mac: Optional[str]) -> str:
    if not device_mac:
        raise ValueError("device MAC is empty, cannot send notification")
    return f"mac:{device_mac}"[:_DEVICE_ID_MAX]


@dataclass
class NotifyMessage:
    """One queued notification about a document's application status."""

    name: Optional[str] = None
    application_status: Optional[str] = None
    version: Optional[str] = None
    error_details: Optional[str] = None
    transaction_uuid: Optional[str] = None
    type: Optional[str] = None
    timeout: int = 0
    error_code: int = 0
    response_code: int = 200

    def payload(self, device_mac: str) -> str:
        """Return the compact JSON payload for this notification."""
        body = {"device_id": _device_id(device_mac)}
        if self.name is not None:
            body["namespace"] = self.name or "unknown"
        if self.application_status is not None:
            body["application_status"] = self.application_status
        if self.timeout:
            body["timeout"] = self.timeout
        if self.error_code:
            body["error_code"] = self.error_code
        if self.error_details is not None and self.error_details != "none":
            body["error_details"] = self.error_details
        if self.response_code != 200:
            body["http_status_code"] = self.response_code
        body["transaction_uuid"] = self.transaction_uuid or "unknown"
        body["version"] = self.version or "0"
        return json.dumps(body, separators=(",", ":"))

    def destination(self, device_mac: str) -> str:
        """Return the event destination the notification is sent to."""
        device_id = _device_id(device_mac)
        if self.response_code == 200:
            dest = f"event:subdoc-report/{self.name or ''}/{device_id}/{self.type or ''}"
        else:
            dest = f"event:rootdoc-report/{device_id}/{self.type or ''}"
        return dest[:_DEST_MAX]


class NotificationQueue:
    """Thread-safe FIFO of notifications waiting to be sent."""

    def __init__(self) -> None:
        self._items: Deque[NotifyMessage] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def add(
        self,
        docname,
        version,
        status,
        error_details,
        transaction_uuid,
        timeout=0,
        type="status",
        error_code=0,
        root_string=None,
        response_code=200,
    ) -> NotifyMessage:
        """Queue a notification and wake a waiting consumer."""
        if version == 0 and root_string is not None:
            version_text = root_string[:_VERSION_MAX]
        else:
            version_text = str(version)
        message = NotifyMessage(
            name=docname,
            application_status=status,
            version=version_text or None,
            error_details=error_details,
            transaction_uuid=transaction_uuid,
            type=type,
            timeout=timeout,
            error_code=error_code,
            response_code=response_code,
        )
        logger.debug("queued notification %s", message)
        with self._cond:
            self._items.append(message)
            self._cond.notify()
        return message

    def pop(self, timeout=None) -> Optional[NotifyMessage]:
        """Take the oldest message, waiting for one.

        Returns None when the wait times out, or when the queue is closed
        and empty.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if self._items:
                return self._items.popleft()
            return None

    def close(self) -> None:
        """Mark the queue as shut down and wake every waiting consumer."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)