"""Decisions about the application state of the documents of a sync."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from webconfig.pack import TmpDoc

logger = logging.getLogger(__name__)

ROOT_NAME = "root"
STATUS_SUCCESS = "success"
DOC_UNSUPPORTED = "doc_unsupported"

CCSP_CRASH_STATUS_CODE = 192
CCSP_UNSUPPORTED_STATUS_CODE = 204
CCSP_NOT_SUPPORTED_BY_COMPONENT = 9005
RETRY_STATUS_CODES = frozenset({CCSP_CRASH_STATUS_CODE, 204, 191, 193, 190})

MAX_PARAMETERNAME_LEN = 4096
MAX_VALUE_LEN = 128


def _all_non_root_succeeded(docs: Iterable[TmpDoc]) -> bool:
    succeeded = False
    for doc in docs:
        if doc.name == ROOT_NAME:
            continue
        if doc.status == STATUS_SUCCESS:
            succeeded = True
        else:
            return False
    return succeeded


def check_root_delete(tmp_docs: Iterable[TmpDoc]) -> bool:
    """Return True when every tracked document other than root has succeeded.

    At least one such document must be present.
    """
    result = _all_non_root_succeeded(tmp_docs)
    if result:
        logger.info("Tmp list root doc delete is required")
    else:
        logger.debug("Tmp list root doc delete is not required")
    return result


def _is_unsupported(doc: TmpDoc) -> bool:
    return (
        doc.error_code == CCSP_UNSUPPORTED_STATUS_CODE
        and doc.error_details is not None
        and DOC_UNSUPPORTED in doc.error_details
    )


def check_root_update(tmp_docs: Iterable[TmpDoc]) -> bool:
    """Return True when the root version should be written to the database.

    Supplementary documents and documents the device does not support are
    ignored; every other document except root must have succeeded, and at
    least one must be present.
    """
    considered = []
    for doc in tmp_docs:
        if _is_unsupported(doc) or doc.is_supplementary_sync:
            logger.debug("Skipping sub doc %s (%s)", doc.name, doc.error_details)
            continue
        considered.append(doc)
    result = _all_non_root_succeeded(considered)
    if result:
        logger.debug("root DB update is required")
    else:
        logger.info("root DB update is not required")
    return result


def _is_blank(value: Optional[Union[str, bytes]]) -> bool:
    return value is None or len(value) == 0


def validate_request_params(params: Sequence) -> List:
    """Check that every parameter has a name and a value.

    Returns the parameters as a list. Raises ValueError when a name or
    value is missing or empty, or a name is too long.
    """
    checked = list(params)
    for index, param in enumerate(checked):
        name = getattr(param, "name", None)
        value = getattr(param, "value", None)
        if _is_blank(name) or _is_blank(value):
            logger.error("Parameter name/value is null")
            raise ValueError(f"parameter {index} has no name or value")
        if len(name) >= MAX_PARAMETERNAME_LEN:
            raise ValueError(f"parameter {index} name is too long")
    return checked


def retry_eligible(tmp_doc: TmpDoc) -> bool:
    """Return True when a failed document's error code calls for a retry."""
    code = tmp_doc.error_code
    if code == CCSP_UNSUPPORTED_STATUS_CODE:
        return tmp_doc.error_details is not None and DOC_UNSUPPORTED not in tmp_doc.error_details
    return code in RETRY_STATUS_CODES


def failure_result(ccsp_status: int, doc_supported: bool, error_details: str) -> Tuple[int, str, bool]:
    """Classify a failed set of a document.

    Returns the status code to report, the result text recorded for the
    document, and whether the document is to be retried later.
    """
    status = ccsp_status
    if status == CCSP_NOT_SUPPORTED_BY_COMPONENT and not doc_supported:
        status = CCSP_UNSUPPORTED_STATUS_CODE

    retrying = False
    if status in RETRY_STATUS_CODES:
        if status == CCSP_UNSUPPORTED_STATUS_CODE and not doc_supported:
            result = f"{DOC_UNSUPPORTED}:{error_details}"
        else:
            result = f"failed_retrying:{error_details}"
            retrying = True
    else:
        result = f"doc_rejected:{error_details}"
    return status, result[: MAX_VALUE_LEN - 1], retrying