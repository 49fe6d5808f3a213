"""Msgpack encoding of the document database and status blob."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import msgpack

logger = logging.getLogger(__name__)

_UINT32_MASK = 0xFFFFFFFF
_UINT16_MASK = 0xFFFF

DB_KEY = "webcfgdb"
BLOB_KEY = "webcfgblob"


@dataclass
class DbDoc:
    """A document recorded as applied in the database."""

    name: str
    version: int = 0
    root_string: Optional[str] = None


@dataclass
class TmpDoc:
    """A document from the current sync whose application is being tracked."""

    name: str
    version: int = 0
    status: Optional[str] = None
    error_details: Optional[str] = None
    error_code: int = 0
    is_supplementary_sync: bool = False
    retry_timestamp: int = 0
    cloud_trans_id: Optional[str] = None
    trans_id: int = 0
    retry_count: int = 0


def _require(value: Optional[str], field: str) -> str:
    if value is None:
        raise ValueError(f"document field {field!r} is missing")
    return value


def _db_entry(doc: DbDoc) -> dict:
    entry = {
        "name": _require(doc.name, "name"),
        "version": doc.version & _UINT32_MASK,
    }
    if doc.root_string is not None:
        entry["root_string"] = doc.root_string
    return entry


def _db_blob_entry(doc: DbDoc) -> dict:
    entry = {
        "name": _require(doc.name, "name"),
        "version": doc.version & _UINT32_MASK,
        "status": "success",
        "error_details": "none",
        "error_code": 0,
    }
    if doc.root_string is not None:
        entry["root_string"] = doc.root_string
    return entry


def _tmp_blob_entry(doc: TmpDoc) -> dict:
    return {
        "name": _require(doc.name, "name"),
        "version": doc.version & _UINT32_MASK,
        "status": _require(doc.status, "status"),
        "error_details": _require(doc.error_details, "error_details"),
        "error_code": doc.error_code & _UINT16_MASK,
    }


def _is_pending(doc: TmpDoc) -> bool:
    # Successful documents are already part of the database entries.
    return doc.status is not None and doc.status != "success"


def pack_db(docs: Iterable[DbDoc]) -> bytes:
    """Encode database documents as a msgpack map under 'webcfgdb'.

    Raises ValueError when there are no documents.
    """
    doc_list: List[DbDoc] = list(docs)
    if not doc_list:
        logger.error("parameters is NULL")
        raise ValueError("no documents to pack")
    body = {DB_KEY: [_db_entry(doc) for doc in doc_list]}
    return msgpack.packb(body, use_bin_type=True)


def pack_blob(db_docs: Iterable[DbDoc], tmp_docs: Iterable[TmpDoc]) -> bytes:
    """Encode applied and pending documents as a msgpack map under 'webcfgblob'.

    Database documents are reported as successful; tracked documents are
    included only while their status is set and not 'success'. Raises
    ValueError when both collections are empty.
    """
    db_list: List[DbDoc] = list(db_docs)
    tmp_list: List[TmpDoc] = list(tmp_docs)
    if not db_list and not tmp_list:
        logger.error("parameters is NULL")
        raise ValueError("no documents to pack")
    entries = [_db_blob_entry(doc) for doc in db_list]
    entries.extend(_tmp_blob_entry(doc) for doc in tmp_list if _is_pending(doc))
    logger.debug("packing %d blob entries", len(entries))
    return msgpack.packb({BLOB_KEY: entries}, use_bin_type=True)