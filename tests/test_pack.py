import msgpack
import pytest

from webconfig.pack import DbDoc, TmpDoc, pack_blob, pack_db


def _unpack(data):
    return msgpack.unpackb(data, raw=False)


def test_pack_db_wire_bytes():
    data = pack_db([DbDoc("root", 1)])
    expected = (
        b"\x81\xa8webcfgdb\x91\x82"
        b"\xa4name\xa4root"
        b"\xa7version\x01"
    )
    assert data == expected


def test_pack_db_round_trip_with_root_string():
    docs = [DbDoc("root", 12345, "POST-NONE"), DbDoc("lan", 4077)]
    result = _unpack(pack_db(docs))
    assert result == {
        "webcfgdb": [
            {"name": "root", "version": 12345, "root_string": "POST-NONE"},
            {"name": "lan", "version": 4077},
        ]
    }


def test_pack_db_key_order_preserved():
    result = _unpack(pack_db([DbDoc("root", 7, "NONE")]))
    assert list(result["webcfgdb"][0]) == ["name", "version", "root_string"]


def test_pack_db_version_truncated_to_uint32():
    result = _unpack(pack_db([DbDoc("mesh", 2**32)]))
    assert result["webcfgdb"][0]["version"] == 0


def test_pack_db_empty_raises():
    with pytest.raises(ValueError):
        pack_db([])


def test_pack_db_missing_name_raises():
    with pytest.raises(ValueError):
        pack_db([DbDoc(None, 1)])


def test_pack_blob_db_entries_report_success():
    result = _unpack(pack_blob([DbDoc("root", 99, "NONE"), DbDoc("wan", 3)], []))
    assert result == {
        "webcfgblob": [
            {
                "name": "root",
                "version": 99,
                "status": "success",
                "error_details": "none",
                "error_code": 0,
                "root_string": "NONE",
            },
            {
                "name": "wan",
                "version": 3,
                "status": "success",
                "error_details": "none",
                "error_code": 0,
            },
        ]
    }


def test_pack_blob_skips_successful_and_unset_tmp_docs():
    tmp = [
        TmpDoc("lan", 10, "success", "none", 0),
        TmpDoc("moca", 11, "failed", "doc_rejected:x", 204),
        TmpDoc("mesh", 12, None, None, 0),
        TmpDoc("ble", 13, "pending", "none", 0),
    ]
    entries = _unpack(pack_blob([], tmp))["webcfgblob"]
    assert [e["name"] for e in entries] == ["moca", "ble"]
    assert entries[0] == {
        "name": "moca",
        "version": 11,
        "status": "failed",
        "error_details": "doc_rejected:x",
        "error_code": 204,
    }


def test_pack_blob_db_entries_come_first():
    db = [DbDoc("root", 1)]
    tmp = [TmpDoc("lan", 2, "failed", "failed_retrying:err", 192)]
    entries = _unpack(pack_blob(db, tmp))["webcfgblob"]
    assert [(e["name"], e["status"]) for e in entries] == [
        ("root", "success"),
        ("lan", "failed"),
    ]


def test_pack_blob_only_successful_tmp_docs_gives_empty_array():
    tmp = [TmpDoc("lan", 2, "success", "none", 0)]
    assert _unpack(pack_blob([], tmp)) == {"webcfgblob": []}


def test_pack_blob_empty_raises():
    with pytest.raises(ValueError):
        pack_blob([], [])


def test_pack_blob_pending_doc_without_details_raises():
    with pytest.raises(ValueError):
        pack_blob([], [TmpDoc("lan", 2, "failed", None, 0)])


def test_pack_blob_error_code_truncated_to_uint16():
    tmp = [TmpDoc("lan", 2, "failed", "x", 0x10000 + 190)]
    entries = _unpack(pack_blob([], tmp))["webcfgblob"]
    assert entries[0]["error_code"] == 190