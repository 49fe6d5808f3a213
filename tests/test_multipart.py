import msgpack
import pytest

from webconfig.multipart import (
    MultipartCache,
    MultipartError,
    SubDoc,
    boundary_from_content_type,
    parse_multipart,
    parse_subdoc,
    split_parts,
)
from webconfig.notify import ErrorCode
from webconfig.param import decode_params

BOUNDARY = "+CeB5yCWds7LeVP4oibmKefQ091Vpt2x4g99cJfDCmXpFxt5d"
CONTENT_TYPE = f"multipart/mixed; boundary={BOUNDARY}"


def _data(name, value):
    return msgpack.packb(
        {"parameters": [{"name": name, "value": value, "dataType": 0}]},
        use_bin_type=True,
    )


def _part(namespace, etag, data):
    return (
        b"Content-type: application/msgpack\r\n"
        + b"Etag: " + etag + b"\r\n"
        + b"Namespace: " + namespace + b"\r\n"
        + b"\r\n"
        + data
    )


def _body(parts, boundary=BOUNDARY):
    marker = b"--" + boundary.encode()
    return b"".join(marker + b"\r\n" + p + b"\r\n" for p in parts) + marker + b"--\r\n"


def test_boundary_from_content_type():
    assert boundary_from_content_type(CONTENT_TYPE) == BOUNDARY


@pytest.mark.parametrize("ct", ["multipart/mixed", "multipart/mixed; charset", ""])
def test_boundary_missing_raises(ct):
    with pytest.raises(MultipartError) as info:
        boundary_from_content_type(ct)
    assert info.value.code is ErrorCode.MULTIPART_BOUNDARY_NULL


def test_split_parts_returns_contents():
    parts = [b"first\r\nline", b"second"]
    assert split_parts(_body(parts), BOUNDARY) == parts


def test_split_parts_stops_at_closing_boundary():
    body = _body([b"one"]) + b"--" + BOUNDARY.encode() + b"\r\nignored\r\n"
    assert split_parts(body, BOUNDARY) == [b"one"]


def test_parse_subdoc_fields():
    data = _data("Device.X", "1")
    doc = parse_subdoc(_part(b"moca", b"2132354", data))
    assert doc.name_space == "moca"
    assert doc.etag == 2132354
    assert doc.data == data
    assert doc.data_size == len(data)
    assert doc.is_supplementary_sync is False


def test_parse_subdoc_hex_etag():
    doc = parse_subdoc(_part(b"lan", b"0x10", _data("a", "b")), True)
    assert doc.etag == 16
    assert doc.is_supplementary_sync is True


def test_parse_subdoc_zero_etag_rejected_with_namespace():
    with pytest.raises(MultipartError) as info:
        parse_subdoc(_part(b"wan", b"0", _data("a", "b")))
    assert info.value.namespace == "wan"
    assert info.value.code is ErrorCode.MULTIPART_CACHE_NULL


def test_parse_subdoc_without_parameters_rejected():
    with pytest.raises(MultipartError) as info:
        parse_subdoc(_part(b"wan", b"5", msgpack.packb({"other": 1})))
    assert info.value.namespace == "wan"


def test_parse_multipart_round_trip():
    body = _body([
        _part(b"moca", b"11", _data("Device.Moca", "true")),
        _part(b"lan", b"22", _data("Device.Lan", "on")),
    ])
    docs, rejected = parse_multipart(body, CONTENT_TYPE)
    assert rejected == []
    assert [d.name_space for d in docs] == ["moca", "lan"]
    assert [d.etag for d in docs] == [11, 22]
    params = decode_params(docs[1].data)
    assert params[0].name == "Device.Lan"
    assert params[0].value == b"on"


def test_parse_multipart_reports_rejected():
    body = _body([
        _part(b"bad", b"0", _data("x", "y")),
        _part(b"good", b"3", _data("x", "y")),
    ])
    docs, rejected = parse_multipart(body, CONTENT_TYPE, True)
    assert [d.name_space for d in docs] == ["good"]
    assert all(d.is_supplementary_sync for d in docs)
    assert rejected == ["bad"]


def test_parse_multipart_empty_raises():
    body = _body([_part(b"bad", b"0", _data("x", "y"))])
    with pytest.raises(MultipartError) as info:
        parse_multipart(body, CONTENT_TYPE)
    assert info.value.rejected == ["bad"]


def test_parse_multipart_missing_boundary():
    with pytest.raises(MultipartError) as info:
        parse_multipart(b"", "multipart/mixed")
    assert info.value.code is ErrorCode.MULTIPART_BOUNDARY_NULL


def _doc(name, supplementary=False):
    return SubDoc(1, name, b"parameters", supplementary)


def test_cache_add_iter_len():
    cache = MultipartCache()
    cache.add(_doc("a"))
    cache.add(_doc("b"))
    assert len(cache) == 2
    assert [d.name_space for d in cache] == ["a", "b"]


def test_cache_delete():
    cache = MultipartCache()
    cache.add(_doc("a"))
    cache.add(_doc("b"))
    removed = cache.delete("a")
    assert removed.name_space == "a"
    assert [d.name_space for d in cache] == ["b"]
    with pytest.raises(KeyError):
        cache.delete("a")


def test_cache_delete_sync_kind():
    cache = MultipartCache()
    cache.add(_doc("a"))
    cache.add(_doc("t", True))
    cache.add(_doc("b"))
    assert cache.delete_sync_kind(False) == 2
    assert [d.name_space for d in cache] == ["t"]


def test_cache_clear():
    cache = MultipartCache()
    cache.add(_doc("a"))
    cache.clear()
    assert len(cache) == 0
    assert list(cache) == []