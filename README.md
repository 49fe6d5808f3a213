# webconfig

Building blocks for a device that receives its configuration from a web
configuration service as a `multipart/mixed` response of msgpack sub-documents.

## Modules

- **`webconfig.multipart`**: finds the boundary in a Content-Type value
  (`boundary_from_content_type`), splits a response body into parts
  (`split_parts`) and turns each part into a `SubDoc` with its `etag`,
  `name_space` and `data` (`parse_subdoc`). `parse_multipart` does all of this
  and returns a tuple of the parsed documents and the namespaces of rejected
  parts. A missing boundary, an incomplete part or an empty result raises
  `MultipartError`, which carries an `ErrorCode` where one applies.
  `MultipartCache` is a thread-safe ordered list of documents with `add`,
  `delete`, `delete_sync_kind` and `clear`.
- **`webconfig.param`**: decodes the msgpack `parameters` array of a
  sub-document into `Param` entries (`name`, `value` as bytes, `type`) with
  `decode_params`. Malformed data raises `ParamError`, whose `kind` is a
  `ParamErrorKind`; `strerror` gives the text for an error number.
- **`webconfig.pack`**: encodes the applied-document database (`pack_db`, under
  the key `webcfgdb`) and the status blob of applied and pending documents
  (`pack_blob`, under `webcfgblob`) from `DbDoc` and `TmpDoc` records. Both raise
  `ValueError` when there is nothing to pack.
- **`webconfig.docstate`**: the rules for a sync's documents:
  `check_root_delete`, `check_root_update`, `retry_eligible`, `failure_result`
  (the status, result text and retry decision for a failed set) and
  `validate_request_params`.
- **`webconfig.notify`**: error reasons (`ErrorCode`) and their reported code
  and message (`status_error`), notification messages (`NotifyMessage` with
  `payload` for the JSON body and `destination` for the event address) and a
  thread-safe `NotificationQueue` with `add`, `pop` and `close`.

## Example

```python
import msgpack

from webconfig.multipart import parse_multipart
from webconfig.param import decode_params

boundary = "+CeB5yCWds7LeVP4oibmKefQ091Vpt2x4g99cJfDCmXpFxt5d"
document = msgpack.packb(
    {"parameters": [{"name": "Device.Example.Enable", "value": "true", "dataType": 3}]}
)
body = (
    f"--{boundary}\r\n".encode()
    + b"Content-type: application/msgpack\r\n"
    + b"Etag: 345431215\r\n"
    + b"Namespace: moca\r\n"
    + b"\r\n"
    + document
    + f"\r\n--{boundary}--\r\n".encode()
)

docs, rejected = parse_multipart(body, f"multipart/mixed; boundary={boundary}")
for doc in docs:
    for param in decode_params(doc.data):
        print(doc.name_space, doc.etag, param.name, param.value, param.type)
```

```python
from webconfig.notify import NotificationQueue

queue = NotificationQueue()
queue.add("lan", 1234, "success", "none", "trans-id", 0, "status", 0, None, 200)
message = queue.pop(1.0)
print(message.destination("112233445566"))
print(message.payload("112233445566"))
```

## What it does not do

The package works on data already in hand. It does not fetch documents from
the service or build the request headers, does not derive the root version or
the version list sent with a sync, does not write the packed database to
disk, does not apply parameters to any device component, and does not deliver
notifications anywhere: `NotificationQueue` only holds them until a consumer
pops them.

## Installing

```
pip install .
pip install ".[test]"
pytest
```