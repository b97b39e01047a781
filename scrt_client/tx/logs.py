"""
Decoding of a confirmed transaction's event log.

The node's raw log is a JSON array with one entry per message, in message
order:

    [{"events": [{"type": "wasm", "attributes": [{"key": "...", "value": "..."}]}]}, ...]

`decode_logs` produces two views of it:

- `json_log`: the same structure, with contract (`wasm`) attributes decrypted
- `array_log`: the flattened `(msg, type, key, value)` sequence

Contract attributes are base64 ciphertexts encrypted with the nonce of the
message that emitted them. An attribute is decrypted only when the ledger has
a nonce for its message position. Key and value are tried independently; any
failure keeps the original text. Decoding never raises.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..encryption import EncryptionUtils
from ..utils.bytes import from_base64

log = logging.getLogger(__name__)

CONTRACT_EVENT_TYPE = "wasm"

JsonLog = List[Dict[str, Any]]

__all__ = [
    "CONTRACT_EVENT_TYPE",
    "ArrayLogEntry",
    "JsonLog",
    "parse_raw_log",
    "flatten_log",
    "decrypt_json_log",
    "decode_logs",
]


@dataclass(frozen=True)
class ArrayLogEntry:
    msg: int
    type: str
    key: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_raw_log(raw_log: str) -> JsonLog:
    """
    Parse the raw log of a successful transaction.

    Raises:
        ValueError: not JSON, or not shaped as a list of
            `{"events": [{"type", "attributes": [{"key", "value"}]}]}` entries.
    """
    parsed = json.loads(raw_log)
    if not isinstance(parsed, list):
        raise ValueError("raw log is not a list of message logs")
    for msg_index, entry in enumerate(parsed):
        if not isinstance(entry, dict):
            raise ValueError(f"log entry {msg_index} is not an object")
        events = entry.get("events") or []
        if not isinstance(events, list):
            raise ValueError(f"events of log entry {msg_index} are not a list")
        for event in events:
            if not isinstance(event, dict):
                raise ValueError(f"event in log entry {msg_index} is not an object")
            attributes = event.get("attributes") or []
            if not isinstance(attributes, list) or not all(isinstance(a, dict) for a in attributes):
                raise ValueError(f"attributes in log entry {msg_index} are not a list of objects")
    return parsed


def flatten_log(json_log: JsonLog) -> List[ArrayLogEntry]:
    """Flatten to (msg, type, key, value), msg being the entry's position."""
    out: List[ArrayLogEntry] = []
    for msg_index, entry in enumerate(json_log):
        for event in entry.get("events") or []:
            etype = str(event.get("type", ""))
            for attr in event.get("attributes") or []:
                out.append(
                    ArrayLogEntry(
                        msg=msg_index,
                        type=etype,
                        key=str(attr.get("key", "")),
                        value=str(attr.get("value", "")),
                    )
                )
    return out


async def _try_decrypt(encryption: EncryptionUtils, text: str, nonce: bytes) -> Optional[str]:
    """Decrypted, stripped plaintext of `text`, or None if it does not decrypt."""
    try:
        plaintext = await encryption.decrypt(from_base64(text), nonce)
        return bytes(plaintext).decode("utf-8").strip()
    except Exception as e:  # noqa: BLE001 - any failure keeps the original text
        log.debug("attribute left as-is: %s", e)
        return None


async def decrypt_json_log(
    json_log: JsonLog,
    nonces: Mapping[int, bytes],
    encryption: Optional[EncryptionUtils],
) -> JsonLog:
    """Return a copy of `json_log` with ledger-covered contract attributes decrypted."""
    out = copy.deepcopy(json_log)
    if encryption is None or not nonces:
        return out
    for msg_index, entry in enumerate(out):
        nonce = nonces.get(msg_index)
        if nonce is None:
            continue
        for event in entry.get("events") or []:
            if event.get("type") != CONTRACT_EVENT_TYPE:
                continue
            for attr in event.get("attributes") or []:
                for field_name in ("key", "value"):
                    text = attr.get(field_name)
                    if not isinstance(text, str) or not text:
                        continue
                    plain = await _try_decrypt(encryption, text, nonce)
                    if plain is not None:
                        attr[field_name] = plain
    return out


async def decode_logs(
    raw_log: str,
    nonces: Mapping[int, bytes],
    encryption: Optional[EncryptionUtils],
) -> Tuple[Optional[JsonLog], Optional[List[ArrayLogEntry]]]:
    """
    Decode the raw log of a `code == 0` transaction into (json_log, array_log).

    A raw log that is not a JSON message-log list yields (None, None).
    """
    try:
        parsed = parse_raw_log(raw_log)
    except ValueError as e:
        log.warning("could not parse raw log of a successful transaction: %s", e)
        return None, None
    json_log = await decrypt_json_log(parsed, nonces, encryption)
    return json_log, flatten_log(json_log)
