"""
Event envelope codec.
Inbound and outbound messages carry a base64-encoded JSON body under "data".
"""

import base64
import binascii
import json
from typing import Any, Dict, Union

from media_moderation.lib.errors import DecodeError

Event = Union[Dict[str, Any], str, bytes]


def encode_event(payload: Dict[str, Any]) -> Dict[str, str]:
    """Wrap a payload in an envelope."""
    body = json.dumps(payload, default=str).encode('utf-8')
    return {'data': base64.b64encode(body).decode('ascii')}


def decode_event(event: Event) -> Dict[str, Any]:
    """
    Unwrap an envelope into its JSON object.

    Accepts the envelope dict, the bare base64 data, or a dict without a
    "data" key, which is taken to be the already-decoded payload.
    """
    if isinstance(event, dict):
        if 'data' not in event:
            return event
        data = event['data']
    else:
        data = event

    if not data:
        raise DecodeError("Event carries no data")
    if not isinstance(data, (str, bytes)):
        raise DecodeError(f"Event data must be a base64 string, got {type(data).__name__}")

    try:
        raw = base64.b64decode(data, validate=True)
        payload = json.loads(raw.decode('utf-8'))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Event data is not base64-encoded JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError(f"Event data must be a JSON object, got {type(payload).__name__}")
    return payload
