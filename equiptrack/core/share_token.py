"""Share Token — reversible text encoding of a ledger for shareable links.

Invariants:
    - decode_share_token(encode_share_token(L)).ledger == L
    - Tokens are URL-safe base64 of compact JSON, without "=" padding
    - decode_share_token fails closed: any malformed token (bad base64, bad JSON,
      nesting too deep to parse, wrong shape) returns None, never raises

Design Decisions:
    - Missing padding is restored before decoding: links often lose trailing "="
"""

import base64
import binascii
import json
import logging

from equiptrack.core.errors import MalformedSnapshotError
from equiptrack.core.ledger import Ledger
from equiptrack.core.ledger_snapshot import LoadedLedger, ledger_from_snapshot, ledger_to_snapshot

logger = logging.getLogger(__name__)


def encode_share_token(ledger: Ledger) -> str:
    payload = json.dumps(
        ledger_to_snapshot(ledger), ensure_ascii=False, separators=(",", ":"),
    ).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_share_token(token: str | None) -> LoadedLedger | None:
    """Decode a share token. Returns None for empty or malformed tokens."""
    if not token or not token.strip():
        return None
    text = token.strip()
    try:
        raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
        data = json.loads(raw.decode("utf-8"))
        return ledger_from_snapshot(data)
    except (binascii.Error, ValueError, RecursionError, MalformedSnapshotError) as e:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors; deep nesting
        # makes the json decoder raise RecursionError
        logger.warning(f"Ignoring malformed share token: {e}")
        return None
