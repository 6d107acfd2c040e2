"""
Webhook signature verification.

NOWPayments signs IPN callbacks with HMAC-SHA512 and Alchemy Pay with
HMAC-SHA256; both send the lowercase hex digest in a header. The digest is
computed over the raw request body exactly as received. Re-serialising a parsed
body can reorder keys or change whitespace, which would break verification.

The verifiers return a boolean and never raise on malformed input.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Callable, Optional, Union

from advancia_pay.core.logging_config import get_logger

logger = get_logger(__name__)

Payload = Union[bytes, str]


def compute_signature(payload: Payload, secret: str, digestmod: Callable = hashlib.sha512) -> str:
    """Hex HMAC digest of ``payload`` keyed with ``secret``."""
    body = payload.encode("utf-8") if isinstance(payload, str) else payload
    return hmac.new(secret.encode("utf-8"), body, digestmod).hexdigest()


def _verify_hex_hmac(
    payload: Optional[Payload], signature: Optional[str], secret: Optional[str], digestmod: Callable
) -> bool:
    if not payload or not signature or not secret:
        return False

    expected = compute_signature(payload, secret, digestmod)
    provided = signature.strip().lower()

    if len(provided) != len(expected):
        return False
    try:
        bytes.fromhex(provided)
    except ValueError:
        return False

    return hmac.compare_digest(provided.encode("ascii"), expected.encode("ascii"))


def verify_nowpayments_signature(payload: Optional[Payload], signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Verify a NOWPayments IPN callback.

    Args:
        payload: Raw request body
        signature: Value of the ``x-nowpayments-sig`` header
        secret: IPN secret configured in the NOWPayments dashboard

    Returns:
        True only when the signature matches. Missing inputs, non-hex signatures
        and length mismatches are all reported as False.
    """
    valid = _verify_hex_hmac(payload, signature, secret, hashlib.sha512)
    if not valid:
        logger.warning("NOWPayments IPN signature verification failed")
    return valid


def verify_alchemy_pay_signature(payload: Optional[Payload], signature: Optional[str], secret: Optional[str]) -> bool:
    """Verify an Alchemy Pay webhook signed with HMAC-SHA256."""
    valid = _verify_hex_hmac(payload, signature, secret, hashlib.sha256)
    if not valid:
        logger.warning("Alchemy Pay webhook signature verification failed")
    return valid
