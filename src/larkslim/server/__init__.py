"""Webhook receiver for Lark callbacks.

Components:
- app.py: LarkServer (FastAPI routes, dispatch and lifecycle)
- crypto.py: AES payload decryption and signature checks
- envelope.py: Callback envelope classification
- refresher.py: Background access token renewal
"""

from .app import LarkServer
from .crypto import compute_signature, decrypt, encrypt, verify_signature
from .envelope import (
    CardAction,
    EventCallback,
    EventDetail,
    InboundEnvelope,
    URLVerification,
    classify,
)
from .refresher import TokenRefresher

__all__ = [
    "LarkServer",
    "TokenRefresher",
    # Crypto
    "decrypt",
    "encrypt",
    "compute_signature",
    "verify_signature",
    # Envelopes
    "InboundEnvelope",
    "URLVerification",
    "EventCallback",
    "CardAction",
    "EventDetail",
    "classify",
]
