"""Exception hierarchy for larkslim.

Outbound API calls raise ``TransportError``, ``ProtocolError`` or ``APIError``.
Inbound webhook processing raises ``CryptoError`` and ``ClassificationError``
subclasses, which the receiver converts into acknowledgements.
"""

from __future__ import annotations


class LarkError(Exception):
    """Base exception for all larkslim errors."""

    pass


class TransportError(LarkError):
    """Raised when a network or I/O failure prevents a request from completing."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            original_error: Underlying httpx exception
        """
        self.original_error = original_error
        super().__init__(message)


class ProtocolError(LarkError):
    """Raised when the platform answers with a non-2xx status or an unreadable envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class APIError(LarkError):
    """Raised when the platform reports an application-level failure.

    The platform signals such failures inside HTTP 200 responses, so the
    envelope message is the only reliable indicator.

    Attributes:
        code: Platform error code.
        msg: Platform error message.
    """

    def __init__(self, msg: str, code: int = 0) -> None:
        self.code = code
        self.msg = msg
        super().__init__(msg)


class CryptoError(LarkError):
    """Base exception for decryption and signature failures."""

    pass


class DecodeError(CryptoError):
    """Raised when the encrypted payload is not valid base64."""

    pass


class MalformedCiphertext(CryptoError):
    """Raised when the ciphertext is not a positive multiple of the block size."""

    pass


class PaddingError(CryptoError):
    """Raised when the PKCS#7 pad length byte is out of bounds."""

    pass


class SignatureMismatch(CryptoError):
    """Raised when a request signature does not match the computed one."""

    pass


class ClassificationError(LarkError):
    """Base exception for inbound envelopes that cannot be dispatched."""

    pass


class MalformedEnvelope(ClassificationError):
    """Raised when the envelope body is not a JSON object."""

    pass


class UnknownEnvelope(ClassificationError):
    """Raised when the envelope shape is not recognized."""

    def __init__(self, envelope_type: str | None) -> None:
        self.envelope_type = envelope_type
        super().__init__(f"Unknown envelope type: {envelope_type!r}")


class TokenMismatch(ClassificationError):
    """Raised when an event callback carries the wrong verification token."""

    def __init__(self) -> None:
        super().__init__("wrong verification token")
