"""Core modules for larkslim.

This package contains the shared infrastructure:
- Configuration management
- Logging utilities
- Exception hierarchy
"""

from .config import APIConfig, LarkConfig, LoggingConfig, ServerConfig
from .exceptions import (
    APIError,
    ClassificationError,
    CryptoError,
    DecodeError,
    LarkError,
    MalformedCiphertext,
    MalformedEnvelope,
    PaddingError,
    ProtocolError,
    SignatureMismatch,
    TokenMismatch,
    TransportError,
    UnknownEnvelope,
)
from .logger import get_logger, setup_logging

__all__ = [
    # Config
    "APIConfig",
    "LarkConfig",
    "LoggingConfig",
    "ServerConfig",
    # Logging
    "get_logger",
    "setup_logging",
    # Errors
    "LarkError",
    "TransportError",
    "ProtocolError",
    "APIError",
    "CryptoError",
    "DecodeError",
    "MalformedCiphertext",
    "PaddingError",
    "SignatureMismatch",
    "ClassificationError",
    "MalformedEnvelope",
    "UnknownEnvelope",
    "TokenMismatch",
]
