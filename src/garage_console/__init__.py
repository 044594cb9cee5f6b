"""garage-console: credential-holding admin proxy for Garage clusters."""

__version__ = "0.4.0"

from garage_console.config import ConfigError, ConsoleConfig, generate_encryption_key, load_config
from garage_console.crypto.cipher import (
    AuthenticationFailure,
    CipherError,
    InvalidFormat,
    TokenCipher,
)
from garage_console.errors import (
    BadGateway,
    ClusterNotFound,
    ConsoleError,
    Forbidden,
    Unauthenticated,
)

__all__ = [
    "AuthenticationFailure",
    "BadGateway",
    "CipherError",
    "ClusterNotFound",
    "ConfigError",
    "ConsoleConfig",
    "ConsoleError",
    "Forbidden",
    "generate_encryption_key",
    "InvalidFormat",
    "load_config",
    "TokenCipher",
    "Unauthenticated",
    "__version__",
]
