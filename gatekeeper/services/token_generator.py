"""Secure bearer token generation."""

import logging
import secrets

from gatekeeper.services.errors import GeneratorExhaustionError

logger = logging.getLogger(__name__)

# 32 bytes = 256 bits of entropy, hex-encoded to 64 characters
TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2


def generate_token() -> str:
    """Return a new unguessable token drawn from the OS CSPRNG.

    Raises:
        GeneratorExhaustionError: If the OS random source is unavailable.
    """
    try:
        return secrets.token_hex(TOKEN_BYTES)
    except NotImplementedError as e:
        # os.urandom raises NotImplementedError when no randomness source exists
        logger.critical("Secure random source unavailable; refusing to issue tokens")
        raise GeneratorExhaustionError("Secure random source unavailable") from e
