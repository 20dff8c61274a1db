"""Decryption of secrets stored encrypted in the environment."""

import asyncio
import base64
import binascii
import os
from typing import Any, Callable

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .errors import DecryptError

logger = structlog.get_logger(__name__)


def is_lambda_environment() -> bool:
    """Whether we are executing inside AWS Lambda."""
    return bool(os.environ.get("AWS_EXECUTION_ENV"))


class SecretDecrypter:
    """Decrypts KMS encrypted strings.

    Outside Lambda the value is returned unchanged: when running locally the
    environment normally holds the secret in plain text.
    """

    def __init__(self, kms_client_factory: Callable[[], Any]):
        self._kms_client_factory = kms_client_factory

    async def decrypt(self, encrypted: str) -> str:
        if not is_lambda_environment():
            return encrypted

        logger.info("Decrypting SFTP password")
        try:
            blob = base64.b64decode(encrypted, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecryptError(f"Secret is not valid base64: {e}") from e

        try:
            response = await asyncio.to_thread(self._kms_client_factory().decrypt, CiphertextBlob=blob)
            return response["Plaintext"].decode("ascii")
        except (BotoCoreError, ClientError) as e:
            raise DecryptError(f"KMS decrypt failed: {e}") from e
        except (KeyError, UnicodeDecodeError) as e:
            raise DecryptError(f"Unexpected KMS decrypt response: {e}") from e
