"""Secrets from AWS SSM Parameter Store.

The Stripe secret key, the Stripe webhook signing secret and the internal API
token live under ``/bootcamp/<environment>/`` as SecureString parameters.
Each can be overridden by an environment variable for local runs and tests.
Values are cached for the lifetime of the process (one Lambda container).
"""

import os
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from bootcamp.utils.logging import get_logger

logger = get_logger(__name__)

_ERROR_HINTS = {
    "ParameterNotFound": "SSM parameter not found: {name}",
    "AccessDeniedException": (
        "Access denied to SSM parameter: {name}. "
        "Check IAM permissions for ssm:GetParameter."
    ),
}


class SSMServiceError(Exception):
    """Raised when a secret cannot be read from SSM."""


class SSMService:
    """Reads and caches SecureString parameters."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client or boto3.client("ssm")
        self._cache: dict[str, str] = {}

    def get_parameter(self, name: str) -> str:
        """Return the decrypted value of a parameter.

        Raises:
            SSMServiceError: If the parameter is missing or unreadable
        """
        if name in self._cache:
            return self._cache[name]

        logger.info("Fetching SSM parameter: %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            hint = _ERROR_HINTS.get(code, "Failed to retrieve SSM parameter {name}: {error}")
            raise SSMServiceError(hint.format(name=name, error=e)) from e
        except BotoCoreError as e:
            raise SSMServiceError(f"Failed to retrieve SSM parameter {name}: {e}") from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def get_secret(self, env_var: str, parameter_name: str) -> str:
        """Return ``$env_var`` if set, else the SSM parameter.

        Args:
            env_var: Environment variable that overrides the parameter,
                e.g. ``STRIPE_WEBHOOK_SECRET``
            parameter_name: Full parameter path,
                e.g. ``/bootcamp/prod/stripe/webhook_secret``
        """
        return os.getenv(env_var) or self.get_parameter(parameter_name)


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    return SSMService()
