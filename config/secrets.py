"""Secret lookup for the ShouldCost functions.

Deployed functions read from Google Cloud Secret Manager; the emulator and
local server read plain environment variables. A Secret Manager miss falls
back to the environment so a half-configured project still boots.

Usage:
    from config.secrets import get_openai_api_key

    api_key = get_openai_api_key()
"""

import os
import logging
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

OPENAI_API_KEY = "OPENAI_API_KEY"
DEFAULT_PROJECT_ID = "shouldcost-dev"


def is_emulator_mode() -> bool:
    """True when running under the Firebase emulator or serve_local."""
    if os.environ.get("FUNCTIONS_EMULATOR") == "true":
        return True
    return bool(os.environ.get("FIRESTORE_EMULATOR_HOST"))


def _project_id() -> str:
    return (
        os.environ.get("GCLOUD_PROJECT")
        or os.environ.get("GOOGLE_CLOUD_PROJECT")
        or DEFAULT_PROJECT_ID
    )


def secret_version_name(secret_id: str, version: str = "latest") -> str:
    """Fully qualified Secret Manager resource name for a secret."""
    return f"projects/{_project_id()}/secrets/{secret_id}/versions/{version}"


@lru_cache(maxsize=1)
def _secret_client():
    from google.cloud import secretmanager

    return secretmanager.SecretManagerServiceClient()


def get_secret(secret_id: str) -> Optional[str]:
    """Resolve a secret value.

    Args:
        secret_id: Secret name, also used as the environment variable name.

    Returns:
        The secret, or None when neither source has it.
    """
    from_env = os.environ.get(secret_id)
    if is_emulator_mode():
        if not from_env:
            logger.warning("Secret %s missing from environment", secret_id)
        return from_env

    try:
        response = _secret_client().access_secret_version(
            request={"name": secret_version_name(secret_id)}
        )
    except Exception as e:
        logger.warning("Secret Manager lookup for %s failed, using environment: %s", secret_id, e)
        return from_env

    logger.debug("Secret %s loaded from Secret Manager", secret_id)
    return response.payload.data.decode("UTF-8")


@lru_cache(maxsize=1)
def get_openai_api_key() -> Optional[str]:
    """OpenAI key shared by the chat and embedding clients."""
    return get_secret(OPENAI_API_KEY)


def clear_secret_cache() -> None:
    """Forget cached secrets and the Secret Manager client (key rotation, tests)."""
    get_openai_api_key.cache_clear()
    _secret_client.cache_clear()
