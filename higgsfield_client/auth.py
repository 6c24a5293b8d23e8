import os
import sys
from typing import Callable, Optional

from higgsfield_client.errors import CredentialsMissedError, UnsupportedEnvironmentError
from higgsfield_client.models import ClientConfig, Credentials

CredentialsProvider = Callable[[], Credentials]


def fetch_credentials() -> Credentials:
    """Read credentials from the environment.

    ``HF_CREDENTIALS`` (or ``HF_KEY``) holds ``"KEY_ID:KEY_SECRET"``; otherwise
    ``HF_API_KEY`` and ``HF_API_SECRET`` are used.
    """
    combined = os.environ.get("HF_CREDENTIALS") or os.environ.get("HF_KEY")
    if combined:
        parts = combined.split(":")
        if len(parts) == 2 and all(parts):
            return Credentials(api_key=parts[0], api_secret=parts[1])

    api_key = os.environ.get("HF_API_KEY")
    api_secret = os.environ.get("HF_API_SECRET")
    if api_key and api_secret:
        return Credentials(api_key=api_key, api_secret=api_secret)

    raise CredentialsMissedError()


def credentials_from_config(config: ClientConfig) -> Optional[Credentials]:
    if config.credentials:
        return Credentials.parse(config.credentials)
    if config.api_key and config.api_secret:
        return Credentials(api_key=config.api_key, api_secret=config.api_secret)
    return None


def resolve_credentials(
    config: ClientConfig, provider: CredentialsProvider = fetch_credentials
) -> Credentials:
    return credentials_from_config(config) or provider()


def check_environment() -> None:
    # Pyodide and other in-browser interpreters report this platform.
    if sys.platform == "emscripten":
        raise UnsupportedEnvironmentError()
