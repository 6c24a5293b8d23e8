import asyncio
import json
from enum import Enum
from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from higgsfield_client.auth import (
    CredentialsProvider,
    credentials_from_config,
    fetch_credentials,
)
from higgsfield_client.errors import CredentialsMissedError, classify_response
from higgsfield_client.models import ClientConfig, Credentials

USER_AGENT = "higgsfield-server-py/2.0"


class AuthScheme(str, Enum):
    # hf-api-key / hf-secret header pair
    key_secret = "key_secret"
    # Authorization: Key KEY_ID:KEY_SECRET
    authorization = "authorization"


class HttpTransport:
    """Authenticated JSON transport shared by the clients.

    Every non-2xx response is turned into an SDK error by
    ``classify_response``; network-level failures propagate as raised by
    aiohttp.
    """

    def __init__(
        self,
        config: ClientConfig,
        auth_scheme: AuthScheme = AuthScheme.key_secret,
        credentials_provider: CredentialsProvider = fetch_credentials,
    ):
        self.config = config
        self.base_url = config.base_url
        self.auth_scheme = auth_scheme
        self.credentials: Optional[Credentials] = credentials_from_config(config)
        self._credentials_provider = credentials_provider
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None
        self.logger = logger

    def _resolve_credentials(self) -> Credentials:
        if self.credentials is None:
            self.credentials = self._credentials_provider()
        if not self.credentials.api_key or not self.credentials.api_secret:
            raise CredentialsMissedError()
        return self.credentials

    def build_headers(self, credentials: Credentials) -> Dict[str, str]:
        if self.auth_scheme == AuthScheme.authorization:
            headers = {
                "Authorization": f"Key {credentials.api_key}:{credentials.api_secret}",
                "User-Agent": USER_AGENT,
            }
        else:
            headers = {
                "hf-api-key": credentials.api_key,
                "hf-secret": credentials.api_secret,
            }
        headers["Content-Type"] = "application/json"
        headers.update(self.config.headers)
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        # A session is bound to the loop it was opened on.
        loop = asyncio.get_running_loop()
        if self._session is not None and self._session_loop is not loop:
            self.logger.debug("Event loop changed, opening a new HTTP session")
            self.discard()

        if self._session is None or self._session.closed:
            credentials = self._resolve_credentials()
            self._session = aiohttp.ClientSession(
                headers=self.build_headers(credentials),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
            self._session_loop = loop
        return self._session

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self._request("POST", path, json=json, params=params)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        session = self._get_session()
        url = f"{self.base_url}{path}"
        self.logger.debug(f"{method} {url}")

        async with session.request(method, url, **kwargs) as response:
            self.logger.debug(f"{response.status} {method} {url}")
            if response.status >= 400:
                body = await self._read_body(response)
                self.logger.error(f"HTTP error {response.status} at {url}: {response.reason}")
                raise classify_response(response.status, body)
            return await response.json(content_type=None)

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        try:
            return json.loads(text)
        except ValueError:
            return text

    async def put_bytes(self, url: str, data: bytes, content_type: str) -> None:
        """Write raw bytes to a pre-signed URL; no API credentials are sent."""
        self.logger.debug(f"PUT {url} ({len(data)} bytes, {content_type})")
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.put(
                url, data=data, headers={"Content-Type": content_type}
            ) as response:
                if response.status >= 400:
                    body = await self._read_body(response)
                    self.logger.error(f"Upload failed with HTTP {response.status} at {url}")
                    raise classify_response(response.status, body)

    def discard(self) -> None:
        """Drop the session without awaiting its close, e.g. once its loop has ended."""
        if self._session is not None:
            self._session.detach()
        self._session = None
        self._session_loop = None

    async def close(self) -> None:
        if (
            self._session is not None
            and not self._session.closed
            and self._session_loop is asyncio.get_running_loop()
        ):
            await self._session.close()
        self.discard()
