from typing import Any, Dict, List, Optional

from loguru import logger

from higgsfield_client.auth import CredentialsProvider, fetch_credentials
from higgsfield_client.models import (
    ClientConfig,
    JobSet,
    Motion,
    SoulId,
    SoulIdList,
    SoulStyle,
    UploadResponse,
    Webhook,
)
from higgsfield_client.retry import retry_with_backoff
from higgsfield_client.transport import AuthScheme, HttpTransport


class HiggsfieldClient:
    """Client for the job-set generation API.

    Use it as an async context manager so the underlying HTTP session is
    closed::

        async with HiggsfieldClient(ClientConfig(api_key="...", api_secret="...")) as client:
            job_set = await client.generate("/v1/text2image/soul", {"prompt": "..."})
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        credentials_provider: CredentialsProvider = fetch_credentials,
    ):
        self.config = config or ClientConfig()
        self.transport = HttpTransport(
            self.config,
            auth_scheme=AuthScheme.key_secret,
            credentials_provider=credentials_provider,
        )
        self.logger = logger

    async def _with_retry(self, operation):
        return await retry_with_backoff(
            operation,
            max_retries=self.config.max_retries,
            backoff=self.config.retry_backoff,
            max_backoff=self.config.retry_max_backoff,
        )

    async def generate(
        self,
        endpoint: str,
        params: Dict[str, Any],
        webhook: Optional[Webhook] = None,
        with_polling: bool = True,
    ) -> JobSet:
        """Submit a generation request and, by default, wait for it to settle."""
        body: Dict[str, Any] = {"params": params}
        if webhook is not None:
            body["webhook"] = webhook.model_dump()

        data = await self._with_retry(lambda: self.transport.post(endpoint, json=body))
        job_set = JobSet.model_validate(data)
        self.logger.debug(f"Submitted job set {job_set.id} to {endpoint}")

        if with_polling:
            await job_set.poll(self.transport, self.config)
        return job_set

    async def create_soul_id(
        self, data: Dict[str, Any], with_polling: bool = True
    ) -> SoulId:
        response = await self.transport.post("/v1/custom-references", json=data)
        soul_id = SoulId.model_validate(response)

        if with_polling:
            await soul_id.poll(self.transport, self.config)
        return soul_id

    async def list_soul_ids(self, page: int = 1, page_size: int = 20) -> SoulIdList:
        response = await self.transport.get(
            "/v1/custom-references/list",
            params={"page": page, "page_size": page_size},
        )
        return SoulIdList.model_validate(response)

    async def get_motions(self) -> List[Motion]:
        """Motion presets available for image-to-video generation."""
        response = await self._with_retry(lambda: self.transport.get("/v1/motions"))
        return [Motion.model_validate(item) for item in response]

    async def get_soul_styles(self) -> List[SoulStyle]:
        """Styles available for Soul text-to-image generation."""
        response = await self._with_retry(
            lambda: self.transport.get("/v1/text2image/soul-styles")
        )
        return [SoulStyle.model_validate(item) for item in response]

    async def _get_upload_link(self, content_type: str) -> UploadResponse:
        response = await self.transport.post(
            "/files/generate-upload-url", json={"content_type": content_type}
        )
        return UploadResponse.model_validate(response)

    async def upload(self, data: bytes, content_type: str) -> str:
        """Upload raw bytes and return their public URL."""
        link = await self._get_upload_link(content_type)
        await self.transport.put_bytes(link.upload_url, data, content_type)
        self.logger.debug(f"Uploaded {len(data)} bytes to {link.public_url}")
        return link.public_url

    async def upload_image(self, data: bytes, format: str = "jpeg") -> str:
        return await self.upload(data, f"image/{format}")

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "HiggsfieldClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
