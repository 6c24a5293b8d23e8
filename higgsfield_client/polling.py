import asyncio
from typing import TYPE_CHECKING, Any, Callable, Dict

from loguru import logger

from higgsfield_client.errors import PollingTimeoutError, is_server_error

if TYPE_CHECKING:
    from higgsfield_client.models import ClientConfig
    from higgsfield_client.transport import HttpTransport


async def poll_until_settled(
    transport: "HttpTransport",
    config: "ClientConfig",
    polling_url: str,
    apply: Callable[[Dict[str, Any]], None],
    is_settled: Callable[[], bool],
) -> None:
    """Poll ``polling_url`` until the entity settles or ``max_poll_time`` passes.

    Each successful response is handed to ``apply``; polling stops once
    ``is_settled`` reports true. Server errors (5xx) are treated as transient
    and polling carries on; any other failure is raised to the caller.
    """
    loop = asyncio.get_event_loop()
    start_time = loop.time()
    attempt = 0

    while True:
        if loop.time() - start_time > config.max_poll_time:
            raise PollingTimeoutError(config.max_poll_time)

        attempt += 1
        try:
            data = await transport.get(polling_url)
            apply(data)
            if is_settled():
                logger.debug(f"{polling_url} settled after {attempt} status queries")
                return
        except Exception as polling_error:
            if not is_server_error(polling_error):
                raise
            logger.warning(
                f"Transient error polling {polling_url}, retrying: {polling_error}"
            )

        logger.debug(f"{polling_url} not settled, waiting {config.poll_interval}s")
        await asyncio.sleep(config.poll_interval)
