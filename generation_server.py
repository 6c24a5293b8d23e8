from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Mapping, NamedTuple, Tuple

from aiohttp import web
from loguru import logger


class RecordedRequest(NamedTuple):
    method: str
    path: str
    query: Dict[str, str]
    headers: Mapping[str, str]
    body: bytes


class GenerationServer:
    """Scriptable stand-in for the generation API.

    Responses are queued per ``(method, path)``; the last queued response for
    a route keeps being served once the others are used up.
    """

    def __init__(self):
        self.app = web.Application()
        self.app.router.add_route("*", "/{tail:.*}", self.handle)
        self.responses: Dict[Tuple[str, str], Deque[Tuple[int, Any]]] = defaultdict(deque)
        self.requests: List[RecordedRequest] = []
        self.runner = None
        self.port = None
        self.logger = logger

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}"

    def enqueue(self, method: str, path: str, body: Any = None, status: int = 200):
        self.responses[(method.upper(), path)].append((status, body))

    def requests_to(self, method: str, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                headers=request.headers.copy(),
                body=await request.read(),
            )
        )

        queue = self.responses.get((request.method, request.path))
        if not queue:
            self.logger.info(f"No response scripted for {request.method} {request.path}")
            return web.json_response({"detail": "Not Found"}, status=404)

        status, body = queue.popleft() if len(queue) > 1 else queue[0]
        self.logger.info(f"{request.method} {request.path} -> {status}")
        if body is None:
            return web.Response(status=status)
        return web.json_response(body, status=status)

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.port = port
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
