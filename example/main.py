import asyncio

from generation_server import GenerationServer
from higgsfield_client import ClientConfig, HiggsfieldClient, HiggsfieldError
from higgsfield_client.helpers import BatchSize, SoulQuality, SoulSize


async def main():
    PORT = 8000
    server = GenerationServer()
    server.enqueue("POST", "/v1/text2image/soul", {"id": "js-1", "jobs": [{"id": "j-1", "status": "queued"}]})
    server.enqueue("GET", "/v1/job-sets/js-1", {"id": "js-1", "jobs": [{"id": "j-1", "status": "in_progress"}]})
    server.enqueue("GET", "/v1/job-sets/js-1", {"detail": "upstream busy"}, status=503)
    server.enqueue(
        "GET",
        "/v1/job-sets/js-1",
        {
            "id": "js-1",
            "jobs": [
                {
                    "id": "j-1",
                    "status": "completed",
                    "results": {
                        "raw": {"url": "https://cdn.example.com/j-1.png", "type": "image"},
                        "min": {"url": "https://cdn.example.com/j-1-min.jpg", "type": "image"},
                    },
                }
            ],
        },
    )
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    config = ClientConfig(
        base_url=f"http://localhost:{PORT}",
        credentials="demo-key:demo-secret",
        poll_interval=1.0,
        max_poll_time=60.0,
    )

    try:
        async with HiggsfieldClient(config) as client:
            job_set = await client.generate(
                "/v1/text2image/soul",
                {
                    "prompt": "A lighthouse at dawn",
                    "width_and_height": SoulSize.landscape_2048x1152,
                    "quality": SoulQuality.full_hd,
                    "batch_size": BatchSize.single,
                },
            )
        print(f"Final status: {job_set.jobs[0].status.value}")
        print(f"Result: {job_set.jobs[0].results['raw'].url}")
    except TimeoutError as e:
        print(f"Polling timed out: {e}")
    except HiggsfieldError as e:
        print(f"Error occurred: {e}")
    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
