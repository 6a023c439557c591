"""
Basic fetch example using wttp_client.

This example runs the WTTPHandler against the in-memory mock engine:
it writes a resource in chunks, reads it back whole and by range, and
shows a conditional GET and a per-call network override.
"""

import asyncio
import logging
from wttp_client import NetworkContext, WTTPHandler, HostResolver
from wttp_client.engine import MockConnector, MockNameRegistry

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OWNER = "0x" + "a1" * 20
HTML = {"Content-Type": "text/html; charset=utf-8", "Content-Location": "datapoint/chunk"}


async def write_and_read(handler: WTTPHandler):
    """Demonstrate PUT, PATCH and ranged GET."""
    logger.info("Writing /index.html in three chunks...")
    url = "wttp://mysite.eth/index.html"

    response = await handler.fetch(url, "PUT", HTML, "<html><body>")
    logger.info(f"PUT: {response.status} {response.status_text}, ETag {response.get_header('ETag')}")

    for index, chunk in enumerate(["Hello World", "</body></html>"], start=1):
        response = await handler.fetch(url, "PATCH", {"Range": f"chunks={index}"}, chunk)
        logger.info(f"PATCH chunk {index}: {response.status}")

    response = await handler.fetch(url)
    logger.info(f"GET: {response.status}, body {response.text()!r}")
    for name, value in response.headers.items():
        logger.info(f"  {name}: {value}")

    response = await handler.fetch(url, "GET", {"Range": "chunks=1-1"})
    logger.info(f"GET chunks=1-1: {response.status}, body {response.text()!r}")


async def conditional_get(handler: WTTPHandler):
    """Demonstrate a conditional GET with If-None-Match."""
    url = "wttp://mysite.eth/index.html"
    etag = (await handler.fetch(url)).get_header("ETag")
    response = await handler.fetch(url, "GET", {"If-None-Match": etag})
    logger.info(f"Conditional GET: {response.status} {response.status_text}")


async def other_network(handler: WTTPHandler, site: str):
    """Demonstrate a per-call network override."""
    response = await handler.fetch(f"wttp://{site}:sepolia/index.html", "PUT", HTML, "Hi from sepolia")
    logger.info(f"PUT on sepolia: {response.status}")
    response = await handler.fetch(f"wttp://{site}:sepolia/index.html")
    logger.info(f"GET on sepolia: {response.text()!r}; default network is still {handler.network}")


async def main():
    """Run all examples."""
    connector = MockConnector()
    site = connector.engine("localhost").create_site(OWNER)
    sepolia_site = connector.engine("sepolia").create_site(OWNER)

    handler = WTTPHandler(
        NetworkContext(connector, "localhost", identity=OWNER),
        HostResolver(MockNameRegistry({"mysite.eth": site})),
    )

    try:
        await write_and_read(handler)
        await conditional_get(handler)
        await other_network(handler, sepolia_site)
    except Exception as e:
        logger.error(f"Example failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())
