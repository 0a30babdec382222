import asyncio

from dotenv import load_dotenv
load_dotenv(".env")
import info
from app.logger import logger
from app.server import ProxyServer


async def main():
    logger.info("Starting Roblox Player Proxy version %s", info.__version__)
    async with ProxyServer() as server:
        await server.serve_forever()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
