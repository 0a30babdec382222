from typing import Any, Mapping, Optional

import aiohttp

from app.logger import logger

_session: aiohttp.ClientSession | None = None


class UpstreamError(Exception):
    """Raised when the upstream answers with a non-success status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


def get_session() -> aiohttp.ClientSession:
    global _session
    if _session and not _session.closed:
        return _session
    # limit=0: no cap on concurrent connections, batch fan-out is unbounded
    connector = aiohttp.TCPConnector(limit=0, ttl_dns_cache=300)
    _session = aiohttp.ClientSession(connector=connector)
    logger.debug("Created upstream client session")
    return _session


async def close_session():
    global _session
    if _session and not _session.closed:
        await _session.close()
        logger.debug("Closed upstream client session")
    _session = None


async def get_json(url: str, error_prefix: str, params: Optional[Mapping[str, Any]] = None) -> Any:
    """
    Perform a GET against the upstream and decode the JSON body.
    :param url: absolute upstream url
    :param error_prefix: message prefix used when the status is not a success
    :param params: query string parameters
    :raises UpstreamError: on a non-2xx status
    :raises aiohttp.ClientError: on transport failures
    """
    session = get_session()
    async with session.get(url, params=params) as response:
        if not response.ok:
            raise UpstreamError(f"{error_prefix}: {response.status}", response.status)
        return await response.json(content_type=None)
