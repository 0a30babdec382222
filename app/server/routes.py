import datetime
import re
from typing import Optional, Union

from aiohttp import web

from app.logger import logger
from app.roblox_tracker import DEFAULT_SEARCH_LIMIT, fetch_multiple_profiles, fetch_profile, search_profiles

routes = web.RouteTableDef()

ENDPOINTS = {
    "/api/players/:userId": "GET - Get player info by UserId",
    "/api/players/batch": "POST - Get multiple players info",
    "/api/players/search/:username": "GET - Search players by username",
    "/health": "GET - Health check",
}


# sign and digits at the start of the value, trailing characters are ignored
LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(raw: str) -> Optional[int]:
    match = LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


def parse_user_id(raw: str) -> Union[int, str]:
    """``"156"`` and ``"1.5"`` read as integers, anything else is forwarded unchanged."""
    user_id = _leading_int(raw)
    return raw if user_id is None else user_id


def parse_limit(raw: str | None) -> int:
    """Reads a leading integer; missing, non numeric or zero limits fall back to the default."""
    if raw is None:
        return DEFAULT_SEARCH_LIMIT
    return _leading_int(raw) or DEFAULT_SEARCH_LIMIT


@routes.get("/")
async def index(request: web.Request) -> web.Response:
    return web.json_response({
        "message": "Roblox Player API Server",
        "endpoints": ENDPOINTS,
    })


@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    now = datetime.datetime.now(datetime.timezone.utc)
    timestamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return web.json_response({"status": "OK", "timestamp": timestamp})


@routes.post("/api/players/batch")
async def players_batch(request: web.Request) -> web.Response:
    body = await request.json()
    user_ids = body.get("userIds") if isinstance(body, dict) else None
    logger.debug(f"Batch lookup requested for {user_ids}")
    return web.json_response(await fetch_multiple_profiles(user_ids))


@routes.get("/api/players/search/{username}")
async def players_search(request: web.Request) -> web.Response:
    username = request.match_info["username"]
    limit = parse_limit(request.query.get("limit"))
    return web.json_response(await search_profiles(username, limit))


@routes.get("/api/players/{user_id}")
async def player_info(request: web.Request) -> web.Response:
    user_id = parse_user_id(request.match_info["user_id"])
    return web.json_response(await fetch_profile(user_id))
