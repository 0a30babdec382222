import asyncio
import os
from typing import Any, Iterable, Optional, Union

import aiohttp

from app.logger import logger
from app.roblox_tracker.http_session import UpstreamError, get_json
from app.roblox_tracker.structures import (
    EnvelopeError, PlayerProfile, PlayersEnvelope, ProfileEnvelope, ThumbnailResponse, UserData
)

USERS_URL = os.getenv("USERS_URL", "https://users.roblox.com/v1/users")
THUMBNAILS_URL = os.getenv("THUMBNAILS_URL", "https://thumbnails.roblox.com/v1/users/avatar-headshot")
PROFILE_URL_TEMPLATE = "https://www.roblox.com/users/{user_id}/profile"

THUMBNAIL_SIZE = "150x150"
THUMBNAIL_FORMAT = "png"
DEFAULT_SEARCH_LIMIT = 10

# Path segments that are not numeric are forwarded as-is and rejected upstream.
UserId = Union[int, str]


def _failure(error: BaseException) -> EnvelopeError:
    return {"success": False, "error": str(error) or error.__class__.__name__}


async def fetch_user_data(user_id: UserId) -> UserData:
    return await get_json(f"{USERS_URL}/{user_id}", "Failed to fetch user data")


async def fetch_thumbnail(user_id: UserId) -> ThumbnailResponse:
    params = {
        "userIds": str(user_id),
        "size": THUMBNAIL_SIZE,
        "format": THUMBNAIL_FORMAT,
        "isCircular": "false",
    }
    return await get_json(THUMBNAILS_URL, "Failed to fetch thumbnail", params=params)


def extract_thumbnail_url(thumbnail_data: Any, user_id: UserId) -> Optional[str]:
    """
    Picks the image url for ``user_id`` out of a thumbnail batch response.
    Returns None when the response has no usable entry (moderated or pending avatars
    come back without an imageUrl).
    """
    if not isinstance(thumbnail_data, dict):
        return None
    entries = thumbnail_data.get("data")
    if not isinstance(entries, list) or not entries:
        return None

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        # entries without targetId are assumed to belong to the single requested id
        if "targetId" in entry and str(entry.get("targetId")) != str(user_id):
            continue
        return entry.get("imageUrl") or None
    return None


def build_profile(user_id: UserId, user_data: UserData, thumbnail_data: Any) -> PlayerProfile:
    return PlayerProfile(
        userId=user_data.get("id"),
        username=user_data.get("name"),
        displayName=user_data.get("displayName"),
        description=user_data.get("description"),
        created=user_data.get("created"),
        isBanned=user_data.get("isBanned"),
        profileUrl=PROFILE_URL_TEMPLATE.format(user_id=user_id),
        thumbnail=extract_thumbnail_url(thumbnail_data, user_id)
    )


async def fetch_profile(user_id: UserId) -> ProfileEnvelope:
    """
    Fetches account data and avatar thumbnail for one player.
    Both requests are in flight at the same time; if either of them fails the whole
    lookup fails and no partial profile is returned.
    """
    try:
        user_data, thumbnail_data = await asyncio.gather(
            fetch_user_data(user_id),
            fetch_thumbnail(user_id)
        )
        if not isinstance(user_data, dict):
            raise ValueError(f"Unexpected user data payload for {user_id}")
        return {"success": True, "data": build_profile(user_id, user_data, thumbnail_data)}

    except UpstreamError as e:
        logger.warning(f"Profile lookup for {user_id} failed with upstream status {e.status}: {e}")
        return _failure(e)
    except aiohttp.ClientError as e:
        logger.error(f"HTTP error in fetch_profile for {user_id}: {e}", exc_info=True)
        return _failure(e)
    except asyncio.TimeoutError as e:
        logger.warning(f"Timeout error in fetch_profile for {user_id}")
        return _failure(e)
    except Exception as e:
        logger.error(f"Unexpected error in fetch_profile for {user_id}: {e}", exc_info=True)
        return _failure(e)


async def fetch_multiple_profiles(user_ids: Iterable[UserId]) -> PlayersEnvelope:
    """
    Looks up every id concurrently and returns the profiles in input order.

    A player whose lookup failed is reported as ``None`` and the batch itself still
    succeeds, unlike ``fetch_profile`` which reports the failure. Callers rely on this
    shape, so the per-item error is only logged.
    """
    try:
        if isinstance(user_ids, (str, bytes, dict)):
            raise TypeError(f"user ids must be a list, got {type(user_ids).__name__}")
        lookups = [fetch_profile(user_id) for user_id in user_ids]
        logger.debug(f"Fetching {len(lookups)} profiles")
        results = await asyncio.gather(*lookups)
    except Exception as e:
        logger.error(f"Batch profile lookup failed: {e}", exc_info=True)
        return _failure(e)

    players = [result.get("data") if result["success"] else None for result in results]
    failed = sum(1 for player in players if player is None)
    if failed:
        logger.info(f"Batch lookup: {failed}/{len(players)} profiles could not be fetched")
    return {"success": True, "players": players}


async def search_profiles(username: str, limit: int = DEFAULT_SEARCH_LIMIT) -> PlayersEnvelope:
    params = {"keyword": username, "limit": limit}
    try:
        data = await get_json(f"{USERS_URL}/search", "Search failed", params=params)
        players = data.get("data") if isinstance(data, dict) else None
        return {"success": True, "players": players}

    except UpstreamError as e:
        logger.warning(f"Search for {username!r} (limit {limit}) failed with upstream status {e.status}: {e}")
        return _failure(e)
    except aiohttp.ClientError as e:
        logger.error(f"HTTP error in search_profiles: {e}", exc_info=True)
        return _failure(e)
    except asyncio.TimeoutError as e:
        logger.warning(f"Timeout error in search_profiles for {username!r}")
        return _failure(e)
    except Exception as e:
        logger.error(f"Unexpected error in search_profiles: {e}", exc_info=True)
        return _failure(e)
