from typing import Any, Optional, TypedDict, Union


class UserData(TypedDict, total=False):
    """
    Account payload returned by the users endpoint for a single id.
    """
    id: int
    name: str
    displayName: str
    description: Optional[str]
    created: str  # ISO8601
    isBanned: bool
    hasVerifiedBadge: bool
    externalAppDisplayName: Optional[str]


class ThumbnailEntry(TypedDict, total=False):
    targetId: int
    state: str  # Completed, Blocked, Pending, ...
    imageUrl: Optional[str]
    version: str


class ThumbnailResponse(TypedDict, total=False):
    data: list[ThumbnailEntry]


class PlayerProfile(TypedDict):
    userId: int
    username: str
    displayName: str
    description: Optional[str]
    created: str  # ISO8601
    isBanned: bool
    profileUrl: str
    thumbnail: Optional[str]


# Search entries are forwarded as the upstream sends them.
SearchResult = dict[str, Any]


class ProfileSuccess(TypedDict):
    success: bool
    data: PlayerProfile


class PlayersSuccess(TypedDict):
    success: bool
    players: list[Any]


class EnvelopeError(TypedDict):
    success: bool
    error: str


ProfileEnvelope = Union[ProfileSuccess, EnvelopeError]
PlayersEnvelope = Union[PlayersSuccess, EnvelopeError]
