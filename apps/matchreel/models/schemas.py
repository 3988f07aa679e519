"""
Pydantic models for records, API requests and action results.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class VideoType(str, Enum):
    """Tournament stage of a video. Values are the labels stored in the sheet."""

    QUALIFYING = "予選"
    TOP16 = "TOP16"
    TOP8 = "TOP8"
    TOP4 = "TOP4"
    THIRD_PLACE = "3位決定戦"
    FINAL = "決勝戦"

    @classmethod
    def labels(cls) -> List[str]:
        return [member.value for member in cls]


# ---------------------------------------------------------------------------
# Records (one row each)
# ---------------------------------------------------------------------------


class Player(BaseModel):
    """A player on the roster. Sheet columns: id, name."""

    id: int
    name: str

    def is_valid(self) -> bool:
        return self.id > 0 and bool(self.name)


class Video(BaseModel):
    """A stored video. ``name`` is the file name and the object key."""

    id: int
    name: str
    type: str

    def is_valid(self) -> bool:
        return self.id > 0 and bool(self.name) and bool(self.type)


class PlayerVideo(BaseModel):
    """Association between a player and a video."""

    id: int
    player_id: int
    video_id: int

    def is_valid(self) -> bool:
        return self.id > 0 and self.player_id > 0 and self.video_id > 0


class CreatePlayerData(BaseModel):
    name: str


class UpdatePlayerData(BaseModel):
    id: int
    name: str


class CreateVideoData(BaseModel):
    name: str
    type: str


class UpdateVideoData(BaseModel):
    id: int
    name: str
    type: str


class CreatePlayerVideoData(BaseModel):
    player_id: int
    video_id: int


class UpdatePlayerVideoData(BaseModel):
    id: int
    player_id: int
    video_id: int


# ---------------------------------------------------------------------------
# Read-side views (computed, never stored)
# ---------------------------------------------------------------------------


class PlayerVideoWithDetails(PlayerVideo):
    """Association joined with the player's name and the video's details."""

    player_name: str
    video_name: str
    video_type: str


class VideoWithPlayers(Video):
    """Video joined with every player associated to it."""

    players: List[Player] = Field(default_factory=list)


class PlayerDetailResponse(BaseModel):
    """Public player page: the player and the videos they appear in."""

    player: Player
    videos: List[PlayerVideoWithDetails]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    cache_available: bool


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PlayerNameRequest(BaseModel):
    """Create or rename a player."""

    name: Optional[str] = None


class DownloadRequest(BaseModel):
    video_name: Optional[str] = None


class UploadUrlRequest(BaseModel):
    """Ask for a presigned PUT URL for one file."""

    file_name: Optional[str] = None
    content_type: Optional[str] = None
    file_size: int = 0


class ConfirmUploadRequest(BaseModel):
    """Tell the server a presigned upload finished and record the video."""

    video_name: Optional[str] = None
    type: Optional[str] = None
    player_ids: List[int] = Field(default_factory=list)


class BulkUploadUrlsRequest(BaseModel):
    files: List[UploadUrlRequest] = Field(default_factory=list)


class BulkConfirmRequest(BaseModel):
    video_names: List[str] = Field(default_factory=list)
    type: Optional[str] = None


# ---------------------------------------------------------------------------
# Action results: {success, error?} plus an optional payload
# ---------------------------------------------------------------------------


class ActionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    # HTTP status the route should answer with; not part of the body
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def failure(cls, error: str, status_code: int = 400, **payload) -> "ActionResult":
        return cls(success=False, error=error, status_code=status_code, **payload)


class PlayerActionResult(ActionResult):
    player: Optional[Player] = None


class VideoActionResult(ActionResult):
    video: Optional[Video] = None


class DownloadResult(ActionResult):
    download_url: Optional[str] = None


class UploadUrlResult(ActionResult):
    upload_url: Optional[str] = None
    video_name: Optional[str] = None


class BulkUploadItem(BaseModel):
    file_name: str
    upload_url: str


class BulkUploadUrlsResult(ActionResult):
    upload_items: List[BulkUploadItem] = Field(default_factory=list)


class BulkConfirmResult(ActionResult):
    videos: List[Video] = Field(default_factory=list)
