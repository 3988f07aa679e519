"""
Constants shared across the matchreel services.
"""

# Worksheet names in the spreadsheet
PLAYERS_SHEET = "players"
VIDEOS_SHEET = "videos"
PLAYER_VIDEOS_SHEET = "player_videos"

# Video files are accepted by extension only
ALLOWED_VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv")
DEFAULT_VIDEO_CONTENT_TYPE = "video/mp4"

PLAYER_NAME_MAX_LENGTH = 50

# Sentinel written into player_videos.player_id to retire an association
REMOVED_REFERENCE_ID = 0

BYTES_PER_MB = 1024 * 1024
