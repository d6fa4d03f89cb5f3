"""VidTube: video-sharing platform backend.

Users upload videos, comment, like, subscribe to channels, curate
playlists and post tweets. Authentication uses short-lived access
tokens and rotating refresh tokens carried in cookies or Bearer headers.
"""

__version__ = "0.1.0"
