"""Lichess API paths read or posted with the raw transport.

Other calls go through the ``berserk.Client`` on the same session.
"""

STREAM_EVENT_PATH = "/api/stream/event"
STREAM_BOARD_PATH = "/api/board/game/stream/{game_id}"
SEEK_PATH = "/api/board/seek"
