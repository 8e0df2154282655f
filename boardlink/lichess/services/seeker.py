from __future__ import annotations

import logging

import requests

from boardlink.lichess.endpoints import SEEK_PATH
from boardlink.lichess.schemas.api import SeekRequest
from boardlink.lichess.services.transport import LichessTransport

logger = logging.getLogger(__name__)


class SeekHandle:
    """Open seek connection; Lichess keeps a real-time seek alive while it is open."""

    def __init__(self, response: requests.Response) -> None:
        self._response = response
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._response.close()
        logger.debug("Seek connection closed")


def seek_game(transport: LichessTransport, payload: SeekRequest) -> SeekHandle:
    """Post a seek; returns once Lichess has accepted it for matching.

    The resulting game is not part of the response. It arrives later as a
    gameStart event on the account event stream.
    """
    form = payload.to_form()
    logger.info(
        "Posting seek time=%s increment=%s rated=%s variant=%s color=%s rating_range=%s",
        form["time"],
        form["increment"],
        form["rated"],
        form["variant"],
        form["color"],
        form.get("ratingRange"),
    )
    response = transport.post(SEEK_PATH, data=form, stream=True)
    return SeekHandle(response)
