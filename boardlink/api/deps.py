from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from boardlink.lichess.services.lichess import get_session
from boardlink.lichess.services.session import LichessSession

SessionDep = Annotated[LichessSession, Depends(get_session)]
