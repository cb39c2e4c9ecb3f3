"""Session handles: the live room connection and its offline stand-in."""

from roombot.session.handle import RoomHandleBase, SessionHandle
from roombot.session.models import BallPosition, PlayerRecord, Scores, Team

__all__ = [
    "BallPosition",
    "PlayerRecord",
    "RoomHandleBase",
    "Scores",
    "SessionHandle",
    "Team",
]
