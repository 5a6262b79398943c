"""ORM models."""

from models.base import Base
from models.challenge import Challenge, ChallengeEvent
from models.membership import RankingMembership
from models.ranking import Ranking
from models.round import Round
from models.snapshot import RankingSnapshot, RoundLog
from models.user import User

__all__ = [
    "Base",
    "Challenge",
    "ChallengeEvent",
    "Ranking",
    "RankingMembership",
    "RankingSnapshot",
    "Round",
    "RoundLog",
    "User",
]
