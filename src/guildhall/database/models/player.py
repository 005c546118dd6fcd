"""
Player models: the progression aggregate and its skill tracks.

Schema-only. Rows are created lazily by `PlayerService` the first time an
identity is seen; all defaults below are the starting state of a new player.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from guildhall.core.database.base import Base, IdMixin, TimestampMixin
from guildhall.database.models.enums import Tier


class Player(Base, IdMixin, TimestampMixin):
    """
    One player per external identity.

    `last_adventure_claim` is epoch milliseconds; 0 means never.
    """

    __tablename__ = "players"
    __table_args__ = (
        CheckConstraint("gold >= 0", name="gold_non_negative"),
        CheckConstraint("rank_level >= 1 AND rank_level <= 100", name="rank_level_range"),
    )

    user_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    gold: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    rank_letter: Mapped[str] = mapped_column(String(1), nullable=False, default=Tier.F.value)
    rank_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    adventure_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_adventures: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_adventure_claim: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class PlayerSkill(Base):
    __tablename__ = "player_skills"
    __table_args__ = (
        CheckConstraint("level >= 1", name="level_positive"),
        CheckConstraint("xp >= 0", name="xp_non_negative"),
    )

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), primary_key=True
    )
    skill_type: Mapped[str] = mapped_column(String(16), primary_key=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
