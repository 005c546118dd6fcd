"""
Guild models.

`guild_class` runs from 12 (new) to 1 (highest prestige). A player belongs to
at most one guild, enforced by the unique `player_id` on memberships.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from guildhall.core.database.base import Base, IdMixin, TimestampMixin


class Guild(Base, IdMixin, TimestampMixin):
    __tablename__ = "guilds"
    __table_args__ = (
        CheckConstraint("guild_class >= 1 AND guild_class <= 12", name="guild_class_range"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    guild_class: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    leader_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )


class GuildMember(Base):
    __tablename__ = "guild_members"

    guild_id: Mapped[int] = mapped_column(
        ForeignKey("guilds.id", ondelete="CASCADE"), primary_key=True
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), primary_key=True, unique=True
    )
