"""
ActiveTask model: one in-flight timed activity.

The unique constraint on `(player_id, task_type)` is what makes "one craft,
one gather, one adventure" hold under concurrent starts. Rows are inserted by
a start and deleted by a claim; nothing else mutates them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from guildhall.core.database.base import Base, IdMixin


class ActiveTask(Base, IdMixin):
    """
    `target_id` holds the recipe id (crafting) or template id (adventure).
    `category` holds the gathering category. `payload` holds the adventure
    payload; crafting and gathering carry none. Times are epoch milliseconds.
    """

    __tablename__ = "active_tasks"
    __table_args__ = (
        UniqueConstraint("player_id", "task_type", name="uq_active_tasks_player_type"),
    )

    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_type: Mapped[str] = mapped_column(String(16), nullable=False)
    target_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    payload: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
