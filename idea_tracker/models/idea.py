"""Idea model — a business idea owned by exactly one user."""

import json
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from idea_tracker.database import Base


class Idea(Base):
    __tablename__ = "idea_details"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("security.id"), index=True, nullable=False
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # ── JSON list of tags (stored as Text for SQLite compat) ──
    marketing_strategy_json: Mapped[str] = mapped_column(Text, default="[]")

    target_customer: Mapped[Optional[str]] = mapped_column(String(300))
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    timeline: Mapped[Optional[str]] = mapped_column(String(200))
    potential: Mapped[Optional[int]] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relationships ──
    owner: Mapped["User"] = relationship("User", back_populates="ideas")  # noqa: F821
    collaborations: Mapped[List["Collaboration"]] = relationship(  # noqa: F821
        "Collaboration",
        back_populates="idea",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("user_id")
    def _owner_is_immutable(self, key, value):
        if self.user_id is not None and value != self.user_id:
            raise ValueError("The owner of an idea cannot be changed")
        return value

    # ── JSON helper ──
    @property
    def marketing_strategy(self) -> List[str]:
        try:
            return json.loads(self.marketing_strategy_json or "[]")
        except (json.JSONDecodeError, TypeError):
            return []

    @marketing_strategy.setter
    def marketing_strategy(self, tags) -> None:
        self.marketing_strategy_json = json.dumps(sorted(set(tags or [])))
