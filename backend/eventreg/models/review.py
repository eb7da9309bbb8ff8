"""
Review model. Creation is gated on the reservation ledger (see review_service).
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String

from eventreg.db.base import Base, TimestampMixin


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(String(2000), nullable=False)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_review_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, event={self.event_id}, user={self.user_email}, rating={self.rating})>"
