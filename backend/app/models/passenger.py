"""
Passenger record, owned by the account that registered it.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

GENDERS = ("Male", "Female", "Other")


class Passenger(Base, TimestampMixin):
    __tablename__ = "passengers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(10), nullable=False)
    contact = Column(String(100), nullable=False)
    address = Column(String(500), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    owner = relationship("User", back_populates="passengers")
    tickets = relationship("Ticket", back_populates="passenger", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("age >= 1", name="check_passenger_age_positive"),
        CheckConstraint("gender IN ('Male', 'Female', 'Other')", name="check_passenger_gender"),
    )

    def __repr__(self) -> str:
        return f"<Passenger(id={self.id}, name={self.name}, owner={self.owner_id})>"
