"""Car listing models."""

from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from . import Base


class Car(Base):
    """Car listing, consumed as a conversation scope and for its title."""

    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    brand = Column(String(100), nullable=True)
    added_by_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    photos = relationship(
        "CarPhoto", back_populates="car", order_by="CarPhoto.id", passive_deletes=True
    )

    def __repr__(self):
        return f"<Car(id={self.id}, title='{self.title}')>"


class CarPhoto(Base):
    __tablename__ = "car_photos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False)
    photo_url = Column(String(255), nullable=False)

    car = relationship("Car", back_populates="photos")

    __table_args__ = (Index("ix_car_photos_car_id", "car_id"),)

    def __repr__(self):
        return f"<CarPhoto(id={self.id}, car_id={self.car_id})>"
