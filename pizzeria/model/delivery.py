from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from pizzeria.database import Base


class DeliveryZone(Base):
    __tablename__ = "delivery_zones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    max_radius = Column(Numeric(6, 2), nullable=False)  # miles from the restaurant
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class DeliverySettings(Base):
    __tablename__ = "delivery_settings"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_address = Column(String(255), nullable=True)
    restaurant_lat = Column(Numeric(9, 6), nullable=True)
    restaurant_lng = Column(Numeric(9, 6), nullable=True)
    max_delivery_radius = Column(Numeric(6, 2), nullable=False, default=10)
    distance_unit = Column(String(10), nullable=False, default="miles")
    fallback_delivery_fee = Column(Numeric(10, 2), nullable=False, default=5.00)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
