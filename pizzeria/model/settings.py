from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from pizzeria.database import Base


class RestaurantSettings(Base):
    __tablename__ = "restaurant_settings"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_name = Column(String(150), nullable=False, default="Favilla's NY Pizza")
    address = Column(String(255), nullable=False, default="123 Main Street, New York, NY 10001")
    phone = Column(String(30), nullable=False, default="(555) 123-4567")
    email = Column(String(255), nullable=False, default="info@favillas.com")
    website = Column(String(255), nullable=False, default="https://favillas.com")
    currency = Column(String(10), nullable=False, default="USD")
    timezone = Column(String(64), nullable=False, default="America/New_York")
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=3.99)
    minimum_order = Column(Numeric(10, 2), nullable=False, default=15.00)
    auto_accept_orders = Column(Boolean, nullable=False, default=True)
    send_order_notifications = Column(Boolean, nullable=False, default=True)
    send_customer_notifications = Column(Boolean, nullable=False, default=True)
    out_of_stock_enabled = Column(Boolean, nullable=False, default=False)
    delivery_enabled = Column(Boolean, nullable=False, default=True)
    pickup_enabled = Column(Boolean, nullable=False, default=True)
    order_scheduling_enabled = Column(Boolean, nullable=False, default=False)
    max_advance_order_hours = Column(Integer, nullable=False, default=24)
    service_fee_percentage = Column(Numeric(5, 2), nullable=False, default=3.50)
    service_fee_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, index=True)
    setting_key = Column(String(100), unique=True, nullable=False, index=True)
    setting_value = Column(Text, nullable=True)
    setting_type = Column(String(20), nullable=False, default="text")
    category = Column(String(50), nullable=False, default="general", index=True)
    description = Column(Text, nullable=True)
    is_sensitive = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class StoreHours(Base):
    __tablename__ = "store_hours"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, unique=True, nullable=False)  # 0 = Sunday
    day_name = Column(String(20), nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)
    open_time = Column(String(5), nullable=True)  # "HH:MM"
    close_time = Column(String(5), nullable=True)
    is_break_time = Column(Boolean, nullable=False, default=False)
    break_start_time = Column(String(5), nullable=True)
    break_end_time = Column(String(5), nullable=True)
