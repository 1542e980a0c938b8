from pizzeria.model.user import User
from pizzeria.model.menu import Category, MenuItem, ChoiceGroup, ChoiceItem, MenuItemChoiceGroup
from pizzeria.model.order import Order, OrderItem, OrderStatusLog
from pizzeria.model.loyalty import LoyaltyProgram, UserPoints, PointsTransaction, Reward, UserVoucher
from pizzeria.model.settings import RestaurantSettings, SystemSetting, StoreHours
from pizzeria.model.faq import Faq
from pizzeria.model.advent import AdventCalendarEntry, AdventClaim
from pizzeria.model.notification import Notification, EmailLog
from pizzeria.model.revoked_token import RevokedToken
from pizzeria.model.promo import PromoCode
from pizzeria.model.delivery import DeliveryZone, DeliverySettings

__all__ = [
    "User",
    "Category",
    "MenuItem",
    "ChoiceGroup",
    "ChoiceItem",
    "MenuItemChoiceGroup",
    "Order",
    "OrderItem",
    "OrderStatusLog",
    "LoyaltyProgram",
    "UserPoints",
    "PointsTransaction",
    "Reward",
    "UserVoucher",
    "RestaurantSettings",
    "SystemSetting",
    "StoreHours",
    "Faq",
    "AdventCalendarEntry",
    "AdventClaim",
    "Notification",
    "EmailLog",
    "RevokedToken",
    "PromoCode",
    "DeliveryZone",
    "DeliverySettings",
]
