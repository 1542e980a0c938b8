import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from pizzeria.crud import delivery_crud, points_crud, voucher_crud
from pizzeria.crud.base import CRUDBase
from pizzeria.crud.menu_crud import choice_item_crud, menu_item_choice_group_crud, menu_item_crud
from pizzeria.crud.promo_crud import promo_crud
from pizzeria.crud.settings_crud import get_restaurant_settings, ordering_closed_message
from pizzeria.crud.user_crud import user_crud
from pizzeria.model.order import Order, OrderItem, OrderStatusLog
from pizzeria.schemas import FulfillmentTime, OrderStatus, OrderType, PaymentStatus
from pizzeria.schemas.order_schema import OrderCreate, OrderStatusUpdate
from pizzeria.utils import pricing
from pizzeria.utils.auth.jwt_bearer import is_staff
from pizzeria.utils.config import settings
from pizzeria.utils.helper import money, parse_datetime, restaurant_now, to_utc, utcnow
from pizzeria.utils.order_workflow import ACTIVE_STATUSES, validate_transition

logger = logging.getLogger(__name__)


def _log_order_status(db: Session, order_id: int, from_status: Optional[OrderStatus], to_status: OrderStatus,
                      changed_by: Optional[int], reason: Optional[str] = None):
    # Helper: add a status log to the current transaction; caller should commit
    db.add(OrderStatusLog(
        order_id=order_id,
        from_status=from_status,
        to_status=to_status,
        changed_by=changed_by,
        reason=reason,
    ))


class CRUDOrder(CRUDBase[Order, OrderCreate, OrderStatusUpdate]):
    def _query(self, db: Session):
        return db.query(Order).options(selectinload(Order.items))

    # ---------------- CREATE ----------------
    @staticmethod
    def _owner(db: Session, order_in: OrderCreate, current_user: Optional[dict]) -> Optional[int]:
        """Account the order belongs to. Staff orders are counter orders owned by the named customer or nobody."""
        actor_id = current_user.get("user_id") if current_user else None
        if not is_staff(current_user):
            if order_in.customer_id is not None and order_in.customer_id != actor_id:
                raise HTTPException(status_code=403, detail="Only staff can place an order for another customer")
            return actor_id
        if order_in.customer_id is None:
            return None
        customer = user_crud.get_active(db, order_in.customer_id)
        if customer is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer.id

    @staticmethod
    def _delivery_fee(db: Session, order_in: OrderCreate, restaurant) -> Decimal:
        if order_in.order_type != OrderType.DELIVERY:
            return Decimal("0.00")
        located = order_in.delivery_latitude is not None and order_in.delivery_longitude is not None
        if not located or not delivery_crud.store_location_known(delivery_crud.get_settings(db)):
            return money(restaurant.delivery_fee)
        quote = delivery_crud.quote(db, order_in.delivery_latitude, order_in.delivery_longitude)
        if not quote["can_deliver"]:
            raise HTTPException(status_code=400, detail=quote["message"])
        return quote["delivery_fee"]

    def create_order(self, db: Session, order_in: OrderCreate, current_user: Optional[dict]) -> Order:
        actor_id = current_user.get("user_id") if current_user else None

        if order_in.payment_status != PaymentStatus.PENDING and not is_staff(current_user):
            raise HTTPException(status_code=403, detail="Only staff can record a payment when creating an order")
        user_id = self._owner(db, order_in, current_user)
        if not is_staff(current_user):
            closed = ordering_closed_message(db, restaurant_now().date())
            if closed:
                raise HTTPException(status_code=503, detail=closed)
        if order_in.order_type == OrderType.DELIVERY and not (order_in.address and order_in.address.strip()):
            raise HTTPException(status_code=400, detail="Delivery address is required for delivery orders")

        scheduled_at = None
        if order_in.fulfillment_time == FulfillmentTime.SCHEDULED:
            if not order_in.scheduled_time:
                raise HTTPException(status_code=400, detail="scheduledTime is required for scheduled orders")
            try:
                scheduled_at = parse_datetime(order_in.scheduled_time)
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid scheduled time")
            if scheduled_at <= utcnow():
                raise HTTPException(status_code=400, detail="Scheduled time must be in the future")

        restaurant = get_restaurant_settings(db)
        if order_in.order_type == OrderType.DELIVERY and not restaurant.delivery_enabled:
            raise HTTPException(status_code=400, detail="Delivery is currently unavailable")
        if order_in.order_type == OrderType.PICKUP and not restaurant.pickup_enabled:
            raise HTTPException(status_code=400, detail="Pickup is currently unavailable")

        # ---- price every line from the menu ----
        menu_items = menu_item_crud.get_orderable(db, (i.menu_item_id for i in order_in.items))
        linked = menu_item_choice_group_crud.linked_groups(db, menu_items)
        choice_ids = [cid for i in order_in.items for cid in pricing.choice_item_ids(i.options)]
        choice_items = choice_item_crud.get_orderable(db, choice_ids)

        lines: List[Tuple[OrderItem, Decimal]] = []
        for item in order_in.items:
            menu_item = menu_items.get(item.menu_item_id)
            if menu_item is None:
                raise HTTPException(status_code=400, detail=f"Menu item {item.menu_item_id} is not available")
            selected = pricing.choice_item_ids(item.options)
            missing = [cid for cid in selected if cid not in choice_items]
            if missing:
                raise HTTPException(status_code=400, detail=f"Choice items {missing} are not available")
            foreign = [cid for cid in selected if choice_items[cid].choice_group_id not in linked[menu_item.id]]
            if foreign:
                raise HTTPException(status_code=400,
                                    detail=f"Choice items {foreign} are not offered for menu item {menu_item.id}")
            price = pricing.unit_price(menu_item, item.options, item.price, choice_items)
            lines.append((
                OrderItem(
                    menu_item_id=menu_item.id,
                    name=menu_item.name,
                    quantity=item.quantity,
                    price=price,
                    options=item.options,
                    special_instructions=item.special_instructions,
                ),
                price,
            ))
        items_subtotal = pricing.subtotal((price, line.quantity) for line, price in lines)

        delivery_fee = self._delivery_fee(db, order_in, restaurant)

        # ---- voucher ----
        voucher = None
        discount, delivery_discount = Decimal("0.00"), Decimal("0.00")
        if order_in.voucher_code:
            if current_user is None:
                raise HTTPException(status_code=401, detail="Sign in to use a voucher")
            if user_id is None:
                raise HTTPException(status_code=400, detail="Counter orders need a customerId to use a voucher")
            voucher = voucher_crud.find_valid(db, user_id, order_in.voucher_code, lock=True)
            if voucher is None:
                raise HTTPException(status_code=400, detail="Voucher not found, expired, or already used")
            if items_subtotal < money(voucher.min_order_amount):
                raise HTTPException(
                    status_code=400,
                    detail=f"Voucher requires a minimum order of ${money(voucher.min_order_amount)}",
                )
            discount, delivery_discount = voucher_crud.compute_discount(voucher, items_subtotal, delivery_fee)

        # ---- promo code ----
        promo = None
        if order_in.promo_code:
            if voucher is not None:
                raise HTTPException(status_code=400, detail="Promo codes cannot be combined with vouchers")
            promo = promo_crud.find_valid(db, order_in.promo_code, lock=True)
            promo_crud.check_minimum(promo, items_subtotal)
            discount = promo_crud.compute_discount(promo, items_subtotal)

        totals = pricing.compute_totals(
            items_subtotal, discount, delivery_fee, delivery_discount,
            money(order_in.tip), Decimal(settings.TAX_RATE),
        )
        if order_in.total is not None and money(order_in.total) != totals["total"]:
            logger.info("Client total %s differs from server total %s", order_in.total, totals["total"])

        order = Order(
            user_id=user_id,
            status=OrderStatus.PENDING,
            payment_status=order_in.payment_status,
            order_type=order_in.order_type.value,
            fulfillment_time=order_in.fulfillment_time.value,
            scheduled_time=scheduled_at,
            phone=order_in.phone,
            customer_name=order_in.customer_name,
            address=order_in.address,
            special_instructions=order_in.special_instructions,
            voucher_code=voucher.voucher_code if voucher else None,
            promo_code=promo.code if promo else None,
            payment_intent_id=order_in.payment_intent_id,
            **totals,
        )
        order.items = [line for line, _ in lines]

        # ---- one transaction: order, items, voucher or promo use, status log, points ----
        try:
            db.add(order)
            db.flush()
            _log_order_status(db, order.id, None, OrderStatus.PENDING, actor_id, "Order placed")
            if voucher:
                voucher_crud.mark_used(voucher, order.id)
            if promo:
                promo_crud.record_use(promo)
            if order.payment_status == PaymentStatus.PAID:
                points_crud.award_order_points(db, order)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        logger.info("Created order %s (user=%s, placed by=%s, total=%s)", order.id, user_id, actor_id, order.total)
        return order

    # ---------------- READ ----------------
    def list_for(self, db: Session, current_user: dict, status: Optional[OrderStatus] = None,
                 skip: int = 0, limit: int = 50) -> List[Order]:
        query = self._query(db)
        if not is_staff(current_user):
            query = query.filter(Order.user_id == current_user["user_id"])
        if status is not None:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit).all()

    def get_for(self, db: Session, order_id: int, current_user: dict) -> Order:
        order = self._query(db).filter(Order.id == order_id).first()
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        if not is_staff(current_user) and order.user_id != current_user.get("user_id"):
            # do not reveal other customers' orders
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def kitchen_orders(self, db: Session, include_picked_up: bool = False) -> List[Order]:
        query = self._query(db)
        if include_picked_up:
            # picked up since local midnight
            since = to_utc(restaurant_now().replace(hour=0, minute=0, second=0, microsecond=0))
            query = query.filter(
                (Order.status.in_(ACTIVE_STATUSES))
                | ((Order.status == OrderStatus.PICKED_UP) & (Order.updated_at >= since))
            )
        else:
            query = query.filter(Order.status.in_(ACTIVE_STATUSES))
        return query.order_by(Order.created_at.asc(), Order.id.asc()).all()

    def status_logs(self, db: Session, order_id: int) -> List[OrderStatusLog]:
        self.get(db, order_id)
        return (
            db.query(OrderStatusLog)
            .filter(OrderStatusLog.order_id == order_id)
            .order_by(OrderStatusLog.id)
            .all()
        )

    # ---------------- STATUS ----------------
    def change_status(self, db: Session, order_id: int, target: OrderStatus, current_user: dict,
                      reason: Optional[str] = None) -> Tuple[Order, OrderStatus]:
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        previous = order.status
        validate_transition(previous, target, current_user.get("role"))

        try:
            order.status = target
            if target == OrderStatus.COMPLETED:
                order.completed_at = utcnow()
            elif previous == OrderStatus.COMPLETED and target == OrderStatus.COOKING:
                order.completed_at = None
            _log_order_status(db, order.id, previous, target, current_user.get("user_id"), reason)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        logger.info("Order %s status %s -> %s by user %s", order.id, previous.value, target.value,
                    current_user.get("user_id"))
        return order, previous

    def set_payment_status(self, db: Session, order_id: int, payment_status: PaymentStatus,
                           payment_intent_id: Optional[str] = None) -> Tuple[Order, int]:
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        if order.payment_status == PaymentStatus.REFUNDED and payment_status != PaymentStatus.REFUNDED:
            raise HTTPException(status_code=409, detail="Refunded orders cannot change payment status")

        awarded = 0
        try:
            order.payment_status = payment_status
            if payment_intent_id:
                order.payment_intent_id = payment_intent_id
            if payment_status == PaymentStatus.PAID:
                awarded = points_crud.award_order_points(db, order)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        return order, awarded


order_crud = CRUDOrder(Order)
