"""Cart-to-order conversion.

``place_order`` is the only multi-row write in the system. The cart
snapshot, the order row, its line items and the cart cleanup commit
together or not at all.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, NamedTuple, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas, storage
from .auth import CustomerPrincipal
from .errors import EmptyCartError, NotFoundOrNotOwned, OrderFailed

logger = logging.getLogger(__name__)


class SnapshotLine(NamedTuple):
    product_id: int
    qty: int
    price: Decimal


# Business rule: amount stored rounded to 2 decimals

def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def snapshot_cart(db: Session, user_id: int) -> List[SnapshotLine]:
    stmt = (
        select(models.CartItem.product_id, models.CartItem.qty, models.Product.price)
        .join(models.Product, models.Product.id == models.CartItem.product_id)
        .where(models.CartItem.user_id == user_id)
        .order_by(models.CartItem.product_id)
        .with_for_update()
    )
    return [SnapshotLine(pid, qty, Decimal(price)) for pid, qty, price in db.execute(stmt).all()]


def compute_total(lines: List[SnapshotLine]) -> Decimal:
    return round_amount(sum((Decimal(line.qty) * line.price for line in lines), Decimal("0")))


def _add_line(db: Session, order: models.Order, line: SnapshotLine) -> models.OrderItem:
    item = models.OrderItem(order_id=order.id, product_id=line.product_id, qty=line.qty, price_each=line.price)
    db.add(item)
    db.flush()
    return item


def place_order(
    db: Session,
    customer: CustomerPrincipal,
    data: schemas.CheckoutIn,
    proof: Optional[tuple[str, bytes]] = None,
) -> models.Order:
    blob_ref = None
    try:
        lines = snapshot_cart(db, customer.id)
        if not lines:
            db.rollback()
            raise EmptyCartError()

        total = compute_total(lines)
        if proof is not None:
            blob_ref = storage.save_blob(*proof)

        order = models.Order(
            user_id=customer.id,
            customer_name=data.customer_name,
            phone=data.phone,
            email=data.email,
            address=data.address,
            total_amount=total,
            status=schemas.OrderStatus.PROCESSING.value,
            payment_screenshot=blob_ref,
        )
        db.add(order)
        db.flush()

        for line in lines:
            _add_line(db, order, line)

        # only the rows that were snapshotted are cleared
        for line in lines:
            db.execute(
                delete(models.CartItem).where(
                    models.CartItem.user_id == customer.id,
                    models.CartItem.product_id == line.product_id,
                )
            )
        db.commit()
    except (SQLAlchemyError, OSError) as e:
        db.rollback()
        storage.discard_blob(blob_ref)
        logger.exception("checkout rolled back for user %s", customer.id)
        raise OrderFailed() from e

    db.refresh(order)
    logger.info("order %s placed by user %s total=%s", order.id, customer.id, order.total_amount)
    return order


def get_own_order(db: Session, customer: CustomerPrincipal, order_id: int) -> models.Order:
    order = db.get(models.Order, order_id)
    # missing and foreign orders look the same to the caller
    if not order or order.user_id != customer.id:
        raise NotFoundOrNotOwned()
    return order


def list_own_orders(db: Session, customer: CustomerPrincipal) -> List[models.Order]:
    stmt = (
        select(models.Order)
        .where(models.Order.user_id == customer.id)
        .order_by(models.Order.id.desc())
    )
    return list(db.execute(stmt).scalars().all())
