"""Per-customer cart: one row per (user, product), quantity always >= 1."""
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import ValidationError


def _locked_row(db: Session, user_id: int, product_id: int) -> models.CartItem | None:
    stmt = (
        select(models.CartItem)
        .where(models.CartItem.user_id == user_id, models.CartItem.product_id == product_id)
        .with_for_update()
    )
    return db.execute(stmt).scalar_one_or_none()


def add(db: Session, user_id: int, product_id: int, qty: int = 1) -> models.CartItem:
    """Merge ``qty`` into the (user, product) row, creating it if needed."""
    if qty <= 0:
        raise ValidationError("Quantity must be positive")
    product = db.get(models.Product, product_id)
    if not product or not product.is_active:
        raise ValidationError("Invalid product")

    row = _locked_row(db, user_id, product_id)
    if row:
        row.qty += qty
    else:
        row = models.CartItem(user_id=user_id, product_id=product_id, qty=qty)
        db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Lost an insert race for the same pair: fold into the winner's row.
        db.rollback()
        row = _locked_row(db, user_id, product_id)
        if row is None:
            raise
        row.qty += qty
        db.commit()
    db.refresh(row)
    return row


def set_quantity(db: Session, user_id: int, product_id: int, qty: int) -> bool:
    """Set the exact quantity. Returns True when the line was removed."""
    if qty <= 0:
        remove(db, user_id, product_id)
        return True
    row = _locked_row(db, user_id, product_id)
    if row:
        row.qty = qty
    else:
        product = db.get(models.Product, product_id)
        if not product or not product.is_active:
            raise ValidationError("Invalid product")
        db.add(models.CartItem(user_id=user_id, product_id=product_id, qty=qty))
    try:
        db.commit()
    except IntegrityError:
        # Another request created the line first; the exact quantity wins.
        db.rollback()
        row = _locked_row(db, user_id, product_id)
        if row is None:
            raise
        row.qty = qty
        db.commit()
    return False


def remove(db: Session, user_id: int, product_id: int) -> None:
    db.execute(
        delete(models.CartItem).where(
            models.CartItem.user_id == user_id, models.CartItem.product_id == product_id
        )
    )
    db.commit()


def list_items(db: Session, user_id: int) -> List[schemas.CartLine]:
    stmt = (
        select(models.CartItem, models.Product)
        .join(models.Product, models.Product.id == models.CartItem.product_id)
        .where(models.CartItem.user_id == user_id, models.CartItem.qty >= 1)
        .order_by(models.CartItem.product_id)
    )
    return [
        schemas.CartLine(
            product_id=item.product_id,
            name=product.name,
            price=product.price,
            qty=item.qty,
            image_url=product.image_url,
        )
        for item, product in db.execute(stmt).all()
    ]


def count_items(db: Session, user_id: int) -> int:
    stmt = select(func.coalesce(func.sum(models.CartItem.qty), 0)).where(models.CartItem.user_id == user_id)
    return int(db.execute(stmt).scalar_one())
