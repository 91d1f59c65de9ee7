import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .auth import hash_password, verify_password
from .errors import Conflict, InvalidCredentials, InvalidStatus, NotFoundOrNotOwned, ValidationError

logger = logging.getLogger(__name__)


# -------------------- Credentials --------------------

def create_user(db: Session, user: schemas.SignupIn) -> models.User:
    if db.execute(select(models.User.id).where(models.User.email == user.email)).first():
        raise Conflict("Email already exists")
    db_user = models.User(
        name=user.name,
        email=user.email,
        phone=user.phone,
        password_hash=hash_password(user.password),
        is_active=True,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Email already exists") from e
    db.refresh(db_user)
    logger.info("user %s signed up", db_user.id)
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> models.User:
    user = db.execute(
        select(models.User).where(models.User.email == email, models.User.is_active.is_(True))
    ).scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        logger.info("failed customer login")
        raise InvalidCredentials()
    return user


def deactivate_user(db: Session, user_id: int) -> bool:
    user = db.get(models.User, user_id)
    if not user:
        return False
    user.is_active = False
    db.commit()
    return True


def create_admin(db: Session, username: str, password: str) -> models.Admin:
    """Create an admin, or reset the password of an existing one."""
    admin = db.execute(select(models.Admin).where(models.Admin.username == username)).scalar_one_or_none()
    if admin:
        admin.password_hash = hash_password(password)
    else:
        admin = models.Admin(username=username, password_hash=hash_password(password))
        db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def authenticate_admin(db: Session, username: str, password: str) -> models.Admin:
    admin = db.execute(select(models.Admin).where(models.Admin.username == username)).scalar_one_or_none()
    if not admin or not verify_password(password, admin.password_hash):
        logger.info("failed admin login")
        raise InvalidCredentials("Invalid admin")
    return admin


# -------------------- Catalog --------------------

def list_products(db: Session) -> List[models.Product]:
    stmt = select(models.Product).where(models.Product.is_active.is_(True)).order_by(models.Product.id.desc())
    return list(db.execute(stmt).scalars().all())


def list_services(db: Session, category: Optional[str] = None) -> List[models.Service]:
    stmt = select(models.Service).where(models.Service.is_active.is_(True))
    if category:
        stmt = stmt.where(models.Service.category == category).order_by(models.Service.id.desc())
    else:
        stmt = stmt.order_by(models.Service.category, models.Service.name)
    return list(db.execute(stmt).scalars().all())


def list_team(db: Session, role: Optional[str] = None) -> List[models.TeamMember]:
    stmt = select(models.TeamMember).where(models.TeamMember.is_active.is_(True))
    if role:
        stmt = stmt.where(models.TeamMember.role == role)
    return list(db.execute(stmt.order_by(models.TeamMember.name)).scalars().all())


# -------------------- Services (admin) --------------------

def list_all_services(db: Session) -> List[models.Service]:
    return list(db.execute(select(models.Service).order_by(models.Service.id.desc())).scalars().all())


def create_service(db: Session, data: schemas.ServiceIn) -> models.Service:
    # is_active is honoured as supplied; inactive services can be staged
    service = models.Service(**data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info("service %s created", service.id)
    return service


def update_service(db: Session, service_id: int, data: schemas.ServiceIn) -> models.Service:
    service = db.get(models.Service, service_id)
    if not service:
        raise NotFoundOrNotOwned()
    for field, value in data.model_dump().items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    logger.info("service %s updated", service.id)
    return service


def delete_service(db: Session, service_id: int) -> None:
    service = db.get(models.Service, service_id)
    if not service:
        raise NotFoundOrNotOwned()
    db.delete(service)
    db.commit()
    logger.info("service %s deleted", service_id)


# -------------------- Orders (admin) --------------------

def parse_order_status(value: str) -> schemas.OrderStatus:
    try:
        return schemas.OrderStatus(value)
    except ValueError:
        raise InvalidStatus() from None


def list_orders(db: Session) -> List[models.Order]:
    return list(db.execute(select(models.Order).order_by(models.Order.id.desc())).scalars().all())


def get_order_detail(db: Session, order_id: int) -> models.Order:
    stmt = select(models.Order).options(selectinload(models.Order.items)).where(models.Order.id == order_id)
    order = db.execute(stmt).scalar_one_or_none()
    if not order:
        raise NotFoundOrNotOwned()
    return order


def set_order_status(db: Session, order_id: int, value: str) -> models.Order:
    status = parse_order_status(value)
    order = db.get(models.Order, order_id)
    if not order:
        raise NotFoundOrNotOwned()
    order.status = status.value
    db.commit()
    db.refresh(order)
    logger.info("order %s set to %s", order.id, order.status)
    return order


# -------------------- Appointments --------------------

def parse_appointment_status(value: str) -> schemas.AppointmentStatus:
    try:
        return schemas.AppointmentStatus(value)
    except ValueError:
        raise InvalidStatus() from None


def book_appointment(db: Session, data: schemas.AppointmentIn) -> models.Appointment:
    service = db.get(models.Service, data.service_id)
    if not service or not service.is_active:
        raise ValidationError("Invalid service")
    appt = models.Appointment(
        client_name=data.client_name,
        phone=data.phone,
        email=data.email,
        service_id=service.id,
        service_name=service.name,
        service_category=service.category,
        appt_date=data.appt_date,
        appt_time=data.appt_time,
        notes=data.notes,
        status=schemas.AppointmentStatus.PENDING.value,
    )
    db.add(appt)
    db.commit()
    db.refresh(appt)
    return appt


def list_appointments(db: Session) -> List[models.Appointment]:
    stmt = select(models.Appointment).order_by(models.Appointment.appt_date.desc(), models.Appointment.appt_time.desc())
    return list(db.execute(stmt).scalars().all())


def set_appointment_status(db: Session, appointment_id: int, value: str) -> models.Appointment:
    status = parse_appointment_status(value)
    appt = db.get(models.Appointment, appointment_id)
    if not appt:
        raise NotFoundOrNotOwned()
    appt.status = status.value
    db.commit()
    db.refresh(appt)
    logger.info("appointment %s set to %s", appt.id, appt.status)
    return appt
