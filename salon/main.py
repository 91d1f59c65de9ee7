import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Query, Response, UploadFile
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from . import cart, checkout, crud, schemas, storage
from .auth import AdminPrincipal, CustomerPrincipal, issue_token
from .config import get_settings
from .db import Base, engine, get_db
from .errors import ValidationError, register_error_handlers
from .session import (
    ADMIN_COOKIE, USER_COOKIE, clear_session_cookie, optional_admin, optional_customer,
    require_admin, require_customer, set_session_cookie,
)

# Create tables if not existing. Schema bootstrap for real databases lives in migration/bootstrap.py.
Base.metadata.create_all(bind=engine)

logger = logging.getLogger(__name__)
settings = get_settings()
logging.getLogger("salon").setLevel(settings.log_level)

app = FastAPI(title="Salon Shop & Booking API")
register_error_handlers(app)

# Payment screenshots are served read-only; the directory is created on first upload
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/me")
async def me(customer: Optional[CustomerPrincipal] = Depends(optional_customer)):
    if customer is None:
        return {"loggedIn": False}
    return {"loggedIn": True, "userId": customer.id}


@app.get("/api/admin/me")
async def admin_me(admin: Optional[AdminPrincipal] = Depends(optional_admin)):
    if admin is None:
        return {"loggedIn": False}
    return {"loggedIn": True, "adminId": admin.id}


# -------------------- Customer auth --------------------

@app.post("/api/users/signup")
async def signup(payload: schemas.SignupIn, response: Response, db: Session = Depends(get_db)):
    user = crud.create_user(db, payload)
    set_session_cookie(response, USER_COOKIE, issue_token(CustomerPrincipal(user.id)))
    return {"ok": True, "userId": user.id}


@app.post("/api/users/login")
async def login(payload: schemas.LoginIn, response: Response, db: Session = Depends(get_db)):
    user = crud.authenticate_user(db, payload.email, payload.password)
    set_session_cookie(response, USER_COOKIE, issue_token(CustomerPrincipal(user.id)))
    logger.info("user %s logged in", user.id)
    return {"ok": True}


@app.post("/api/users/logout")
async def logout(response: Response):
    clear_session_cookie(response, USER_COOKIE)
    return {"ok": True}


# -------------------- Admin auth --------------------

@app.post("/api/admin/login")
async def admin_login(payload: schemas.AdminLoginIn, response: Response, db: Session = Depends(get_db)):
    admin = crud.authenticate_admin(db, payload.username, payload.password)
    set_session_cookie(response, ADMIN_COOKIE, issue_token(AdminPrincipal(admin.id)))
    logger.info("admin %s logged in", admin.id)
    return {"ok": True}


@app.post("/api/admin/logout")
async def admin_logout(response: Response):
    clear_session_cookie(response, ADMIN_COOKIE)
    return {"ok": True}


# -------------------- Catalog --------------------

@app.get("/api/products", response_model=List[schemas.ProductRead])
async def get_products(db: Session = Depends(get_db)):
    return crud.list_products(db)


@app.get("/api/services", response_model=List[schemas.ServiceRead])
async def get_services(category: Optional[str] = Query(None, max_length=80), db: Session = Depends(get_db)):
    return crud.list_services(db, category)


@app.get("/api/team", response_model=List[schemas.TeamMemberRead])
async def get_team(role: Optional[str] = Query(None, max_length=60), db: Session = Depends(get_db)):
    return crud.list_team(db, role)


# -------------------- Cart --------------------

@app.get("/api/cart", response_model=List[schemas.CartLine])
async def get_cart(customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    return cart.list_items(db, customer.id)


@app.get("/api/cart/count")
async def get_cart_count(customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    return {"count": cart.count_items(db, customer.id)}


@app.post("/api/cart/add")
async def add_to_cart(payload: schemas.CartAddIn, customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    cart.add(db, customer.id, payload.product_id, payload.qty)
    return {"ok": True}


@app.post("/api/cart/update")
async def update_cart(payload: schemas.CartUpdateIn, customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    removed = cart.set_quantity(db, customer.id, payload.product_id, payload.qty)
    return {"ok": True, "removed": removed}


@app.post("/api/cart/remove")
async def remove_from_cart(payload: schemas.CartRemoveIn, customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    cart.remove(db, customer.id, payload.product_id)
    return {"ok": True}


# -------------------- Orders --------------------

@app.post("/api/orders", response_model=schemas.OrderPlaced)
async def place_order(
    customer_name: str = Form(""),
    phone: str = Form(""),
    email: Optional[str] = Form(default=None),
    address: str = Form(""),
    payment_screenshot: Optional[UploadFile] = File(default=None),
    customer: CustomerPrincipal = Depends(require_customer),
    db: Session = Depends(get_db),
):
    # Multipart fields are validated here rather than by FastAPI so the caller
    # gets one message for every missing field.
    try:
        data = schemas.CheckoutIn(customer_name=customer_name, phone=phone, email=email, address=address)
    except PydanticValidationError:
        raise ValidationError("Name, phone and address are required") from None
    proof = await storage.read_upload(payment_screenshot)
    order = checkout.place_order(db, customer, data, proof)
    return schemas.OrderPlaced(orderId=order.id, status=order.status)


@app.get("/api/orders", response_model=List[schemas.OrderStatusRead])
async def my_orders(customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    return checkout.list_own_orders(db, customer)


@app.get("/api/orders/{order_id}", response_model=schemas.OrderStatusRead)
async def my_order(order_id: int, customer: CustomerPrincipal = Depends(require_customer), db: Session = Depends(get_db)):
    return checkout.get_own_order(db, customer, order_id)


# -------------------- Appointments --------------------

@app.post("/api/appointments")
async def book_appointment(payload: schemas.AppointmentIn, db: Session = Depends(get_db)):
    appt = crud.book_appointment(db, payload)
    return {"ok": True, "id": appt.id, "status": appt.status}


# -------------------- Admin --------------------

@app.get("/api/admin/orders", response_model=List[schemas.OrderRead])
async def admin_orders(admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.list_orders(db)


@app.get("/api/admin/orders/{order_id}", response_model=schemas.OrderDetail)
async def admin_order_detail(order_id: int, admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.get_order_detail(db, order_id)


@app.patch("/api/admin/orders/{order_id}/status", response_model=schemas.OrderRead)
async def admin_set_order_status(
    order_id: int,
    payload: schemas.StatusUpdate,
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud.set_order_status(db, order_id, payload.status)


@app.get("/api/admin/appointments", response_model=List[schemas.AppointmentRead])
async def admin_appointments(admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.list_appointments(db)


@app.patch("/api/admin/appointments/{appointment_id}/status", response_model=schemas.AppointmentRead)
async def admin_set_appointment_status(
    appointment_id: int,
    payload: schemas.StatusUpdate,
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud.set_appointment_status(db, appointment_id, payload.status)


@app.get("/api/admin/services", response_model=List[schemas.ServiceRead])
async def admin_services(admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.list_all_services(db)


@app.post("/api/admin/services", response_model=schemas.ServiceRead)
async def admin_create_service(payload: schemas.ServiceIn, admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.create_service(db, payload)


@app.put("/api/admin/services/{service_id}", response_model=schemas.ServiceRead)
async def admin_update_service(
    service_id: int,
    payload: schemas.ServiceIn,
    admin: AdminPrincipal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud.update_service(db, service_id, payload)


@app.delete("/api/admin/services/{service_id}")
async def admin_delete_service(service_id: int, admin: AdminPrincipal = Depends(require_admin), db: Session = Depends(get_db)):
    crud.delete_service(db, service_id)
    return {"ok": True, "deleted": service_id}
