import pytest

from salon import cart, models
from salon.errors import ValidationError


def rows(db_session, user_id):
    return db_session.query(models.CartItem).filter(models.CartItem.user_id == user_id).all()


def test_add_merges_quantities_into_one_row(db_session, user, make_product):
    p = make_product()
    cart.add(db_session, user.id, p.id, 2)
    cart.add(db_session, user.id, p.id, 3)
    stored = rows(db_session, user.id)
    assert len(stored) == 1
    assert stored[0].qty == 5


def test_add_defaults_to_one(db_session, user, make_product):
    p = make_product()
    cart.add(db_session, user.id, p.id)
    assert rows(db_session, user.id)[0].qty == 1


def test_add_rejects_unknown_or_inactive_product(db_session, user, make_product):
    hidden = make_product(name="Retired", is_active=False)
    with pytest.raises(ValidationError):
        cart.add(db_session, user.id, 9999)
    with pytest.raises(ValidationError):
        cart.add(db_session, user.id, hidden.id)
    assert rows(db_session, user.id) == []


def test_set_quantity_is_exact_not_incremental(db_session, user, make_product):
    p = make_product()
    cart.add(db_session, user.id, p.id, 4)
    assert cart.set_quantity(db_session, user.id, p.id, 2) is False
    assert rows(db_session, user.id)[0].qty == 2


@pytest.mark.parametrize("qty", [0, -3])
def test_set_quantity_zero_or_less_removes(db_session, user, make_product, qty):
    p = make_product()
    cart.add(db_session, user.id, p.id, 2)
    assert cart.set_quantity(db_session, user.id, p.id, qty) is True
    assert [line.product_id for line in cart.list_items(db_session, user.id)] == []
    # removing again is not an error
    assert cart.set_quantity(db_session, user.id, p.id, 0) is True


def test_remove_is_idempotent(db_session, user, make_product):
    p = make_product()
    cart.add(db_session, user.id, p.id)
    cart.remove(db_session, user.id, p.id)
    cart.remove(db_session, user.id, p.id)
    assert cart.list_items(db_session, user.id) == []


def test_list_joins_product_details(db_session, user, make_product):
    a = make_product(name="A", price="500.00")
    b = make_product(name="B", price="300.00")
    cart.add(db_session, user.id, a.id, 2)
    cart.add(db_session, user.id, b.id, 1)
    lines = cart.list_items(db_session, user.id)
    assert [(l.name, l.qty, str(l.price)) for l in lines] == [("A", 2, "500.00"), ("B", 1, "300.00")]
    assert cart.count_items(db_session, user.id) == 3


def _miss_first_lookup(monkeypatch):
    # The row exists but this request's lookup ran before it was committed.
    real = cart._locked_row
    calls = []

    def lookup(db, user_id, product_id):
        calls.append(product_id)
        if len(calls) == 1:
            return None
        return real(db, user_id, product_id)

    monkeypatch.setattr(cart, "_locked_row", lookup)
    return calls


def test_add_losing_insert_race_merges_into_existing_row(db_session, user, make_product, monkeypatch):
    user_id, product_id = user.id, make_product().id
    cart.add(db_session, user_id, product_id, 2)
    db_session.expunge_all()

    calls = _miss_first_lookup(monkeypatch)
    row = cart.add(db_session, user_id, product_id, 3)

    assert len(calls) == 2
    assert row.qty == 5
    assert [(r.product_id, r.qty) for r in rows(db_session, user_id)] == [(product_id, 5)]


def test_set_quantity_losing_insert_race_overwrites_existing_row(db_session, user, make_product, monkeypatch):
    user_id, product_id = user.id, make_product().id
    cart.add(db_session, user_id, product_id, 2)
    db_session.expunge_all()

    calls = _miss_first_lookup(monkeypatch)
    assert cart.set_quantity(db_session, user_id, product_id, 7) is False

    assert len(calls) == 2
    assert [(r.product_id, r.qty) for r in rows(db_session, user_id)] == [(product_id, 7)]


def test_cart_api_flow(customer_client, make_product):
    p = make_product(name="Serum", price="750.00")
    assert customer_client.post("/api/cart/add", json={"product_id": p.id}).status_code == 200
    assert customer_client.post("/api/cart/add", json={"product_id": p.id, "qty": 2}).status_code == 200

    items = customer_client.get("/api/cart").json()
    assert len(items) == 1
    assert items[0]["qty"] == 3
    assert items[0]["name"] == "Serum"
    assert customer_client.get("/api/cart/count").json() == {"count": 3}

    r = customer_client.post("/api/cart/update", json={"product_id": p.id, "qty": 1})
    assert r.json() == {"ok": True, "removed": False}
    r = customer_client.post("/api/cart/update", json={"product_id": p.id, "qty": 0})
    assert r.json() == {"ok": True, "removed": True}
    assert customer_client.get("/api/cart").json() == []

    customer_client.post("/api/cart/add", json={"product_id": p.id})
    assert customer_client.post("/api/cart/remove", json={"product_id": p.id}).status_code == 200
    assert customer_client.get("/api/cart").json() == []


def test_cart_api_requires_product_id(customer_client):
    r = customer_client.post("/api/cart/add", json={"qty": 1})
    assert r.status_code == 400
    assert "error" in r.json()


def test_cart_api_requires_login(client, make_product):
    p = make_product()
    r = client.post("/api/cart/add", json={"product_id": p.id})
    assert r.status_code == 401
    assert r.json() == {"error": "Not logged in"}


def test_carts_are_per_customer(client, db_session, make_product):
    p = make_product()
    client.post("/api/users/signup", json={"name": "A", "email": "a@example.com", "password": "x"})
    client.post("/api/cart/add", json={"product_id": p.id, "qty": 2})
    client.post("/api/users/signup", json={"name": "B", "email": "b@example.com", "password": "x"})
    assert client.get("/api/cart").json() == []
