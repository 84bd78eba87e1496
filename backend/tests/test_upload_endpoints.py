import asyncio

import pytest

from conftest import auth_headers, image_bytes
from vyapar.services import image_service, order_service, user_service


def on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


@pytest.fixture
def loop_calls(monkeypatch):
    """Records, per wrapped call, whether it ran on the event loop thread."""
    calls = []

    def watch(module, name):
        original = getattr(module, name)

        def wrapper(*args, **kwargs):
            calls.append((name, on_event_loop()))
            return original(*args, **kwargs)

        monkeypatch.setattr(module, name, wrapper)

    watch(image_service, "compress_image")
    return calls, watch


def upload():
    return {"file": ("photo.jpg", image_bytes(size=(1600, 1200), noise=True), "image/jpeg")}


def test_profile_photo_work_runs_off_the_event_loop(client, make_user, loop_calls):
    calls, watch = loop_calls
    watch(user_service, "set_photo")
    user = make_user("customer")

    response = client.post("/api/v1/users/me/photo", files=upload(), headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["photo_url"].startswith("data:image/jpeg;base64,")
    assert calls == [("compress_image", False), ("set_photo", False)]


def test_shop_image_compression_runs_off_the_event_loop(client, make_user, make_business, loop_calls):
    calls, _ = loop_calls
    owner = make_user("business")
    make_business(owner)

    response = client.post("/api/v1/businesses/me/image", files=upload(), headers=auth_headers(owner))

    assert response.status_code == 200
    assert calls == [("compress_image", False)]


def test_proof_photo_steps_run_off_the_event_loop(client, db, make_user, make_business, make_product, loop_calls):
    calls, watch = loop_calls
    watch(order_service.OrderService, "mark_picked_up")
    rider = make_user("delivery-boy", phone="9000000002")
    product = make_product(make_business(make_user("business"))["_id"])
    customer = make_user("customer", house_no="12", city="Jhansi")
    order = client.post(
        "/api/v1/orders", json={"product_id": str(product["_id"])}, headers=auth_headers(customer)
    ).json()
    client.post(f"/api/v1/orders/{order['id']}/claim", headers=auth_headers(rider))

    response = client.post(f"/api/v1/orders/{order['id']}/pickup", files=upload(), headers=auth_headers(rider))

    assert response.status_code == 200
    assert response.json()["status"] == "picked-up"
    assert calls == [("compress_image", False), ("mark_picked_up", False)]
