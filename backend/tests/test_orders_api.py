import pytest
from bson import ObjectId

from conftest import auth_headers, image_bytes
from vyapar.services.order_service import OrderService

ADDRESS = {"house_no": "12", "street": "MG Road", "landmark": "Near Temple", "city": "Jhansi", "state": "UP", "pincode": "284001"}


@pytest.fixture
def marketplace(make_user, make_business, make_product):
    owner = make_user("business")
    business = make_business(owner)
    product = make_product(business["_id"])
    customer = make_user("customer", name="Asha Verma", phone="9000000001", **ADDRESS)
    return {"owner": owner, "business": business, "product": product, "customer": customer}


def place(client, marketplace):
    response = client.post(
        "/api/v1/orders",
        json={"product_id": str(marketplace["product"]["_id"])},
        headers=auth_headers(marketplace["customer"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


def photo():
    return {"file": ("proof.jpg", image_bytes(size=(2000, 1500)), "image/jpeg")}


def test_place_order_snapshots_customer_and_shop(client, marketplace):
    order = place(client, marketplace)

    assert order["status"] == "pending"
    assert order["stage_index"] == 0
    assert order["progress"] == 0
    assert order["display_order_id"].startswith("LV-")
    assert order["display_order_id"].endswith("-00001")
    assert order["customer_delivery_id"].startswith("LV-JHP-")
    assert order["address"] == "12, MG Road, Near Temple, Jhansi, UP - 284001"
    assert order["shop_name"] == "Sharma General Store"
    assert order["delivery_boy_id"] is None


def test_order_needs_complete_address(client, make_user, marketplace):
    homeless = make_user("customer")
    response = client.post(
        "/api/v1/orders",
        json={"product_id": str(marketplace["product"]["_id"])},
        headers=auth_headers(homeless),
    )
    assert response.status_code == 400


def test_pending_product_cannot_be_ordered(client, make_product, marketplace):
    hidden = make_product(marketplace["business"]["_id"], status="pending")
    response = client.post(
        "/api/v1/orders", json={"product_id": str(hidden["_id"])}, headers=auth_headers(marketplace["customer"])
    )
    assert response.status_code == 404


def test_rider_without_phone_cannot_claim(client, db, make_user, marketplace):
    order = place(client, marketplace)
    rider = make_user("delivery-boy", phone=None)

    response = client.post(f"/api/v1/orders/{order['id']}/claim", headers=auth_headers(rider))

    assert response.status_code == 400
    assert "phone" in response.json()["detail"]
    stored = db.orders.find_one({"_id": ObjectId(order["id"])})
    assert stored["status"] == "pending"
    assert stored["delivery_boy_id"] is None
    assert stored["delivery_boy_name"] is None
    assert stored["delivery_boy_phone"] is None


def test_second_claim_loses(client, make_user, marketplace):
    order = place(client, marketplace)
    first = make_user("delivery-boy", name="Ravi", phone="9000000002")
    second = make_user("delivery-boy", name="Sunil", phone="9000000003")

    won = client.post(f"/api/v1/orders/{order['id']}/claim", headers=auth_headers(first))
    lost = client.post(f"/api/v1/orders/{order['id']}/claim", headers=auth_headers(second))

    assert won.status_code == 200
    assert won.json()["status"] == "assigned"
    assert won.json()["delivery_boy_name"] == "Ravi"
    assert won.json()["delivery_boy_phone"] == "9000000002"
    assert lost.status_code == 409


def test_full_delivery_with_proof_photos(client, make_user, marketplace):
    order = place(client, marketplace)
    rider = make_user("delivery-boy", phone="9000000002")
    headers = auth_headers(rider)
    base = f"/api/v1/orders/{order['id']}"

    assert client.post(f"{base}/claim", headers=headers).status_code == 200

    # No photo, no pickup
    assert client.post(f"{base}/pickup", headers=headers).status_code == 422
    # Stages cannot be skipped
    assert client.post(f"{base}/out-for-delivery", headers=headers).status_code == 400

    picked = client.post(f"{base}/pickup", headers=headers, files=photo())
    assert picked.status_code == 200
    assert picked.json()["status"] == "picked-up"
    assert picked.json()["pickup_photo"].startswith("data:image/jpeg;base64,")

    moving = client.post(f"{base}/out-for-delivery", headers=headers)
    assert moving.json()["status"] == "out-for-delivery"

    done = client.post(f"{base}/deliver", headers=headers, files=photo())
    body = done.json()
    assert body["status"] == "delivered"
    assert body["stage_index"] == 4
    assert body["progress"] == 1
    assert body["delivery_photo"].startswith("data:image/jpeg;base64,")
    assert body["delivered_at"] is not None


def test_only_assigned_rider_advances(client, make_user, marketplace):
    order = place(client, marketplace)
    rider = make_user("delivery-boy", phone="9000000002")
    stranger = make_user("delivery-boy", phone="9000000003")
    client.post(f"/api/v1/orders/{order['id']}/claim", headers=auth_headers(rider))

    response = client.post(f"/api/v1/orders/{order['id']}/pickup", headers=auth_headers(stranger), files=photo())

    assert response.status_code == 403


def test_bad_proof_photo_is_rejected(client, make_user, marketplace):
    order = place(client, marketplace)
    rider = make_user("delivery-boy", phone="9000000002")
    client.post(f"/api/v1/orders/{order['id']}/claim", headers=auth_headers(rider))

    response = client.post(
        f"/api/v1/orders/{order['id']}/pickup",
        headers=auth_headers(rider),
        files={"file": ("proof.jpg", b"garbage", "image/jpeg")},
    )

    assert response.status_code == 400


def test_admin_cancels_but_riders_cannot(client, make_user, marketplace):
    order = place(client, marketplace)
    rider = make_user("delivery-boy", phone="9000000002")
    admin = make_user("admin")

    assert client.post(f"/api/v1/orders/{order['id']}/cancel", headers=auth_headers(rider)).status_code == 403

    cancelled = client.post(f"/api/v1/orders/{order['id']}/cancel", headers=auth_headers(admin)).json()
    assert cancelled["status"] == "cancelled"
    assert cancelled["stage_index"] == -1
    assert cancelled["progress"] is None

    again = client.post(f"/api/v1/orders/{order['id']}/cancel", headers=auth_headers(admin))
    assert again.status_code == 400


def test_customer_sees_own_orders_only(client, make_user, marketplace):
    place(client, marketplace)
    other = make_user("customer", **ADDRESS)

    mine = client.get("/api/v1/orders/mine", headers=auth_headers(marketplace["customer"])).json()
    theirs = client.get("/api/v1/orders/mine", headers=auth_headers(other)).json()

    assert len(mine) == 1
    assert theirs == []


def test_display_ids_are_never_reused(client, db, marketplace):
    first = place(client, marketplace)
    db.orders.delete_one({"_id": ObjectId(first["id"])})
    second = place(client, marketplace)

    assert first["display_order_id"].endswith("-00001")
    assert second["display_order_id"].endswith("-00002")


def test_display_id_sequence_is_shared_across_service_instances(db):
    ids = [OrderService(db).next_display_id() for _ in range(3)]

    assert len(set(ids)) == 3
    assert [i[-5:] for i in ids] == ["00001", "00002", "00003"]
