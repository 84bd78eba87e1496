from conftest import auth_headers


def test_admin_changes_roles_but_not_their_own(client, make_user):
    admin = make_user("admin")
    rider = make_user("delivery-boy")

    promoted = client.put(
        f"/api/v1/admin/users/{rider.id}/role", json={"role": "moderator"}, headers=auth_headers(admin)
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "moderator"

    own = client.put(f"/api/v1/admin/users/{admin.id}/role", json={"role": "customer"}, headers=auth_headers(admin))
    assert own.status_code == 400


def test_deleting_owner_removes_their_shop(client, db, make_user, make_business, make_product):
    admin = make_user("admin")
    owner = make_user("business")
    shop = make_business(owner)
    make_product(shop["_id"])

    assert client.delete(f"/api/v1/admin/users/{owner.id}", headers=auth_headers(admin)).status_code == 204
    assert db.businesses.count_documents({}) == 0
    assert db.products.count_documents({}) == 0
    assert client.delete(f"/api/v1/admin/users/{admin.id}", headers=auth_headers(admin)).status_code == 400


def test_premium_and_verification_toggles(client, make_user, make_business):
    admin = make_user("admin")
    shop = make_business(make_user("business"))
    url = f"/api/v1/admin/businesses/{shop['_id']}"

    granted = client.put(f"{url}/premium", json={"active": True}, headers=auth_headers(admin)).json()
    assert granted["is_premium"] is True
    assert granted["last_transaction_id"] == "admin-grant"

    revoked = client.put(f"{url}/premium", json={"active": False}, headers=auth_headers(admin)).json()
    assert revoked["is_premium"] is False
    assert revoked["premium_status"] == "none"

    verified = client.put(f"{url}/verification", json={"is_verified": True}, headers=auth_headers(admin)).json()
    assert verified["is_verified"] is True


def test_user_list_includes_order_counts(client, db, make_user):
    admin = make_user("admin")
    customer = make_user("customer")
    db.orders.insert_many([{"customer_id": str(customer.id)}, {"customer_id": str(customer.id)}])

    users = client.get("/api/v1/admin/users", headers=auth_headers(admin)).json()
    counts = {u["id"]: u["order_count"] for u in users}
    assert counts[str(customer.id)] == 2


def test_non_admins_are_refused(client, make_user):
    moderator = make_user("moderator")
    assert client.get("/api/v1/admin/users", headers=auth_headers(moderator)).status_code == 403
