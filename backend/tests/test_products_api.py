from conftest import auth_headers


def test_moderation_controls_customer_visibility(client, make_user, make_business):
    owner = make_user("business")
    business = make_business(owner)
    admin = make_user("admin")
    public_url = f"/api/v1/businesses/{business['_id']}/products"

    kurta = client.post("/api/v1/products", json={"title": "Cotton Kurta", "price": 799}, headers=auth_headers(owner)).json()
    saree = client.post("/api/v1/products", json={"title": "Silk Saree", "price": 2499}, headers=auth_headers(owner)).json()
    assert kurta["status"] == "pending"
    assert client.get(public_url).json() == []

    approved = client.patch(f"/api/v1/products/{kurta['id']}/status", json={"status": "approved"}, headers=auth_headers(admin))
    rejected = client.patch(f"/api/v1/products/{saree['id']}/status", json={"status": "rejected"}, headers=auth_headers(admin))
    assert approved.json()["status"] == "approved"
    assert rejected.json()["status"] == "rejected"

    visible = client.get(public_url).json()
    assert [p["title"] for p in visible] == ["Cotton Kurta"]


def test_status_sent_by_owner_is_ignored(client, make_user, make_business):
    owner = make_user("business")
    make_business(owner)
    created = client.post(
        "/api/v1/products", json={"title": "Chai", "price": 10, "status": "approved"}, headers=auth_headers(owner)
    ).json()
    assert created["status"] == "pending"


def test_only_staff_moderate(client, make_user, make_business, make_product):
    owner = make_user("business")
    product = make_product(make_business(owner)["_id"], status="pending")
    moderator = make_user("moderator")
    url = f"/api/v1/products/{product['_id']}/status"

    assert client.patch(url, json={"status": "approved"}, headers=auth_headers(owner)).status_code == 403
    assert client.patch(url, json={"status": "approved"}, headers=auth_headers(moderator)).status_code == 200


def test_product_needs_shop_profile(client, make_user):
    owner = make_user("business")
    response = client.post("/api/v1/products", json={"title": "Chai", "price": 10}, headers=auth_headers(owner))
    assert response.status_code == 400


def test_owner_deletes_only_own_products(client, make_user, make_business, make_product):
    owner = make_user("business")
    rival = make_user("business")
    make_business(rival, shop_name="Rival Store")
    product = make_product(make_business(owner)["_id"])

    assert client.delete(f"/api/v1/products/{product['_id']}", headers=auth_headers(rival)).status_code == 403
    assert client.delete(f"/api/v1/products/{product['_id']}", headers=auth_headers(owner)).status_code == 204
    assert client.get("/api/v1/products/mine", headers=auth_headers(owner)).json() == []
