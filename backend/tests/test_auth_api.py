import re

from conftest import PASSWORD, auth_headers
from vyapar.services import user_service


def register(client, role="customer", email="asha@example.com"):
    return client.post(
        "/api/v1/auth/register",
        json={"name": "Asha Verma", "email": email, "password": PASSWORD, "role": role},
    )


def test_customer_signup_gets_delivery_id(client):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "customer"
    assert re.fullmatch(r"LV-JHP-\d{4}", body["delivery_id"])
    assert "hashed_password" not in body


def test_rider_signup_has_no_delivery_id(client):
    body = register(client, role="delivery-boy").json()
    assert body["delivery_id"] is None


def test_staff_roles_cannot_self_register(client):
    assert register(client, role="admin").status_code == 400
    assert register(client, role="moderator").status_code == 400


def test_duplicate_email_is_case_insensitive(client):
    register(client)
    assert register(client, email="ASHA@example.com").status_code == 400


def test_login_and_profile(client):
    register(client)

    bad = client.post("/api/v1/auth/login", json={"email": "asha@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401

    token = client.post("/api/v1/auth/login", json={"email": "Asha@Example.com", "password": PASSWORD}).json()
    headers = {"Authorization": f"Bearer {token['access_token']}"}
    me = client.get("/api/v1/users/me", headers=headers).json()
    assert me["email"] == "asha@example.com"
    assert me["last_login"] is not None

    form = client.post("/api/v1/auth/token", data={"username": "asha@example.com", "password": PASSWORD})
    assert form.json()["token_type"] == "bearer"


def test_profile_update_uppercases_area_code(client, make_user):
    user = make_user("customer")
    body = client.patch(
        "/api/v1/users/me", json={"house_no": "12", "city": "Jhansi", "area_code": "jhp"}, headers=auth_headers(user)
    ).json()

    assert body["area_code"] == "JHP"
    assert body["house_no"] == "12"


def test_change_password(client, make_user):
    user = make_user("customer")
    wrong = client.post(
        "/api/v1/auth/change-password",
        json={"old_password": "not-it", "new_password": "newsecret1"},
        headers=auth_headers(user),
    )
    assert wrong.status_code == 400

    client.post(
        "/api/v1/auth/change-password",
        json={"old_password": PASSWORD, "new_password": "newsecret1"},
        headers=auth_headers(user),
    )
    login = client.post("/api/v1/auth/login", json={"email": user.email, "password": "newsecret1"})
    assert login.status_code == 200


def test_reset_request_does_not_reveal_accounts(client, make_user):
    user = make_user("customer")
    known = client.post("/api/v1/auth/password-reset/request", json={"email": user.email})
    unknown = client.post("/api/v1/auth/password-reset/request", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 202
    assert known.json() == unknown.json()


def test_reset_confirm_with_access_token_is_rejected(client, make_user):
    user = make_user("customer")
    access = auth_headers(user)["Authorization"].split()[1]
    response = client.post("/api/v1/auth/password-reset/confirm", json={"token": access, "new_password": "newsecret1"})
    assert response.status_code in (400, 401)


def test_favorites_toggle(client, make_user, make_business):
    user = make_user("customer")
    shop_id = str(make_business(make_user("business"))["_id"])
    url = f"/api/v1/users/me/favorites/{shop_id}"

    assert client.post(url, headers=auth_headers(user)).json() == {"favorites": [shop_id]}
    assert client.post(url, headers=auth_headers(user)).json() == {"favorites": []}


def test_null_name_is_rejected_and_profile_stays_readable(client, make_user):
    user = make_user("customer", name="Asha Verma", phone="9876543210")
    headers = auth_headers(user)

    response = client.patch("/api/v1/users/me", json={"name": None}, headers=headers)
    assert response.status_code == 422

    cleared = client.patch("/api/v1/users/me", json={"phone": None}, headers=headers)
    assert cleared.status_code == 200
    assert cleared.json()["phone"] is None

    me = client.get("/api/v1/users/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["name"] == "Asha Verma"


def test_reset_token_works_once(client, db, make_user):
    user = make_user("customer")
    token = user_service.request_password_reset(db, user.email)
    url = "/api/v1/auth/password-reset/confirm"

    assert client.post(url, json={"token": token, "new_password": "fresh-pass1"}).status_code == 200
    replay = client.post(url, json={"token": token, "new_password": "attacker1"})

    assert replay.status_code == 400
    assert client.post("/api/v1/auth/login", json={"email": user.email, "password": "fresh-pass1"}).status_code == 200


def test_password_change_voids_pending_reset_token(client, db, make_user):
    user = make_user("customer")
    token = user_service.request_password_reset(db, user.email)
    client.post(
        "/api/v1/auth/change-password",
        json={"old_password": PASSWORD, "new_password": "newsecret1"},
        headers=auth_headers(user),
    )

    response = client.post("/api/v1/auth/password-reset/confirm", json={"token": token, "new_password": "other-pass1"})
    assert response.status_code == 400


def test_refresh_reissues_access_tokens_only(client, db, make_user):
    user = make_user("customer")

    refreshed = client.post("/api/v1/auth/refresh", headers=auth_headers(user))
    assert refreshed.status_code == 200
    new_headers = {"Authorization": f"Bearer {refreshed.json()['access_token']}"}
    assert client.get("/api/v1/users/me", headers=new_headers).status_code == 200

    reset = user_service.request_password_reset(db, user.email)
    rejected = client.post("/api/v1/auth/refresh", headers={"Authorization": f"Bearer {reset}"})
    assert rejected.status_code == 401
