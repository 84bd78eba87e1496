from datetime import timedelta

from bson import ObjectId

from conftest import auth_headers
from vyapar.core.change_feed import ChangeEvent
from vyapar.models.business import BusinessOut
from vyapar.models.common import utcnow
from vyapar.models.user import UserRole
from vyapar.services import dashboard_service
from vyapar.services.order_service import to_order_out


def order(status, minutes_ago=0, **fields):
    doc = {
        "_id": ObjectId(),
        "display_order_id": "LV-2026-00001",
        "customer_id": "c1",
        "customer_name": "Asha",
        "address": "12, MG Road, Jhansi",
        "business_id": "b1",
        "shop_name": "Sharma General Store",
        "product_id": "p1",
        "product_title": "Basmati Rice 5kg",
        "price": 450.0,
        "status": status,
        "created_at": utcnow() - timedelta(minutes=minutes_ago),
    }
    doc.update(fields)
    return to_order_out(doc)


def business(**fields):
    doc = {"_id": ObjectId(), "owner_id": "o1", "shop_name": "Shop", "category": "Food"}
    doc.update(fields)
    return BusinessOut.model_validate(doc)


def test_every_role_has_a_dashboard():
    assert set(dashboard_service.DASHBOARD_HANDLERS) == set(UserRole)
    assert set(dashboard_service.RELEVANT_COLLECTIONS) == set(UserRole)


def test_customer_dashboard_counts(make_user):
    user = make_user("customer", delivery_id="LV-JHP-1234")
    orders = [order("delivered", 30), order("pending", 5), order("out-for-delivery", 1), order("cancelled", 2)]

    view = dashboard_service.build_customer_dashboard(user, orders, [])

    assert view.delivery_id == "LV-JHP-1234"
    assert view.active_order_count == 2
    assert view.delivered_order_count == 1
    assert view.orders[0].status.value == "out-for-delivery"


def test_delivery_earnings_and_claim_flag(make_user):
    rider = make_user("delivery-boy", phone="  ")
    assigned = [order("delivered"), order("delivered"), order("picked-up"), order("assigned")]

    view = dashboard_service.build_delivery_dashboard(rider, [order("pending")], assigned)

    assert view.earnings == 80
    assert len(view.active_deliveries) == 2
    assert len(view.available_orders) == 1
    assert view.can_claim is False


def test_admin_revenue_and_histograms():
    shops = [business(is_paid=True), business(is_paid=True, category="Retail"), business(category=None)]

    view = dashboard_service.build_admin_dashboard(
        shops, ["customer", "customer", "business"], ["approved", "pending"], []
    )

    assert view.premium_revenue_estimate == 198.0
    assert view.category_histogram == {"Food": 1, "Retail": 1, "Uncategorized": 1}
    assert view.role_histogram == {"customer": 2, "business": 1}
    assert view.total_products == 2


def test_moderator_counts_include_every_status():
    view = dashboard_service.build_moderator_dashboard([], ["pending", "pending"])
    assert view.product_counts == {"pending": 2, "approved": 0, "rejected": 0}


def test_relevance_filter(make_user):
    customer = make_user("customer", favorites=["fav1"])
    rider = make_user("delivery-boy")
    admin = make_user("admin")

    own_order = ChangeEvent(collection="orders", doc_id="o1", action="updated", scope={"customer_id": str(customer.id)})
    other_order = ChangeEvent(collection="orders", doc_id="o2", action="updated", scope={"customer_id": "someone"})
    someone = ChangeEvent(collection="users", doc_id="u9", action="updated")

    assert dashboard_service.is_relevant(own_order, customer)
    assert not dashboard_service.is_relevant(other_order, customer)
    assert dashboard_service.is_relevant(other_order, rider)
    assert dashboard_service.is_relevant(ChangeEvent(collection="businesses", doc_id="fav1", action="updated"), customer)
    assert not dashboard_service.is_relevant(ChangeEvent(collection="businesses", doc_id="x", action="updated"), customer)
    assert not dashboard_service.is_relevant(ChangeEvent(collection="products", doc_id="p", action="created"), customer)
    assert not dashboard_service.is_relevant(someone, customer)
    assert dashboard_service.is_relevant(someone, admin)


def test_dashboard_endpoint_matches_role(client, make_user, make_business, make_product):
    owner = make_user("business")
    shop = make_business(owner, views=7, call_count=2)
    make_product(shop["_id"], status="pending")

    body = client.get("/api/v1/dashboards/me", headers=auth_headers(owner)).json()
    assert body["role"] == "business"
    assert body["views"] == 7
    assert body["leads"] == {"call": 2, "whatsapp": 0}
    assert body["product_counts"]["pending"] == 1

    rider = client.get("/api/v1/dashboards/me", headers=auth_headers(make_user("delivery-boy"))).json()
    assert rider["role"] == "delivery-boy"
    assert rider["can_claim"] is False

    admin = client.get("/api/v1/dashboards/me", headers=auth_headers(make_user("admin"))).json()
    assert admin["total_businesses"] == 1
    assert len(admin["pending_products"]) == 1


def test_dashboard_requires_login(client):
    assert client.get("/api/v1/dashboards/me").status_code == 401
