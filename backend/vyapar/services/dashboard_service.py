# FILE: backend/vyapar/services/dashboard_service.py
# LOCALVYAPAR - ROLE DASHBOARDS
# 1. build_* functions are pure projections over already-fetched lists.
# 2. load_* functions run the scoped queries for one viewer and call the matching build_*.
# 3. DASHBOARD_HANDLERS is keyed on UserRole; there is no string dispatch.

from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from pymongo.database import Database

from ..core.change_feed import ChangeEvent
from ..core.config import settings
from ..models.business import BusinessOut
from ..models.dashboard import (
    AdminDashboard, BusinessDashboard, CustomerDashboard, DashboardView,
    DeliveryDashboard, ModeratorDashboard,
)
from ..models.order import OrderOut, OrderStatus
from ..models.product import ProductOut, ProductStatus
from ..models.user import UserInDB, UserRole
from . import order_lifecycle
from .business_service import BusinessService, to_business_out
from .order_service import OrderService
from .product_service import ProductService, count_by_status

# --- Pure projections ---

def build_customer_dashboard(user: UserInDB, orders: List[OrderOut], favorites: List[BusinessOut]) -> CustomerDashboard:
    ordered = sorted(orders, key=lambda o: o.created_at, reverse=True)
    delivered = sum(1 for o in ordered if o.status == OrderStatus.DELIVERED)
    active = sum(1 for o in ordered if order_lifecycle.should_render_progress(o.status) and o.status != OrderStatus.DELIVERED)
    return CustomerDashboard(
        delivery_id=user.delivery_id,
        orders=ordered,
        active_order_count=active,
        delivered_order_count=delivered,
        favorites=favorites,
    )

def build_business_dashboard(business: Optional[BusinessOut], products: List[ProductOut], shop_orders: List[OrderOut]) -> BusinessDashboard:
    if business is None:
        return BusinessDashboard(products=products, product_counts=count_by_status(products))
    return BusinessDashboard(
        business=business,
        is_premium=business.is_premium,
        products=products,
        product_counts=count_by_status(products),
        views=business.views,
        leads={"call": business.call_count, "whatsapp": business.whatsapp_count},
        shop_orders=shop_orders,
    )

def build_delivery_dashboard(rider: UserInDB, available: List[OrderOut], assigned: List[OrderOut]) -> DeliveryDashboard:
    active = [o for o in assigned if o.status in order_lifecycle.ACTIVE_DELIVERY_STATUSES]
    completed = [o for o in assigned if o.status == OrderStatus.DELIVERED]
    return DeliveryDashboard(
        available_orders=available,
        active_deliveries=active,
        completed_deliveries=completed,
        earnings=len(completed) * settings.DELIVERY_FEE,
        can_claim=bool(rider.phone and rider.phone.strip()),
    )

def build_admin_dashboard(
    businesses: List[BusinessOut],
    user_roles: Iterable[str],
    product_statuses: Iterable[str],
    pending_products: List[ProductOut],
) -> AdminDashboard:
    roles = list(user_roles)
    statuses = list(product_statuses)
    paid = sum(1 for b in businesses if b.is_paid)
    categories = Counter(b.category.value if b.category else "Uncategorized" for b in businesses)
    return AdminDashboard(
        total_businesses=len(businesses),
        total_users=len(roles),
        total_products=len(statuses),
        pending_products=pending_products,
        premium_revenue_estimate=paid * settings.PREMIUM_PRICE,
        category_histogram=dict(categories),
        role_histogram=dict(Counter(roles)),
    )

def build_moderator_dashboard(pending_products: List[ProductOut], product_statuses: Iterable[str]) -> ModeratorDashboard:
    counts = {s.value: 0 for s in ProductStatus}
    counts.update(Counter(product_statuses))
    return ModeratorDashboard(pending_products=pending_products, product_counts=counts)

# --- Loaders (scoped queries) ---

def load_customer(db: Database, user: UserInDB) -> CustomerDashboard:
    orders = OrderService(db).list_for_customer(str(user.id))
    favorites = BusinessService(db).get_many(user.favorites)
    return build_customer_dashboard(user, orders, favorites)

def load_business(db: Database, user: UserInDB) -> BusinessDashboard:
    doc = db.businesses.find_one({"owner_id": str(user.id)})
    business = to_business_out(doc) if doc else None
    products = ProductService(db).list_for_owner(str(user.id))
    shop_orders = OrderService(db).list_for_business(str(business.id)) if business else []
    return build_business_dashboard(business, products, shop_orders)

def load_delivery(db: Database, user: UserInDB) -> DeliveryDashboard:
    orders = OrderService(db)
    return build_delivery_dashboard(user, orders.list_available(), orders.list_for_rider(str(user.id)))

def _product_statuses(db: Database) -> List[str]:
    return [p["status"] for p in db.products.find({}, {"status": 1})]

def load_admin(db: Database, user: UserInDB) -> AdminDashboard:
    businesses = [to_business_out(doc) for doc in db.businesses.find()]
    roles = [u["role"] for u in db.users.find({}, {"role": 1})]
    return build_admin_dashboard(businesses, roles, _product_statuses(db), ProductService(db).list_pending())

def load_moderator(db: Database, user: UserInDB) -> ModeratorDashboard:
    return build_moderator_dashboard(ProductService(db).list_pending(), _product_statuses(db))

DashboardHandler = Callable[[Database, UserInDB], DashboardView]

DASHBOARD_HANDLERS: Dict[UserRole, DashboardHandler] = {
    UserRole.CUSTOMER: load_customer,
    UserRole.BUSINESS: load_business,
    UserRole.DELIVERY: load_delivery,
    UserRole.ADMIN: load_admin,
    UserRole.MODERATOR: load_moderator,
}

# Collections whose changes can alter each role's projection
RELEVANT_COLLECTIONS: Dict[UserRole, Tuple[str, ...]] = {
    UserRole.CUSTOMER: ("orders", "businesses", "users"),
    UserRole.BUSINESS: ("businesses", "products", "orders", "users"),
    UserRole.DELIVERY: ("orders", "users"),
    UserRole.ADMIN: ("businesses", "products", "users"),
    UserRole.MODERATOR: ("products", "users"),
}

def build_dashboard(db: Database, user: UserInDB) -> DashboardView:
    return DASHBOARD_HANDLERS[user.role](db, user)

def is_relevant(event: ChangeEvent, user: UserInDB) -> bool:
    """Cheap pre-filter so a viewer only recomputes for events that can touch their projection."""
    if event.collection not in RELEVANT_COLLECTIONS[user.role]:
        return False
    user_id = str(user.id)
    if event.collection == "users":
        return user.role.is_staff or event.doc_id == user_id
    if event.collection == "orders" and user.role == UserRole.CUSTOMER:
        return event.scope.get("customer_id") == user_id
    if event.collection == "businesses" and user.role == UserRole.CUSTOMER:
        return event.doc_id in user.favorites or event.doc_id == "*"
    return True
