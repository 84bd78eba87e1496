# FILE: backend/vyapar/main.py
# LOCALVYAPAR - ROUTER REGISTRATION

from fastapi import FastAPI, status, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
import logging

from vyapar.core.config import settings
from vyapar.core.lifespan import lifespan

# --- Router Imports ---
from vyapar.api.endpoints.auth import router as auth_router
from vyapar.api.endpoints.users import router as users_router
from vyapar.api.endpoints.businesses import router as businesses_router
from vyapar.api.endpoints.products import router as products_router
from vyapar.api.endpoints.orders import router as orders_router
from vyapar.api.endpoints.announcements import router as announcements_router
from vyapar.api.endpoints.admin import router as admin_router
from vyapar.api.endpoints.ai import router as ai_router
from vyapar.api.endpoints.payments import router as payments_router
from vyapar.api.endpoints.dashboards import router as dashboards_router
from vyapar.api.endpoints.stream import router as stream_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# --- MIDDLEWARE ---
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"]) # type: ignore

origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
origins.extend(settings.BACKEND_CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- V1 ROUTER ASSEMBLY ---
api_v1_router = APIRouter(prefix=settings.API_V1_STR)

api_v1_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_v1_router.include_router(users_router, prefix="/users", tags=["Users"])
api_v1_router.include_router(businesses_router, prefix="/businesses", tags=["Businesses"])
api_v1_router.include_router(products_router, prefix="/products", tags=["Products"])
api_v1_router.include_router(orders_router, prefix="/orders", tags=["Orders"])
api_v1_router.include_router(announcements_router, prefix="/announcements", tags=["Announcements"])
api_v1_router.include_router(admin_router, prefix="/admin", tags=["Administrator"])
api_v1_router.include_router(ai_router, prefix="/ai", tags=["AI Assist"])
api_v1_router.include_router(payments_router, prefix="/payments", tags=["Payments"])
api_v1_router.include_router(dashboards_router, prefix="/dashboards", tags=["Dashboards"])
api_v1_router.include_router(stream_router, prefix="/stream", tags=["Streaming"])

app.include_router(api_v1_router)

@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health Check"])
def health_check():
    return {"status": "ok", "version": "1.0.0"}
