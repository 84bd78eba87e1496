# FILE: backend/vyapar/core/lifespan.py
# LOCALVYAPAR - LIFESPAN
# 1. Opens Mongo and Redis on startup, closes both on shutdown.
# 2. Ensures the indexes behind every dashboard query exist.

from contextlib import asynccontextmanager
from fastapi import FastAPI
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
import logging

from .db import connect_to_mongo, connect_to_redis, close_mongo_connection, close_redis_connection

logger = logging.getLogger(__name__)

def create_mongo_indexes(db: Database):
    """
    Creates the indexes used by the scoped dashboard queries.
    """
    try:
        logger.info("--- [Lifespan] Verifying database indexes... ---")

        db.users.create_index([("email", ASCENDING)], unique=True)
        db.users.create_index([("role", ASCENDING)])

        db.businesses.create_index([("owner_id", ASCENDING)], unique=True)
        db.businesses.create_index([("category", ASCENDING)])

        db.products.create_index([("business_id", ASCENDING), ("status", ASCENDING)])
        db.products.create_index([("status", ASCENDING), ("created_at", DESCENDING)])

        db.orders.create_index([("customer_id", ASCENDING), ("created_at", DESCENDING)])
        db.orders.create_index([("delivery_boy_id", ASCENDING), ("status", ASCENDING)])
        db.orders.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
        db.orders.create_index([("business_id", ASCENDING)])

        db.reviews.create_index([("business_id", ASCENDING), ("created_at", DESCENDING)])
        db.announcements.create_index([("is_active", ASCENDING), ("created_at", DESCENDING)])

        logger.info("--- [Lifespan] Database indexes verified/created. ---")
    except Exception as e:
        logger.error(f"--- [Lifespan] Index creation failed: {e} ---")

async def perform_shutdown():
    logger.info("--- [Lifespan] Application shutdown sequence initiated. ---")
    close_mongo_connection()
    close_redis_connection()
    logger.info("--- [Lifespan] All connections closed. Shutdown complete. ---")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("--- [Lifespan] Application startup sequence initiated. ---")

    db = connect_to_mongo()
    connect_to_redis()
    create_mongo_indexes(db)

    logger.info("--- [Lifespan] All resources initialized. Application is ready. ---")

    yield

    await perform_shutdown()
