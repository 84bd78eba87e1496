# FILE: backend/vyapar/core/db.py
# LOCALVYAPAR - DATABASE CONNECTIONS
# 1. Mongo and Redis clients are opened by the application lifespan, not at import.
# 2. Redis is optional: without it the change feed is silent but writes still succeed.

import pymongo
import redis
from pymongo.database import Database
from pymongo.mongo_client import MongoClient
from pymongo.errors import ConnectionFailure
from urllib.parse import urlparse
from typing import Generator, Optional
import logging

from .config import settings

logger = logging.getLogger(__name__)

mongo_client: Optional[MongoClient] = None
db_instance: Optional[Database] = None
redis_sync_client: Optional[redis.Redis] = None

def connect_to_mongo() -> Database:
    global mongo_client, db_instance
    if db_instance is not None:
        return db_instance

    logger.info("--- [DB] Attempting to connect to MongoDB... ---")
    try:
        client: MongoClient = pymongo.MongoClient(settings.DATABASE_URI, serverSelectionTimeoutMS=5000)
        client.admin.command('ping')
        db_name = urlparse(settings.DATABASE_URI).path.lstrip('/')
        if not db_name:
            raise ValueError("Database name not found in DATABASE_URI.")
        mongo_client = client
        db_instance = client[db_name]
        logger.info(f"--- [DB] Successfully connected to MongoDB: '{db_name}' ---")
        return db_instance
    except (ConnectionFailure, ValueError) as e:
        logger.error(f"--- [DB] CRITICAL: Could not connect to MongoDB: {e} ---")
        raise

def connect_to_redis() -> Optional[redis.Redis]:
    global redis_sync_client
    if redis_sync_client is not None:
        return redis_sync_client
    if not settings.REDIS_URL:
        logger.warning("--- [DB] REDIS_URL not set. Live updates are disabled. ---")
        return None

    logger.info("--- [DB] Attempting to connect to Redis... ---")
    try:
        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        client.ping()
        redis_sync_client = client
        logger.info("--- [DB] Successfully connected to Redis. ---")
    except redis.ConnectionError as e:
        logger.error(f"--- [DB] Could not connect to Redis, live updates disabled: {e} ---")
        redis_sync_client = None
    return redis_sync_client

# --- Dependency Providers ---
def get_db() -> Generator[Database, None, None]:
    if db_instance is None:
        raise RuntimeError("Database is not connected. Check application lifespan.")
    yield db_instance

def get_redis_client() -> Optional[redis.Redis]:
    return redis_sync_client

# --- Shutdown Logic ---
def close_mongo_connection():
    global mongo_client, db_instance
    if mongo_client:
        mongo_client.close()
        logger.info("--- [DB] MongoDB connection closed. ---")
    mongo_client = None
    db_instance = None

def close_redis_connection():
    global redis_sync_client
    if redis_sync_client:
        redis_sync_client.close()
        logger.info("--- [DB] Redis connection closed. ---")
    redis_sync_client = None
