# FILE: backend/vyapar/api/endpoints/stream.py
# LOCALVYAPAR - LIVE DASHBOARD (SSE)
# 1. Token travels as a query parameter (EventSource cannot set headers).
# 2. One SessionContext + one LiveSubscription per connection; both torn down on disconnect.
# 3. Pushes 'dashboard' on every relevant change and 'profile' when the viewer's own profile changes.

import asyncio
import logging
from typing import AsyncGenerator, List, Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from fastapi import HTTPException
from pymongo.database import Database
from starlette.concurrency import run_in_threadpool

from ...core.change_feed import LiveSubscription
from ...core.db import get_db
from ...core.security import decode_token
from ...models.user import UserInDB, UserOut, UserRole
from ...services import dashboard_service
from ...services.session_service import SessionContext

logger = logging.getLogger(__name__)
router = APIRouter()

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}

def sse(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"

def get_user_id_sse(token: str = Query(..., description="JWT Access Token")) -> Optional[str]:
    try:
        payload = decode_token(token, expected_type="access")
    except HTTPException:
        return None
    return payload.get("id")

async def dashboard_events(request: Request, session: SessionContext) -> AsyncGenerator[str, None]:
    profile_updates: List[Optional[UserInDB]] = []
    unsubscribe = session.on_profile_change(profile_updates.append)

    profile = await run_in_threadpool(session.refresh)
    if profile is None:
        yield sse("error", "Unknown user")
        unsubscribe()
        session.close()
        return

    role: UserRole = profile.role
    feed = LiveSubscription(dashboard_service.RELEVANT_COLLECTIONS[role])
    try:
        await feed.start()
        view = await run_in_threadpool(dashboard_service.build_dashboard, session.db, profile)
        yield sse("dashboard", view.model_dump_json(by_alias=True))
        profile_updates.clear()

        while not feed.cancelled:
            if await request.is_disconnected():
                break
            event = await feed.next_event(timeout=1.0)
            if event is None:
                yield ": keep-alive\n\n"
                continue

            changed = await run_in_threadpool(session.handle_event, event)
            for updated in profile_updates:
                if updated is not None:
                    yield sse("profile", UserOut.model_validate(updated.model_dump(by_alias=True)).model_dump_json(by_alias=True))
            profile_updates.clear()

            current = session.profile
            if current is None:
                yield sse("error", "Account removed")
                break
            if current.role != role:
                # Role changed under us: re-subscribe to the new role's collections
                await feed.cancel()
                role = current.role
                feed = LiveSubscription(dashboard_service.RELEVANT_COLLECTIONS[role])
                await feed.start()
                changed = True

            if changed or dashboard_service.is_relevant(event, current):
                view = await run_in_threadpool(dashboard_service.build_dashboard, session.db, current)
                yield sse("dashboard", view.model_dump_json(by_alias=True))
    except asyncio.CancelledError:
        logger.info(f"SSE: User {session.current_user()} disconnected.")
    finally:
        await feed.cancel()
        unsubscribe()
        session.close()

@router.get("/dashboard", response_class=StreamingResponse)
async def stream_dashboard(
    request: Request,
    user_id: Optional[str] = Depends(get_user_id_sse),
    db: Database = Depends(get_db)
):
    if user_id is None:
        async def unauthorized():
            yield sse("error", "Unauthorized")
        return StreamingResponse(unauthorized(), media_type="text/event-stream")

    session = SessionContext(db, user_id)
    return StreamingResponse(dashboard_events(request, session), media_type="text/event-stream", headers=SSE_HEADERS)
