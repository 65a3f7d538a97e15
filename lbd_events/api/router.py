from fastapi import APIRouter

from lbd_events.api import admins, auth, events, system, uploads

api_router = APIRouter()
api_router.include_router(system.router)
api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(uploads.router)
api_router.include_router(admins.router)
