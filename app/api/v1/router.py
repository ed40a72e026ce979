from fastapi import APIRouter

api_router = APIRouter()

from app.api.v1 import auth, events, invites, notifications, pairings, realtime, users

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(pairings.router, prefix="/pairings", tags=["pairings"])
api_router.include_router(invites.router, prefix="/invites", tags=["invites"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["realtime"])

@api_router.get("/")
def root():
    return {"message": "GratitudeBee API"}
