from fastapi import APIRouter, Depends

from lbd_events.api.deps import get_current_admin
from lbd_events.models.admin import AdminProfile
from lbd_events.schemas.admins import AdminOut

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/session", response_model=AdminOut)
def resume_session(admin: AdminProfile = Depends(get_current_admin)):
    return admin
