from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from lbd_events.api.deps import get_admin_service, get_current_admin, get_mail_service
from lbd_events.models.admin import AdminProfile
from lbd_events.schemas.admins import (
    AdminCreateRequest,
    AdminCreateResponse,
    AdminOut,
    AdminStatusRequest,
    CredentialsEmailRequest,
)
from lbd_events.schemas.events import OkResponse
from lbd_events.services.admins import (
    AdminCreationError,
    AdminNotFoundError,
    AdminService,
    AdminServiceError,
)
from lbd_events.services.mailer import MailDeliveryError, MailService

router = APIRouter(prefix="/admins", tags=["admins"])


@router.get("", response_model=list[AdminOut])
def list_admins(
    admins: AdminService = Depends(get_admin_service),
    _: AdminProfile = Depends(get_current_admin),
):
    try:
        return admins.list_admins()
    except AdminServiceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("", response_model=AdminCreateResponse)
def create_admin(
    payload: AdminCreateRequest,
    admins: AdminService = Depends(get_admin_service),
    _: AdminProfile = Depends(get_current_admin),
):
    try:
        result = admins.create_admin(username=payload.username, email=str(payload.email))
    except AdminCreationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if result.email_sent:
        message = "Admin added successfully! Credentials have been sent to their email."
    else:
        message = "Admin added successfully, but failed to send credentials email. Please contact the admin."
    return AdminCreateResponse(id=result.admin.id, email_sent=result.email_sent, message=message)


@router.patch("/{admin_id}/status", response_model=OkResponse)
def set_admin_status(
    admin_id: str,
    payload: AdminStatusRequest,
    admins: AdminService = Depends(get_admin_service),
    _: AdminProfile = Depends(get_current_admin),
):
    if not payload.confirm:
        action = "activate" if payload.is_active else "deactivate"
        raise HTTPException(status_code=400, detail=f"Confirmation required to {action} this admin")

    try:
        admins.set_active(admin_id, payload.is_active)
    except AdminNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Admin not found") from exc
    except AdminServiceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return OkResponse(ok=True)


@router.post("/credentials", responses={500: {}})
def send_admin_credentials(
    payload: CredentialsEmailRequest,
    mailer: MailService = Depends(get_mail_service),
    _: AdminProfile = Depends(get_current_admin),
):
    try:
        mailer.send_admin_credentials(email=str(payload.email), username=payload.username, password=payload.password)
    except MailDeliveryError:
        return JSONResponse(status_code=500, content={"error": "Failed to send email"})
    return {"message": "Email sent successfully"}
