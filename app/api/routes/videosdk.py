from fastapi import APIRouter, Depends

from app.core.auth_dependency import get_current_principal
from app.core.authorization import Principal
from app.services.room_provisioner import RoomProvisioner, get_room_provisioner

router = APIRouter(prefix="/videosdk", tags=["Video"])


@router.get("/token")
def get_token(
    principal: Principal = Depends(get_current_principal),
    provisioner: RoomProvisioner = Depends(get_room_provisioner)
):
    """Short-lived join token for the video SDK. Nothing is persisted."""
    return {"token": provisioner.issue_token()}
