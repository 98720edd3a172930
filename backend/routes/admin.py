from typing import List

from fastapi import APIRouter, Depends, status

from backend.deps import Services, get_current_user, get_services
from backend.models import AdminCreate, AdminSummary, Message, Principal

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/admins", response_model=List[AdminSummary])
async def list_admins(
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.admin.list_admins(current_user)


@router.post("/admins", response_model=AdminSummary, status_code=status.HTTP_201_CREATED)
async def create_admin(
    body: AdminCreate,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.admin.create_admin(current_user, body.email, body.password, body.username)


@router.delete("/admins/{admin_id}", response_model=Message)
async def delete_admin(
    admin_id: str,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    await services.admin.delete_admin(current_user, admin_id)
    return Message(message="Admin deleted")
