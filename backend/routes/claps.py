from fastapi import APIRouter, Depends, status

from backend.deps import Services, get_current_user, get_services
from backend.models import ClapCount, ClapRequest, Principal, UserClapped

router = APIRouter(prefix="/claps", tags=["claps"])


@router.post("/add", response_model=ClapCount, status_code=status.HTTP_201_CREATED)
async def add_clap(
    body: ClapRequest,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    claps = await services.interactions.add_clap(body.post_id, current_user)
    return ClapCount(claps=claps)


@router.post("/remove", response_model=ClapCount)
async def remove_clap(
    body: ClapRequest,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    claps = await services.interactions.remove_clap(body.post_id, current_user)
    return ClapCount(claps=claps)


@router.get("/post/{post_id}", response_model=ClapCount)
async def clap_count(post_id: str, services: Services = Depends(get_services)):
    return ClapCount(claps=await services.interactions.clap_count(post_id))


@router.get("/user-clapped/{post_id}", response_model=UserClapped)
async def user_clapped(
    post_id: str,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    clapped = await services.interactions.user_clapped(post_id, current_user.id)
    return UserClapped(user_clapped=clapped)
