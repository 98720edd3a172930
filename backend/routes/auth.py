from fastapi import APIRouter, Depends, status

from backend.deps import Services, get_current_user, get_services
from backend.models import AuthResponse, Principal, SignInRequest, SignUpRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(body: SignUpRequest, services: Services = Depends(get_services)):
    return await services.accounts.sign_up(body.email, body.password, body.username)


@router.post("/signin", response_model=AuthResponse)
async def sign_in(body: SignInRequest, services: Services = Depends(get_services)):
    return await services.accounts.sign_in(body.email, body.password)


@router.get("/me")
async def me(
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    user = await services.accounts.me(current_user)
    return {"user": user}
