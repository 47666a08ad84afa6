from fastapi import APIRouter, Depends, HTTPException, status

from callhub.api.deps import get_services
from callhub.container import Services
from callhub.schemas.chat import AuthResponse, LoginRequest, RegisterRequest
from callhub.services.auth_service import create_access_token
from callhub.services.user_service import UsernameTakenError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(req: RegisterRequest, services: Services = Depends(get_services)):
    try:
        user = services.user_service.register(req.username, req.password, req.display_name)
    except UsernameTakenError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return AuthResponse(
        token=create_access_token(user.id),
        user=services.user_service.to_response(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, services: Services = Depends(get_services)):
    user = services.user_service.authenticate(req.username, req.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return AuthResponse(
        token=create_access_token(user.id),
        user=services.user_service.to_response(user),
    )
