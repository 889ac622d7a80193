import logging

from fastapi import APIRouter, Depends

from app.core.deps import get_user_store
from app.core.errors import CredentialsError, InputError
from app.core.security import ensure_password_length, hash_password, verify_password
from app.schemas.auth import AuthOut, LoginIn, RegisterIn, UserOut
from app.services.user_store import UserStore, public_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, store: UserStore = Depends(get_user_store)):
    if not payload.username or not payload.password:
        raise InputError("Username and password required")

    # 1) Anti-500 bcrypt bytes limit
    ensure_password_length(payload.password)

    # 2) Chercher user (username) puis vérifier le hash
    user = store.find_by_username(payload.username)
    if not user or not verify_password(payload.password, user.get("password", "")):
        raise CredentialsError("Invalid credentials")

    return AuthOut(user=UserOut(**public_user(user)))


@router.post("/register", response_model=AuthOut)
def register(payload: RegisterIn, store: UserStore = Depends(get_user_store)):
    if not payload.username or not payload.email or not payload.password:
        raise InputError("Username, email, and password required")

    # unicité + allocation d'id dans la même transaction (409 si doublon)
    user = store.create_user(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        profile_picture=payload.profilePicture or "",
    )
    return AuthOut(user=UserOut(**public_user(user)))
