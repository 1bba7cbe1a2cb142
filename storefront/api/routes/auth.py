"""
Authentication routes

Rate limited to slow down credential stuffing. Tokens are stateless JWT
access tokens sent back as Bearer credentials.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.rate_limit import limiter
from storefront.core.security import verify_password, get_password_hash, create_access_token
from storefront.models.user import User
from storefront.schemas.user import UserCreate, UserLogin, UserResponse, Token
from storefront.services.email_service import EmailService
from storefront.api.deps import get_current_user, get_email_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def register(
    request: Request,
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Create an account and return an access token."""
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        email=email,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User registered: {user.id}")

    # Best effort; never blocks signup
    await email_service.send_welcome(user.email, user.name)

    return Token(
        access_token=create_access_token({"sub": user.id}),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=Token)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info(f"Failed login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    return Token(
        access_token=create_access_token({"sub": user.id}),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def read_me(user: User = Depends(get_current_user)):
    return user
