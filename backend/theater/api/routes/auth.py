"""
Authentication endpoint: API key to JWT exchange.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from theater.core.config import get_settings
from theater.db.session import get_db
from theater.schemas.auth import Token, TokenRequest
from theater.services.auth_service import issue_token

settings = get_settings()
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/token", response_model=Token)
async def token(request: TokenRequest, db: AsyncSession = Depends(get_db)):
    """Exchange an API key for a short-lived bearer token."""
    access_token, principal = await issue_token(db, request.api_key)
    return Token(
        access_token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        permissions=sorted(principal.permissions),
    )
