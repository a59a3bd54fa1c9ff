"""
Administrative endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from theater.api.deps import get_registry, require_permission
from theater.core.security import Permission, Principal
from theater.db.session import get_db
from theater.schemas.booking import ShowResetResponse
from theater.services.booking_service import reset_show
from theater.services.cache_service import invalidate_show_cache
from theater.services.inventory_registry import InventoryRegistry

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/shows/{show_id}/reset", response_model=ShowResetResponse)
async def reset_show_endpoint(
    show_id: str,
    principal: Principal = Depends(require_permission(Permission.ADMIN)),
    registry: InventoryRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db),
):
    """
    Put every sold seat of a show back on sale and cancel its confirmed
    bookings. Holds are left to lapse on their own.
    """
    result = await reset_show(db, registry, principal, show_id)
    await invalidate_show_cache()
    return result
