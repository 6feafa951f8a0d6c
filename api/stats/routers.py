"""
Dashboard statistics routers.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from api.common.schemas import JSendResponse
from .schemas import InventoryStats
from .services import get_inventory_stats

router = APIRouter()


@router.get("", response_model=JSendResponse[InventoryStats])
async def get_stats(
    lang: Optional[str] = Query(None, description="Language of the formatted amounts (fr, ar, en)")
):
    """
    Get inventory totals: product count, stock value, low and out of stock counts.
    """
    try:
        return JSendResponse.success(await get_inventory_stats(lang))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
