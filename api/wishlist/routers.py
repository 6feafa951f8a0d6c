"""
This module contains the FastAPI routers for customer wishlists.
"""
from fastapi import APIRouter, HTTPException, Path
from starlette import status

from api.common.schemas import JSendResponse, MessageData
from api.wishlist.schemas import (
    WishlistItemCreate, WishlistItemUpdate, WishlistItemData, WishlistData, WishlistStats,
    WishlistConvertRequest, WishlistConvertResult,
)
from api.wishlist.services import (
    get_customer_wishlist, get_wishlist_stats, add_wishlist_item, get_wishlist_item,
    update_wishlist_item, delete_wishlist_item, convert_wishlist_to_sales,
)

router = APIRouter()


@router.get("/customers/{customer_id}/wishlist", response_model=JSendResponse[WishlistData])
async def list_customer_wishlist(customer_id: str = Path(..., description="Customer ID")):
    """
    Get a customer's wishlist, pending and most urgent items first.
    """
    try:
        return JSendResponse.success(await get_customer_wishlist(customer_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/customers/{customer_id}/wishlist/stats", response_model=JSendResponse[WishlistStats])
async def customer_wishlist_stats(customer_id: str = Path(..., description="Customer ID")):
    try:
        return JSendResponse.success(await get_wishlist_stats(customer_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/customers/{customer_id}/wishlist", response_model=JSendResponse[WishlistItemData])
async def add_to_wishlist(
        customer_id: str = Path(..., description="Customer ID"),
        item_data: WishlistItemCreate = ...,
):
    try:
        data = {k: v for k, v in item_data.model_dump().items() if v is not None}
        return JSendResponse.success(WishlistItemData(item=await add_wishlist_item(customer_id, data)))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/customers/{customer_id}/wishlist/convert", response_model=JSendResponse[WishlistConvertResult])
async def convert_wishlist(
        customer_id: str = Path(..., description="Customer ID"),
        request: WishlistConvertRequest = ...,
):
    """
    Record a sale for each selected wishlist item and mark the items converted.
    """
    try:
        return JSendResponse.success(await convert_wishlist_to_sales(customer_id, request.wishlistIds))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/wishlist/{item_id}", response_model=JSendResponse[WishlistItemData])
async def get_wishlist_entry(item_id: str = Path(..., description="Wishlist item ID")):
    try:
        return JSendResponse.success(WishlistItemData(item=await get_wishlist_item(item_id)))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/wishlist/{item_id}", response_model=JSendResponse[WishlistItemData])
async def update_wishlist_entry(
        item_id: str = Path(..., description="Wishlist item ID"),
        item_data: WishlistItemUpdate = ...,
):
    try:
        data = {k: v for k, v in item_data.model_dump().items() if v is not None}
        return JSendResponse.success(WishlistItemData(item=await update_wishlist_item(item_id, data)))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/wishlist/{item_id}", response_model=JSendResponse[MessageData])
async def delete_wishlist_entry(item_id: str = Path(..., description="Wishlist item ID")):
    try:
        await delete_wishlist_item(item_id)
        return JSendResponse.success(MessageData(message="Wishlist item deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
