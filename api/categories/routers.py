"""
FastAPI routers for category management endpoints.
Handles HTTP requests and responses for category operations.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Path
from starlette import status

from api.common.schemas import JSendResponse, MessageData
from api.categories.schemas import (
    CategoriesData, CategoryCreate, CategoryUpdate, CategoryDetailData,
)
from api.categories.services import (
    get_categories, get_category_by_id, create_category,
    update_category, delete_category
)
from api.common.utils import page_to_offset

router = APIRouter()


@router.get("", response_model=JSendResponse[CategoriesData])
async def list_categories(
        search: Optional[str] = Query(None, description="Filter categories by name"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(1000, ge=1, le=1000, description="Items per page"),
):
    """
    Get all categories sorted by name, each with its product count.

    Returns:
        JSendResponse containing categories data and pagination info
    """
    try:
        limit, offset = page_to_offset(page, size)
        categories_data = await get_categories(limit, offset, search)
        return JSendResponse.success(categories_data)
    except HTTPException as e:
        return JSendResponse.error(
            message=str(e.detail),
            code=e.status_code
        )
    except Exception as e:
        return JSendResponse.error(
            message=str(e),
            code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@router.get("/{category_id}", response_model=JSendResponse[CategoryDetailData])
async def get_category(
        category_id: str = Path(..., description="The ID of the category to retrieve"),
):
    """
    Get a category by ID.
    """
    try:
        category = await get_category_by_id(category_id)
        return JSendResponse.success(CategoryDetailData(item=category))
    except HTTPException as e:
        return JSendResponse.error(
            message=str(e.detail),
            code=e.status_code
        )
    except Exception as e:
        return JSendResponse.error(
            message=str(e),
            code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@router.post("", response_model=JSendResponse[CategoryDetailData])
async def create_category_endpoint(category_data: CategoryCreate):
    """
    Create a new category. Names are unique regardless of case.
    """
    try:
        data = {k: v for k, v in category_data.model_dump().items() if v is not None}
        category = await create_category(data)
        return JSendResponse.success(CategoryDetailData(item=category))
    except HTTPException as e:
        return JSendResponse.error(
            message=str(e.detail),
            code=e.status_code
        )
    except Exception as e:
        return JSendResponse.error(
            message=str(e),
            code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@router.put("/{category_id}", response_model=JSendResponse[CategoryDetailData])
async def update_existing_category(
        category_id: str = Path(..., description="The ID of the category to update"),
        category_data: CategoryUpdate = ...,
):
    """
    Update an existing category.
    """
    try:
        data = {k: v for k, v in category_data.model_dump().items() if v is not None}
        category = await update_category(category_id, data)
        return JSendResponse.success(CategoryDetailData(item=category))
    except HTTPException as e:
        return JSendResponse.error(
            message=str(e.detail),
            code=e.status_code
        )
    except Exception as e:
        return JSendResponse.error(
            message=str(e),
            code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


@router.delete("/{category_id}", response_model=JSendResponse[MessageData])
async def delete_existing_category(
        category_id: str = Path(..., description="The ID of the category to delete"),
):
    """
    Delete a category that no product uses anymore.
    """
    try:
        await delete_category(category_id)
        return JSendResponse.success(MessageData(message="Category deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(
            message=str(e.detail),
            code=e.status_code
        )
    except Exception as e:
        return JSendResponse.error(
            message=str(e),
            code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
