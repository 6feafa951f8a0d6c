from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Path
from starlette import status

from api.common.schemas import JSendResponse, MessageData
from api.common.search import validate_search_query
from api.common.utils import page_to_offset
from api.products.schemas import ProductsData, CategoryCountsData
from api.suppliers.schemas import (
    SupplierCreate, SupplierUpdate, SupplierDetailData, SuppliersData, SupplierStats,
)
from api.suppliers.services import (
    get_suppliers, get_supplier_by_id, create_supplier, update_supplier,
    delete_supplier, list_supplier_products, get_supplier_stats, get_supplier_categories,
)

router = APIRouter()


@router.get("", response_model=JSendResponse[SuppliersData])
async def list_suppliers(
        search: Optional[str] = Query(None, description="Search in name, contact, email, phone, city"),
        city: Optional[str] = Query(None, description="Filter by city"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(50, ge=1, le=1000, description="Items per page"),
):
    """
    Get a list of suppliers with pagination.
    """
    try:
        limit, offset = page_to_offset(page, size)
        return JSendResponse.success(await get_suppliers(limit, offset, search, city))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/search", response_model=JSendResponse[SuppliersData])
async def search_suppliers(
        q: str = Query(..., description="Search query"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(50, ge=1, le=1000, description="Items per page"),
):
    """
    Search suppliers, at least 2 characters.
    """
    try:
        query = validate_search_query(q)
        limit, offset = page_to_offset(page, size)
        return JSendResponse.success(await get_suppliers(limit, offset, search=query))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{supplier_id}", response_model=JSendResponse[SupplierDetailData])
async def get_supplier(supplier_id: str = Path(..., description="The ID of the supplier")):
    try:
        supplier = await get_supplier_by_id(supplier_id)
        return JSendResponse.success(SupplierDetailData(item=supplier))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=JSendResponse[SupplierDetailData])
async def create_supplier_endpoint(supplier_data: SupplierCreate):
    """
    Create a new supplier.
    """
    try:
        data = {k: v for k, v in supplier_data.model_dump().items() if v is not None}
        supplier = await create_supplier(data)
        return JSendResponse.success(SupplierDetailData(item=supplier))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{supplier_id}", response_model=JSendResponse[SupplierDetailData])
async def update_existing_supplier(
        supplier_id: str = Path(..., description="The ID of the supplier to update"),
        supplier_data: SupplierUpdate = ...,
):
    """
    Update an existing supplier.
    """
    try:
        data = {k: v for k, v in supplier_data.model_dump().items() if v is not None}
        supplier = await update_supplier(supplier_id, data)
        return JSendResponse.success(SupplierDetailData(item=supplier))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{supplier_id}", response_model=JSendResponse[MessageData])
async def delete_existing_supplier(supplier_id: str = Path(..., description="The ID of the supplier to delete")):
    try:
        await delete_supplier(supplier_id)
        return JSendResponse.success(MessageData(message="Supplier deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{supplier_id}/products", response_model=JSendResponse[ProductsData])
async def get_products_of_supplier(
        supplier_id: str = Path(..., description="The ID of the supplier"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(50, ge=1, le=1000, description="Items per page"),
):
    """
    Get the products supplied by a supplier.
    """
    try:
        limit, offset = page_to_offset(page, size)
        return JSendResponse.success(await list_supplier_products(supplier_id, limit, offset))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{supplier_id}/stats", response_model=JSendResponse[SupplierStats])
async def get_stats_of_supplier(supplier_id: str = Path(..., description="The ID of the supplier")):
    try:
        return JSendResponse.success(await get_supplier_stats(supplier_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{supplier_id}/categories", response_model=JSendResponse[CategoryCountsData])
async def get_categories_of_supplier(supplier_id: str = Path(..., description="The ID of the supplier")):
    try:
        return JSendResponse.success(await get_supplier_categories(supplier_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
