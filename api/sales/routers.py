"""
This module contains the FastAPI routers for sales endpoints.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Path
from starlette import status

from api.common.export import dated_filename, xlsx_response
from api.common.schemas import JSendResponse, MessageData
from api.common.utils import page_to_offset
from api.sales.schemas import (
    SaleCreate, SaleUpdate, SaleDetailData, SalesData, SalesStats, SaleCategoriesData,
    AggregatedSalesData,
)
from api.sales.services import (
    get_sales, get_sale_by_id, create_sale, update_sale, delete_sale, get_sales_stats,
    get_sale_categories, get_aggregated_sales, build_aggregated_workbook,
)

router = APIRouter()


@router.get("", response_model=JSendResponse[SalesData])
async def list_sales(
        category: Optional[str] = Query(None, description="Exact sale category"),
        date: Optional[str] = Query(None, description="Sale date (YYYY-MM-DD)"),
        start_date: Optional[str] = Query(None, description="First date included (YYYY-MM-DD)"),
        end_date: Optional[str] = Query(None, description="Last date included (YYYY-MM-DD)"),
        search: Optional[str] = Query(None, description="Product name contains"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(50, ge=1, le=1000, description="Items per page"),
):
    """
    Get sales, most recent first.

    Returns:
        JSendResponse containing sales and pagination info
    """
    try:
        limit, offset = page_to_offset(page, size)
        sales = await get_sales(limit, offset, category, date, start_date, end_date, search)
        return JSendResponse.success(sales)
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/stats", response_model=JSendResponse[SalesStats])
async def sales_stats():
    """
    Get sales totals, top categories, latest sales and last week's daily revenue.
    """
    try:
        return JSendResponse.success(await get_sales_stats())
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/categories", response_model=JSendResponse[SaleCategoriesData])
async def list_sale_categories():
    try:
        return JSendResponse.success(SaleCategoriesData(items=await get_sale_categories()))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/aggregated", response_model=JSendResponse[AggregatedSalesData])
async def aggregated_sales(
        category: Optional[str] = Query(None, description="Exact sale category"),
        start_date: Optional[str] = Query(None, description="First date included (YYYY-MM-DD)"),
        end_date: Optional[str] = Query(None, description="Last date included (YYYY-MM-DD)"),
):
    """
    Get sales grouped by product name and category, highest revenue first.
    """
    try:
        return JSendResponse.success(await get_aggregated_sales(category, start_date, end_date))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/export/aggregated")
async def export_aggregated_sales(
        category: Optional[str] = Query(None, description="Exact sale category"),
        start_date: Optional[str] = Query(None, description="First date included (YYYY-MM-DD)"),
        end_date: Optional[str] = Query(None, description="Last date included (YYYY-MM-DD)"),
        lang: Optional[str] = Query(None, description="Header language (fr, ar, en)"),
):
    """
    Download the aggregated sales as an Excel workbook.
    """
    try:
        aggregated = await get_aggregated_sales(category, start_date, end_date)
        workbook = build_aggregated_workbook(aggregated.items, lang)
        return xlsx_response(workbook, dated_filename("sales_aggregated"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{sale_id}", response_model=JSendResponse[SaleDetailData])
async def get_sale(sale_id: str = Path(..., description="The ID of the sale")):
    try:
        return JSendResponse.success(SaleDetailData(item=await get_sale_by_id(sale_id)))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=JSendResponse[SaleDetailData])
async def create_sale_endpoint(sale_data: SaleCreate):
    """
    Record a sale. With updateInventory the product stock is decremented.
    """
    try:
        return JSendResponse.success(await create_sale(sale_data.model_dump()))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{sale_id}", response_model=JSendResponse[SaleDetailData])
async def update_existing_sale(
        sale_id: str = Path(..., description="The ID of the sale to update"),
        sale_data: SaleUpdate = ...,
):
    try:
        data = {k: v for k, v in sale_data.model_dump().items() if v is not None}
        return JSendResponse.success(SaleDetailData(item=await update_sale(sale_id, data)))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{sale_id}", response_model=JSendResponse[MessageData])
async def delete_existing_sale(sale_id: str = Path(..., description="The ID of the sale to delete")):
    try:
        await delete_sale(sale_id)
        return JSendResponse.success(MessageData(message="Sale deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
