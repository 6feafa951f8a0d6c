"""
Customer management routers with full CRUD operations, purchase history, payments and product lines.
"""
from typing import Optional, List

from fastapi import APIRouter, HTTPException, Path, Query, status

from api.common.schemas import JSendResponse, MessageData
from api.common.search import validate_search_query
from api.common.utils import page_to_offset
from api.sales.schemas import SaleInfo
from .schemas import (
    CustomerCreate, CustomerUpdate, CustomerItemResponse, CustomersData, CustomerTypesData,
    TopCustomersData, InactiveCustomersData, CustomerStats, PaymentCreate, PaymentInfo,
    PaymentsData, TotalPaidData, CustomerProductCreate, CustomerProductUpdate,
    CustomerProductItemData, CustomerProductsData, CustomerProductsTotal,
)
from .services import (
    create_customer_service,
    get_customers_list_service,
    get_customer_service,
    update_customer_service,
    delete_customer_service,
    search_customers_service,
    get_customer_types_service,
    get_top_customers_service,
    get_inactive_customers_service,
    get_customer_stats_service,
    get_purchase_history_service,
    add_payment_service,
    get_payments_service,
    get_total_paid_service,
    delete_payment_service,
    add_customer_product_service,
    get_customer_products_service,
    get_customer_products_total_service,
    update_customer_product_service,
    delete_customer_product_service,
)

router = APIRouter()


@router.get("", response_model=JSendResponse[CustomersData])
async def get_customers_list(
    search: Optional[str] = Query(None, description="Search in name, phone, email, city, address"),
    customer_type: Optional[str] = Query(None, description="retail, wholesale or commercial"),
    city: Optional[str] = Query(None, description="Filter by city"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(50, ge=1, le=1000, description="Number of items per page"),
):
    """
    Get customers sorted by name with pagination.
    """
    try:
        limit, offset = page_to_offset(page, size)
        result = await get_customers_list_service(limit, offset, search, customer_type, city)
        return JSendResponse.success(result)
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/search", response_model=JSendResponse[CustomersData])
async def search_customers(
    q: str = Query(..., description="Search query"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(20, ge=1, le=100, description="Number of items per page"),
):
    """
    Search active customers, at least 2 characters.
    """
    try:
        query = validate_search_query(q)
        limit, offset = page_to_offset(page, size)
        return JSendResponse.success(await search_customers_service(query, limit, offset))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/types", response_model=JSendResponse[CustomerTypesData])
async def get_customer_types():
    try:
        return JSendResponse.success(CustomerTypesData(items=await get_customer_types_service()))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/top", response_model=JSendResponse[TopCustomersData])
async def get_top_customers(limit: int = Query(10, ge=1, le=100, description="Number of customers")):
    """
    Get the customers with the highest sales revenue.
    """
    try:
        return JSendResponse.success(TopCustomersData(items=await get_top_customers_service(limit)))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/inactive", response_model=JSendResponse[InactiveCustomersData])
async def get_inactive_customers(days: int = Query(90, ge=1, description="Days without a purchase")):
    """
    Get customers without a purchase in the last N days.
    """
    try:
        return JSendResponse.success(await get_inactive_customers_service(days))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}", response_model=JSendResponse[CustomerItemResponse])
async def get_customer(customer_id: str = Path(..., description="Customer ID")):
    """
    Get a specific customer by ID.
    """
    try:
        customer = await get_customer_service(customer_id)
        return JSendResponse.success(CustomerItemResponse(item=customer))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=JSendResponse[CustomerItemResponse])
async def create_customer(customer_data: CustomerCreate):
    """
    Create a new customer.
    """
    try:
        data = {k: v for k, v in customer_data.model_dump().items() if v is not None}
        customer = await create_customer_service(data)
        return JSendResponse.success(CustomerItemResponse(item=customer))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{customer_id}", response_model=JSendResponse[CustomerItemResponse])
async def update_customer(
    customer_id: str = Path(..., description="Customer ID"),
    update_data: CustomerUpdate = ...,
):
    """
    Update a customer's information.
    """
    try:
        data = {k: v for k, v in update_data.model_dump().items() if v is not None}
        customer = await update_customer_service(customer_id, data)
        return JSendResponse.success(CustomerItemResponse(item=customer))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{customer_id}", response_model=JSendResponse[MessageData])
async def delete_customer(customer_id: str = Path(..., description="Customer ID")):
    """
    Delete a customer with its payments and wishlist.
    """
    try:
        await delete_customer_service(customer_id)
        return JSendResponse.success(MessageData(message="Customer deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}/stats", response_model=JSendResponse[CustomerStats])
async def get_customer_stats(customer_id: str = Path(..., description="Customer ID")):
    try:
        return JSendResponse.success(await get_customer_stats_service(customer_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}/history", response_model=JSendResponse[List[SaleInfo]])
async def get_purchase_history(
    customer_id: str = Path(..., description="Customer ID"),
    limit: int = Query(10, ge=1, le=100, description="Number of sales"),
):
    """
    Get the latest sales of a customer.
    """
    try:
        return JSendResponse.success(await get_purchase_history_service(customer_id, limit))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/{customer_id}/payments", response_model=JSendResponse[PaymentInfo])
async def add_payment(
    customer_id: str = Path(..., description="Customer ID"),
    payment_data: PaymentCreate = ...,
):
    try:
        data = {k: v for k, v in payment_data.model_dump().items() if v is not None}
        return JSendResponse.success(await add_payment_service(customer_id, data))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}/payments", response_model=JSendResponse[PaymentsData])
async def get_payments(customer_id: str = Path(..., description="Customer ID")):
    try:
        return JSendResponse.success(await get_payments_service(customer_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}/payments/total", response_model=JSendResponse[TotalPaidData])
async def get_total_paid(customer_id: str = Path(..., description="Customer ID")):
    try:
        total_paid = await get_total_paid_service(customer_id)
        return JSendResponse.success(TotalPaidData(customerId=customer_id, totalPaid=total_paid))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{customer_id}/payments/{payment_id}", response_model=JSendResponse[MessageData])
async def delete_payment(
    customer_id: str = Path(..., description="Customer ID"),
    payment_id: str = Path(..., description="Payment ID"),
):
    try:
        await delete_payment_service(customer_id, payment_id)
        return JSendResponse.success(MessageData(message="Payment deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/{customer_id}/products", response_model=JSendResponse[CustomerProductItemData])
async def add_customer_product(
    customer_id: str = Path(..., description="Customer ID"),
    product_data: CustomerProductCreate = ...,
):
    try:
        data = {k: v for k, v in product_data.model_dump().items() if v is not None}
        entry = await add_customer_product_service(customer_id, data)
        return JSendResponse.success(CustomerProductItemData(item=entry))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}/products", response_model=JSendResponse[CustomerProductsData])
async def get_customer_products(customer_id: str = Path(..., description="Customer ID")):
    try:
        return JSendResponse.success(await get_customer_products_service(customer_id))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}/products/total", response_model=JSendResponse[CustomerProductsTotal])
async def get_customer_products_total(customer_id: str = Path(..., description="Customer ID")):
    try:
        total = await get_customer_products_total_service(customer_id)
        return JSendResponse.success(CustomerProductsTotal(customerId=customer_id, total=total))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{customer_id}/products/{entry_id}", response_model=JSendResponse[CustomerProductItemData])
async def update_customer_product(
    customer_id: str = Path(..., description="Customer ID"),
    entry_id: str = Path(..., description="Customer product line ID"),
    product_data: CustomerProductUpdate = ...,
):
    try:
        data = {k: v for k, v in product_data.model_dump().items() if v is not None}
        entry = await update_customer_product_service(customer_id, entry_id, data)
        return JSendResponse.success(CustomerProductItemData(item=entry))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{customer_id}/products/{entry_id}", response_model=JSendResponse[MessageData])
async def delete_customer_product(
    customer_id: str = Path(..., description="Customer ID"),
    entry_id: str = Path(..., description="Customer product line ID"),
):
    try:
        await delete_customer_product_service(customer_id, entry_id)
        return JSendResponse.success(MessageData(message="Product deleted successfully"))
    except HTTPException as e:
        return JSendResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return JSendResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
