from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Path, UploadFile, File
from starlette import status

from api.common.export import dated_filename, xlsx_response
from api.common.schemas import JSendResponse, MessageData
from api.common.search import validate_search_query
from api.common.storage import upload_image, delete_image_by_url
from api.common.utils import page_to_offset
from api.products.constants import MAX_PAGE_SIZE, DEFAULT_SORT_FIELD
from api.products.schemas import (
    ProductsData, ProductCreate, ProductUpdate, ProductDetailData, StockMovementCreate,
    StockMovementResult, StockMovementsData, LowStockData, OutOfStockData, AvailabilityData,
    ImageUploadData, CategoryCountsData, ProductInventoryStats,
)
from api.products.services import (
    get_products, get_product_by_id, get_product_by_field, create_product,
    update_product, delete_product, search_products as search_products_service,
    apply_stock_movement, get_stock_movements, get_low_stock_products,
    get_out_of_stock_products, check_availability, get_products_for_export,
    build_products_workbook, build_inventory_workbook, get_product_categories, get_product_stats,
)

router = APIRouter()


def parse_ids(ids: Optional[str]):
    """Split a comma separated id list."""
    if not ids:
        return []
    return [product_id.strip() for product_id in ids.split(",") if product_id.strip()]


@router.get("", response_model=JSendResponse[ProductsData])
async def list_products(
        search: Optional[str] = Query(None, description="Search in name, sku, barcode, category, supplier"),
        category: Optional[str] = Query("all", description="Category ID, or 'all'"),
        supplier: Optional[str] = Query(None, description="Supplier ID"),
        low_stock: bool = Query(False, description="Only products at or below their minimum stock"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
        sort_by: str = Query(DEFAULT_SORT_FIELD, description="Field to sort by"),
        sort_order: str = Query("desc", description="Sort order (asc or desc)"),
):
    """
    Get a list of products with filters and pagination.

    Args:
        search: Optional search text
        category: Category ID or 'all'
        supplier: Optional supplier ID
        low_stock: Keep only low stock products
        page: The page number (starts at 1)
        size: Number of products per page (max 100)
        sort_by: Field to sort the results by
        sort_order: Sort direction ('asc' or 'desc')

    Returns:
        JSendResponse containing products data and pagination info
    """
    try:
        limit, offset = page_to_offset(page, size)
        products_data = await get_products(
            limit, offset, sort_by, sort_order,
            search=search, category=category, supplier=supplier, low_stock=low_stock
        )
        return JSendResponse.success(products_data)
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


@router.get("/search", response_model=JSendResponse[ProductsData])
async def search_products(
        q: str = Query(..., description="Search query"),
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
):
    """
    Search for products by name, sku, barcode, category, supplier or description.
    """
    try:
        query = validate_search_query(q)
        limit, offset = page_to_offset(page, size)
        products_data = await search_products_service(query, limit, offset)
        return JSendResponse.success(products_data)
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


@router.get("/low-stock", response_model=JSendResponse[LowStockData])
async def list_low_stock_products():
    """
    Get products at or below their minimum stock level, most urgent first.
    """
    try:
        return JSendResponse.success(await get_low_stock_products())
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


@router.get("/out-of-stock", response_model=JSendResponse[OutOfStockData])
async def list_out_of_stock_products():
    """
    Get products with no stock left.
    """
    try:
        return JSendResponse.success(await get_out_of_stock_products())
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


@router.get("/categories", response_model=JSendResponse[CategoryCountsData])
async def list_product_categories():
    """
    Get the number of active products per category.
    """
    try:
        return JSendResponse.success(await get_product_categories())
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


@router.get("/stats", response_model=JSendResponse[ProductInventoryStats])
async def product_stats():
    """
    Get stock value, stock cost and low stock count of active products.
    """
    try:
        return JSendResponse.success(await get_product_stats())
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


@router.get("/export")
async def export_products(
        ids: Optional[str] = Query(None, description="Comma separated product IDs, all products when empty"),
        lang: Optional[str] = Query(None, description="Header language (fr, ar, en)"),
):
    """
    Download the selected products as an Excel workbook.
    """
    try:
        products = await get_products_for_export(parse_ids(ids))
        workbook = build_products_workbook(products, lang)
        return xlsx_response(workbook, dated_filename("products_export"))
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


@router.get("/export/inventory")
async def export_inventory(
        ids: Optional[str] = Query(None, description="Comma separated product IDs, all products when empty"),
        lang: Optional[str] = Query(None, description="Header language (fr, ar, en)"),
):
    """
    Download a physical inventory count sheet for the selected products.
    """
    try:
        products = await get_products_for_export(parse_ids(ids))
        workbook = build_inventory_workbook(products, lang)
        return xlsx_response(workbook, dated_filename("inventaire_export"))
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


@router.post("/upload-image", response_model=JSendResponse[ImageUploadData])
async def upload_product_image(file: UploadFile = File(...)):
    """
    Upload an image for a product.

    Args:
        file: The image file to upload

    Returns:
        JSendResponse containing the uploaded image URL
    """
    try:
        image_url = await upload_image(file, folder="products")
        return JSendResponse.success(ImageUploadData(imageUrl=image_url))
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


@router.delete("/upload-image", response_model=JSendResponse[MessageData])
async def delete_product_image(url: str = Query(..., description="URL of the uploaded image")):
    """
    Delete an uploaded product image.
    """
    try:
        if not await delete_image_by_url(url):
            return JSendResponse.error(
                message="Image not found",
                code=status.HTTP_404_NOT_FOUND
            )
        return JSendResponse.success(MessageData(message="Image deleted successfully"))
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


@router.get("/sku/{sku}", response_model=JSendResponse[ProductDetailData])
async def get_product_by_sku(sku: str = Path(..., description="Product SKU")):
    """
    Get a product by its SKU.
    """
    try:
        product = await get_product_by_field('sku', sku)
        return JSendResponse.success(ProductDetailData(item=product))
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


@router.get("/barcode/{barcode}", response_model=JSendResponse[ProductDetailData])
async def get_product_by_barcode(barcode: str = Path(..., description="Product barcode")):
    """
    Get a product by its barcode.
    """
    try:
        product = await get_product_by_field('barcode', barcode)
        return JSendResponse.success(ProductDetailData(item=product))
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


@router.get("/{product_id}", response_model=JSendResponse[ProductDetailData])
async def get_product(
        product_id: str = Path(..., description="The ID of the product to retrieve"),
):
    """
    Get a product by ID.

    Args:
        product_id: The unique product identifier

    Returns:
        JSendResponse containing the product data
    """
    try:
        product = await get_product_by_id(product_id)
        return JSendResponse.success(ProductDetailData(item=product))
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


@router.post("", response_model=JSendResponse[ProductDetailData])
async def create_product_endpoint(product_data: ProductCreate):
    """
    Create a new product.

    Args:
        product_data: The product data to create

    Returns:
        JSendResponse containing the created product
    """
    try:
        # Filter out None values to avoid overwriting with nulls
        data = {k: v for k, v in product_data.model_dump().items() if v is not None}
        created_product = await create_product(data)
        return JSendResponse.success(ProductDetailData(item=created_product))
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


@router.put("/{product_id}", response_model=JSendResponse[ProductDetailData])
async def update_existing_product(
        product_id: str = Path(..., description="The ID of the product to update"),
        product_data: ProductUpdate = ...,
):
    """
    Update an existing product.

    Args:
        product_id: The unique product identifier
        product_data: The product data to update

    Returns:
        JSendResponse containing the updated product
    """
    try:
        # Filter out None values to avoid overwriting with nulls
        data = {k: v for k, v in product_data.model_dump().items() if v is not None}
        updated_product = await update_product(product_id, data)
        return JSendResponse.success(ProductDetailData(item=updated_product))
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


@router.delete("/{product_id}", response_model=JSendResponse[MessageData])
async def delete_existing_product(
        product_id: str = Path(..., description="The ID of the product to delete"),
):
    """
    Delete a product by ID.
    """
    try:
        await delete_product(product_id)
        return JSendResponse.success(MessageData(message="Product deleted successfully"))
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


@router.post("/{product_id}/stock", response_model=JSendResponse[StockMovementResult])
async def move_stock(
        product_id: str = Path(..., description="The ID of the product"),
        movement: StockMovementCreate = ...,
):
    """
    Record a stock movement: 'in' adds, 'out' removes, 'adjustment' sets the counted stock.
    """
    try:
        result = await apply_stock_movement(product_id, movement.model_dump())
        return JSendResponse.success(result)
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


@router.get("/{product_id}/movements", response_model=JSendResponse[StockMovementsData])
async def list_stock_movements(
        product_id: str = Path(..., description="The ID of the product"),
        limit: int = Query(50, ge=1, le=500, description="Maximum number of movements"),
):
    """
    Get the stock movements of a product, newest first.
    """
    try:
        return JSendResponse.success(await get_stock_movements(product_id, limit))
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


@router.get("/{product_id}/availability", response_model=JSendResponse[AvailabilityData])
async def get_availability(
        product_id: str = Path(..., description="The ID of the product"),
        quantity: int = Query(1, ge=1, description="Requested quantity"),
):
    """
    Check whether a product has enough stock for a requested quantity.
    """
    try:
        return JSendResponse.success(await check_availability(product_id, quantity))
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
