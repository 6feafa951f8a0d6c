"""
Service functions for product management operations.
Handles database interactions for products, their stock movements and exports.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from firebase_admin import firestore
from openpyxl import Workbook

from api.common.cache import invalidate_stats_cache
from api.common.database import get_firestore_client, snapshot_to_dict
from api.common.export import build_workbook
from api.common.formatting import normalize_language
from api.common.search import search_documents
from api.common.storage import mark_image_permanent, delete_image_by_url
from api.common.utils import generate_default_thumbnail, paginate, safe_float, safe_int
from api.products.constants import (
    SORTABLE_FIELDS, DEFAULT_SORT_FIELD, ALERT_LEVEL_ORDER, EXPORT_HEADERS,
    INVENTORY_HEADERS, INVENTORY_COLUMN_WIDTHS, PRODUCTS_SHEET_NAME, INVENTORY_SHEET_NAME,
)
from api.products.schemas import (
    ProductInDB, ProductsData, StockMovementInDB, StockMovementResult, StockMovementsData,
    LowStockProduct, LowStockData, OutOfStockData, AvailabilityData, CategoryCount,
    CategoryCountsData, ProductInventoryStats,
)

logger = logging.getLogger(__name__)

PRODUCTS_COLLECTION = 'products'
CATEGORIES_COLLECTION = 'categories'
SUPPLIERS_COLLECTION = 'suppliers'
STOCK_MOVEMENTS_COLLECTION = 'stock_movements'


def get_stock_status(stock_quantity, min_stock_level) -> str:
    """
    Stock status of a product.

    Returns:
        'out_of_stock' when nothing is left, 'low_stock' at or below the
        minimum level, 'in_stock' otherwise
    """
    stock = safe_int(stock_quantity)
    if stock <= 0:
        return "out_of_stock"
    if stock <= safe_int(min_stock_level):
        return "low_stock"
    return "in_stock"


def get_alert_level(stock_quantity, min_stock_level) -> Optional[str]:
    """
    Urgency of a low stock product, or None when the stock is above its minimum.
    'critical' means at most half of the minimum level is left.
    """
    stock = safe_int(stock_quantity)
    min_level = safe_int(min_stock_level)
    if stock <= 0:
        return "out_of_stock"
    if stock > min_level:
        return None
    if stock <= min_level / 2:
        return "critical"
    return "low"


def with_stock_figures(product_data: dict) -> dict:
    """Add the derived stockStatus and stockValue fields to a product dict."""
    stock = safe_int(product_data.get('stockQuantity'))
    product_data['stockStatus'] = get_stock_status(stock, product_data.get('minStockLevel', 0))
    product_data['stockValue'] = round(safe_float(product_data.get('sellingPrice')) * stock, 2)
    return product_data


def to_product(product_data: dict) -> ProductInDB:
    return ProductInDB(**with_stock_figures(product_data))


def process_product_images(image_urls: List[str], product_name: str) -> Tuple[List[str], str]:
    """
    Process product images and determine thumbnail URL.

    Args:
        image_urls: List of image URLs
        product_name: Name of the product for default thumbnail generation

    Returns:
        Tuple of (processed_image_urls, thumbnail_url)
    """
    processed_urls = [url.strip() for url in image_urls or [] if url and url.strip()]

    if not processed_urls:
        return [], generate_default_thumbnail(product_name)

    return processed_urls, processed_urls[0]


def load_products(db) -> List[dict]:
    """Active product documents as dicts with their id."""
    products = [snapshot_to_dict(doc) for doc in db.collection(PRODUCTS_COLLECTION).stream()]
    return [p for p in products if p.get('isActive', True)]


def sort_products(products: List[dict], sort_by: str, sort_order: str) -> List[dict]:
    """
    Sort product dicts by a whitelisted field. Unknown fields fall back to
    createdAt; products missing the field go last in both directions.
    """
    if sort_by not in SORTABLE_FIELDS:
        sort_by = DEFAULT_SORT_FIELD
    descending = not (sort_order and sort_order.lower().startswith("asc"))

    def sort_key(product):
        value = product.get(sort_by)
        if isinstance(value, str):
            return value.lower()
        if isinstance(value, datetime):
            return value.timestamp()
        return value

    present = [product for product in products if product.get(sort_by) is not None]
    missing = [product for product in products if product.get(sort_by) is None]
    present.sort(key=sort_key, reverse=descending)
    return present + missing


def resolve_reference(db, collection: str, reference: Optional[dict], label: str) -> Optional[dict]:
    """
    Replace a client-sent {id, name} reference with the stored name.

    Raises:
        HTTPException: If the referenced document does not exist
    """
    if not reference or not reference.get('id'):
        return None

    reference_id = reference['id']
    doc = db.collection(collection).document(reference_id).get()
    if not doc.exists:
        raise HTTPException(status_code=404, detail=f"{label} with ID {reference_id} not found")

    return {'id': reference_id, 'name': doc.to_dict().get('name', '')}


def ensure_unique(db, field: str, value: Optional[str], exclude_id: str = None):
    """
    Raises:
        HTTPException: If another product already uses this sku or barcode
    """
    if not value:
        return

    for doc in db.collection(PRODUCTS_COLLECTION).where(field, '==', value).get():
        if doc.id != exclude_id:
            raise HTTPException(
                status_code=400,
                detail=f"A product with this {field} already exists"
            )


async def get_products(limit: int = 50, offset: int = 0, sort_by: str = DEFAULT_SORT_FIELD,
                       sort_order: str = "desc", search: str = None, category: str = None,
                       supplier: str = None, low_stock: bool = False) -> ProductsData:
    """
    Service function to retrieve products with filtering, sorting and pagination.

    Args:
        limit: Maximum number of products to return
        offset: Number of products to skip
        sort_by: Field to sort by
        sort_order: Sort direction ('asc' or 'desc')
        search: Optional search text (name, sku, barcode, category, supplier, description)
        category: Category id, or 'all' for every category
        supplier: Optional supplier id
        low_stock: Only keep products at or below their minimum stock level

    Returns:
        ProductsData object containing the paginated products

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        products = load_products(db)

        if category and category != 'all':
            products = [p for p in products if (p.get('category') or {}).get('id') == category]

        if supplier:
            products = [p for p in products if (p.get('supplier') or {}).get('id') == supplier]

        if low_stock:
            products = [
                p for p in products
                if safe_int(p.get('stockQuantity')) <= safe_int(p.get('minStockLevel'))
            ]

        if search:
            products = search_documents(products, search)

        products = sort_products(products, sort_by, sort_order)

        page = paginate([to_product(p) for p in products], limit, offset)
        return ProductsData(**page)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list products")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def search_products(query: str, limit: int = 50, offset: int = 0) -> ProductsData:
    """
    Service function to search products, ranked by relevance.

    Raises:
        HTTPException: If errors occur during search
    """
    try:
        db = get_firestore_client()
        results = search_documents(load_products(db), query)
        page = paginate([to_product(p) for p in results], limit, offset)
        return ProductsData(**page)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Product search failed for %r", query)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_product_by_id(product_id: str) -> ProductInDB:
    """
    Service function to retrieve a single product by ID.

    Raises:
        HTTPException: If product is not found or other errors occur
    """
    if not product_id:
        raise HTTPException(
            status_code=400,
            detail="Missing product ID parameter"
        )

    try:
        db = get_firestore_client()
        doc = db.collection(PRODUCTS_COLLECTION).document(product_id).get()

        if not doc.exists:
            raise HTTPException(
                status_code=404,
                detail="Product not found"
            )

        return to_product(snapshot_to_dict(doc))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get product %s", product_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_product_by_field(field: str, value: str) -> ProductInDB:
    """
    Service function to find a product by its sku or barcode.

    Raises:
        HTTPException: If no product has this value or other errors occur
    """
    if not value:
        raise HTTPException(
            status_code=400,
            detail=f"Missing {field} parameter"
        )

    try:
        db = get_firestore_client()
        docs = db.collection(PRODUCTS_COLLECTION).where(field, '==', value).limit(1).get()

        if not docs:
            raise HTTPException(
                status_code=404,
                detail="Product not found"
            )

        return to_product(snapshot_to_dict(docs[0]))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get product by %s", field)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def create_product(product_data: dict) -> ProductInDB:
    """
    Service function to create a new product.

    Args:
        product_data: The validated product fields

    Returns:
        ProductInDB object containing the created product data

    Raises:
        HTTPException: If a reference is missing, sku/barcode is taken, or other errors occur
    """
    name = (product_data.get('name') or '').strip()
    if not name:
        raise HTTPException(status_code=400, detail="Product name is required")
    if not product_data.get('category'):
        raise HTTPException(status_code=400, detail="Category is required")

    try:
        db = get_firestore_client()
        product_data['name'] = name

        product_data['category'] = resolve_reference(
            db, CATEGORIES_COLLECTION, product_data['category'], "Category")
        if product_data.get('supplier'):
            product_data['supplier'] = resolve_reference(
                db, SUPPLIERS_COLLECTION, product_data['supplier'], "Supplier")

        ensure_unique(db, 'sku', product_data.get('sku'))
        ensure_unique(db, 'barcode', product_data.get('barcode'))

        image_urls, thumbnail_url = process_product_images(product_data.get('imageUrls'), name)
        product_data['imageUrls'] = image_urls
        product_data['thumbnailUrl'] = thumbnail_url

        product_data.pop('stockStatus', None)
        product_data.pop('stockValue', None)
        product_data['createdAt'] = firestore.SERVER_TIMESTAMP
        product_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        new_product_ref = db.collection(PRODUCTS_COLLECTION).document()
        new_product_ref.set(product_data)

        created_product = new_product_ref.get().to_dict()
        created_product['id'] = new_product_ref.id
        logger.info("Created product %s (%s)", new_product_ref.id, name)

        for image_url in image_urls:
            await mark_image_permanent(image_url)
        await invalidate_stats_cache()

        return to_product(created_product)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to create product")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def update_product(product_id: str, product_data: dict) -> ProductInDB:
    """
    Service function to update an existing product.

    Args:
        product_id: The unique identifier of the product to update
        product_data: Only the fields to change

    Returns:
        ProductInDB object containing the updated product data

    Raises:
        HTTPException: If product is not found or other errors occur
    """
    if not product_id:
        raise HTTPException(
            status_code=400,
            detail="Missing product ID parameter"
        )

    try:
        db = get_firestore_client()
        product_ref = db.collection(PRODUCTS_COLLECTION).document(product_id)
        product = product_ref.get()

        if not product.exists:
            raise HTTPException(
                status_code=404,
                detail="Product not found"
            )

        existing_product_data = product.to_dict()
        update_data = product_data.copy()

        if 'name' in update_data:
            update_data['name'] = (update_data['name'] or '').strip()
            if not update_data['name']:
                raise HTTPException(status_code=400, detail="Product name is required")

        if update_data.get('category'):
            update_data['category'] = resolve_reference(
                db, CATEGORIES_COLLECTION, update_data['category'], "Category")
        if update_data.get('supplier'):
            update_data['supplier'] = resolve_reference(
                db, SUPPLIERS_COLLECTION, update_data['supplier'], "Supplier")

        if 'sku' in update_data:
            ensure_unique(db, 'sku', update_data['sku'], exclude_id=product_id)
        if 'barcode' in update_data:
            ensure_unique(db, 'barcode', update_data['barcode'], exclude_id=product_id)

        old_image_urls = existing_product_data.get('imageUrls', [])
        new_image_urls = update_data.get('imageUrls', old_image_urls)
        product_name = update_data.get('name', existing_product_data.get('name', ''))

        # Thumbnail follows the first image; products without images get a generated one
        if new_image_urls != old_image_urls:
            processed_urls, new_thumbnail = process_product_images(new_image_urls, product_name)
            update_data['imageUrls'] = processed_urls
            update_data['thumbnailUrl'] = new_thumbnail
        elif not old_image_urls:
            update_data['thumbnailUrl'] = generate_default_thumbnail(product_name)

        update_data['updatedAt'] = firestore.SERVER_TIMESTAMP
        product_ref.update(update_data)

        for image_url in update_data.get('imageUrls', []):
            if image_url not in old_image_urls:
                await mark_image_permanent(image_url)
        await invalidate_stats_cache()

        updated_product_dict = product_ref.get().to_dict()
        updated_product_dict['id'] = product_id
        return to_product(updated_product_dict)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to update product %s", product_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def delete_product(product_id: str) -> bool:
    """
    Service function to delete a product by ID, with its uploaded images.

    Raises:
        HTTPException: If product is not found or other errors occur
    """
    if not product_id:
        raise HTTPException(
            status_code=400,
            detail="Missing product ID parameter"
        )

    try:
        db = get_firestore_client()
        product_ref = db.collection(PRODUCTS_COLLECTION).document(product_id)
        product = product_ref.get()

        if not product.exists:
            raise HTTPException(
                status_code=404,
                detail="Product not found"
            )

        image_urls = product.to_dict().get('imageUrls') or []
        product_ref.delete()
        logger.info("Deleted product %s", product_id)

        for image_url in image_urls:
            await delete_image_by_url(image_url)
        await invalidate_stats_cache()
        return True

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to delete product %s", product_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


def compute_new_stock(current_stock: int, movement_type: str, quantity: int) -> int:
    """
    Stock level after a movement.

    Raises:
        HTTPException: If the quantity is invalid for the movement or stock is insufficient
    """
    if movement_type == "adjustment":
        if quantity < 0:
            raise HTTPException(status_code=400, detail="Quantity cannot be negative")
        return quantity

    if quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0")

    if movement_type == "in":
        return current_stock + quantity

    if movement_type == "out":
        if current_stock < quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock. Available: {current_stock}, Requested: {quantity}"
            )
        return current_stock - quantity

    raise HTTPException(
        status_code=400,
        detail="Invalid movement type. Use 'in', 'out' or 'adjustment'"
    )


def add_stock_movement(db, batch, product_ref, product_data: dict, movement_type: str,
                       quantity: int, reason: str = None, reference: str = None,
                       notes: str = None) -> Tuple[str, dict]:
    """
    Queue a stock change and its movement record on a write batch.

    Returns:
        (movement id, movement data)
    """
    previous_stock = safe_int(product_data.get('stockQuantity'))
    new_stock = compute_new_stock(previous_stock, movement_type, quantity)

    batch.update(product_ref, {
        'stockQuantity': new_stock,
        'updatedAt': firestore.SERVER_TIMESTAMP,
    })

    movement_ref = db.collection(STOCK_MOVEMENTS_COLLECTION).document()
    movement_data = {
        'productId': product_ref.id,
        'productName': product_data.get('name'),
        'movementType': movement_type,
        'quantity': quantity,
        'previousStock': previous_stock,
        'newStock': new_stock,
        'reason': reason,
        'reference': reference,
        'notes': notes,
        'createdAt': firestore.SERVER_TIMESTAMP,
    }
    batch.set(movement_ref, movement_data)
    return movement_ref.id, movement_data


async def apply_stock_movement(product_id: str, movement: dict) -> StockMovementResult:
    """
    Service function to move stock in, out, or set it to a counted value.
    The product update and the movement record are written in one batch.

    Raises:
        HTTPException: If product is not found, the movement is invalid, or other errors occur
    """
    try:
        db = get_firestore_client()
        product_ref = db.collection(PRODUCTS_COLLECTION).document(product_id)
        product = product_ref.get()

        if not product.exists:
            raise HTTPException(
                status_code=404,
                detail="Product not found"
            )

        batch = db.batch()
        movement_id, _ = add_stock_movement(
            db, batch, product_ref, product.to_dict(),
            movement_type=movement['movementType'],
            quantity=safe_int(movement.get('quantity')),
            reason=movement.get('reason'),
            reference=movement.get('reference'),
            notes=movement.get('notes'),
        )
        batch.commit()
        logger.info("Stock movement %s on product %s", movement['movementType'], product_id)
        await invalidate_stats_cache()

        movement_doc = db.collection(STOCK_MOVEMENTS_COLLECTION).document(movement_id).get()
        return StockMovementResult(
            movement=StockMovementInDB(**snapshot_to_dict(movement_doc)),
            product=to_product(snapshot_to_dict(product_ref.get())),
        )

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to move stock of product %s", product_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_stock_movements(product_id: str, limit: int = 50) -> StockMovementsData:
    """
    Service function to list the stock movements of a product, newest first.

    Raises:
        HTTPException: If product is not found or other errors occur
    """
    try:
        db = get_firestore_client()
        if not db.collection(PRODUCTS_COLLECTION).document(product_id).get().exists:
            raise HTTPException(
                status_code=404,
                detail="Product not found"
            )

        docs = db.collection(STOCK_MOVEMENTS_COLLECTION).where('productId', '==', product_id).stream()
        movements = [snapshot_to_dict(doc) for doc in docs]
        movements.sort(
            key=lambda m: m['createdAt'].timestamp() if isinstance(m.get('createdAt'), datetime) else 0,
            reverse=True
        )

        items = [StockMovementInDB(**m) for m in movements[:limit]]
        return StockMovementsData(items=items, total=len(movements))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list stock movements of %s", product_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_low_stock_products() -> LowStockData:
    """
    Service function to list products at or below their minimum stock level,
    most urgent first, with a count per alert level.

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        alerts = []
        for product in load_products(db):
            alert_level = get_alert_level(product.get('stockQuantity'), product.get('minStockLevel'))
            if alert_level is None:
                continue
            deficit = max(safe_int(product.get('minStockLevel')) - safe_int(product.get('stockQuantity')), 0)
            alerts.append(LowStockProduct(**with_stock_figures(product), alertLevel=alert_level, deficit=deficit))

        alerts.sort(key=lambda item: (ALERT_LEVEL_ORDER[item.alertLevel], item.stockQuantity))

        summary = {level: 0 for level in ALERT_LEVEL_ORDER}
        for item in alerts:
            summary[item.alertLevel] += 1

        return LowStockData(items=alerts, total=len(alerts), summary=summary)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list low stock products")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_out_of_stock_products() -> OutOfStockData:
    """
    Service function to list products with no stock left, least recently updated first.

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        products = [p for p in load_products(db) if safe_int(p.get('stockQuantity')) <= 0]
        products = sort_products(products, 'updatedAt', 'asc')
        return OutOfStockData(items=[to_product(p) for p in products], total=len(products))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list out of stock products")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


def count_by_category(products: List[dict]) -> List[CategoryCount]:
    """Product count per category, ordered by category name."""
    counts = {}
    for product in products:
        category = product.get('category') or {}
        key = (category.get('id'), category.get('name') or '')
        counts[key] = counts.get(key, 0) + 1

    return [
        CategoryCount(categoryId=category_id, category=name, productCount=count)
        for (category_id, name), count in sorted(counts.items(), key=lambda entry: entry[0][1].lower())
    ]


def compute_product_stats(products: List[dict]) -> ProductInventoryStats:
    total_value = 0.0
    total_cost = 0.0
    low_stock_count = 0
    for product in products:
        stock = safe_int(product.get('stockQuantity'))
        total_value += safe_float(product.get('sellingPrice')) * stock
        total_cost += safe_float(product.get('purchasePrice')) * stock
        if stock <= safe_int(product.get('minStockLevel')):
            low_stock_count += 1

    return ProductInventoryStats(
        totalProducts=len(products),
        totalValue=round(total_value, 2),
        totalCost=round(total_cost, 2),
        lowStockCount=low_stock_count,
    )


async def get_product_categories() -> CategoryCountsData:
    """
    Service function to count active products per category.

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        return CategoryCountsData(items=count_by_category(load_products(db)))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to count products per category")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_product_stats() -> ProductInventoryStats:
    """
    Service function for stock value, stock cost and low stock count of active products.
    Low stock uses each product's own minimum level.

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        return compute_product_stats(load_products(db))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to compute product stats")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def check_availability(product_id: str, quantity: int) -> AvailabilityData:
    """
    Service function to check whether a product can serve a requested quantity.

    Raises:
        HTTPException: If product is not found or other errors occur
    """
    product = await get_product_by_id(product_id)
    shortage = max(quantity - product.stockQuantity, 0)
    return AvailabilityData(
        productId=product.id,
        productName=product.name,
        stockQuantity=product.stockQuantity,
        requestedQuantity=quantity,
        available=shortage == 0,
        shortage=shortage,
        stockStatus=product.stockStatus,
    )


async def get_products_for_export(ids: Optional[List[str]] = None) -> List[dict]:
    """Products to export: the given ids in order, or every product sorted by name."""
    db = get_firestore_client()
    if not ids:
        return sort_products(load_products(db), 'name', 'asc')

    products = []
    for product_id in ids:
        doc = db.collection(PRODUCTS_COLLECTION).document(product_id).get()
        if doc.exists:
            products.append(snapshot_to_dict(doc))
    return products


def _format_date(value) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return str(value or "")


def build_products_workbook(products: List[dict], language: str = None) -> Workbook:
    """
    Workbook listing products with prices, stock and stock value.
    """
    headers = EXPORT_HEADERS[normalize_language(language)]
    rows = []
    for product in products:
        selling_price = safe_float(product.get('sellingPrice'))
        stock = safe_int(product.get('stockQuantity'))
        rows.append({
            headers['name']: product.get('name', ''),
            headers['description']: product.get('description') or '',
            headers['category']: (product.get('category') or {}).get('name', ''),
            headers['sellingPrice']: selling_price,
            headers['purchasePrice']: safe_float(product.get('purchasePrice')),
            headers['stock']: stock,
            headers['minStockLevel']: safe_int(product.get('minStockLevel')),
            headers['supplier']: (product.get('supplier') or {}).get('name', ''),
            headers['location']: product.get('location') or '',
            headers['stockValue']: round(selling_price * stock, 2),
            headers['createdAt']: _format_date(product.get('createdAt')),
            headers['updatedAt']: _format_date(product.get('updatedAt')),
        })

    return build_workbook(rows, PRODUCTS_SHEET_NAME, headers=list(headers.values()))


def build_inventory_workbook(products: List[dict], language: str = None) -> Workbook:
    """
    Physical count sheet: quantity and total columns stay empty for manual
    entry, followed by a highlighted total row.
    """
    headers = INVENTORY_HEADERS[normalize_language(language)]
    columns = [headers[key] for key in ('id', 'name', 'quantity', 'unitPrice', 'totalPrice')]

    rows = [{
        headers['id']: product.get('id', ''),
        headers['name']: product.get('name', ''),
        headers['quantity']: '',
        headers['unitPrice']: safe_float(product.get('sellingPrice')),
        headers['totalPrice']: '',
    } for product in products]

    total_row = {column: '' for column in columns}
    total_row[headers['name']] = headers['total']

    return build_workbook(rows, INVENTORY_SHEET_NAME, total_row=total_row, widths=INVENTORY_COLUMN_WIDTHS)
