"""
This module contains the business logic for sales-related operations.
"""
import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import HTTPException
from firebase_admin import firestore
from openpyxl import Workbook

from api.common.cache import invalidate_stats_cache
from api.common.database import get_firestore_client, snapshot_to_dict
from api.common.export import build_workbook
from api.common.formatting import normalize_language
from api.common.utils import (
    paginate, calculate_total_price, safe_float, safe_int, now_local, clean_text,
)
from api.products.services import PRODUCTS_COLLECTION, add_stock_movement
from api.sales.schemas import (
    SaleInfo, SalesData, SaleDetailData, InventoryUpdate, SalesStats, CategorySummary,
    RecentSale, DailyRevenue, AggregatedSale, AggregatedSalesData,
)

logger = logging.getLogger(__name__)

SALES_COLLECTION = 'sales'
CUSTOMERS_COLLECTION = 'customers'
REQUIRED_SALE_FIELDS = ('date', 'productName', 'price', 'quantity', 'category')

AGGREGATED_HEADERS = {
    "fr": ("Produit", "Catégorie", "Quantité vendue", "Prix moyen", "Total"),
    "ar": ("المنتج", "الفئة", "الكمية المباعة", "متوسط السعر", "المجموع"),
    "en": ("Product", "Category", "Quantity sold", "Average price", "Total"),
}


def _created_key(sale: dict) -> float:
    created_at = sale.get('createdAt')
    return created_at.timestamp() if isinstance(created_at, datetime) else 0


def sort_sales(sales: List[dict]) -> List[dict]:
    """Most recent first: by sale date, then creation time."""
    return sorted(sales, key=lambda s: (s.get('date') or '', _created_key(s)), reverse=True)


def load_sales(db, customer_id: str = None) -> List[dict]:
    query = db.collection(SALES_COLLECTION)
    if customer_id:
        query = query.where('customerId', '==', customer_id)
    return [snapshot_to_dict(doc) for doc in query.stream()]


def filter_sales(sales: List[dict], category: str = None, date: str = None,
                 start_date: str = None, end_date: str = None, search: str = None) -> List[dict]:
    """
    Filter sale dicts. Dates are YYYY-MM-DD strings and bounds are inclusive;
    `search` is a case-insensitive substring of the product name.
    """
    if category:
        sales = [s for s in sales if s.get('category') == category]
    if date:
        sales = [s for s in sales if s.get('date') == date]
    if start_date:
        sales = [s for s in sales if (s.get('date') or '') >= start_date]
    if end_date:
        sales = [s for s in sales if (s.get('date') or '') <= end_date]
    if search and search.strip():
        term = search.strip().lower()
        sales = [s for s in sales if term in (s.get('productName') or '').lower()]
    return sales


def generate_sale_number(product_id: Optional[str] = None) -> str:
    """Sale number like SALE-1718000000000-<product id or random suffix>."""
    suffix = product_id or uuid.uuid4().hex[:9]
    return f"SALE-{int(time.time() * 1000)}-{suffix}"


def validate_sale_fields(sale_data: dict) -> dict:
    """
    Check required fields and compute the sale total.

    Returns:
        The cleaned sale fields, totalPrice included

    Raises:
        HTTPException: If a required field is missing or price/quantity is not positive
    """
    for field in ('productName', 'category', 'notes'):
        if isinstance(sale_data.get(field), str):
            sale_data[field] = sale_data[field].strip()

    missing = [field for field in REQUIRED_SALE_FIELDS if sale_data.get(field) in (None, '')]
    if missing:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: date, productName, price, quantity, category"
        )

    sale_data['totalPrice'] = calculate_total_price(
        sale_data['price'], sale_data['quantity'],
        sale_data.get('discount', 0), sale_data.get('taxAmount', 0)
    )
    sale_data['price'] = safe_float(sale_data['price'])
    sale_data['quantity'] = safe_int(sale_data['quantity'])
    sale_data['discount'] = safe_float(sale_data.get('discount'))
    sale_data['taxAmount'] = safe_float(sale_data.get('taxAmount'))
    return sale_data


async def get_sales(limit: int = 50, offset: int = 0, category: str = None, date: str = None,
                    start_date: str = None, end_date: str = None, search: str = None) -> SalesData:
    """
    Service function to retrieve sales, most recent first, with filters and pagination.

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        sales = filter_sales(load_sales(db), category, date, start_date, end_date, search)
        page = paginate([SaleInfo(**s) for s in sort_sales(sales)], limit, offset)
        return SalesData(**page)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list sales")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_sale_by_id(sale_id: str) -> SaleInfo:
    """
    Raises:
        HTTPException: If sale is not found or other errors occur
    """
    try:
        db = get_firestore_client()
        doc = db.collection(SALES_COLLECTION).document(sale_id).get()

        if not doc.exists:
            raise HTTPException(
                status_code=404,
                detail="Sale not found"
            )

        return SaleInfo(**snapshot_to_dict(doc))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get sale %s", sale_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def create_sale(sale_data: dict) -> SaleDetailData:
    """
    Service function to record a sale.

    With `updateInventory`, the sold quantity is taken out of the referenced
    product's stock and an 'out' stock movement is recorded; the sale, the
    stock change and the movement are committed in one batch.

    Raises:
        HTTPException: If validation fails, stock is insufficient, or other errors occur
    """
    update_inventory = sale_data.pop('updateInventory', False)
    sale_data = validate_sale_fields(sale_data)
    sale_data['productId'] = clean_text(sale_data.get('productId'))
    sale_data['customerId'] = clean_text(sale_data.get('customerId'))

    if update_inventory and not sale_data['productId']:
        raise HTTPException(
            status_code=400,
            detail="productId is required to update inventory"
        )

    try:
        db = get_firestore_client()

        if sale_data['customerId']:
            if not db.collection(CUSTOMERS_COLLECTION).document(sale_data['customerId']).get().exists:
                raise HTTPException(status_code=404, detail="Customer not found")

        sale_data['saleNumber'] = generate_sale_number(sale_data['productId'])
        sale_data['createdAt'] = firestore.SERVER_TIMESTAMP
        sale_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        batch = db.batch()
        inventory = None

        if update_inventory:
            product_ref = db.collection(PRODUCTS_COLLECTION).document(sale_data['productId'])
            product = product_ref.get()
            if not product.exists:
                raise HTTPException(status_code=404, detail="Product not found")

            product_data = product.to_dict()
            _, movement = add_stock_movement(
                db, batch, product_ref, product_data, "out", sale_data['quantity'],
                reason="Sale",
                reference=sale_data['saleNumber'],
                notes=f"Sale of {sale_data['quantity']} units",
            )
            inventory = InventoryUpdate(
                productId=product_ref.id,
                previousStock=movement['previousStock'],
                newStock=movement['newStock'],
                isLowStock=movement['newStock'] <= safe_int(product_data.get('minStockLevel')),
            )

        sale_ref = db.collection(SALES_COLLECTION).document()
        batch.set(sale_ref, sale_data)
        batch.commit()
        logger.info("Recorded sale %s (%s)", sale_ref.id, sale_data['saleNumber'])

        if inventory:
            await invalidate_stats_cache()

        return SaleDetailData(item=SaleInfo(**snapshot_to_dict(sale_ref.get())), inventory=inventory)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to record sale")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def update_sale(sale_id: str, sale_data: dict) -> SaleInfo:
    """
    Service function to update a sale. The total is recomputed from the merged fields.

    Raises:
        HTTPException: If sale is not found, validation fails, or other errors occur
    """
    try:
        db = get_firestore_client()
        sale_ref = db.collection(SALES_COLLECTION).document(sale_id)
        sale = sale_ref.get()

        if not sale.exists:
            raise HTTPException(
                status_code=404,
                detail="Sale not found"
            )

        merged = {**sale.to_dict(), **sale_data}
        merged = validate_sale_fields(merged)

        update_data = {field: merged[field] for field in sale_data}
        for field in ('price', 'quantity', 'discount', 'taxAmount', 'totalPrice'):
            update_data[field] = merged[field]
        update_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        sale_ref.update(update_data)
        return SaleInfo(**snapshot_to_dict(sale_ref.get()))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to update sale %s", sale_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def delete_sale(sale_id: str) -> bool:
    """
    Raises:
        HTTPException: If sale is not found or other errors occur
    """
    try:
        db = get_firestore_client()
        sale_ref = db.collection(SALES_COLLECTION).document(sale_id)

        if not sale_ref.get().exists:
            raise HTTPException(
                status_code=404,
                detail="Sale not found"
            )

        sale_ref.delete()
        logger.info("Deleted sale %s", sale_id)
        return True

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to delete sale %s", sale_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


def compute_sales_stats(sales: List[dict], today: str, days: int = 7) -> SalesStats:
    """
    Totals, top 5 categories by revenue, 5 latest sales and the daily
    revenue of the last `days` days (today included, days without sales omitted).
    """
    total_revenue = sum(safe_float(s.get('totalPrice')) for s in sales)
    total_items = sum(safe_int(s.get('quantity')) for s in sales)

    categories = {}
    for sale in sales:
        name = sale.get('category') or ''
        entry = categories.setdefault(name, {'name': name, 'sales': 0, 'revenue': 0.0})
        entry['sales'] += 1
        entry['revenue'] += safe_float(sale.get('totalPrice'))
    top_categories = sorted(categories.values(), key=lambda c: c['revenue'], reverse=True)[:5]

    recent = sorted(sales, key=_created_key, reverse=True)[:5]

    first_day = (datetime.strptime(today, '%Y-%m-%d') - timedelta(days=days - 1)).strftime('%Y-%m-%d')
    daily = {}
    for sale in sales:
        sale_date = sale.get('date') or ''
        if first_day <= sale_date <= today:
            daily[sale_date] = daily.get(sale_date, 0.0) + safe_float(sale.get('totalPrice'))

    return SalesStats(
        totalSales=len(sales),
        totalRevenue=round(total_revenue, 2),
        totalProducts=total_items,
        averageSale=round(total_revenue / len(sales), 2) if sales else 0,
        topCategories=[
            CategorySummary(name=c['name'], sales=c['sales'], revenue=round(c['revenue'], 2))
            for c in top_categories
        ],
        recentSales=[
            RecentSale(
                id=s['id'],
                productName=s.get('productName', ''),
                totalPrice=safe_float(s.get('totalPrice')),
                date=s.get('date', ''),
            )
            for s in recent
        ],
        dailyRevenue=[
            DailyRevenue(date=day, revenue=round(revenue, 2))
            for day, revenue in sorted(daily.items())
        ],
    )


async def get_sales_stats() -> SalesStats:
    """
    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        return compute_sales_stats(load_sales(db), now_local().strftime('%Y-%m-%d'))
    except Exception as exc:
        logger.exception("Failed to compute sales stats")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_sale_categories() -> List[str]:
    """Distinct sale categories, sorted."""
    try:
        db = get_firestore_client()
        return sorted({s.get('category') for s in load_sales(db) if s.get('category')})
    except Exception as exc:
        logger.exception("Failed to list sale categories")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


def aggregate_sales(sales: List[dict]) -> List[AggregatedSale]:
    """
    Group sales by product name and category: quantity sold, average unit
    price and revenue, highest revenue first.
    """
    groups = {}
    for sale in sales:
        key = (sale.get('productName') or '', sale.get('category') or '')
        group = groups.setdefault(key, {
            'productId': None, 'quantity': 0, 'prices': [], 'revenue': 0.0,
        })
        if sale.get('productId') and (group['productId'] is None or sale['productId'] < group['productId']):
            group['productId'] = sale['productId']
        group['quantity'] += safe_int(sale.get('quantity'))
        group['prices'].append(safe_float(sale.get('price')))
        group['revenue'] += safe_float(sale.get('totalPrice'))

    items = [
        AggregatedSale(
            productId=group['productId'],
            productName=name,
            category=category,
            totalQuantity=group['quantity'],
            averagePrice=round(sum(group['prices']) / len(group['prices']), 2),
            totalRevenue=round(group['revenue'], 2),
        )
        for (name, category), group in groups.items()
    ]
    items.sort(key=lambda item: item.totalRevenue, reverse=True)
    return items


async def get_aggregated_sales(category: str = None, start_date: str = None,
                               end_date: str = None) -> AggregatedSalesData:
    """
    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        sales = filter_sales(load_sales(db), category=category, start_date=start_date, end_date=end_date)
        items = aggregate_sales(sales)
        return AggregatedSalesData(items=items, total=len(items))
    except Exception as exc:
        logger.exception("Failed to aggregate sales")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


def build_aggregated_workbook(items: List[AggregatedSale], language: str = None) -> Workbook:
    """Aggregated sales sheet with a total row for quantity and revenue."""
    headers = AGGREGATED_HEADERS[normalize_language(language)]
    rows = [
        dict(zip(headers, (item.productName, item.category, item.totalQuantity,
                           item.averagePrice, item.totalRevenue)))
        for item in items
    ]
    total_row = dict(zip(headers, (
        "TOTAL", "",
        sum(item.totalQuantity for item in items), "",
        round(sum(item.totalRevenue for item in items), 2),
    )))
    return build_workbook(rows, "Sales", total_row=total_row, headers=list(headers))
