"""
This module contains the business logic for customer wishlists and their
conversion into sales.
"""
import logging
from datetime import datetime
from typing import List

from fastapi import HTTPException
from firebase_admin import firestore

from api.common.database import get_firestore_client, snapshot_to_dict
from api.common.utils import safe_float, safe_int, today_iso, clean_text
from api.customers.services import get_customer_doc
from api.sales.services import SALES_COLLECTION, generate_sale_number
from api.wishlist.schemas import WishlistItemInfo, WishlistData, WishlistStats, WishlistConvertResult

logger = logging.getLogger(__name__)

WISHLIST_COLLECTION = 'wishlist'
CONVERSION_CATEGORY = 'Wishlist Conversion'

STATUS_ORDER = {"pending": 0, "confirmed": 1, "cancelled": 2, "converted": 3}
PRIORITY_ORDER = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


def sort_wishlist(items: List[dict]) -> List[dict]:
    """Order by status, then priority (most urgent first), then newest."""
    items = sorted(
        items,
        key=lambda i: i['createdAt'].timestamp() if isinstance(i.get('createdAt'), datetime) else 0,
        reverse=True,
    )
    return sorted(items, key=lambda i: (
        STATUS_ORDER.get(i.get('status'), len(STATUS_ORDER)),
        PRIORITY_ORDER.get(i.get('priority'), len(PRIORITY_ORDER)),
    ))


def load_wishlist(db, customer_id: str) -> List[dict]:
    docs = db.collection(WISHLIST_COLLECTION).where('customerId', '==', customer_id).stream()
    return [snapshot_to_dict(doc) for doc in docs]


def compute_wishlist_stats(customer_id: str, items: List[dict]) -> WishlistStats:
    counts = {status: 0 for status in STATUS_ORDER}
    for item in items:
        if item.get('status') in counts:
            counts[item['status']] += 1

    total_value = sum(
        safe_float(item.get('totalPrice')) for item in items if item.get('status') != 'cancelled'
    )
    return WishlistStats(
        customerId=customer_id,
        totalItems=len(items),
        pendingItems=counts['pending'],
        confirmedItems=counts['confirmed'],
        cancelledItems=counts['cancelled'],
        convertedItems=counts['converted'],
        totalValue=round(total_value, 2),
        totalQuantity=sum(safe_int(item.get('quantity')) for item in items),
    )


async def get_customer_wishlist(customer_id: str) -> WishlistData:
    """
    Raises:
        HTTPException: If the customer is not found or other errors occur
    """
    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)
        items = sort_wishlist(load_wishlist(db, customer_id))
        return WishlistData(items=[WishlistItemInfo(**i) for i in items], total=len(items))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list wishlist of customer %s", customer_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_wishlist_stats(customer_id: str) -> WishlistStats:
    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)
        return compute_wishlist_stats(customer_id, load_wishlist(db, customer_id))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to compute wishlist stats of customer %s", customer_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def add_wishlist_item(customer_id: str, item_data: dict) -> WishlistItemInfo:
    """
    Service function to add an item to a customer's wishlist.
    The total price is quantity * unit price.

    Raises:
        HTTPException: If the customer is not found, validation fails, or other errors occur
    """
    product_name = clean_text(item_data.get('productName'))
    if not product_name:
        raise HTTPException(status_code=400, detail="Product name is required")

    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        quantity = safe_int(item_data.get('quantity'))
        unit_price = safe_float(item_data.get('unitPrice'))
        doc_data = {
            **item_data,
            'customerId': customer_id,
            'productName': product_name,
            'quantity': quantity,
            'unitPrice': unit_price,
            'totalPrice': round(quantity * unit_price, 2),
            'status': item_data.get('status') or 'pending',
            'priority': item_data.get('priority') or 'medium',
            'createdAt': firestore.SERVER_TIMESTAMP,
            'updatedAt': firestore.SERVER_TIMESTAMP,
        }

        doc_ref = db.collection(WISHLIST_COLLECTION).document()
        doc_ref.set(doc_data)
        logger.info("Added wishlist item %s for customer %s", doc_ref.id, customer_id)

        return WishlistItemInfo(**snapshot_to_dict(doc_ref.get()))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to add wishlist item for customer %s", customer_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


def get_wishlist_doc(db, item_id: str):
    doc = db.collection(WISHLIST_COLLECTION).document(item_id).get()
    if not doc.exists:
        raise HTTPException(status_code=404, detail="Wishlist item not found")
    return doc


async def get_wishlist_item(item_id: str) -> WishlistItemInfo:
    try:
        db = get_firestore_client()
        return WishlistItemInfo(**snapshot_to_dict(get_wishlist_doc(db, item_id)))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get wishlist item %s", item_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def update_wishlist_item(item_id: str, update_data: dict) -> WishlistItemInfo:
    """
    Service function to update a wishlist item. The total price follows
    quantity and unit price.

    Raises:
        HTTPException: If no field is given, the item is not found, or other errors occur
    """
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        db = get_firestore_client()
        doc = get_wishlist_doc(db, item_id)
        current = doc.to_dict()

        if 'quantity' in update_data or 'unitPrice' in update_data:
            quantity = safe_int(update_data.get('quantity', current.get('quantity')))
            unit_price = safe_float(update_data.get('unitPrice', current.get('unitPrice')))
            update_data['totalPrice'] = round(quantity * unit_price, 2)

        update_data['updatedAt'] = firestore.SERVER_TIMESTAMP
        doc.reference.update(update_data)

        return WishlistItemInfo(**snapshot_to_dict(doc.reference.get()))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to update wishlist item %s", item_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def delete_wishlist_item(item_id: str) -> bool:
    try:
        db = get_firestore_client()
        doc = get_wishlist_doc(db, item_id)
        doc.reference.delete()
        logger.info("Deleted wishlist item %s", item_id)
        return True

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to delete wishlist item %s", item_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def convert_wishlist_to_sales(customer_id: str, wishlist_ids: List[str]) -> WishlistConvertResult:
    """
    Turn wishlist items into sales dated today.

    Only the customer's items that are neither cancelled nor already converted
    are used. Each one becomes a sale in the "Wishlist Conversion" category and
    is marked converted; every write goes into a single batch.

    Raises:
        HTTPException: If no id is given, no item qualifies, the customer is not found,
            or other errors occur
    """
    if not wishlist_ids:
        raise HTTPException(status_code=400, detail="wishlistIds must be a non-empty array")

    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        items = []
        for item_id in dict.fromkeys(wishlist_ids):
            doc = db.collection(WISHLIST_COLLECTION).document(item_id).get()
            if not doc.exists:
                continue
            item = doc.to_dict()
            if item.get('customerId') == customer_id and item.get('status') not in ('cancelled', 'converted'):
                items.append(doc)

        if not items:
            raise HTTPException(status_code=404, detail="No valid wishlist items found")

        batch = db.batch()
        sales_ids = []
        sale_date = today_iso()

        for doc in items:
            item = doc.to_dict()
            quantity = safe_int(item.get('quantity'))
            unit_price = safe_float(item.get('unitPrice'))
            sale_ref = db.collection(SALES_COLLECTION).document()
            batch.set(sale_ref, {
                'saleNumber': generate_sale_number(item.get('productId')),
                'date': sale_date,
                'productId': item.get('productId'),
                'productName': item.get('productName'),
                'price': unit_price,
                'quantity': quantity,
                'category': CONVERSION_CATEGORY,
                'discount': 0.0,
                'taxAmount': 0.0,
                'totalPrice': round(quantity * unit_price, 2),
                'paymentMethod': 'cash',
                'customerId': customer_id,
                'notes': f"Converted from wishlist item #{doc.id}",
                'createdAt': firestore.SERVER_TIMESTAMP,
                'updatedAt': firestore.SERVER_TIMESTAMP,
            })
            batch.update(doc.reference, {'status': 'converted', 'updatedAt': firestore.SERVER_TIMESTAMP})
            sales_ids.append(sale_ref.id)

        batch.commit()
        logger.info("Converted %d wishlist items of customer %s", len(items), customer_id)

        return WishlistConvertResult(
            message="Wishlist items converted to sales successfully",
            salesIds=sales_ids,
            convertedItems=len(items),
        )

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to convert wishlist of customer %s", customer_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )
