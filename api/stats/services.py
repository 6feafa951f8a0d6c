"""
Services computing the inventory dashboard statistics.
"""
import logging

from fastapi import HTTPException

from api.common.cache import get_cache, set_cache, generate_cache_key
from api.common.config import LOW_STOCK_THRESHOLD, STATS_CACHE_TTL
from api.common.database import get_firestore_client
from api.common.formatting import format_currency, normalize_language
from api.common.utils import safe_float, safe_int
from .schemas import InventoryStats

logger = logging.getLogger(__name__)

PRODUCTS_COLLECTION = "products"


def compute_inventory_stats(products, language: str = None,
                            threshold: int = LOW_STOCK_THRESHOLD) -> InventoryStats:
    """
    Summarize product dicts. A product counts as low stock when its stock is
    at or below `threshold`, including products with no stock left.
    """
    total_value = 0.0
    low_stock_count = 0
    out_of_stock_count = 0

    for product in products:
        stock = safe_int(product.get("stockQuantity"))
        total_value += safe_float(product.get("sellingPrice")) * stock
        if stock <= threshold:
            low_stock_count += 1
        if stock <= 0:
            out_of_stock_count += 1

    total_value = round(total_value, 2)
    return InventoryStats(
        totalProducts=len(products),
        totalStockValue=total_value,
        lowStockCount=low_stock_count,
        outOfStockCount=out_of_stock_count,
        formattedStockValue=format_currency(total_value, language),
    )


async def get_inventory_stats(language: str = None) -> InventoryStats:
    """
    Dashboard statistics, served from Redis when a cached copy exists.

    Raises:
        HTTPException: If errors occur while reading products
    """
    language = normalize_language(language)
    cache_key = generate_cache_key("stats:dashboard", {"lang": language})

    cached = await get_cache(cache_key)
    if cached:
        return InventoryStats(**cached)

    try:
        db = get_firestore_client()
        products = [doc.to_dict() or {} for doc in db.collection(PRODUCTS_COLLECTION).stream()]
        products = [p for p in products if p.get("isActive", True)]
        stats = compute_inventory_stats(products, language)
    except Exception as exc:
        logger.exception("Failed to compute inventory stats")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )

    await set_cache(cache_key, stats.model_dump(), STATS_CACHE_TTL)
    return stats
