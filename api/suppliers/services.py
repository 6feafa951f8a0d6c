"""
Service functions for supplier management operations.
"""
import logging

from fastapi import HTTPException
from firebase_admin import firestore

from api.common.database import get_firestore_client, snapshot_to_dict
from api.common.search import search_documents
from api.common.utils import paginate, safe_float, safe_int
from api.products.schemas import ProductsData, CategoryCountsData
from api.products.services import PRODUCTS_COLLECTION, to_product, sort_products, count_by_category
from api.suppliers.schemas import SupplierInDB, SuppliersData, SupplierStats

logger = logging.getLogger(__name__)

SUPPLIERS_COLLECTION = 'suppliers'

SUPPLIER_SEARCH_FIELDS = [
    ("name", 10),
    ("contactPerson", 5),
    ("email", 4),
    ("phone", 4),
    ("city", 2),
]


def get_supplier_products(db, supplier_id: str):
    """Active products of a supplier."""
    docs = db.collection(PRODUCTS_COLLECTION).where('supplier.id', '==', supplier_id).stream()
    products = [snapshot_to_dict(doc) for doc in docs]
    return [p for p in products if p.get('isActive', True)]


def count_products_per_supplier(db):
    counts = {}
    for product_doc in db.collection(PRODUCTS_COLLECTION).stream():
        product = product_doc.to_dict() or {}
        if not product.get('isActive', True):
            continue
        supplier = product.get('supplier') or {}
        if supplier.get('id'):
            counts[supplier['id']] = counts.get(supplier['id'], 0) + 1
    return counts


async def get_suppliers(limit: int = 50, offset: int = 0, search: str = None, city: str = None) -> SuppliersData:
    """
    Retrieve suppliers sorted by name, with optional search and city filter.

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        counts = count_products_per_supplier(db)

        suppliers = []
        for doc in db.collection(SUPPLIERS_COLLECTION).stream():
            supplier_data = snapshot_to_dict(doc)
            if not supplier_data.get('isActive', True):
                continue
            supplier_data['productCount'] = counts.get(doc.id, 0)
            suppliers.append(supplier_data)

        suppliers.sort(key=lambda item: (item.get('name') or '').lower())

        if city:
            wanted = city.strip().lower()
            suppliers = [s for s in suppliers if (s.get('city') or '').strip().lower() == wanted]

        if search:
            suppliers = search_documents(suppliers, search, SUPPLIER_SEARCH_FIELDS)

        page = paginate([SupplierInDB(**s) for s in suppliers], limit, offset)
        return SuppliersData(**page)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list suppliers")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_supplier_by_id(supplier_id: str) -> SupplierInDB:
    """
    Retrieve a single supplier by ID.

    Raises:
        HTTPException: If supplier is not found or other errors occur
    """
    if not supplier_id:
        raise HTTPException(
            status_code=400,
            detail="Missing supplier ID parameter"
        )

    try:
        db = get_firestore_client()
        doc = db.collection(SUPPLIERS_COLLECTION).document(supplier_id).get()

        if not doc.exists:
            raise HTTPException(
                status_code=404,
                detail="Supplier not found"
            )

        supplier_data = snapshot_to_dict(doc)
        supplier_data['productCount'] = len(get_supplier_products(db, supplier_id))
        return SupplierInDB(**supplier_data)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get supplier %s", supplier_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def create_supplier(supplier_data: dict) -> SupplierInDB:
    """
    Create a new supplier.

    Raises:
        HTTPException: If the name is blank or other errors occur
    """
    name = (supplier_data.get('name') or '').strip()
    if not name:
        raise HTTPException(
            status_code=400,
            detail="Supplier name is required"
        )

    try:
        db = get_firestore_client()

        supplier_data['name'] = name
        supplier_data['createdAt'] = firestore.SERVER_TIMESTAMP
        supplier_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        new_supplier_ref = db.collection(SUPPLIERS_COLLECTION).document()
        new_supplier_ref.set(supplier_data)

        created_supplier = new_supplier_ref.get().to_dict()
        created_supplier['id'] = new_supplier_ref.id
        logger.info("Created supplier %s (%s)", new_supplier_ref.id, name)
        return SupplierInDB(**created_supplier)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to create supplier")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def update_supplier(supplier_id: str, supplier_data: dict) -> SupplierInDB:
    """
    Update an existing supplier. A new name is copied onto its products.

    Raises:
        HTTPException: If supplier is not found or other errors occur
    """
    try:
        db = get_firestore_client()
        supplier_ref = db.collection(SUPPLIERS_COLLECTION).document(supplier_id)
        supplier = supplier_ref.get()

        if not supplier.exists:
            raise HTTPException(
                status_code=404,
                detail="Supplier not found"
            )

        update_data = dict(supplier_data)
        if 'name' in update_data:
            update_data['name'] = (update_data['name'] or '').strip()
            if not update_data['name']:
                raise HTTPException(status_code=400, detail="Supplier name is required")

        update_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        batch = db.batch()
        batch.update(supplier_ref, update_data)
        if 'name' in update_data and update_data['name'] != supplier.to_dict().get('name'):
            for product in db.collection(PRODUCTS_COLLECTION).where('supplier.id', '==', supplier_id).get():
                batch.update(product.reference, {
                    'supplier': {'id': supplier_id, 'name': update_data['name']},
                    'updatedAt': firestore.SERVER_TIMESTAMP,
                })
        batch.commit()

        return await get_supplier_by_id(supplier_id)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to update supplier %s", supplier_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def delete_supplier(supplier_id: str) -> bool:
    """
    Delete a supplier that no product references.

    Raises:
        HTTPException: If supplier is not found, still referenced, or other errors occur
    """
    try:
        db = get_firestore_client()
        supplier_ref = db.collection(SUPPLIERS_COLLECTION).document(supplier_id)

        if not supplier_ref.get().exists:
            raise HTTPException(
                status_code=404,
                detail="Supplier not found"
            )

        if db.collection(PRODUCTS_COLLECTION).where('supplier.id', '==', supplier_id).limit(1).get():
            raise HTTPException(
                status_code=400,
                detail="Cannot delete supplier that is referenced by products"
            )

        supplier_ref.delete()
        logger.info("Deleted supplier %s", supplier_id)
        return True

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to delete supplier %s", supplier_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def list_supplier_products(supplier_id: str, limit: int = 50, offset: int = 0) -> ProductsData:
    """
    Products supplied by a supplier, sorted by name.

    Raises:
        HTTPException: If supplier is not found or other errors occur
    """
    await get_supplier_by_id(supplier_id)

    try:
        db = get_firestore_client()
        products = sort_products(get_supplier_products(db, supplier_id), 'name', 'asc')
        return ProductsData(**paginate([to_product(p) for p in products], limit, offset))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list products of supplier %s", supplier_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_supplier_stats(supplier_id: str) -> SupplierStats:
    """
    Inventory totals for a supplier's products. Stock value uses the purchase price.

    Raises:
        HTTPException: If supplier is not found or other errors occur
    """
    await get_supplier_by_id(supplier_id)

    try:
        db = get_firestore_client()
        products = get_supplier_products(db, supplier_id)

        total_stock = 0
        stock_value = 0.0
        low_stock_count = 0
        for product in products:
            stock = safe_int(product.get('stockQuantity'))
            total_stock += stock
            stock_value += safe_float(product.get('purchasePrice')) * stock
            if stock <= safe_int(product.get('minStockLevel')):
                low_stock_count += 1

        return SupplierStats(
            supplierId=supplier_id,
            productCount=len(products),
            totalStock=total_stock,
            stockValue=round(stock_value, 2),
            lowStockCount=low_stock_count,
        )

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to compute stats of supplier %s", supplier_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_supplier_categories(supplier_id: str) -> CategoryCountsData:
    """
    Categories of a supplier's active products, with the product count of each.

    Raises:
        HTTPException: If supplier is not found or other errors occur
    """
    await get_supplier_by_id(supplier_id)

    try:
        db = get_firestore_client()
        return CategoryCountsData(items=count_by_category(get_supplier_products(db, supplier_id)))

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list categories of supplier %s", supplier_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )
