"""
Service functions for category management operations.
Handles database interactions for categories including CRUD operations.
"""
import logging
from typing import Dict

from fastapi import HTTPException
from firebase_admin import firestore

from api.categories.schemas import CategoryInDB, CategoriesData
from api.common.database import get_firestore_client, snapshot_to_dict
from api.common.search import search_documents
from api.common.utils import paginate

logger = logging.getLogger(__name__)

CATEGORIES_COLLECTION = 'categories'
PRODUCTS_COLLECTION = 'products'


def count_products_per_category(db) -> Dict[str, int]:
    """Number of products per category id, computed from one products query."""
    counts = {}
    for product_doc in db.collection(PRODUCTS_COLLECTION).stream():
        category = (product_doc.to_dict() or {}).get('category') or {}
        category_id = category.get('id')
        if category_id:
            counts[category_id] = counts.get(category_id, 0) + 1
    return counts


def find_category_by_name(db, name: str, exclude_id: str = None):
    """Return the category whose name matches case-insensitively, or None."""
    wanted = name.strip().lower()
    for doc in db.collection(CATEGORIES_COLLECTION).stream():
        if doc.id == exclude_id:
            continue
        data = doc.to_dict() or {}
        if (data.get('name') or '').strip().lower() == wanted:
            return snapshot_to_dict(doc)
    return None


async def get_categories(limit: int = 1000, offset: int = 0, search: str = None) -> CategoriesData:
    """
    Service function to retrieve categories sorted by name, each with its product count.

    Args:
        limit: Maximum number of categories to return
        offset: Number of categories to skip
        search: Optional search text matched against the category name

    Returns:
        CategoriesData object containing the paginated categories

    Raises:
        HTTPException: If errors occur during retrieval
    """
    try:
        db = get_firestore_client()
        counts = count_products_per_category(db)

        categories = []
        for doc in db.collection(CATEGORIES_COLLECTION).stream():
            category_data = snapshot_to_dict(doc)
            category_data['productCount'] = counts.get(doc.id, 0)
            categories.append(category_data)

        categories.sort(key=lambda item: (item.get('name') or '').lower())

        if search:
            categories = search_documents(categories, search, [("name", 10), ("description", 1)])

        page = paginate([CategoryInDB(**item) for item in categories], limit, offset)
        return CategoriesData(**page)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to list categories")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def get_category_by_id(category_id: str) -> CategoryInDB:
    """
    Service function to retrieve a single category by ID.

    Raises:
        HTTPException: If category is not found or other errors occur
    """
    if not category_id:
        raise HTTPException(
            status_code=400,
            detail="Missing category ID parameter"
        )

    try:
        db = get_firestore_client()
        doc = db.collection(CATEGORIES_COLLECTION).document(category_id).get()

        if not doc.exists:
            raise HTTPException(
                status_code=404,
                detail="Category not found"
            )

        category_data = snapshot_to_dict(doc)
        category_data['productCount'] = count_products_per_category(db).get(category_id, 0)
        return CategoryInDB(**category_data)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to get category %s", category_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def create_category(category_data: dict) -> CategoryInDB:
    """
    Service function to create a new category.

    Raises:
        HTTPException: If the name is blank or already used, or other errors occur
    """
    name = (category_data.get('name') or '').strip()
    if not name:
        raise HTTPException(
            status_code=400,
            detail="Category name is required"
        )

    try:
        db = get_firestore_client()

        if find_category_by_name(db, name):
            raise HTTPException(
                status_code=400,
                detail="Category name already exists"
            )

        category_data['name'] = name
        category_data['createdAt'] = firestore.SERVER_TIMESTAMP
        category_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        new_category_ref = db.collection(CATEGORIES_COLLECTION).document()
        new_category_ref.set(category_data)

        created_category = new_category_ref.get().to_dict()
        created_category['id'] = new_category_ref.id
        logger.info("Created category %s (%s)", new_category_ref.id, name)

        return CategoryInDB(**created_category)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to create category")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def update_category(category_id: str, category_data: dict) -> CategoryInDB:
    """
    Service function to update an existing category.

    Renaming a category also rewrites the embedded category name of every
    product in it, in the same write batch.

    Raises:
        HTTPException: If category is not found, the new name is taken, or other errors occur
    """
    if not category_id:
        raise HTTPException(
            status_code=400,
            detail="Missing category ID parameter"
        )

    try:
        db = get_firestore_client()
        category_ref = db.collection(CATEGORIES_COLLECTION).document(category_id)
        category = category_ref.get()

        if not category.exists:
            raise HTTPException(
                status_code=404,
                detail="Category not found"
            )

        existing = category.to_dict()
        update_data = dict(category_data)

        if 'name' in update_data:
            new_name = (update_data['name'] or '').strip()
            if not new_name:
                raise HTTPException(status_code=400, detail="Category name is required")
            if find_category_by_name(db, new_name, exclude_id=category_id):
                raise HTTPException(status_code=400, detail="Category name already exists")
            update_data['name'] = new_name

        update_data['updatedAt'] = firestore.SERVER_TIMESTAMP

        batch = db.batch()
        batch.update(category_ref, update_data)

        renamed = 'name' in update_data and update_data['name'] != existing.get('name')
        if renamed:
            products = db.collection(PRODUCTS_COLLECTION).where('category.id', '==', category_id).get()
            for product in products:
                batch.update(product.reference, {
                    'category': {'id': category_id, 'name': update_data['name']},
                    'updatedAt': firestore.SERVER_TIMESTAMP,
                })
        batch.commit()

        return await get_category_by_id(category_id)

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to update category %s", category_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )


async def delete_category(category_id: str) -> bool:
    """
    Service function to delete a category by ID.

    Raises:
        HTTPException: If category is not found, still used by products, or other errors occur
    """
    if not category_id:
        raise HTTPException(
            status_code=400,
            detail="Missing category ID parameter"
        )

    try:
        db = get_firestore_client()
        category_ref = db.collection(CATEGORIES_COLLECTION).document(category_id)

        if not category_ref.get().exists:
            raise HTTPException(
                status_code=404,
                detail="Category not found"
            )

        # Check if category is being used by any products
        products_using_category = db.collection(PRODUCTS_COLLECTION).where('category.id', '==', category_id).limit(1).get()
        if products_using_category:
            raise HTTPException(
                status_code=400,
                detail="Cannot delete category that is being used by products"
            )

        category_ref.delete()
        logger.info("Deleted category %s", category_id)
        return True

    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to delete category %s", category_id)
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(exc)}"
        )
