"""
This module defines the Pydantic models used for category management.
These models are used for request and response validation and serialization.
"""

from typing import Optional

from pydantic import BaseModel, Field

from api.common.schemas import TimestampMixin, PaginationResponse


class CategoryBase(BaseModel):
    """
    Base model for category data that is common to create, update and response models.
    """
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    description: Optional[str] = Field(None, max_length=500, description="Category description")


class CategoryCreate(CategoryBase):
    """
    Represents the request data for creating a new category.
    """
    pass


class CategoryUpdate(BaseModel):
    """
    Represents the request data for updating an existing category.
    All fields are optional as only provided fields will be updated.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Category name")
    description: Optional[str] = Field(None, max_length=500, description="Category description")


class CategoryInDB(CategoryBase, TimestampMixin):
    """
    Represents a category as stored in the database, including all metadata.
    """
    id: str = Field(..., description="Unique category identifier")
    productCount: Optional[int] = Field(default=0, description="Number of products in this category")


class CategoryDetailData(BaseModel):
    """
    Container for a single category item.
    """
    item: CategoryInDB


class CategoriesData(PaginationResponse[CategoryInDB]):
    """
    Represents a paginated list of categories.
    """
    pass
