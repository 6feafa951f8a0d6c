"""
This module defines the Pydantic models used for customer wishlists.
"""

from typing import Optional, List, Literal

from pydantic import BaseModel, Field, field_validator

from api.common.schemas import TimestampMixin
from api.common.utils import normalize_date

WishlistStatus = Literal["pending", "confirmed", "cancelled", "converted"]
WishlistPriority = Literal["low", "medium", "high", "urgent"]


class WishlistItemCreate(BaseModel):
    """
    Represents the request data for adding a product to a customer's wishlist.
    """
    productId: Optional[str] = None
    productName: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(..., gt=0)
    unitPrice: float = Field(..., ge=0)
    status: WishlistStatus = "pending"
    priority: WishlistPriority = "medium"
    notes: Optional[str] = None
    requestedDate: Optional[str] = None
    estimatedDeliveryDate: Optional[str] = None

    @field_validator('requestedDate', 'estimatedDeliveryDate', mode='before')
    @classmethod
    def validate_dates(cls, v, info):
        return normalize_date(v, info.field_name)


class WishlistItemUpdate(BaseModel):
    """
    All fields are optional as only provided fields will be updated.
    """
    productId: Optional[str] = None
    productName: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[int] = Field(None, gt=0)
    unitPrice: Optional[float] = Field(None, ge=0)
    status: Optional[WishlistStatus] = None
    priority: Optional[WishlistPriority] = None
    notes: Optional[str] = None
    requestedDate: Optional[str] = None
    estimatedDeliveryDate: Optional[str] = None

    @field_validator('requestedDate', 'estimatedDeliveryDate', mode='before')
    @classmethod
    def validate_dates(cls, v, info):
        return normalize_date(v, info.field_name)


class WishlistItemInfo(BaseModel, TimestampMixin):
    id: str
    customerId: str
    productId: Optional[str] = None
    productName: str
    quantity: int
    unitPrice: float
    totalPrice: float
    status: str = "pending"
    priority: str = "medium"
    notes: Optional[str] = None
    requestedDate: Optional[str] = None
    estimatedDeliveryDate: Optional[str] = None


class WishlistItemData(BaseModel):
    item: WishlistItemInfo


class WishlistData(BaseModel):
    items: List[WishlistItemInfo]
    total: int


class WishlistStats(BaseModel):
    """
    Summary of a customer's wishlist. Cancelled items do not count in totalValue.
    """
    customerId: str
    totalItems: int = 0
    pendingItems: int = 0
    confirmedItems: int = 0
    cancelledItems: int = 0
    convertedItems: int = 0
    totalValue: float = 0
    totalQuantity: int = 0


class WishlistConvertRequest(BaseModel):
    wishlistIds: Optional[List[str]] = None


class WishlistConvertResult(BaseModel):
    message: str
    salesIds: List[str]
    convertedItems: int
