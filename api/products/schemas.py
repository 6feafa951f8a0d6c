"""
This module defines the Pydantic models used for product management.
These models are used for request and response validation and serialization.
"""

from datetime import datetime
from typing import Optional, List, Literal, Dict

from pydantic import BaseModel, Field, field_validator

from api.common.config import DEFAULT_MIN_STOCK_LEVEL, DEFAULT_MAX_STOCK_LEVEL
from api.common.schemas import TimestampMixin, PaginationResponse, EmbeddedRef

MovementType = Literal["in", "out", "adjustment"]


class RefInput(BaseModel):
    """
    Reference to a category or supplier sent by the client.
    Only the id is trusted; the name is read from the referenced document.
    """
    id: str = Field(..., min_length=1)
    name: Optional[str] = None


class ProductBase(BaseModel):
    """
    Base model for product data that is common to create, update and response models.
    """
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    sku: Optional[str] = None
    barcode: Optional[str] = None
    purchasePrice: float = Field(0, ge=0)
    sellingPrice: float = Field(..., ge=0)
    stockQuantity: int = Field(0, ge=0)
    minStockLevel: int = Field(DEFAULT_MIN_STOCK_LEVEL, ge=0)
    maxStockLevel: int = Field(DEFAULT_MAX_STOCK_LEVEL, ge=0)
    unit: str = "unit"
    location: Optional[str] = None
    imageUrls: List[str] = []
    thumbnailUrl: Optional[str] = None
    isActive: bool = True


class ProductCreate(ProductBase):
    """
    Represents the request data for creating a new product.
    """
    category: RefInput
    supplier: Optional[RefInput] = None


class ProductUpdate(BaseModel):
    """
    Represents the request data for updating an existing product.
    All fields are optional as only provided fields will be updated.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    purchasePrice: Optional[float] = Field(None, ge=0)
    sellingPrice: Optional[float] = Field(None, ge=0)
    stockQuantity: Optional[int] = Field(None, ge=0)
    minStockLevel: Optional[int] = Field(None, ge=0)
    maxStockLevel: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    location: Optional[str] = None
    imageUrls: Optional[List[str]] = None
    thumbnailUrl: Optional[str] = None
    isActive: Optional[bool] = None
    category: Optional[RefInput] = None
    supplier: Optional[RefInput] = None


class ProductInDB(ProductBase, TimestampMixin):
    """
    Represents a product as stored in the database, including all metadata
    and the derived stock figures.
    """
    id: str
    sellingPrice: float = 0
    category: Optional[EmbeddedRef] = None
    supplier: Optional[EmbeddedRef] = None
    stockStatus: str = "in_stock"
    stockValue: float = 0

    @field_validator('category', 'supplier', mode='before')
    @classmethod
    def validate_reference(cls, value):
        """Drop embedded references that lost their name"""
        if isinstance(value, dict) and not value.get('name'):
            return None
        return value


class ProductDetailData(BaseModel):
    """
    Container for a single product item.
    """
    item: ProductInDB


class ProductsData(PaginationResponse[ProductInDB]):
    """
    Represents a paginated list of products for response.
    """
    pass


class StockMovementCreate(BaseModel):
    """
    Stock change request. `adjustment` sets the stock to `quantity`,
    `in` and `out` add or remove `quantity` units.
    """
    movementType: MovementType
    quantity: int = Field(..., ge=0)
    reason: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


class StockMovementInDB(BaseModel):
    id: str
    productId: str
    productName: Optional[str] = None
    movementType: str
    quantity: int
    previousStock: int
    newStock: int
    reason: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None


class StockMovementResult(BaseModel):
    """
    Outcome of a stock movement: the movement and the updated product.
    """
    movement: StockMovementInDB
    product: ProductInDB


class StockMovementsData(BaseModel):
    items: List[StockMovementInDB]
    total: int


class LowStockProduct(ProductInDB):
    """
    Product at or below its minimum stock level.
    """
    alertLevel: Literal["out_of_stock", "critical", "low"]
    deficit: int = 0


class LowStockData(BaseModel):
    items: List[LowStockProduct]
    total: int
    summary: Dict[str, int]


class OutOfStockData(BaseModel):
    items: List[ProductInDB]
    total: int


class AvailabilityData(BaseModel):
    """
    Whether a product can serve a requested quantity.
    """
    productId: str
    productName: str
    stockQuantity: int
    requestedQuantity: int
    available: bool
    shortage: int = 0
    stockStatus: str


class ImageUploadData(BaseModel):
    imageUrl: str


class CategoryCount(BaseModel):
    """
    Number of active products in a category.
    """
    categoryId: Optional[str] = None
    category: str
    productCount: int


class CategoryCountsData(BaseModel):
    items: List[CategoryCount]


class ProductInventoryStats(BaseModel):
    """
    Totals over active products. totalValue uses selling prices, totalCost purchase prices.
    """
    totalProducts: int = 0
    totalValue: float = 0
    totalCost: float = 0
    lowStockCount: int = 0
