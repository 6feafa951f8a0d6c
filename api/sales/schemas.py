"""
This module defines the Pydantic models used for sales management.
These models are used for request and response validation and serialization.
"""

from typing import Optional, List, Literal

from pydantic import BaseModel, Field, field_validator

from api.common.schemas import TimestampMixin, PaginationResponse
from api.common.utils import normalize_date

PaymentMethod = Literal["cash", "credit", "check", "bank_transfer"]


class SaleCreate(BaseModel):
    """
    Represents the request data for recording a sale.
    Required fields are checked by the service so that missing values get a
    single explicit error message.
    """
    date: Optional[str] = None
    productId: Optional[str] = None
    productName: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    discount: float = Field(0, ge=0)
    taxAmount: float = Field(0, ge=0)
    paymentMethod: PaymentMethod = "cash"
    customerId: Optional[str] = None
    notes: str = ""
    updateInventory: bool = Field(False, description="Take the sold quantity out of the product stock")

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v):
        return normalize_date(v)


class SaleUpdate(BaseModel):
    """
    Represents the request data for updating a sale.
    All fields are optional as only provided fields will be updated.
    """
    date: Optional[str] = None
    productId: Optional[str] = None
    productName: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    discount: Optional[float] = Field(None, ge=0)
    taxAmount: Optional[float] = Field(None, ge=0)
    paymentMethod: Optional[PaymentMethod] = None
    customerId: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('date', mode='before')
    @classmethod
    def validate_date(cls, v):
        return normalize_date(v)


class SaleInfo(BaseModel, TimestampMixin):
    """
    Sale as stored in the database.
    """
    id: str
    saleNumber: Optional[str] = None
    date: str
    productId: Optional[str] = None
    productName: str
    price: float
    quantity: int
    category: str
    discount: float = 0
    taxAmount: float = 0
    totalPrice: float
    paymentMethod: Optional[str] = "cash"
    customerId: Optional[str] = None
    notes: Optional[str] = ""


class InventoryUpdate(BaseModel):
    """
    Stock change caused by a sale.
    """
    productId: str
    previousStock: int
    newStock: int
    isLowStock: bool


class SaleDetailData(BaseModel):
    item: SaleInfo
    inventory: Optional[InventoryUpdate] = None


class SalesData(PaginationResponse[SaleInfo]):
    pass


class CategorySummary(BaseModel):
    name: str
    sales: int
    revenue: float


class RecentSale(BaseModel):
    id: str
    productName: str
    totalPrice: float
    date: str


class DailyRevenue(BaseModel):
    date: str
    revenue: float


class SalesStats(BaseModel):
    """
    Sales dashboard figures.
    """
    totalSales: int = 0
    totalRevenue: float = 0
    totalProducts: int = Field(0, description="Number of items sold")
    averageSale: float = 0
    topCategories: List[CategorySummary] = []
    recentSales: List[RecentSale] = []
    dailyRevenue: List[DailyRevenue] = []


class SaleCategoriesData(BaseModel):
    items: List[str]


class AggregatedSale(BaseModel):
    """
    Sales of one product name within one category.
    """
    productId: Optional[str] = None
    productName: str
    category: str
    totalQuantity: int
    averagePrice: float
    totalRevenue: float


class AggregatedSalesData(BaseModel):
    items: List[AggregatedSale]
    total: int
