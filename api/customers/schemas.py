"""
Customer management schemas for CRUD operations.
"""

from datetime import datetime
from typing import Optional, Union, List, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from api.common.schemas import TimestampMixin, PaginationResponse
from api.common.utils import normalize_date

CustomerType = Literal["retail", "wholesale", "commercial"]


class CustomerCreate(BaseModel):
    """
    Schema for creating a new customer.
    """
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    customerType: CustomerType = "retail"
    creditLimit: float = Field(0, ge=0)
    notes: Optional[str] = None
    isActive: bool = True

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, v):
        """Convert empty string to None for email validation."""
        if v == '':
            return None
        return v


class CustomerUpdate(BaseModel):
    """
    Schema for updating customer information.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[Union[EmailStr, Literal[""]]] = None  # empty string clears the email
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    customerType: Optional[CustomerType] = None
    creditLimit: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    isActive: Optional[bool] = None


class CustomerInfo(BaseModel, TimestampMixin):
    """
    Customer information returned in responses.
    """
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    customerType: str = "retail"
    creditLimit: float = 0
    notes: Optional[str] = None
    isActive: bool = True
    totalPaid: float = 0


class CustomerItemResponse(BaseModel):
    """
    Wrapper for single customer item response.
    """
    item: CustomerInfo


class CustomersData(PaginationResponse[CustomerInfo]):
    pass


class CustomerTypeCount(BaseModel):
    customerType: str
    count: int


class CustomerTypesData(BaseModel):
    items: List[CustomerTypeCount]


class TopCustomer(CustomerInfo):
    """
    Customer ranked by sales revenue.
    """
    totalOrders: int = 0
    totalRevenue: float = 0
    avgOrderValue: float = 0
    lastOrderDate: Optional[str] = None


class TopCustomersData(BaseModel):
    items: List[TopCustomer]


class InactiveCustomer(CustomerInfo):
    lastPurchaseDate: Optional[str] = None


class InactiveCustomersData(BaseModel):
    items: List[InactiveCustomer]
    total: int
    days: int


class CustomerStats(BaseModel):
    """
    Purchase and payment summary of one customer.
    """
    customerId: str
    totalSales: int = 0
    totalRevenue: float = 0
    averageSale: float = 0
    lastSaleDate: Optional[str] = None
    lastSaleAmount: float = 0
    totalPaid: float = 0
    balance: float = 0


class PaymentCreate(BaseModel):
    """
    Schema for recording a customer payment.
    """
    amount: float = Field(..., gt=0)
    paymentDate: Optional[str] = None
    paymentMethod: str = "cash"
    referenceNumber: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('paymentDate', mode='before')
    @classmethod
    def validate_payment_date(cls, v):
        return normalize_date(v, 'paymentDate')


class PaymentInfo(BaseModel):
    id: str
    customerId: str
    amount: float
    paymentDate: str
    paymentMethod: str = "cash"
    referenceNumber: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None


class PaymentsData(BaseModel):
    items: List[PaymentInfo]
    total: int
    totalPaid: float


class TotalPaidData(BaseModel):
    customerId: str
    totalPaid: float


CustomerProductStatus = Literal["pending", "confirmed", "delivered", "cancelled"]


class CustomerProductCreate(BaseModel):
    """
    Product line ordered by or reserved for a customer.
    """
    productId: Optional[str] = None
    productName: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(..., gt=0)
    unitPrice: float = Field(..., ge=0)
    status: CustomerProductStatus = "pending"
    notes: Optional[str] = None


class CustomerProductUpdate(BaseModel):
    quantity: Optional[int] = Field(None, gt=0)
    unitPrice: Optional[float] = Field(None, ge=0)
    status: Optional[CustomerProductStatus] = None
    notes: Optional[str] = None


class CustomerProductInfo(BaseModel, TimestampMixin):
    """
    Customer product line. currentProductName and currentPrice come from the
    linked catalogue product when it still exists.
    """
    id: str
    customerId: str
    productId: Optional[str] = None
    productName: str
    quantity: int
    unitPrice: float
    totalPrice: float
    status: str = "pending"
    notes: Optional[str] = None
    currentProductName: Optional[str] = None
    currentPrice: Optional[float] = None


class CustomerProductItemData(BaseModel):
    item: CustomerProductInfo


class CustomerProductsData(BaseModel):
    items: List[CustomerProductInfo]
    total: int


class CustomerProductsTotal(BaseModel):
    customerId: str
    total: float
