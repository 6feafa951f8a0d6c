"""
Supplier management schemas for CRUD operations.
"""

from typing import Optional, Union, Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from api.common.schemas import TimestampMixin, PaginationResponse


class SupplierCreate(BaseModel):
    """
    Schema for creating a new supplier.
    """
    name: str = Field(..., min_length=1, max_length=200)
    contactPerson: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    paymentTerms: str = "Net 30"
    notes: Optional[str] = None
    isActive: bool = True

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, v):
        """Treat an empty email as missing."""
        if v == '':
            return None
        return v


class SupplierUpdate(BaseModel):
    """
    Schema for updating supplier information.
    Only provided fields are written.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contactPerson: Optional[str] = None
    email: Optional[Union[EmailStr, Literal[""]]] = None  # empty string clears the email
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    paymentTerms: Optional[str] = None
    notes: Optional[str] = None
    isActive: Optional[bool] = None


class SupplierInDB(BaseModel, TimestampMixin):
    """
    Supplier as stored in the database.
    """
    id: str
    name: str
    contactPerson: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    paymentTerms: Optional[str] = "Net 30"
    notes: Optional[str] = None
    isActive: bool = True
    productCount: int = 0


class SupplierDetailData(BaseModel):
    item: SupplierInDB


class SuppliersData(PaginationResponse[SupplierInDB]):
    pass


class SupplierStats(BaseModel):
    """
    Inventory figures for the products of one supplier.
    """
    supplierId: str
    productCount: int = 0
    totalStock: int = 0
    stockValue: float = 0
    lowStockCount: int = 0
