"""
Customer management services for CRUD operations, purchase history, payments and product lines.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List

from fastapi import HTTPException
from firebase_admin import firestore

from api.common.database import get_firestore_client, snapshot_to_dict
from api.common.search import search_documents
from api.common.utils import paginate, safe_float, now_local, today_iso
from api.sales.schemas import SaleInfo
from api.sales.services import load_sales, sort_sales
from .schemas import (
    CustomerInfo, CustomersData, CustomerTypeCount, TopCustomer, InactiveCustomer,
    InactiveCustomersData, CustomerStats, PaymentInfo, PaymentsData, CustomerProductInfo,
    CustomerProductsData,
)

logger = logging.getLogger(__name__)

CUSTOMERS_COLLECTION = 'customers'
PAYMENTS_COLLECTION = 'customer_payments'
WISHLIST_COLLECTION = 'wishlist'
CUSTOMER_PRODUCTS_COLLECTION = 'customer_products'
PRODUCTS_COLLECTION = 'products'

CUSTOMER_SEARCH_FIELDS = [
    ("name", 10),
    ("phone", 8),
    ("email", 5),
    ("city", 3),
    ("address", 3),
]


def payments_total_by_customer(db) -> Dict[str, float]:
    totals = {}
    for doc in db.collection(PAYMENTS_COLLECTION).stream():
        payment = doc.to_dict() or {}
        customer_id = payment.get('customerId')
        if customer_id:
            totals[customer_id] = totals.get(customer_id, 0.0) + safe_float(payment.get('amount'))
    return totals


def load_payments(db, customer_id: str) -> List[dict]:
    docs = db.collection(PAYMENTS_COLLECTION).where('customerId', '==', customer_id).stream()
    return [snapshot_to_dict(doc) for doc in docs]


def load_customers(db) -> List[dict]:
    """Every customer dict, with its totalPaid, sorted by name."""
    totals = payments_total_by_customer(db)
    customers = []
    for doc in db.collection(CUSTOMERS_COLLECTION).stream():
        customer_data = snapshot_to_dict(doc)
        customer_data['totalPaid'] = round(totals.get(doc.id, 0.0), 2)
        customers.append(customer_data)
    customers.sort(key=lambda c: (c.get('name') or '').lower())
    return customers


def get_customer_doc(db, customer_id: str):
    """
    Raises:
        HTTPException: If the customer does not exist
    """
    doc = db.collection(CUSTOMERS_COLLECTION).document(customer_id).get()
    if not doc.exists:
        raise HTTPException(status_code=404, detail="Customer not found")
    return doc


def ensure_unique_email(db, email: str, exclude_id: str = None):
    if not email:
        return
    for doc in db.collection(CUSTOMERS_COLLECTION).where('email', '==', email).get():
        if doc.id != exclude_id:
            raise HTTPException(
                status_code=400,
                detail="A customer with this email already exists"
            )


def to_customer(db, doc) -> CustomerInfo:
    customer_data = snapshot_to_dict(doc)
    customer_data['totalPaid'] = round(
        sum(safe_float(p.get('amount')) for p in load_payments(db, doc.id)), 2)
    return CustomerInfo(**customer_data)


async def get_customers_list_service(limit: int = 50, offset: int = 0, search: str = None,
                                     customer_type: str = None, city: str = None) -> CustomersData:
    """Get customers sorted by name, with filters and pagination."""
    try:
        db = get_firestore_client()
        customers = load_customers(db)

        if customer_type:
            customers = [c for c in customers if c.get('customerType') == customer_type]
        if city:
            wanted = city.strip().lower()
            customers = [c for c in customers if (c.get('city') or '').strip().lower() == wanted]
        if search:
            customers = search_documents(customers, search, CUSTOMER_SEARCH_FIELDS)

        return CustomersData(**paginate([CustomerInfo(**c) for c in customers], limit, offset))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to list customers")
        raise HTTPException(status_code=500, detail=f"Failed to retrieve customers list: {str(e)}")


async def search_customers_service(query: str, limit: int = 20, offset: int = 0) -> CustomersData:
    """
    Service function to search active customers by name, phone, email, city or address.

    Args:
        query: The search query
        limit: Maximum number of customers to return
        offset: Number of customers to skip

    Returns:
        CustomersData containing the matches, best first
    """
    try:
        db = get_firestore_client()
        customers = [c for c in load_customers(db) if c.get('isActive', True)]
        results = search_documents(customers, query, CUSTOMER_SEARCH_FIELDS)
        return CustomersData(**paginate([CustomerInfo(**c) for c in results], limit, offset))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Customer search failed for %r", query)
        raise HTTPException(status_code=500, detail=f"Failed to search customers: {str(e)}")


async def get_customer_service(customer_id: str) -> CustomerInfo:
    """Get a specific customer."""
    try:
        db = get_firestore_client()
        return to_customer(db, get_customer_doc(db, customer_id))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to get customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve customer: {str(e)}")


async def create_customer_service(customer_data: dict) -> CustomerInfo:
    """Create a new customer."""
    name = (customer_data.get('name') or '').strip()
    if not name:
        raise HTTPException(status_code=400, detail="Customer name is required")

    try:
        db = get_firestore_client()

        email_value = str(customer_data['email']) if customer_data.get('email') else ""
        ensure_unique_email(db, email_value)

        customer_doc_data = {
            **customer_data,
            "name": name,
            "email": email_value,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }

        doc_ref = db.collection(CUSTOMERS_COLLECTION).document()
        doc_ref.set(customer_doc_data)
        logger.info("Created customer %s (%s)", doc_ref.id, name)

        return to_customer(db, doc_ref.get())

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to create customer")
        raise HTTPException(status_code=500, detail=f"Failed to create customer: {str(e)}")


async def update_customer_service(customer_id: str, update_data: dict) -> CustomerInfo:
    """Update a customer's information."""
    try:
        db = get_firestore_client()
        customer_ref = db.collection(CUSTOMERS_COLLECTION).document(customer_id)
        get_customer_doc(db, customer_id)

        update_dict = dict(update_data)
        if 'name' in update_dict:
            update_dict['name'] = (update_dict['name'] or '').strip()
            if not update_dict['name']:
                raise HTTPException(status_code=400, detail="Customer name is required")

        # An empty email clears the field
        if 'email' in update_dict:
            update_dict['email'] = str(update_dict['email'])
            ensure_unique_email(db, update_dict['email'], exclude_id=customer_id)

        update_dict['updatedAt'] = firestore.SERVER_TIMESTAMP
        customer_ref.update(update_dict)

        return to_customer(db, customer_ref.get())

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to update customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to update customer: {str(e)}")


async def delete_customer_service(customer_id: str) -> bool:
    """Delete a customer with its payments, product lines and wishlist items. Sales are kept."""
    try:
        db = get_firestore_client()
        customer_doc = get_customer_doc(db, customer_id)

        batch = db.batch()
        for collection in (PAYMENTS_COLLECTION, CUSTOMER_PRODUCTS_COLLECTION, WISHLIST_COLLECTION):
            for doc in db.collection(collection).where('customerId', '==', customer_id).get():
                batch.delete(doc.reference)
        batch.delete(customer_doc.reference)
        batch.commit()

        logger.info("Deleted customer %s", customer_id)
        return True

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to delete customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to delete customer: {str(e)}")


async def get_customer_types_service() -> List[CustomerTypeCount]:
    """Count active customers per customer type."""
    try:
        db = get_firestore_client()
        counts = {}
        for doc in db.collection(CUSTOMERS_COLLECTION).stream():
            customer = doc.to_dict() or {}
            if not customer.get('isActive', True):
                continue
            customer_type = customer.get('customerType') or 'retail'
            counts[customer_type] = counts.get(customer_type, 0) + 1
        return [CustomerTypeCount(customerType=t, count=counts[t]) for t in sorted(counts)]
    except Exception as e:
        logger.exception("Failed to count customer types")
        raise HTTPException(status_code=500, detail=f"Failed to retrieve customer types: {str(e)}")


def summarize_sales(sales: List[dict]) -> dict:
    """Order count, revenue, average and latest sale of a list of sale dicts."""
    revenue = sum(safe_float(s.get('totalPrice')) for s in sales)
    latest = sort_sales(sales)[0] if sales else None
    return {
        'count': len(sales),
        'revenue': round(revenue, 2),
        'average': round(revenue / len(sales), 2) if sales else 0,
        'lastDate': latest.get('date') if latest else None,
        'lastAmount': safe_float(latest.get('totalPrice')) if latest else 0,
    }


def sales_by_customer(db) -> Dict[str, List[dict]]:
    grouped = {}
    for sale in load_sales(db):
        if sale.get('customerId'):
            grouped.setdefault(sale['customerId'], []).append(sale)
    return grouped


async def get_top_customers_service(limit: int = 10) -> List[TopCustomer]:
    """Active customers with sales, highest revenue first."""
    try:
        db = get_firestore_client()
        grouped = sales_by_customer(db)

        ranked = []
        for customer in load_customers(db):
            if not customer.get('isActive', True):
                continue
            summary = summarize_sales(grouped.get(customer['id'], []))
            if summary['revenue'] <= 0:
                continue
            ranked.append(TopCustomer(
                **customer,
                totalOrders=summary['count'],
                totalRevenue=summary['revenue'],
                avgOrderValue=summary['average'],
                lastOrderDate=summary['lastDate'],
            ))

        ranked.sort(key=lambda c: c.totalRevenue, reverse=True)
        return ranked[:limit]

    except Exception as e:
        logger.exception("Failed to rank customers")
        raise HTTPException(status_code=500, detail=f"Failed to retrieve top customers: {str(e)}")


async def get_inactive_customers_service(days: int = 90) -> InactiveCustomersData:
    """Active customers without any sale during the last `days` days, never-buyers first."""
    try:
        db = get_firestore_client()
        grouped = sales_by_customer(db)
        cutoff = (now_local() - timedelta(days=days)).strftime('%Y-%m-%d')

        inactive = []
        for customer in load_customers(db):
            if not customer.get('isActive', True):
                continue
            last_purchase = summarize_sales(grouped.get(customer['id'], []))['lastDate']
            if last_purchase is None or last_purchase < cutoff:
                inactive.append(InactiveCustomer(**customer, lastPurchaseDate=last_purchase))

        inactive.sort(key=lambda c: c.lastPurchaseDate or '')
        return InactiveCustomersData(items=inactive, total=len(inactive), days=days)

    except Exception as e:
        logger.exception("Failed to list inactive customers")
        raise HTTPException(status_code=500, detail=f"Failed to retrieve inactive customers: {str(e)}")


async def get_customer_stats_service(customer_id: str) -> CustomerStats:
    """Sales and payment summary; the balance is revenue minus payments."""
    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        summary = summarize_sales(load_sales(db, customer_id))
        total_paid = round(sum(safe_float(p.get('amount')) for p in load_payments(db, customer_id)), 2)

        return CustomerStats(
            customerId=customer_id,
            totalSales=summary['count'],
            totalRevenue=summary['revenue'],
            averageSale=summary['average'],
            lastSaleDate=summary['lastDate'],
            lastSaleAmount=summary['lastAmount'],
            totalPaid=total_paid,
            balance=round(summary['revenue'] - total_paid, 2),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to compute stats of customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve customer stats: {str(e)}")


async def get_purchase_history_service(customer_id: str, limit: int = 10) -> List[SaleInfo]:
    """Latest sales of a customer."""
    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)
        sales = sort_sales(load_sales(db, customer_id))[:limit]
        return [SaleInfo(**s) for s in sales]
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to get history of customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve purchase history: {str(e)}")


async def add_payment_service(customer_id: str, payment_data: dict) -> PaymentInfo:
    """Record a payment; the date defaults to today."""
    if safe_float(payment_data.get('amount')) <= 0:
        raise HTTPException(status_code=400, detail="Payment amount must be greater than 0")

    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        payment_doc_data = {
            **payment_data,
            'customerId': customer_id,
            'amount': safe_float(payment_data['amount']),
            'paymentDate': payment_data.get('paymentDate') or today_iso(),
            'paymentMethod': payment_data.get('paymentMethod') or 'cash',
            'createdAt': firestore.SERVER_TIMESTAMP,
        }

        doc_ref = db.collection(PAYMENTS_COLLECTION).document()
        doc_ref.set(payment_doc_data)
        logger.info("Recorded payment %s for customer %s", doc_ref.id, customer_id)

        return PaymentInfo(**snapshot_to_dict(doc_ref.get()))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to record payment for customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to add payment: {str(e)}")


async def get_payments_service(customer_id: str) -> PaymentsData:
    """Payments of a customer, latest payment date first."""
    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        payments = load_payments(db, customer_id)
        payments.sort(key=lambda p: p.get('paymentDate') or '', reverse=True)
        total_paid = round(sum(safe_float(p.get('amount')) for p in payments), 2)

        return PaymentsData(
            items=[PaymentInfo(**p) for p in payments],
            total=len(payments),
            totalPaid=total_paid,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to list payments of customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve payments: {str(e)}")


async def get_total_paid_service(customer_id: str) -> float:
    payments = await get_payments_service(customer_id)
    return payments.totalPaid


async def delete_payment_service(customer_id: str, payment_id: str) -> bool:
    """Delete one payment of a customer."""
    try:
        db = get_firestore_client()
        payment_ref = db.collection(PAYMENTS_COLLECTION).document(payment_id)
        payment = payment_ref.get()

        if not payment.exists or payment.to_dict().get('customerId') != customer_id:
            raise HTTPException(status_code=404, detail="Payment not found")

        payment_ref.delete()
        logger.info("Deleted payment %s of customer %s", payment_id, customer_id)
        return True

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to delete payment %s", payment_id)
        raise HTTPException(status_code=500, detail=f"Failed to delete payment: {str(e)}")


def get_customer_product_doc(db, customer_id: str, entry_id: str):
    """
    Raises:
        HTTPException: If the product line does not exist or belongs to another customer
    """
    doc = db.collection(CUSTOMER_PRODUCTS_COLLECTION).document(entry_id).get()
    if not doc.exists or doc.to_dict().get('customerId') != customer_id:
        raise HTTPException(status_code=404, detail="Product not found")
    return doc


def with_current_product(db, entry: dict) -> dict:
    """Attach the linked catalogue product's current name and selling price."""
    if entry.get('productId'):
        product_doc = db.collection(PRODUCTS_COLLECTION).document(entry['productId']).get()
        if product_doc.exists:
            product = product_doc.to_dict()
            entry['currentProductName'] = product.get('name')
            entry['currentPrice'] = safe_float(product.get('sellingPrice'))
    return entry


async def add_customer_product_service(customer_id: str, product_data: dict) -> CustomerProductInfo:
    """Add a product line to a customer; its total is quantity x unit price."""
    product_name = (product_data.get('productName') or '').strip()
    if not product_name:
        raise HTTPException(status_code=400, detail="Product name is required")

    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        quantity = int(product_data['quantity'])
        unit_price = safe_float(product_data['unitPrice'])
        entry = {
            'customerId': customer_id,
            'productId': product_data.get('productId'),
            'productName': product_name,
            'quantity': quantity,
            'unitPrice': unit_price,
            'totalPrice': round(quantity * unit_price, 2),
            'status': product_data.get('status') or 'pending',
            'notes': (product_data.get('notes') or '').strip() or None,
            'createdAt': firestore.SERVER_TIMESTAMP,
            'updatedAt': firestore.SERVER_TIMESTAMP,
        }

        doc_ref = db.collection(CUSTOMER_PRODUCTS_COLLECTION).document()
        doc_ref.set(entry)
        logger.info("Added product line %s for customer %s", doc_ref.id, customer_id)

        return CustomerProductInfo(**with_current_product(db, snapshot_to_dict(doc_ref.get())))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to add product for customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to add product: {str(e)}")


async def get_customer_products_service(customer_id: str) -> CustomerProductsData:
    """Product lines of a customer, newest first."""
    try:
        db = get_firestore_client()
        get_customer_doc(db, customer_id)

        docs = db.collection(CUSTOMER_PRODUCTS_COLLECTION).where('customerId', '==', customer_id).stream()
        entries = [with_current_product(db, snapshot_to_dict(doc)) for doc in docs]
        entries.sort(
            key=lambda e: e['createdAt'].timestamp() if isinstance(e.get('createdAt'), datetime) else 0,
            reverse=True
        )

        return CustomerProductsData(items=[CustomerProductInfo(**e) for e in entries], total=len(entries))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to list products of customer %s", customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to retrieve products: {str(e)}")


async def get_customer_products_total_service(customer_id: str) -> float:
    """Sum of the customer's product lines, cancelled lines excluded."""
    products = await get_customer_products_service(customer_id)
    return round(sum(p.totalPrice for p in products.items if p.status != 'cancelled'), 2)


async def update_customer_product_service(customer_id: str, entry_id: str,
                                          update_data: dict) -> CustomerProductInfo:
    """Update a product line; the total follows quantity and unit price."""
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        db = get_firestore_client()
        doc = get_customer_product_doc(db, customer_id, entry_id)
        current = doc.to_dict()

        update_dict = dict(update_data)
        if 'notes' in update_dict:
            update_dict['notes'] = (update_dict['notes'] or '').strip() or None
        if 'quantity' in update_dict or 'unitPrice' in update_dict:
            quantity = int(update_dict.get('quantity', current.get('quantity', 0)))
            unit_price = safe_float(update_dict.get('unitPrice', current.get('unitPrice')))
            update_dict['totalPrice'] = round(quantity * unit_price, 2)

        update_dict['updatedAt'] = firestore.SERVER_TIMESTAMP
        doc.reference.update(update_dict)

        return CustomerProductInfo(**with_current_product(db, snapshot_to_dict(doc.reference.get())))

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to update product line %s", entry_id)
        raise HTTPException(status_code=500, detail=f"Failed to update product: {str(e)}")


async def delete_customer_product_service(customer_id: str, entry_id: str) -> bool:
    """Delete one product line of a customer."""
    try:
        db = get_firestore_client()
        doc = get_customer_product_doc(db, customer_id, entry_id)
        doc.reference.delete()
        logger.info("Deleted product line %s of customer %s", entry_id, customer_id)
        return True

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to delete product line %s", entry_id)
        raise HTTPException(status_code=500, detail=f"Failed to delete product: {str(e)}")
