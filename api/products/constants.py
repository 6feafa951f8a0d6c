"""
Constants for product listing and export.
"""

SORTABLE_FIELDS = ("name", "createdAt", "updatedAt", "stockQuantity", "sellingPrice")
DEFAULT_SORT_FIELD = "createdAt"
MAX_PAGE_SIZE = 100

# Low stock alert ordering (most urgent first)
ALERT_LEVEL_ORDER = {
    "out_of_stock": 0,
    "critical": 1,
    "low": 2,
}

# Column headers of the product export, per language
EXPORT_HEADERS = {
    "fr": {
        "name": "Nom",
        "description": "Description",
        "category": "Catégorie",
        "sellingPrice": "Prix de vente",
        "purchasePrice": "Prix d'achat",
        "stock": "Stock",
        "minStockLevel": "Stock minimum",
        "supplier": "Fournisseur",
        "location": "Emplacement",
        "stockValue": "Valeur du stock",
        "createdAt": "Créé le",
        "updatedAt": "Modifié le",
    },
    "ar": {
        "name": "الاسم",
        "description": "الوصف",
        "category": "الفئة",
        "sellingPrice": "سعر البيع",
        "purchasePrice": "سعر الشراء",
        "stock": "المخزون",
        "minStockLevel": "الحد الأدنى للمخزون",
        "supplier": "المورد",
        "location": "الموقع",
        "stockValue": "قيمة المخزون",
        "createdAt": "تاريخ الإنشاء",
        "updatedAt": "تاريخ التعديل",
    },
    "en": {
        "name": "Name",
        "description": "Description",
        "category": "Category",
        "sellingPrice": "Selling price",
        "purchasePrice": "Purchase price",
        "stock": "Stock",
        "minStockLevel": "Minimum stock",
        "supplier": "Supplier",
        "location": "Location",
        "stockValue": "Stock value",
        "createdAt": "Created",
        "updatedAt": "Updated",
    },
}

# Column headers of the physical inventory count sheet, per language
INVENTORY_HEADERS = {
    "fr": {
        "id": "ID",
        "name": "Produit",
        "quantity": "Quantité",
        "unitPrice": "Prix unitaire",
        "totalPrice": "Prix total",
        "total": "TOTAL",
    },
    "ar": {
        "id": "المعرف",
        "name": "المنتج",
        "quantity": "الكمية",
        "unitPrice": "سعر الوحدة",
        "totalPrice": "السعر الإجمالي",
        "total": "المجموع",
    },
    "en": {
        "id": "ID",
        "name": "Product",
        "quantity": "Quantity",
        "unitPrice": "Unit price",
        "totalPrice": "Total price",
        "total": "TOTAL",
    },
}

INVENTORY_COLUMN_WIDTHS = [10, 30, 12, 15, 15]
PRODUCTS_SHEET_NAME = "Products"
INVENTORY_SHEET_NAME = "Inventaire"
