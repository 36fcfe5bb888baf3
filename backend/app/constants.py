"""
Shared constants: currencies, date formats, the avatar palette size and the
snapshot storage keys.
"""

CURRENCIES = [
    {"code": "NPR", "symbol": "Rs.", "label": "Nepalese Rupee"},
    {"code": "USD", "symbol": "$", "label": "US Dollar"},
    {"code": "EUR", "symbol": "€", "label": "Euro"},
    {"code": "GBP", "symbol": "£", "label": "British Pound"},
    {"code": "INR", "symbol": "₹", "label": "Indian Rupee"},
    {"code": "BDT", "symbol": "৳", "label": "Bangladeshi Taka"},
    {"code": "AED", "symbol": "AED", "label": "UAE Dirham"},
    {"code": "MYR", "symbol": "RM", "label": "Malaysian Ringgit"},
    {"code": "PHP", "symbol": "₱", "label": "Philippine Peso"},
    {"code": "KES", "symbol": "KSh", "label": "Kenyan Shilling"},
    {"code": "NGN", "symbol": "₦", "label": "Nigerian Naira"},
    {"code": "LKR", "symbol": "Rs", "label": "Sri Lankan Rupee"},
    {"code": "PKR", "symbol": "₨", "label": "Pakistani Rupee"},
    {"code": "SGD", "symbol": "S$", "label": "Singapore Dollar"},
    {"code": "ZAR", "symbol": "R", "label": "South African Rand"},
]

CURRENCY_CODES = {c["code"] for c in CURRENCIES}

DATE_FORMATS = ["DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD"]

# Number of avatar colors the frontend cycles through; contacts store an index
AVATAR_COLOR_COUNT = 6

# Snapshot fallback key namespace (one JSON document per key)
KEY_BUSINESS = "mbb_business"
KEY_PRODUCTS = "mbb_products"
KEY_CUSTOMERS = "mbb_customers"
KEY_INVOICES = "mbb_invoices"
KEY_NEXT_INVOICE = "mbb_nextInv"
