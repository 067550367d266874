# backend/config/constants.py

# -----------------------------
# ORDER LIFECYCLE
# -----------------------------

ORDER_PENDING = "pending"
ORDER_CONFIRMED = "confirmed"
ORDER_PREPARING = "preparing"
ORDER_READY = "ready"
ORDER_DELIVERED = "delivered"
ORDER_CANCELLED = "cancelled"

ORDER_STATUSES = (
    ORDER_PENDING,
    ORDER_CONFIRMED,
    ORDER_PREPARING,
    ORDER_READY,
    ORDER_DELIVERED,
    ORDER_CANCELLED,
)

# forward-only; any non-terminal status may also be cancelled
ORDER_TRANSITIONS = {
    ORDER_PENDING: {ORDER_CONFIRMED, ORDER_CANCELLED},
    ORDER_CONFIRMED: {ORDER_PREPARING, ORDER_CANCELLED},
    ORDER_PREPARING: {ORDER_READY, ORDER_CANCELLED},
    ORDER_READY: {ORDER_DELIVERED, ORDER_CANCELLED},
    ORDER_DELIVERED: set(),
    ORDER_CANCELLED: set(),
}

# -----------------------------
# PAYMENT STATUS
# -----------------------------

PAYMENT_PENDING = "pending"
PAYMENT_INITIALIZED = "initialized"
PAYMENT_COMPLETED = "completed"
PAYMENT_UNDERPAID = "underpaid"

# -----------------------------
# VENDOR
# -----------------------------

VENDOR_STATUSES = {"active", "suspended", "inactive"}

# fields a vendor may not overwrite through the profile endpoint
VENDOR_PROTECTED_FIELDS = {
    "id",
    "email",
    "rating",
    "totalOrders",
    "todaysOrders",
    "completedOrders",
    "completionRate",
    "revenue",
    "averageOrderValue",
    "activeMenuItems",
    "status",
    "isVerified",
    "joinDate",
}

STAT_NEW_ORDER = "newOrder"
STAT_ORDER_COMPLETED = "orderCompleted"
STAT_ORDER_DELIVERED = "orderDelivered"
STAT_MENU_ITEM_ADDED = "menuItemAdded"
STAT_MENU_CHANGED = "menuChanged"
STAT_PROFILE_UPDATED = "profileUpdated"

BASE_VENDOR_RATING = 4.0
ASSUMED_COMPLETION_BONUS = 0.95
MAX_VOLUME_BONUS = 0.5
MAX_RATING = 5.0

# -----------------------------
# WITHDRAWALS
# -----------------------------

TRANSFER_SUCCESS = "success"
TRANSFER_FAILED = "failed"
TRANSFER_REVERSED = "reversed"
TRANSFER_OPEN_STATUSES = {"pending", "otp", "processing", "queued"}

RECENT_TRANSACTIONS_LIMIT = 20
RECENT_COMMISSIONS_LIMIT = 50
RECENT_ORDERS_LIMIT = 5
RECENT_AUDIT_LIMIT = 100

# =========================================
# SUPPORTED BANKS (PAYSTACK NUBAN CODES)
# =========================================

NIGERIAN_BANKS = [
    {"name": "Access Bank", "code": "044"},
    {"name": "Citibank", "code": "023"},
    {"name": "Diamond Bank", "code": "063"},
    {"name": "Ecobank Nigeria", "code": "050"},
    {"name": "Fidelity Bank Nigeria", "code": "070"},
    {"name": "First Bank of Nigeria", "code": "011"},
    {"name": "First City Monument Bank", "code": "214"},
    {"name": "Guaranty Trust Bank", "code": "058"},
    {"name": "Heritage Bank Plc", "code": "030"},
    {"name": "Keystone Bank Limited", "code": "082"},
    {"name": "Polaris Bank", "code": "076"},
    {"name": "Providus Bank Plc", "code": "101"},
    {"name": "Stanbic IBTC Bank Nigeria Limited", "code": "221"},
    {"name": "Standard Chartered Bank", "code": "068"},
    {"name": "Sterling Bank", "code": "232"},
    {"name": "Suntrust Bank Nigeria Limited", "code": "100"},
    {"name": "Union Bank of Nigeria", "code": "032"},
    {"name": "United Bank for Africa", "code": "033"},
    {"name": "Unity Bank Plc", "code": "215"},
    {"name": "Wema Bank", "code": "035"},
    {"name": "Zenith Bank", "code": "057"},
    {"name": "Kuda Bank", "code": "50211"},
    {"name": "Opay", "code": "999992"},
    {"name": "PalmPay", "code": "999991"},
]

BANK_CODES = {bank["code"] for bank in NIGERIAN_BANKS}
