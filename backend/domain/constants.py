"""
Domain constants used across services/routers.
"""
from decimal import Decimal

# Money is kept as Decimal and quantized to this step everywhere
MONEY_STEP = Decimal("0.01")
ZERO = Decimal("0.00")

# Admin dashboard
RECENT_ORDERS_LIMIT = 5
TOP_ITEMS_LIMIT = 5

# Notification event names
EVENT_ORDER_CREATED = "order.created"

# Upper bound for a single line's quantity (keeps values inside a DB INTEGER)
MAX_QUANTITY = 1000

# Admin analytics window
ANALYTICS_MONTHS = 12
