# backend/config/constants.py

# -----------------------------
# USER FIELDS
# -----------------------------

# never writable through the generic update endpoints
PROTECTED_USER_FIELDS = ("_id", "password", "roles", "reset_token_hash", "reset_token_expiry")

# writable through the generic update endpoints by admins only
ADMIN_ONLY_USER_FIELDS = ("suspended", "store_status")

# -----------------------------
# PASSWORD RESET
# -----------------------------

RESET_TOKEN_LENGTH = 6

RESET_REQUEST_LIMIT = 3      # codes sent per window
RESET_ATTEMPT_LIMIT = 5      # code checks per window, verify + reset combined
RESET_RATE_WINDOW_SECONDS = 600

# -----------------------------
# UPLOADS
# -----------------------------

PRODUCT_IMAGE_FOLDER = "shop/products"
