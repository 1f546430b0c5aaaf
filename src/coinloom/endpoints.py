"""Coinbase API base URLs and endpoint paths.

Paths are relative to `API_BASE_URL`. Templated paths take the resource id
through `str.format`.
"""

# Base URLs
API_BASE_URL = "https://coinbase.com/api/v1/"
OAUTH_TOKEN_URL = "https://coinbase.com/oauth/token"

# --- Users ---
USERS = "users"
ACCOUNT_BALANCE = "account/balance"

# --- Accounts ---
ACCOUNTS = "accounts"
ACCOUNT = "accounts/{id}"
ACCOUNT_BALANCE_BY_ID = "accounts/{id}/balance"
ACCOUNT_PRIMARY = "accounts/{id}/primary"

# --- Transactions and transfers ---
TRANSACTIONS = "transactions"
TRANSFERS = "transfers"

# --- Addresses and contacts ---
ADDRESSES = "addresses"
CONTACTS = "contacts"

# --- OAuth applications ---
APPLICATIONS = "oauth/applications"

# --- Payment methods ---
PAYMENT_METHODS = "payment_methods"
