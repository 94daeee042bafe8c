# ledger/routers/__init__.py
# Router package initialization

"""
API Routers for the ledger application.

- auth: signup, login and current-identity routes
- expenses: expense CRUD and paginated listing routes
"""
