# Services package init
"""
Catalog Backend — Services Layer
================================

What:  Persistence layer sitting between routes (HTTP) and the database.
Why:   Routes handle HTTP, services handle storage and transactions.

Service Inventory:
    - ProductStore: async CRUD over products, returning StoreResult values
    - get_product_store: FastAPI dependency handing routes the app's store
"""
