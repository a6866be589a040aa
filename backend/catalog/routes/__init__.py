# Routes package init
"""
Catalog Backend — API Routes Package
====================================

Route Inventory:
    - products.py:  GET    /products          (list all)
                    POST   /products          (create)
                    GET    /products/{id}     (get one)
                    PUT    /products/{id}     (full replace)
                    PATCH  /products/{id}     (partial update)
                    DELETE /products/{id}     (delete)
    - health.py:    GET    /health            (store connectivity)

Documentation (/docs, /docs/spec, /docs/swagger) is served by FastAPI
itself; see create_app() in main.py.

Routes stay thin: parse the id, call the store once, map the result.
"""
