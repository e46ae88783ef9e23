# Routes package init
"""
User Registry — API Routes Package
===================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - users.py:   POST   /users          (create)
                  GET    /users          (paged list with search)
                  GET    /users/{id}     (single user)
                  PATCH  /users/{id}     (partial update)
                  DELETE /users/{id}     (hard delete)
    - health.py:  GET    /health         (service health check)

Design Principle:
    Routes are THIN: parse the request, call UserService, return the schema.
    Status codes for failures come from the exception handlers in main.py.
"""
