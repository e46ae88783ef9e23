# Services package init
"""
User Registry — Services Layer
===============================

What:  Business logic and persistence adapters behind the routes.

Service Inventory:
    - UserStore (abstract): Record store interface consumed by UserService
    - SQLAlchemyUserStore: Concrete store over the `users` table
    - UserService: The five user use cases (create, read, list, update, delete)
"""
