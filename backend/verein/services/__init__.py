# Services package init
"""
Verein Backend - Services Layer
================================

What:  Domain access layer between the transport adapters (REST, GraphQL) and
       the database.
How:   Stateless service objects; every method receives the AsyncSession of
       the current request.

Service Inventory:
    - VereinReadService:  find_by_id, find (criteria), find_namen_by_prefix
    - VereinWriteService: create, update (optimistic concurrency), delete
    - verein_data:        transport-neutral write payload and field rules
"""
