# Routes package init
"""
Verein Backend - REST Routes Package
=====================================

What:  HTTP route handlers of the REST interface.
How:   Each route module handles one group of operations.

Route Inventory:
    - verein_get.py:    GET    /verein/{id}           (single Verein, ETag)
                        GET    /verein?name=...       (search)
                        GET    /verein/name/{prefix}  (name completion)
    - verein_write.py:  POST   /verein                (create)
                        PUT    /verein/{id}           (update, If-Match)
                        DELETE /verein/{id}           (delete)
    - health.py:        GET    /health                (service health check)
    - links.py:         base URI and HAL links, honouring X-Forwarded-* headers

Design Principle:
    Routes are THIN: extract request data, call a service, set status code and
    headers. Domain errors are turned into problem bodies by the exception
    handlers in main.py, not in the routes.
"""
