# GraphQL package init
"""
Verein Backend - GraphQL Interface
===================================

What:  GraphQL adapter over the read and write services, served at /graphql.
How:   strawberry types (types.py), resolvers and router (schema.py), and the
       mapping of domain exceptions to typed GraphQL errors (errors.py).
"""
