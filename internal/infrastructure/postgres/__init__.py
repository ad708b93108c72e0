"""
PostgreSQL infrastructure package.
"""
from .repository import PostgresCustomerRepository, create_pool

__all__ = ["PostgresCustomerRepository", "create_pool"]
