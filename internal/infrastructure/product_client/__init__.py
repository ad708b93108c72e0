"""
Product service HTTP client package.
"""
from .client import ProductServiceClient

__all__ = ["ProductServiceClient"]
