from .orders import OrderRequest

__all__ = ["OrderRequest"]
