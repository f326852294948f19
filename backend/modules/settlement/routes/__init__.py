from .settlement_routes import router

__all__ = ["router"]
