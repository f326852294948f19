from .qr_code_routes import router

__all__ = ["router"]
