from .commission_routes import agent_router, referral_router, commission_router

__all__ = ["agent_router", "referral_router", "commission_router"]
