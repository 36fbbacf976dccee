"""
Gateway Routers Package.

Usage:
    from endpoint_proxy.gateway.routers import openai_router

    app.include_router(openai_router)
"""

from endpoint_proxy.gateway.routers.openai_compat import router as openai_router

__all__ = [
    "openai_router",
]
