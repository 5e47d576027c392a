"""API routes package.

- webhooks: Stripe webhook receiver

All routers are registered in main.py with /api prefix.
"""

from api.routes.webhooks import router as webhooks_router

__all__ = ["webhooks_router"]
