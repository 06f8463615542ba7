from owner_console.api.routes.billing import router as billing_router
from owner_console.api.routes.organizations import router as organizations_router
from owner_console.api.routes.plans import router as plans_router
from owner_console.api.routes.webhooks import router as webhooks_router
from owner_console.api.routes.whoami import router as whoami_router

__all__ = [
    "billing_router",
    "organizations_router",
    "plans_router",
    "webhooks_router",
    "whoami_router",
]
