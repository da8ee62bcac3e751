"""API Routers Package.

Routers:
- contacts.py: REST contact CRUD, search, stats, export/import (desktop app)
- messages.py: action-style endpoint for the browser extension
- backups.py: backups plus the maintenance endpoints (maintenance_router)

Usage in main.py:
    from api.routers import contacts_router, messages_router, backups_router, maintenance_router

    app.include_router(contacts_router, prefix="/contacts", tags=["contacts"])
    app.include_router(messages_router, prefix="/messages", tags=["messages"])
    app.include_router(backups_router, prefix="/backups", tags=["backups"])
    app.include_router(maintenance_router, prefix="/maintenance", tags=["maintenance"])
"""

from .contacts import router as contacts_router
from .messages import router as messages_router
from .backups import router as backups_router
from .backups import maintenance_router

__all__ = [
    "contacts_router",
    "messages_router",
    "backups_router",
    "maintenance_router",
]
