# routers/__init__.py
from .auth import router as auth_router
from .users import router as users_router
from .permissions import router as permissions_router
from .records import router as records_router
from .ledger import router as ledger_router

__all__ = [
     "auth_router",
     "users_router",
     "permissions_router",
     "records_router",
     "ledger_router",
]
