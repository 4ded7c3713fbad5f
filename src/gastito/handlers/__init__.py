from gastito.handlers.basic import basic_router
from gastito.handlers.expenses import expenses_router
from gastito.handlers.groups import groups_router

__all__ = ["basic_router", "expenses_router", "groups_router"]
