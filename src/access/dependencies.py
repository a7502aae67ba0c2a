"""FastAPI dependencies for the Access Ledger."""

from typing import Annotated

from fastapi import Depends

from src.access.service import AccessService
from src.core.state import AppContext, get_app_context


def get_access_service(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> AccessService:
    """Get AccessService instance from the application context."""
    return context.require("access_service")


AccessServiceDep = Annotated[AccessService, Depends(get_access_service)]
