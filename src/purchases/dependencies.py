"""FastAPI dependencies for purchases."""

from typing import Annotated

from fastapi import Depends

from src.core.state import AppContext, get_app_context
from src.purchases.service import PurchaseService


def get_purchase_service(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> PurchaseService:
    """Get PurchaseService instance from the application context."""
    return context.require("purchase_service")


PurchaseServiceDep = Annotated[PurchaseService, Depends(get_purchase_service)]
