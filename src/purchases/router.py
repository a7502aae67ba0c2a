"""Purchase API endpoints.

Provides routes for:
- Guest checkout
- Manual payment verification (admin)
- Transaction listing (admin) and lookup (owner)
"""

from fastapi import APIRouter, Query

from src.auth.dependencies import AdminUser, CurrentUser
from src.core.context import transaction_scope
from src.purchases.dependencies import PurchaseServiceDep
from src.purchases.schemas import (
    PurchaseRequest,
    PurchaseResponse,
    TransactionListResponse,
    TransactionResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)


router = APIRouter(prefix="/api", tags=["purchases"])


@router.post(
    "/purchase",
    response_model=PurchaseResponse,
    summary="Purchase a course",
    responses={
        400: {"description": "Missing fields or duplicate transaction id"},
        404: {"description": "Course not found"},
    },
)
async def purchase(
    data: PurchaseRequest,
    purchase_service: PurchaseServiceDep,
) -> PurchaseResponse:
    """Record a purchase; access becomes active once activation runs.

    No account is needed: an unknown email gets a guest account.
    """
    with transaction_scope(data.transaction_id):
        return await purchase_service.purchase(data)


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    summary="Verify payment manually",
    responses={404: {"description": "Transaction not found"}},
)
async def verify_payment(
    data: VerifyPaymentRequest,
    purchase_service: PurchaseServiceDep,
    admin: AdminUser,
) -> VerifyPaymentResponse:
    """Confirm a payment and activate access immediately."""
    with transaction_scope(data.transaction_id):
        return await purchase_service.verify_payment(data.transaction_id)


@router.get(
    "/admin/transactions",
    response_model=TransactionListResponse,
    summary="List transactions",
)
async def list_transactions(
    purchase_service: PurchaseServiceDep,
    admin: AdminUser,
    limit: int = Query(100, ge=1, le=1000),
) -> TransactionListResponse:
    """List all transactions, newest first."""
    transactions = purchase_service.list_transactions(limit=limit)
    items = [TransactionResponse.from_transaction(t) for t in transactions]
    return TransactionListResponse(items=items, total=len(items))


@router.get(
    "/transactions/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get my transaction",
    responses={404: {"description": "Transaction not found"}},
)
async def get_transaction(
    transaction_id: str,
    purchase_service: PurchaseServiceDep,
    user: CurrentUser,
) -> TransactionResponse:
    """Get one of the caller's own transactions."""
    txn = purchase_service.get_user_transaction(transaction_id, user.id)
    return TransactionResponse.from_transaction(txn)
