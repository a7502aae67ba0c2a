"""Guest checkout, transactions and activation of purchases."""

from .models import Transaction, TransactionStatus


__all__ = ["Transaction", "TransactionStatus"]
