"""Durable, retried activation of purchases.

A purchase schedules an outbox row; the ActivationWorker runs it once
due and retries with backoff until it succeeds or is abandoned.
"""

from .models import ActivationJob


__all__ = ["ActivationJob"]
