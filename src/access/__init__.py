"""Access Ledger and access evaluation.

Entry status lifecycle:
- PENDING: recorded at purchase time
- ACTIVE: set once the purchase is activated
- EXPIRED: reported when ``access_expiry`` has passed (never written)
"""

from .models import AccessDecision, AccessStatus, CourseAccessEntry, evaluate


__all__ = [
    "AccessDecision",
    "AccessStatus",
    "CourseAccessEntry",
    "evaluate",
]
