"""Course reviews, limited to students with current access."""

from .models import Review


__all__ = ["Review"]
