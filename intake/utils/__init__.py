"""Utility helpers."""

from .debounce import Debouncer
from .masking import mask_email, mask_phone

__all__ = ["Debouncer", "mask_email", "mask_phone"]
