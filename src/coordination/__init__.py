"""Coordination layer - distributed lock recipes."""

from .acquisition import Acquisition, AcquisitionState
from .base import LockRecipe
from .exclusive import ExclusiveLock
from .sequence import any_sibling_below, extract_index
from .shared import LockMode, SharedLock

__all__ = [
    "Acquisition",
    "AcquisitionState",
    "ExclusiveLock",
    "LockMode",
    "LockRecipe",
    "SharedLock",
    "any_sibling_below",
    "extract_index",
]
