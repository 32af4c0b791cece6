"""Exceptions raised by the recipe tracker."""


class RecipeTrackerError(Exception):
    """Base class for all recipe tracker errors."""


class ValidationError(RecipeTrackerError):
    """Raised when submitted recipe data is rejected before reaching the store."""


class StoreError(RecipeTrackerError):
    """Base class for failures of the backing recipe store."""


class StoreUnavailable(StoreError):
    """The backing store could not be reached or initialised."""


class StoreReadError(StoreError):
    """Listing or reading recipes from the store failed."""


class StoreWriteError(StoreError):
    """Creating, updating or deleting a recipe failed."""


__all__ = [
    "RecipeTrackerError",
    "StoreError",
    "StoreReadError",
    "StoreUnavailable",
    "StoreWriteError",
    "ValidationError",
]
