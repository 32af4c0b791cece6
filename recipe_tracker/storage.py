from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from .models import Recipe

UPDATABLE_FIELDS = frozenset({"name", "ingredients", "instructions", "rating", "last_eaten_date"})


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the workflow and web layer."""

    def list_recipes(self) -> Iterable[Recipe]:
        """Return all stored recipes ordered by name.

        Raises :class:`~recipe_tracker.errors.StoreReadError` on failure.
        """

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`KeyError` if missing."""

    def add_recipe(
        self,
        *,
        name: str,
        ingredients: str,
        instructions: str,
        rating: int,
        last_eaten_date: Optional[date] = None,
    ) -> Recipe:
        """Persist a new recipe and return it with its store assigned id."""

    def update_recipe(self, recipe_id: str, **changes) -> None:
        """Replace the given fields of an existing recipe.

        Only names from ``UPDATABLE_FIELDS`` are accepted. Unknown ids raise
        :class:`~recipe_tracker.errors.StoreWriteError`.
        """

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe permanently."""


def check_changes(changes: dict) -> None:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update recipe fields: {', '.join(sorted(unknown))}")


__all__ = ["RecipeRepository", "UPDATABLE_FIELDS", "check_changes"]
