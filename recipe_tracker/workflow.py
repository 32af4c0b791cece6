"""Recipe actions that keep the store and the in-memory collection in step."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Optional, Tuple

from .errors import StoreError, StoreUnavailable
from .models import Recipe, RecipeDraft, sort_by_name
from .storage import RecipeRepository
from .suggestions import DEFAULT_PAGE_SIZE, RankedRecipe, SuggestionPage, annotate, paginate

logger = logging.getLogger(__name__)

Recipes = Tuple[Recipe, ...]


@dataclass(frozen=True)
class TrackerState:
    """Snapshot of the recipe collection and the suggestion cursor."""

    recipes: Recipes = ()
    reveal_all: bool = False
    available: bool = True

    def find(self, recipe_id: str) -> Optional[Recipe]:
        return next((recipe for recipe in self.recipes if recipe.id == recipe_id), None)


@dataclass(frozen=True)
class PendingChange:
    """A store call and the local change to apply once the call succeeds."""

    description: str
    remote: Callable[[], object]
    local: Callable[[Recipes, object], Recipes]


class RecipeWorkflow:
    def __init__(
        self,
        storage: Optional[RecipeRepository],
        today: Callable[[], date] = date.today,
    ) -> None:
        self._storage = storage
        self._today = today

    def today(self) -> date:
        return self._today()

    def load(self) -> TrackerState:
        if self._storage is None:
            raise StoreUnavailable("Database not connected. Cannot load recipes.")
        try:
            recipes = sort_by_name(self._storage.list_recipes())
        except StoreError:
            logger.exception("Error loading recipes")
            raise
        logger.debug("Loaded %d recipes", len(recipes))
        return TrackerState(recipes=recipes)

    @staticmethod
    def unavailable() -> TrackerState:
        return TrackerState(available=False)

    def add_recipe(self, state: TrackerState, draft: RecipeDraft) -> Tuple[TrackerState, Recipe]:
        storage = self._require_storage(state)
        return self._commit(
            state,
            PendingChange(
                description=f"add recipe '{draft.name}'",
                remote=lambda: storage.add_recipe(
                    name=draft.name,
                    ingredients=draft.ingredients,
                    instructions=draft.instructions,
                    rating=draft.rating,
                    last_eaten_date=None,
                ),
                local=lambda recipes, recipe: recipes + (recipe,),
            ),
        )

    def edit_recipe(self, state: TrackerState, recipe_id: str, draft: RecipeDraft) -> TrackerState:
        # The last eaten date is only changed through log_meal_today and set_last_eaten.
        return self._update(
            state,
            recipe_id,
            name=draft.name,
            ingredients=draft.ingredients,
            instructions=draft.instructions,
            rating=draft.rating,
        )

    def log_meal_today(self, state: TrackerState, recipe_id: str) -> TrackerState:
        return self._update(state, recipe_id, last_eaten_date=self.today())

    def set_last_eaten(self, state: TrackerState, recipe_id: str, value: Optional[date]) -> TrackerState:
        return self._update(state, recipe_id, last_eaten_date=value)

    def delete_recipe(self, state: TrackerState, recipe_id: str) -> TrackerState:
        storage = self._require_storage(state)
        return self._commit(
            state,
            PendingChange(
                description=f"delete recipe '{recipe_id}'",
                remote=lambda: storage.delete_recipe(recipe_id),
                local=lambda recipes, _: tuple(r for r in recipes if r.id != recipe_id),
            ),
        )[0]

    @staticmethod
    def reveal_all_suggestions(state: TrackerState) -> TrackerState:
        return replace(state, reveal_all=True)

    def suggestions(
        self,
        state: TrackerState,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SuggestionPage[RankedRecipe]:
        return paginate(annotate(state.recipes, self.today()), state.reveal_all, page_size)

    def _update(self, state: TrackerState, recipe_id: str, **changes) -> TrackerState:
        storage = self._require_storage(state)

        def local(recipes: Recipes, _) -> Recipes:
            return tuple(replace(r, **changes) if r.id == recipe_id else r for r in recipes)

        return self._commit(
            state,
            PendingChange(
                description=f"update recipe '{recipe_id}' ({', '.join(sorted(changes))})",
                remote=lambda: storage.update_recipe(recipe_id, **changes),
                local=local,
            ),
        )[0]

    def _commit(self, state: TrackerState, change: PendingChange) -> Tuple[TrackerState, object]:
        """Run the store call, then apply the local change on success.

        Returns the new state and whatever the store call returned. On failure
        the error propagates and ``state`` is left as it was.
        """

        try:
            result = change.remote()
        except StoreError:
            logger.exception("Failed to %s", change.description)
            raise

        logger.info("Confirmed: %s", change.description)
        recipes = sort_by_name(change.local(state.recipes, result))
        return replace(state, recipes=recipes, reveal_all=False), result

    def _require_storage(self, state: TrackerState) -> RecipeRepository:
        if self._storage is None or not state.available:
            raise StoreUnavailable("Database not connected.")
        return self._storage


__all__ = ["PendingChange", "RecipeWorkflow", "TrackerState"]
