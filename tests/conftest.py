from __future__ import annotations

from pathlib import Path
import sys
import uuid
from dataclasses import replace
from datetime import date

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipe_tracker import create_app
from recipe_tracker.errors import StoreReadError, StoreWriteError
from recipe_tracker.models import Recipe, name_sort_key
from recipe_tracker.storage import check_changes

TODAY = date(2024, 6, 10)


class InMemoryRecipeStorage:
    """Simple storage backend used for tests.

    Set ``fail_reads`` or ``fail_writes`` to simulate an unreachable store.
    """

    def __init__(self) -> None:
        self._recipes: list[Recipe] = []
        self.fail_reads = False
        self.fail_writes = False
        self.write_calls = 0

    def list_recipes(self):
        if self.fail_reads:
            raise StoreReadError("store offline")
        return [replace(recipe) for recipe in sorted(self._recipes, key=lambda r: name_sort_key(r.name))]

    def get_recipe(self, recipe_id: str) -> Recipe:
        if self.fail_reads:
            raise StoreReadError("store offline")
        for recipe in self._recipes:
            if recipe.id == recipe_id:
                return replace(recipe)
        raise KeyError(recipe_id)

    def add_recipe(self, *, name, ingredients, instructions, rating, last_eaten_date=None) -> Recipe:
        self._check_write()
        recipe = Recipe(
            id=uuid.uuid4().hex,
            name=name,
            ingredients=ingredients,
            instructions=instructions,
            last_eaten_date=last_eaten_date,
            rating=rating,
        )
        self._recipes.append(recipe)
        return replace(recipe)

    def update_recipe(self, recipe_id: str, **changes) -> None:
        check_changes(changes)
        self._check_write()
        for index, recipe in enumerate(self._recipes):
            if recipe.id == recipe_id:
                self._recipes[index] = replace(recipe, **changes)
                return
        raise StoreWriteError(f"Recipe '{recipe_id}' does not exist.")

    def delete_recipe(self, recipe_id: str) -> None:
        self._check_write()
        for index, recipe in enumerate(self._recipes):
            if recipe.id == recipe_id:
                self._recipes.pop(index)
                return
        raise StoreWriteError(f"Recipe '{recipe_id}' does not exist.")

    def _check_write(self) -> None:
        self.write_calls += 1
        if self.fail_writes:
            raise StoreWriteError("write rejected")


@pytest.fixture
def storage() -> InMemoryRecipeStorage:
    return InMemoryRecipeStorage()


@pytest.fixture
def client(storage):
    app = create_app(storage=storage, today=lambda: TODAY)
    app.config.update(TESTING=True)
    return app.test_client()


def add(storage: InMemoryRecipeStorage, name: str, *, rating: int = 0, last_eaten_date=None) -> Recipe:
    return storage.add_recipe(
        name=name,
        ingredients="",
        instructions="",
        rating=rating,
        last_eaten_date=last_eaten_date,
    )
