from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Tuple

from .errors import ValidationError

MIN_RATING = 0
MAX_RATING = 5


@dataclass
class Recipe:
    """Domain object representing a stored recipe.

    ``rating`` is 0 for unrated recipes and 1-5 otherwise. ``last_eaten_date``
    is ``None`` when the recipe has never been eaten.
    """

    id: str
    name: str
    ingredients: str = ""
    instructions: str = ""
    last_eaten_date: Optional[date] = None
    rating: int = 0


@dataclass(frozen=True)
class RecipeDraft:
    """Validated recipe fields submitted through the recipe form."""

    name: str
    ingredients: str = ""
    instructions: str = ""
    rating: int = 0

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "RecipeDraft":
        name = (form.get("name") or "").strip()
        ingredients = (form.get("ingredients") or "").strip()
        instructions = (form.get("instructions") or "").strip()

        if not name:
            raise ValidationError("Recipe name is required.")

        raw_rating = (form.get("rating") or "").strip()
        if not raw_rating:
            rating = MIN_RATING
        else:
            try:
                rating = int(raw_rating)
            except ValueError:
                raise ValidationError("Rating must be a whole number of stars.") from None

        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")

        return cls(name=name, ingredients=ingredients, instructions=instructions, rating=rating)


def name_sort_key(name: str) -> Tuple[str, str]:
    """Case-insensitive ordering key for recipe names.

    The raw name is the second element so that names differing only in case
    still compare in a stable order.
    """

    normalized = unicodedata.normalize("NFKD", name)
    folded = "".join(ch for ch in normalized if not unicodedata.combining(ch)).casefold()
    return folded, name


def sort_by_name(recipes) -> Tuple[Recipe, ...]:
    return tuple(sorted(recipes, key=lambda recipe: (name_sort_key(recipe.name), recipe.id)))


__all__ = [
    "MAX_RATING",
    "MIN_RATING",
    "Recipe",
    "RecipeDraft",
    "name_sort_key",
    "sort_by_name",
]
