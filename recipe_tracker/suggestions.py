"""Ranking of recipes into "what to cook next" suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Generic, Iterable, List, Optional, Sequence, TypeVar

from .dates import days_between, describe_for_suggestion, describe_last_eaten
from .models import Recipe, name_sort_key

DEFAULT_PAGE_SIZE = 5

T = TypeVar("T")


@dataclass(frozen=True)
class RankedRecipe:
    """A recipe together with how many days ago it was last eaten.

    ``days_since_eaten`` is ``None`` when the recipe was never eaten or has a
    last eaten date after the reference day.
    """

    recipe: Recipe
    days_since_eaten: Optional[int]

    @property
    def is_unbounded(self) -> bool:
        return self.days_since_eaten is None

    @property
    def eaten_status(self) -> str:
        return describe_for_suggestion(self.days_since_eaten)

    @property
    def last_eaten_text(self) -> str:
        return describe_last_eaten(self.days_since_eaten)


@dataclass(frozen=True)
class SuggestionPage(Generic[T]):
    visible: List[T] = field(default_factory=list)
    remaining_count: int = 0
    total: int = 0

    @property
    def has_more(self) -> bool:
        return self.remaining_count > 0

    @property
    def show_more_label(self) -> str:
        plural = "s" if self.remaining_count > 1 else ""
        return f"Show {self.remaining_count} More Suggestion{plural}"


def _suggestion_key(item: RankedRecipe):
    days = item.days_since_eaten
    recipe = item.recipe
    # Unbounded entries sort ahead of every finite count.
    staleness = (0, 0) if days is None else (1, -days)
    return staleness, -recipe.rating, name_sort_key(recipe.name), recipe.id


def annotate(recipes: Iterable[Recipe], today: date) -> List[RankedRecipe]:
    """Return every recipe with its staleness, most deserving suggestion first.

    Recipes are ordered by days since last eaten (longest first, never eaten
    before all), then by rating (highest first), then by name.
    """

    ranked = [
        RankedRecipe(recipe=recipe, days_since_eaten=days_between(today, recipe.last_eaten_date))
        for recipe in recipes
    ]
    ranked.sort(key=_suggestion_key)
    return ranked


def rank(recipes: Iterable[Recipe], today: date) -> List[Recipe]:
    return [item.recipe for item in annotate(recipes, today)]


def paginate(
    ranked: Sequence[T],
    reveal_all: bool,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> SuggestionPage[T]:
    """Split a ranked sequence into the visible prefix and a remaining count."""

    if page_size <= 0:
        raise ValueError("page_size must be a positive integer")

    total = len(ranked)
    if reveal_all:
        return SuggestionPage(visible=list(ranked), remaining_count=0, total=total)

    return SuggestionPage(
        visible=list(ranked[:page_size]),
        remaining_count=max(0, total - page_size),
        total=total,
    )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "RankedRecipe",
    "SuggestionPage",
    "annotate",
    "paginate",
    "rank",
]
