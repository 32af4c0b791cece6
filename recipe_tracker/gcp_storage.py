from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any, Iterable, List, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore

from .dates import format_date, parse_date
from .errors import StoreReadError, StoreUnavailable, StoreWriteError
from .models import MAX_RATING, MIN_RATING, Recipe
from .storage import RecipeRepository, check_changes

logger = logging.getLogger(__name__)

# Firestore document field names, matching documents written by earlier
# versions of the tracker.
FIELD_NAMES = {
    "name": "name",
    "ingredients": "ingredients",
    "instructions": "instructions",
    "rating": "rating",
    "last_eaten_date": "lastEatenDate",
}

_API_ERRORS = (gcloud_exceptions.GoogleAPICallError, gcloud_exceptions.RetryError)


def _coerce_rating(value: Any, doc_id: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        if value is not None:
            logger.warning("Recipe %s has a non-integer rating %r; treating as unrated", doc_id, value)
        return MIN_RATING
    if not MIN_RATING <= value <= MAX_RATING:
        logger.warning("Recipe %s has an out of range rating %r; treating as unrated", doc_id, value)
        return MIN_RATING
    return value


def _coerce_date(value: Any, doc_id: str) -> Optional[date]:
    try:
        return parse_date(value)
    except ValueError:
        logger.warning("Recipe %s has an invalid last eaten date %r; treating as never eaten", doc_id, value)
        return None


def _to_document_fields(changes: dict) -> dict:
    doc = {}
    for key, value in changes.items():
        if key == "last_eaten_date":
            value = format_date(value) or None
        doc[FIELD_NAMES[key]] = value
    return doc


class FirestoreRecipeStorage(RecipeRepository):
    """Recipe storage backed by a Firestore collection."""

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        client: Any = None,
    ) -> None:
        self._project = project
        self._collection_name = collection_name

        if client is None:
            try:
                client = firestore.Client(project=project)
            except (auth_exceptions.GoogleAuthError, OSError, ValueError) as exc:
                raise StoreUnavailable(f"Could not connect to Firestore: {exc}") from exc

        self._firestore_client = client
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        return cls(project=project, collection_name=collection_name)

    def list_recipes(self) -> Iterable[Recipe]:
        query = self._collection.order_by(FIELD_NAMES["name"])
        try:
            # Materialise the stream so a failure never yields a partial list.
            docs = list(query.stream())
        except _API_ERRORS as exc:
            raise StoreReadError(f"Could not load recipes: {exc}") from exc

        recipes: List[Recipe] = []
        for doc in docs:
            data = doc.to_dict() or {}
            recipes.append(self._doc_to_recipe(doc.id, data))
        return recipes

    def get_recipe(self, recipe_id: str) -> Recipe:
        try:
            snapshot = self._collection.document(recipe_id).get()
        except _API_ERRORS as exc:
            raise StoreReadError(f"Could not load recipe '{recipe_id}': {exc}") from exc

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        data = snapshot.to_dict() or {}
        return self._doc_to_recipe(snapshot.id, data)

    def add_recipe(
        self,
        *,
        name: str,
        ingredients: str,
        instructions: str,
        rating: int,
        last_eaten_date: Optional[date] = None,
    ) -> Recipe:
        doc = _to_document_fields(
            {
                "name": name,
                "ingredients": ingredients,
                "instructions": instructions,
                "rating": rating,
                "last_eaten_date": last_eaten_date,
            }
        )

        doc_ref = self._collection.document()
        try:
            doc_ref.set(doc)
        except _API_ERRORS as exc:
            raise StoreWriteError(f"Could not save recipe '{name}': {exc}") from exc

        return Recipe(
            id=doc_ref.id,
            name=name,
            ingredients=ingredients,
            instructions=instructions,
            last_eaten_date=last_eaten_date,
            rating=rating,
        )

    def update_recipe(self, recipe_id: str, **changes) -> None:
        check_changes(changes)
        if not changes:
            return

        doc_ref = self._collection.document(recipe_id)
        try:
            doc_ref.update(_to_document_fields(changes))
        except gcloud_exceptions.NotFound as exc:
            raise StoreWriteError(f"Recipe '{recipe_id}' does not exist.") from exc
        except _API_ERRORS as exc:
            raise StoreWriteError(f"Could not update recipe '{recipe_id}': {exc}") from exc

    def delete_recipe(self, recipe_id: str) -> None:
        doc_ref = self._collection.document(recipe_id)
        try:
            snapshot = doc_ref.get()
            if not snapshot.exists:
                raise StoreWriteError(f"Recipe '{recipe_id}' does not exist.")
            doc_ref.delete()
        except _API_ERRORS as exc:
            raise StoreWriteError(f"Could not delete recipe '{recipe_id}': {exc}") from exc

    def _doc_to_recipe(self, doc_id: str, data: dict) -> Recipe:
        return Recipe(
            id=doc_id,
            name=data.get(FIELD_NAMES["name"], "") or "",
            ingredients=data.get(FIELD_NAMES["ingredients"], "") or "",
            instructions=data.get(FIELD_NAMES["instructions"], "") or "",
            last_eaten_date=_coerce_date(data.get(FIELD_NAMES["last_eaten_date"]), doc_id),
            rating=_coerce_rating(data.get(FIELD_NAMES["rating"]), doc_id),
        )


__all__ = ["FirestoreRecipeStorage"]
