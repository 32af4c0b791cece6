import logging
import os
from datetime import date
from typing import Callable, Optional

from flask import Flask, flash, redirect, render_template, request, session, url_for

from .app_logging import configure_logging
from .dates import days_between, describe_last_eaten, format_date, parse_date
from .errors import StoreError, StoreReadError, StoreUnavailable, ValidationError
from .gcp_storage import FirestoreRecipeStorage
from .models import MAX_RATING, Recipe, RecipeDraft
from .storage import RecipeRepository
from .suggestions import DEFAULT_PAGE_SIZE, SuggestionPage
from .workflow import RecipeWorkflow, TrackerState

logger = logging.getLogger(__name__)

EXPANDED_SESSION_KEY = "expanded_recipes"
UNAVAILABLE_MESSAGE = "Database not connected. Recipes cannot be changed."


def create_app(
    storage: Optional[RecipeRepository] = None,
    today: Optional[Callable[[], date]] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository. When ``None`` the application will use
        :class:`FirestoreRecipeStorage` configured through environment variables.
        If Firestore cannot be reached the app still starts, with every
        recipe change disabled.
    today:
        Optional callable returning the current date, used as the reference
        day for suggestions and for logging meals.
    """

    configure_logging(os.environ.get("LOG_LEVEL", "INFO").upper())

    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "development-secret-change-me")
    app.config.setdefault("SUGGESTION_PAGE_SIZE", _page_size_from_env())
    app.config["TODAY"] = today or date.today

    if storage is None:
        try:
            storage = FirestoreRecipeStorage.from_env()
        except StoreUnavailable:
            logger.exception("Firestore is not available; recipes cannot be loaded")
            storage = None
    app.config["RECIPE_STORAGE"] = storage

    def workflow() -> RecipeWorkflow:
        return RecipeWorkflow(app.config["RECIPE_STORAGE"], today=app.config["TODAY"])

    def load_state(flow: RecipeWorkflow) -> TrackerState:
        if app.config["RECIPE_STORAGE"] is None:
            return flow.unavailable()
        return flow.load()

    def mutate(action: Callable[[RecipeWorkflow, TrackerState], object], failure: str) -> bool:
        """Load the current recipes and apply ``action``; flash on failure."""

        flow = workflow()
        state = load_state_or_flash(flow)
        if state is None:
            return False
        if not state.available:
            flash(UNAVAILABLE_MESSAGE, "error")
            return False
        try:
            action(flow, state)
        except StoreError as exc:
            flash(f"{failure} Please try again. ({exc})", "error")
            return False
        return True

    def load_state_or_flash(flow: RecipeWorkflow) -> Optional[TrackerState]:
        try:
            return load_state(flow)
        except StoreReadError:
            flash("Could not load recipes. Please try again.", "error")
            return None

    @app.template_filter("last_eaten_text")
    def last_eaten_text(recipe: Recipe) -> str:
        return describe_last_eaten(days_between(app.config["TODAY"](), recipe.last_eaten_date))

    @app.get("/")
    def index() -> str:
        flow = workflow()
        load_error = False
        try:
            state = load_state(flow)
        except StoreReadError:
            flash("Could not load recipes. Check the logs for details.", "error")
            state = TrackerState()
            load_error = True

        if request.args.get("all") == "1":
            state = flow.reveal_all_suggestions(state)

        if state.available:
            suggestions = flow.suggestions(state, app.config["SUGGESTION_PAGE_SIZE"])
        else:
            suggestions = SuggestionPage()
        expanded = set(session.get(EXPANDED_SESSION_KEY, []))

        return render_template(
            "index.html",
            state=state,
            recipes=state.recipes,
            suggestions=suggestions,
            expanded=expanded,
            load_error=load_error,
            today=format_date(flow.today()),
            max_rating=MAX_RATING,
            title="Recipe Tracker",
        )

    @app.post("/recipes")
    def create_recipe() -> str:
        try:
            draft = RecipeDraft.from_form(request.form)
        except ValidationError as exc:
            flash(str(exc), "error")
            return redirect(url_for("index"))

        if mutate(lambda flow, state: flow.add_recipe(state, draft), "Failed to add recipe."):
            flash(f"Recipe '{draft.name}' saved.", "success")
        return redirect(url_for("index"))

    @app.get("/recipes/<recipe_id>/edit")
    def edit_recipe(recipe_id: str) -> str:
        storage_backend: Optional[RecipeRepository] = app.config["RECIPE_STORAGE"]
        if storage_backend is None:
            flash(UNAVAILABLE_MESSAGE, "error")
            return redirect(url_for("index"))

        try:
            recipe = storage_backend.get_recipe(recipe_id)
        except KeyError:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))
        except StoreReadError:
            logger.exception("Error loading recipe %s", recipe_id)
            flash("Could not load recipe. Please try again.", "error")
            return redirect(url_for("index"))

        return render_template(
            "edit_recipe.html",
            recipe=recipe,
            max_rating=MAX_RATING,
            title=f"Edit {recipe.name}",
        )

    @app.post("/recipes/<recipe_id>")
    def update_recipe(recipe_id: str) -> str:
        try:
            draft = RecipeDraft.from_form(request.form)
        except ValidationError as exc:
            flash(str(exc), "error")
            return redirect(url_for("edit_recipe", recipe_id=recipe_id))

        if not mutate(
            lambda flow, state: flow.edit_recipe(state, recipe_id, draft),
            "Failed to update recipe.",
        ):
            return redirect(url_for("edit_recipe", recipe_id=recipe_id))

        flash(f"Recipe '{draft.name}' updated.", "success")
        return redirect(url_for("index"))

    @app.post("/recipes/<recipe_id>/delete")
    def delete_recipe(recipe_id: str) -> str:
        if mutate(lambda flow, state: flow.delete_recipe(state, recipe_id), "Failed to delete recipe."):
            expanded = [rid for rid in session.get(EXPANDED_SESSION_KEY, []) if rid != recipe_id]
            session[EXPANDED_SESSION_KEY] = expanded
            flash("Recipe deleted.", "success")
        return redirect(url_for("index"))

    @app.post("/recipes/<recipe_id>/eaten")
    def log_meal(recipe_id: str) -> str:
        if mutate(lambda flow, state: flow.log_meal_today(state, recipe_id), "Failed to update recipe."):
            flash("Enjoy your meal! Logged as eaten today.", "success")
        return redirect(url_for("index"))

    @app.post("/recipes/<recipe_id>/last-eaten")
    def set_last_eaten(recipe_id: str) -> str:
        try:
            value = parse_date(request.form.get("last_eaten_date", ""))
        except ValueError:
            flash("Please provide a valid date.", "error")
            return redirect(url_for("index"))

        if mutate(
            lambda flow, state: flow.set_last_eaten(state, recipe_id, value),
            "Failed to update recipe.",
        ):
            flash("Last eaten date updated.", "success")
        return redirect(url_for("index"))

    @app.post("/recipes/<recipe_id>/details")
    def toggle_details(recipe_id: str) -> str:
        expanded = list(session.get(EXPANDED_SESSION_KEY, []))
        if recipe_id in expanded:
            expanded.remove(recipe_id)
        else:
            expanded.append(recipe_id)
        session[EXPANDED_SESSION_KEY] = expanded
        # Keep the suggestion list as the user left it.
        return redirect(url_for("index", all=request.form.get("all") or None, _anchor=f"recipe-{recipe_id}"))

    @app.post("/recipes/<recipe_id>/show")
    def show_details(recipe_id: str) -> str:
        expanded = list(session.get(EXPANDED_SESSION_KEY, []))
        if recipe_id not in expanded:
            expanded.append(recipe_id)
            session[EXPANDED_SESSION_KEY] = expanded
        return redirect(url_for("index", all=request.form.get("all") or None, _anchor=f"recipe-{recipe_id}"))

    return app


def _page_size_from_env() -> int:
    raw = os.environ.get("SUGGESTION_PAGE_SIZE", "").strip()
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        page_size = int(raw)
    except ValueError:
        page_size = 0
    if page_size <= 0:
        raise RuntimeError(
            f"SUGGESTION_PAGE_SIZE must be a positive whole number, got {raw!r}."
        )
    return page_size


__all__ = ["create_app", "Recipe"]
