from datetime import date, timedelta

import pytest

from conftest import TODAY, add
from recipe_tracker.errors import StoreReadError, StoreUnavailable, StoreWriteError
from recipe_tracker.models import RecipeDraft
from recipe_tracker.workflow import RecipeWorkflow, TrackerState


@pytest.fixture
def workflow(storage):
    return RecipeWorkflow(storage, today=lambda: TODAY)


def names(state):
    return [recipe.name for recipe in state.recipes]


def test_load_sorts_recipes_by_name(storage, workflow):
    add(storage, "risotto")
    add(storage, "Gazpacho")
    add(storage, "apple tart")

    state = workflow.load()

    assert names(state) == ["apple tart", "Gazpacho", "risotto"]
    assert state.reveal_all is False
    assert state.available is True


def test_load_propagates_read_errors(storage, workflow):
    storage.fail_reads = True

    with pytest.raises(StoreReadError):
        workflow.load()


def test_load_without_store_is_unavailable():
    with pytest.raises(StoreUnavailable):
        RecipeWorkflow(None).load()


def test_add_recipe_inserts_confirmed_record_in_name_order(storage, workflow):
    add(storage, "Moussaka")
    state = workflow.load()

    new_state, created = workflow.add_recipe(state, RecipeDraft(name="Falafel", rating=4))

    assert created.id
    assert created.last_eaten_date is None
    assert names(new_state) == ["Falafel", "Moussaka"]
    assert new_state.find(created.id).rating == 4
    assert names(state) == ["Moussaka"]


def test_failed_add_leaves_state_unchanged(storage, workflow):
    add(storage, "Moussaka")
    state = workflow.reveal_all_suggestions(workflow.load())
    storage.fail_writes = True

    with pytest.raises(StoreWriteError):
        workflow.add_recipe(state, RecipeDraft(name="Falafel"))

    assert names(state) == ["Moussaka"]
    assert state.reveal_all is True
    assert [r.name for r in storage.list_recipes()] == ["Moussaka"]


def test_edit_recipe_keeps_last_eaten_date(storage, workflow):
    recipe = add(storage, "Soup", rating=2, last_eaten_date=date(2024, 6, 1))
    state = workflow.load()

    new_state = workflow.edit_recipe(
        state,
        recipe.id,
        RecipeDraft(name="Tomato soup", ingredients="tomatoes", instructions="Simmer.", rating=5),
    )

    updated = new_state.find(recipe.id)
    assert updated.name == "Tomato soup"
    assert updated.rating == 5
    assert updated.last_eaten_date == date(2024, 6, 1)
    assert storage.get_recipe(recipe.id).last_eaten_date == date(2024, 6, 1)


def test_log_meal_today_sets_reference_date(storage, workflow):
    recipe = add(storage, "Paella")
    state = workflow.load()

    new_state = workflow.log_meal_today(state, recipe.id)

    assert new_state.find(recipe.id).last_eaten_date == TODAY
    assert storage.get_recipe(recipe.id).last_eaten_date == TODAY


def test_set_last_eaten_accepts_future_and_clearing(storage, workflow):
    recipe = add(storage, "Paella", last_eaten_date=date(2024, 6, 1))
    state = workflow.load()

    future = TODAY + timedelta(days=3)
    state = workflow.set_last_eaten(state, recipe.id, future)
    assert state.find(recipe.id).last_eaten_date == future
    assert workflow.suggestions(state).visible[0].days_since_eaten is None

    state = workflow.set_last_eaten(state, recipe.id, None)
    assert state.find(recipe.id).last_eaten_date is None
    assert storage.get_recipe(recipe.id).last_eaten_date is None


def test_delete_recipe_removes_it_from_suggestions(storage, workflow):
    keep = add(storage, "Keep")
    drop = add(storage, "Drop")
    state = workflow.load()

    new_state = workflow.delete_recipe(state, drop.id)

    assert [item.recipe.id for item in workflow.suggestions(new_state).visible] == [keep.id]


def test_update_of_unknown_recipe_fails_without_changes(storage, workflow):
    add(storage, "Stew")
    state = workflow.load()

    with pytest.raises(StoreWriteError):
        workflow.log_meal_today(state, "missing")

    assert state.recipes[0].last_eaten_date is None


@pytest.mark.parametrize("action", ["add", "edit", "log", "date", "delete"])
def test_every_mutation_collapses_suggestions(storage, workflow, action):
    recipe = add(storage, "Stew")
    state = workflow.reveal_all_suggestions(workflow.load())
    assert state.reveal_all is True

    if action == "add":
        state, _ = workflow.add_recipe(state, RecipeDraft(name="Pie"))
    elif action == "edit":
        state = workflow.edit_recipe(state, recipe.id, RecipeDraft(name="Beef stew"))
    elif action == "log":
        state = workflow.log_meal_today(state, recipe.id)
    elif action == "date":
        state = workflow.set_last_eaten(state, recipe.id, date(2024, 1, 1))
    else:
        state = workflow.delete_recipe(state, recipe.id)

    assert state.reveal_all is False


def test_suggestions_page_follows_reveal_all(storage, workflow):
    for index in range(7):
        add(storage, f"Recipe {index}")
    state = workflow.load()

    page = workflow.suggestions(state)
    assert len(page.visible) == 5
    assert page.remaining_count == 2

    page = workflow.suggestions(workflow.reveal_all_suggestions(state))
    assert len(page.visible) == 7
    assert page.remaining_count == 0


def test_mutations_on_unavailable_state_never_reach_store(storage, workflow):
    state = workflow.unavailable()

    with pytest.raises(StoreUnavailable):
        workflow.add_recipe(state, RecipeDraft(name="Pie"))

    assert storage.write_calls == 0
    assert state == TrackerState(available=False)
