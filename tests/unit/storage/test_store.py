import pytest

from titular.models.recipe import SiteRecipe
from titular.storage.store import InMemoryRecipeStore, JsonRecipeStore, RecipeFilters
from titular.utils.exceptions import (
    AlreadyVerifiedError,
    DuplicateRecipeError,
    PermissionDeniedError,
    RecipeNotFoundError,
)


def _recipe(domain, name=None):
    return {
        'domain': domain,
        'name': name or domain,
        'selectors': {'title': 'h1', 'content': 'article'},
    }


def test_save_assigns_id_and_resets_stats(store, recipe_data):
    recipe = store.save_recipe({**recipe_data, 'confidence': 0.99, 'usageCount': 7}, created_by='ana')

    assert recipe.id
    assert recipe.source == 'database'
    assert recipe.confidence == 0.5
    assert recipe.usage_count == 0
    assert recipe.created_by == 'ana'
    assert recipe.created_at is not None
    assert store.get_by_id(recipe.id) == recipe


def test_save_normalizes_domain(store):
    recipe = store.save_recipe(_recipe('https://www.Emol.com/portada'))

    assert recipe.domain == 'emol.com'
    assert store.get_recipe('http://emol.com/nacional/x').id == recipe.id


def test_save_rejects_duplicate_domain(store, recipe_data):
    store.save_recipe(recipe_data)

    with pytest.raises(DuplicateRecipeError):
        store.save_recipe({**recipe_data, 'domain': 'www.diarioejemplo.cl'})


def test_update_by_creator_merges_selectors(store, recipe_data):
    recipe = store.save_recipe(recipe_data, created_by='ana')

    updated = store.update_recipe(recipe.id, {'selectors': {'author': '.firma'}, 'name': 'Nuevo'}, 'ana')

    assert updated.name == 'Nuevo'
    assert str(updated.selectors.author) == '.firma'
    assert str(updated.selectors.title) == 'h1.headline'


def test_update_by_other_user_is_denied(store, recipe_data):
    recipe = store.save_recipe(recipe_data, created_by='ana')

    with pytest.raises(PermissionDeniedError):
        store.update_recipe(recipe.id, {'name': 'Otro'}, 'pedro')


def test_update_rejects_protected_fields(store, recipe_data):
    recipe = store.save_recipe(recipe_data, created_by='ana')

    with pytest.raises(ValueError, match='confidence'):
        store.update_recipe(recipe.id, {'confidence': 1.0}, 'ana')


def test_update_unknown_id(store):
    with pytest.raises(RecipeNotFoundError):
        store.update_recipe('missing', {'name': 'x'}, 'ana')


def test_update_stats_recomputes_confidence(store, recipe_data):
    recipe = store.save_recipe(recipe_data)

    after_success = store.update_stats(recipe.id, True)
    assert after_success.usage_count == 1
    assert after_success.success_count == 1
    assert after_success.confidence == 1.0
    assert after_success.last_success is not None

    after_failure = store.update_stats(recipe.id, False, 'x' * 5000)
    assert after_failure.usage_count == 2
    assert after_failure.failure_count == 1
    assert after_failure.confidence == 0.75
    assert len(after_failure.last_error) == 1000


def test_three_confirmations_verify(store, recipe_data):
    recipe = store.save_recipe(recipe_data)

    store.verify_recipe(recipe.id, 'a')
    second = store.verify_recipe(recipe.id, 'b')
    assert not second.is_verified

    third = store.verify_recipe(recipe.id, 'c')
    assert third.is_verified
    assert third.confidence == 0.8
    assert third.verified_by == ['a', 'b', 'c']

    # verified recipes keep the floor even after a failure
    assert store.update_stats(recipe.id, False, 'boom').confidence == 0.8


def test_same_user_cannot_confirm_twice(store, recipe_data):
    recipe = store.save_recipe(recipe_data)
    store.verify_recipe(recipe.id, 'a')

    with pytest.raises(AlreadyVerifiedError):
        store.verify_recipe(recipe.id, 'a')


def test_list_recipes_orders_and_pages(store):
    verified = store.save_recipe(_recipe('uno.cl'))
    for user in ('a', 'b', 'c'):
        store.verify_recipe(verified.id, user)
    reliable = store.save_recipe(_recipe('dos.cl'))
    store.update_stats(reliable.id, True)
    store.save_recipe(_recipe('tres.cl'))

    first = store.list_recipes(page=1, limit=2)
    assert [r.domain for r in first.recipes] == ['uno.cl', 'dos.cl']
    assert first.total == 3
    assert first.total_pages == 2

    second = store.list_recipes(page=2, limit=2)
    assert [r.domain for r in second.recipes] == ['tres.cl']


def test_list_recipes_filters(store):
    store.save_recipe(_recipe('uno.cl'), created_by='ana')
    other = store.save_recipe(_recipe('dos.cl'), created_by='pedro')
    store.deactivate(other.id)

    assert [r.domain for r in store.list_recipes({'is_active': True}).recipes] == ['uno.cl']
    assert [r.domain for r in store.list_recipes(RecipeFilters(created_by='pedro')).recipes] == ['dos.cl']
    assert store.list_recipes({'domain': 'DOS'}).total == 1


def test_get_stats(store, recipe_data):
    recipe = store.save_recipe(recipe_data)
    store.update_stats(recipe.id, True)
    store.update_stats(recipe.id, False, 'selector miss')
    store.update_stats(recipe.id, True)

    stats = store.get_stats('https://www.diarioejemplo.cl/x')

    assert stats.recipe_id == recipe.id
    assert stats.usage_count == 3
    assert stats.failure_count == 1
    assert stats.success_rate == 0.6667
    assert stats.last_error is None


def test_get_stats_unknown_domain(store):
    with pytest.raises(RecipeNotFoundError):
        store.get_stats('nada.cl')


def test_deactivate_hides_from_find_active(store, recipe_data):
    recipe = store.save_recipe(recipe_data)
    store.deactivate(recipe.id)

    assert store.find_active('diarioejemplo.cl') == []
    assert store.get_recipe('diarioejemplo.cl').is_active is False


def test_initial_recipes_keep_their_stats():
    seeded = SiteRecipe.model_validate({**_recipe('uno.cl'), 'confidence': 0.9, 'usageCount': 4})
    store = InMemoryRecipeStore([seeded])

    found = store.find_active('uno.cl')[0]
    assert found.id
    assert found.confidence == 0.9
    assert found.usage_count == 4


def test_json_store_persists_across_instances(tmp_path, recipe_data):
    path = tmp_path / 'recipes.json'
    first = JsonRecipeStore(path)
    recipe = first.save_recipe(recipe_data, created_by='ana')
    first.update_stats(recipe.id, True)

    assert path.exists()
    second = JsonRecipeStore(path)
    loaded = second.get_by_id(recipe.id)
    assert loaded.domain == 'diarioejemplo.cl'
    assert loaded.usage_count == 1
    assert str(loaded.selectors.title) == 'h1.headline'
    assert loaded.created_by == 'ana'


def test_json_store_starts_empty_without_file(tmp_path):
    store = JsonRecipeStore(tmp_path / 'nested' / 'recipes.json')

    assert store.list_recipes().total == 0


def test_failed_write_keeps_memory_and_file_in_step(tmp_path, recipe_data, mocker):
    path = tmp_path / 'recipes.json'
    store = JsonRecipeStore(path)
    recipe = store.save_recipe(recipe_data)
    mocker.patch.object(store, '_commit', side_effect=OSError('disk full'))

    with pytest.raises(OSError, match='disk full'):
        store.update_stats(recipe.id, True)
    with pytest.raises(OSError):
        store.save_recipe(_recipe('otrodiario.cl'))

    assert store.get_by_id(recipe.id).usage_count == 0
    assert store.get_recipe('otrodiario.cl') is None
    assert JsonRecipeStore(path).get_by_id(recipe.id).usage_count == 0


def test_recipe_without_id_is_rejected(store, recipe_data):
    with pytest.raises(ValueError, match='has no id'):
        store._store(SiteRecipe.model_validate(recipe_data))
