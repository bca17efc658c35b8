import json

import pytest

from titular.storage.catalog import RecipeCatalog
from titular.storage.feedback import FeedbackLoop
from titular.storage.resolver import ConfigResolver
from titular.utils.exceptions import AlreadyVerifiedError, RecipeNotFoundError


@pytest.fixture
def catalog(tmp_path):
    path = tmp_path / 'catalog.json'
    document = {
        'sites': [
            {'domain': 'diarioejemplo.cl', 'name': 'Catalogo', 'selectors': {'title': 'h1', 'content': 'article'}},
            {'domain': 'soloestatico.cl', 'name': 'Estatico', 'selectors': {'title': 'h1', 'content': 'article'}},
        ]
    }
    path.write_text(json.dumps(document), encoding='utf-8')
    return RecipeCatalog(path).init()


@pytest.fixture
def resolver(store, catalog):
    return ConfigResolver(store, catalog)


def test_verified_store_recipe_is_priority_one(store, resolver, recipe_data, article_url):
    recipe = store.save_recipe(recipe_data)
    for user in ('a', 'b', 'c'):
        store.verify_recipe(recipe.id, user)

    resolved = resolver.resolve(article_url)

    assert resolved.source == 'database'
    assert resolved.priority == 1
    assert resolved.recipe.id == recipe.id


def test_unverified_store_recipe_beats_catalog(store, resolver, recipe_data, article_url):
    recipe = store.save_recipe(recipe_data)

    resolved = resolver.resolve(article_url)

    assert resolved.source == 'database'
    assert resolved.priority == 2
    assert resolved.recipe.id == recipe.id


def test_catalog_is_priority_three(resolver):
    resolved = resolver.resolve('https://www.soloestatico.cl/nota')

    assert resolved.found
    assert resolved.source == 'json'
    assert resolved.priority == 3
    assert resolved.recipe.name == 'Estatico'


def test_inactive_store_recipe_falls_back_to_catalog(store, resolver, recipe_data, article_url):
    recipe = store.save_recipe(recipe_data)
    store.deactivate(recipe.id)

    resolved = resolver.resolve(article_url)

    assert resolved.source == 'json'
    assert resolved.recipe.name == 'Catalogo'


def test_nothing_matches(store):
    resolved = ConfigResolver(store).resolve('https://desconocido.org/a')

    assert resolved.source == 'none'
    assert not resolved.found
    assert resolved.priority is None


def test_feedback_records_outcomes(store, recipe_data):
    recipe = store.save_recipe(recipe_data)
    loop = FeedbackLoop(store)

    loop.record(recipe.id, True)
    updated = loop.record(recipe.id, False, 'content too short')

    assert updated.usage_count == 2
    assert updated.success_count == 1
    assert updated.last_error == 'content too short'
    assert updated.confidence == 0.75


def test_feedback_confirmations(store, recipe_data):
    recipe = store.save_recipe(recipe_data)
    loop = FeedbackLoop(store)

    for user in ('a', 'b', 'c'):
        confirmed = loop.confirm(recipe.id, user)

    assert confirmed.is_verified
    with pytest.raises(AlreadyVerifiedError):
        loop.confirm(recipe.id, 'b')


def test_feedback_unknown_recipe(store):
    with pytest.raises(RecipeNotFoundError):
        FeedbackLoop(store).record('missing', True)
