#!/usr/bin/env python3
"""
Unit tests for the app/repositories and app/services layer.

Run with:
    python -m pytest tests/test_services.py
"""
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import database
import migrate_database
from app.repositories import CategoryRepository, GameRepository
from app.services import CategoryService, GameService
from app.validation import ValidationError, validate_game


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _game(title='Portal 2', **overrides):
    game = {
        'title': title,
        'description': f'{title} description',
        'genre': 'Puzzle',
        'platform': 'PC',
        'price': 9.99,
    }
    game.update(overrides)
    return game


class StoreMixin(unittest.TestCase):
    """Opens a fresh in-memory store with tables for each test."""

    def setUp(self):
        self.store = database.StoreConnection('sqlite://')
        self.store.open()
        self.store.create_tables()
        self._ctx = self.store.session()
        self.db = self._ctx.__enter__()

    def tearDown(self):
        self._ctx.__exit__(None, None, None)
        self.store.close()


# ===========================================================================
# Repository tests
# ===========================================================================

class TestGameRepository(StoreMixin):

    def _make(self):
        return GameRepository(self.db)

    def _create(self, **kwargs):
        return self._make().create(validate_game(_game(**kwargs)))

    def test_starts_empty(self):
        self.assertEqual(self._make().list_with_category(), [])

    def test_create_returns_new_id(self):
        first = self._create(title='A')
        second = self._create(title='B')
        self.assertGreater(second, first)

    def test_list_is_newest_first(self):
        ids = [self._create(title=t) for t in ('A', 'B', 'C')]
        listed = [g['id'] for g in self._make().list_with_category()]
        self.assertEqual(listed, list(reversed(ids)))

    def test_find_missing_returns_none(self):
        self.assertIsNone(self._make().find(999))

    def test_find_joins_category_name(self):
        cat_id = CategoryRepository(self.db).create({'name': 'Indie'})
        game_id = self._create(category_id=cat_id)
        self.assertEqual(self._make().find(game_id)['category_name'], 'Indie')

    def test_find_without_category(self):
        game_id = self._create()
        found = self._make().find(game_id)
        self.assertIsNone(found['category_id'])
        self.assertIsNone(found['category_name'])

    def test_update_existing(self):
        game_id = self._create()
        self.assertTrue(self._make().update(game_id, validate_game(_game('Portal 3', price=0))))
        found = self._make().find(game_id)
        self.assertEqual(found['title'], 'Portal 3')
        self.assertEqual(found['price'], 0.0)

    def test_update_missing_returns_false(self):
        self.assertFalse(self._make().update(999, validate_game(_game())))

    def test_delete_twice(self):
        game_id = self._create()
        self.assertTrue(self._make().delete(game_id))
        self.assertFalse(self._make().delete(game_id))
        self.assertIsNone(self._make().find(game_id))


class TestCategoryRepository(StoreMixin):

    def _make(self):
        return CategoryRepository(self.db)

    def test_list_ordered_by_name(self):
        for name in ('RPG', 'Action', 'Indie'):
            self._make().create({'name': name})
        names = [c['name'] for c in self._make().list_all()]
        self.assertEqual(names, ['Action', 'Indie', 'RPG'])

    def test_delete_detaches_games(self):
        cat_id = self._make().create({'name': 'Indie'})
        game_id = GameRepository(self.db).create(validate_game(_game(category_id=cat_id)))
        self.assertTrue(self._make().delete(cat_id))
        game = GameRepository(self.db).find(game_id)
        self.assertIsNotNone(game)
        self.assertIsNone(game['category_id'])
        self.assertEqual(self._make().list_all(), [])

    def test_delete_missing_returns_false(self):
        self.assertFalse(self._make().delete(42))


# ===========================================================================
# Service tests
# ===========================================================================

class TestGameService(StoreMixin):

    def _make(self):
        return GameService(GameRepository(self.db))

    def test_create_and_get_round_trip(self):
        svc = self._make()
        game_id = svc.create_game(_game('Hades', price=24.99, rating=9.3,
                                        release_date='2020-09-17', platform='PC,Switch'))
        game = svc.get_game(game_id)
        self.assertEqual(game['title'], 'Hades')
        self.assertEqual(game['price'], 24.99)
        self.assertEqual(game['rating'], 9.3)
        self.assertEqual(game['release_date'], '2020-09-17')
        self.assertEqual(game['platform'], 'PC,Switch')

    def test_rating_defaults_to_zero(self):
        svc = self._make()
        self.assertEqual(svc.get_game(svc.create_game(_game()))['rating'], 0.0)

    def test_create_invalid_writes_nothing(self):
        svc = self._make()
        with self.assertRaises(ValidationError):
            svc.create_game({'title': 'No price'})
        self.assertEqual(svc.list_games(), [])

    def test_update_invalid_raises(self):
        svc = self._make()
        game_id = svc.create_game(_game())
        with self.assertRaises(ValidationError):
            svc.update_game(game_id, {'title': 'partial'})
        self.assertEqual(svc.get_game(game_id)['title'], 'Portal 2')

    def test_update_missing_returns_false(self):
        self.assertFalse(self._make().update_game(999, _game()))

    def test_delete(self):
        svc = self._make()
        game_id = svc.create_game(_game())
        self.assertTrue(svc.delete_game(game_id))
        self.assertFalse(svc.delete_game(game_id))


class TestCategoryService(StoreMixin):

    def _make(self):
        return CategoryService(CategoryRepository(self.db))

    def test_create_requires_name(self):
        with self.assertRaises(ValidationError):
            self._make().create_category({'description': 'nameless'})
        self.assertEqual(self._make().list_categories(), [])

    def test_create_and_list(self):
        cat_id = self._make().create_category({'name': 'Indie', 'description': 'Small studios'})
        listed = self._make().list_categories()
        self.assertEqual(listed[0]['id'], cat_id)
        self.assertEqual(listed[0]['description'], 'Small studios')

    def test_delete_category(self):
        cat_id = self._make().create_category({'name': 'Indie'})
        self.assertTrue(self._make().delete_category(cat_id))
        self.assertFalse(self._make().delete_category(cat_id))


# ===========================================================================
# Sample catalog
# ===========================================================================

class TestSeed(unittest.TestCase):

    def setUp(self):
        self.store = database.StoreConnection('sqlite://')
        self.store.open()
        self.store.create_tables()

    def tearDown(self):
        self.store.close()

    def test_seed_fills_empty_store_once(self):
        self.assertEqual(migrate_database.seed(self.store), len(migrate_database.SAMPLE_GAMES))
        self.assertEqual(migrate_database.seed(self.store), 0)
        with self.store.session() as db:
            games = GameService(GameRepository(db)).list_games()
        self.assertEqual(len(games), len(migrate_database.SAMPLE_GAMES))
        self.assertTrue(all(g['category_name'] for g in games))


if __name__ == '__main__':
    unittest.main()
