#!/usr/bin/env python3
"""
Database setup script for GameStore.
Creates the games/categories tables and optionally seeds a sample catalog.
"""

import argparse
import os
import sys

# Add the parent directory to the path so we can import the project modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv
from sqlalchemy import func, select

import database
from app.repositories import CategoryRepository, GameRepository
from app.services import CategoryService, GameService

SAMPLE_CATEGORIES = [
    {'name': 'Action', 'description': 'Fast-paced combat and reflexes'},
    {'name': 'Indie', 'description': 'Games from independent studios'},
    {'name': 'RPG', 'description': 'Role-playing adventures'},
]

# category is resolved by name at seed time
SAMPLE_GAMES = [
    {'title': 'Elden Ring', 'genre': 'Action RPG', 'platform': 'PC,PS5,Xbox Series X',
     'price': 59.99, 'rating': 9.5, 'release_date': '2022-02-25', 'category': 'RPG',
     'description': 'Rise, Tarnished, and explore the Lands Between.'},
    {'title': 'Hades', 'genre': 'Roguelike', 'platform': 'PC,Switch',
     'price': 24.99, 'rating': 9.3, 'release_date': '2020-09-17', 'category': 'Indie',
     'description': 'Battle out of the Underworld in this rogue-like dungeon crawler.'},
    {'title': 'DOOM Eternal', 'genre': 'Shooter', 'platform': 'PC,PS4,Xbox One',
     'price': 39.99, 'rating': 8.9, 'release_date': '2020-03-20', 'category': 'Action',
     'description': "Rip and tear across dimensions to stop Hell's invasion."},
    {'title': 'Hollow Knight', 'genre': 'Metroidvania', 'platform': 'PC,Switch',
     'price': 14.99, 'rating': 9.0, 'release_date': '2017-02-24', 'category': 'Indie',
     'description': 'Descend into the ruined kingdom of Hallownest.'},
    {'title': 'Warframe', 'genre': 'Shooter', 'platform': 'PC,PS5,Xbox Series X,Switch',
     'price': 0, 'rating': 7.8, 'release_date': '2013-03-25', 'category': 'Action',
     'description': 'Free-to-play cooperative space ninja action.'},
]


def seed(store: database.StoreConnection) -> int:
    """Insert the sample catalog into empty tables; returns games inserted."""
    with store.session() as db:
        if db.scalar(select(func.count()).select_from(database.Game)):
            print("✓ Games table already has data, skipping seed")
            return 0
        categories = CategoryService(CategoryRepository(db))
        category_ids = {c['name']: categories.create_category(c) for c in SAMPLE_CATEGORIES}
        games = GameService(GameRepository(db))
        for sample in SAMPLE_GAMES:
            payload = {k: v for k, v in sample.items() if k != 'category'}
            payload['category_id'] = category_ids[sample['category']]
            games.create_game(payload)
    print(f"✓ Seeded {len(SAMPLE_GAMES)} games in {len(SAMPLE_CATEGORIES)} categories")
    return len(SAMPLE_GAMES)


def main():
    parser = argparse.ArgumentParser(description='GameStore database setup')
    parser.add_argument('--seed', action='store_true', help='Insert a sample catalog')
    args = parser.parse_args()

    load_dotenv()
    print("=" * 60)
    print("GameStore Database Setup")
    print("=" * 60)
    print()

    settings = database.load_store_settings()
    store = database.StoreConnection.from_settings(settings)
    try:
        if not store.open():
            print("✗ Error: Cannot connect to database")
            print("  Make sure MySQL/MariaDB is running and DB_* variables are set correctly")
            print(f"  Current host: {settings['host']}:{settings['port']}/{settings['database']}")
            return 1
        if not database.init_db(store):
            return 1
        print("✓ Tables created")
        if args.seed:
            seed(store)
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
