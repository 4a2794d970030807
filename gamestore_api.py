#!/usr/bin/env python3
"""
GameStore API - JSON REST service for the game catalog.
Serves games and categories from a MySQL-compatible database.
"""

import argparse
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

import database
from app.log_setup import setup_logging
from app.repositories import CategoryRepository, GameRepository
from app.services import CategoryService, GameService
from app.validation import ValidationError, validate_category, validate_game
from openapi_spec import API_VERSION, build_spec

load_dotenv()

app = Flask(__name__)
app.json.sort_keys = False

api_logger = logging.getLogger('gamestore.api')

# Shared store handle, opened by init_store()
store: Optional[database.StoreConnection] = None

ENDPOINTS = [
    'GET /api/health - Service and database health',
    'GET /api/games - List all games',
    'GET /api/games/:id - Get one game',
    'POST /api/games - Create a game',
    'PUT /api/games/:id - Update a game',
    'DELETE /api/games/:id - Delete a game',
    'GET /api/categories - List all categories',
    'POST /api/categories - Create a category',
    'DELETE /api/categories/:id - Delete a category',
    'GET /api/openapi.json - OpenAPI specification',
]


def configure_logging(level: str = 'INFO', log_file: Optional[str] = 'logs/gamestore_api.log') -> None:
    """Route GameStore logs to stderr and, when possible, to *log_file*."""
    setup_logging(level)
    if not log_file:
        return
    try:
        os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
        fh = logging.FileHandler(log_file)
        fh.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        fh.setLevel(getattr(logging, level.upper(), logging.INFO))
        logging.getLogger('gamestore').addHandler(fh)
    except OSError as e:
        api_logger.warning('Could not create log file handler: %s', e)


def init_store(settings: Optional[dict] = None, create_tables: bool = False) -> database.StoreConnection:
    """Open the shared store connection; reconnects in the background if down."""
    global store
    store = database.StoreConnection.from_settings(settings or database.load_store_settings())
    if store.open():
        if create_tables:
            database.init_db(store)
    elif create_tables:
        api_logger.warning('Database unavailable, tables were not created')
    return store


def _session():
    if store is None:
        raise database.StoreUnavailableError('Store has not been initialized')
    return store.session()


@app.after_request
def add_cors_headers(response):
    response.headers['Access-Control-Allow-Origin'] = os.getenv('CORS_ORIGINS', '*')
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
    return response


# ===========================================================================================
# Service endpoints
# ===========================================================================================

@app.route('/')
def index():
    """Service metadata and endpoint listing"""
    return jsonify({
        'message': 'GameStore API is running!',
        'version': API_VERSION,
        'endpoints': ENDPOINTS,
    })


@app.route('/api/health')
def api_health():
    """Liveness probe: pings the database on every call."""
    if store is not None and store.ping():
        return jsonify({
            'status': 'ok',
            'message': 'Backend is healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
        })
    return jsonify({
        'status': 'error',
        'message': 'Database connection failed',
    }), 503


@app.route('/api/openapi.json')
def api_openapi_spec():
    """Serve the OpenAPI 3.0 specification as JSON."""
    return jsonify(build_spec(server_url=request.url_root.rstrip('/')))


# -----------------------------------------------------------------------
# Games endpoints
# -----------------------------------------------------------------------

@app.route('/api/games', methods=['GET'])
def api_get_games():
    """Return all games with their category name, newest first."""
    with _session() as db:
        return jsonify(GameService(GameRepository(db)).list_games())


@app.route('/api/games/<int:game_id>', methods=['GET'])
def api_get_game(game_id: int):
    """Return a single game."""
    with _session() as db:
        game = GameService(GameRepository(db)).get_game(game_id)
    if game is None:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(game)


@app.route('/api/games', methods=['POST'])
def api_create_game():
    """Create a game.

    Body JSON: {"title", "description", "genre", "platform", "price",
    optional "release_date", "rating" (default 0), "image_url", "category_id"}
    """
    try:
        fields = validate_game(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    with _session() as db:
        game_id = GameService(GameRepository(db)).create_game(fields)
    return jsonify({'id': game_id, 'message': 'Game created successfully'}), 201


@app.route('/api/games/<int:game_id>', methods=['PUT'])
def api_update_game(game_id: int):
    """Replace every field of a game with the body (same shape as POST)."""
    try:
        fields = validate_game(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    with _session() as db:
        updated = GameService(GameRepository(db)).update_game(game_id, fields)
    if not updated:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify({'message': 'Game updated successfully'})


@app.route('/api/games/<int:game_id>', methods=['DELETE'])
def api_delete_game(game_id: int):
    """Delete a game."""
    with _session() as db:
        removed = GameService(GameRepository(db)).delete_game(game_id)
    if not removed:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify({'message': 'Game deleted successfully'})


# -----------------------------------------------------------------------
# Categories endpoints
# -----------------------------------------------------------------------

@app.route('/api/categories', methods=['GET'])
def api_get_categories():
    """Return all categories ordered by name."""
    with _session() as db:
        return jsonify(CategoryService(CategoryRepository(db)).list_categories())


@app.route('/api/categories', methods=['POST'])
def api_create_category():
    """Create a category.

    Body JSON: {"name": "...", "description": "optional text"}
    """
    try:
        fields = validate_category(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    with _session() as db:
        category_id = CategoryService(CategoryRepository(db)).create_category(fields)
    return jsonify({'id': category_id, 'message': 'Category created successfully'}), 201


@app.route('/api/categories/<int:category_id>', methods=['DELETE'])
def api_delete_category(category_id: int):
    """Delete a category; games in it become uncategorized."""
    with _session() as db:
        removed = CategoryService(CategoryRepository(db)).delete_category(category_id)
    if not removed:
        return jsonify({'error': 'Category not found'}), 404
    return jsonify({'message': 'Category deleted successfully'})


# ===========================================================================================
# Error handlers
# ===========================================================================================

@app.errorhandler(404)
def handle_not_found(e):
    return jsonify({'error': 'Route not found'}), 404


@app.errorhandler(405)
def handle_method_not_allowed(e):
    return jsonify({'error': 'Method not allowed'}), 405


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    """Log the real error; the caller only ever sees a generic message."""
    if isinstance(e, HTTPException):
        return jsonify({'error': e.description}), e.code
    api_logger.exception('Unhandled error on %s %s: %s', request.method, request.path, e)
    return jsonify({'error': 'Internal server error'}), 500


def main():
    """Main entry point for the API service"""
    parser = argparse.ArgumentParser(description='GameStore API')
    parser.add_argument('--host', default=os.getenv('HOST', '127.0.0.1'),
                        help='Interface to bind (default: $HOST or 127.0.0.1)')
    parser.add_argument('--port', type=int, default=int(os.getenv('PORT', '5000')),
                        help='Port to listen on (default: $PORT or 5000)')
    parser.add_argument('--create-tables', action='store_true',
                        help='Create missing tables at startup')
    parser.add_argument('--log-file', default='logs/gamestore_api.log',
                        help='Log file path; empty to disable')
    args = parser.parse_args()

    configure_logging(os.getenv('GAMESTORE_LOG_LEVEL', 'INFO'), args.log_file or None)
    init_store(create_tables=args.create_tables)

    print("\n" + "="*60)
    print("🎮 GameStore API is starting...")
    print("="*60)
    print(f"\n  http://{args.host}:{args.port}")
    print("\nPress Ctrl+C to stop the server")
    print("="*60 + "\n")

    try:
        app.run(host=args.host, port=args.port, debug=False)
    except KeyboardInterrupt:
        print("\n🛑 GameStore API stopped")
    finally:
        if store is not None:
            store.close()


if __name__ == "__main__":
    main()
