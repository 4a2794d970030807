#!/usr/bin/env python3
"""
GameStore - terminal storefront for the GameStore catalog API.
Fetches games and categories once, then searches, filters and sorts them locally.
"""

import argparse
import datetime
import locale
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Tuple

import requests
from colorama import init, Fore, Style

from app.log_setup import setup_logging
from app.validation import ValidationError, to_wire, validate_category, validate_game

# Initialize colorama for cross-platform colored terminal output
init(autoreset=True)

DEFAULT_API_URL = 'http://localhost:5000/api'

logger = logging.getLogger('gamestore.client')


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def format_price(price) -> str:
    """Return ``FREE`` for zero, otherwise ``$x.xx``."""
    amount = _to_float(price)
    return 'FREE' if amount == 0 else f"${amount:.2f}"


def format_rating(rating) -> str:
    if rating is None or rating == '':
        return 'N/A'
    return f"{_to_float(rating):.1f}"


def primary_platform(platform: Optional[str]) -> str:
    """First entry of a comma-separated platform list, ``PC`` when empty."""
    first = (platform or '').split(',')[0].strip()
    return first or 'PC'


def _parse_when(value) -> Optional[datetime.datetime]:
    """Parse an ISO date/timestamp string; ``None`` when absent or unparsable."""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1]
    try:
        return datetime.datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

class StorefrontError(RuntimeError):
    """A catalog API call failed; the message is safe to show to the user."""


class StorefrontAPIClient:
    """Client for the GameStore catalog API.

    Every failure, whether transport error or non-2xx response, surfaces as
    :class:`StorefrontError` carrying a fixed message for the operation.  The
    server's own error detail only goes to the log.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: int = 10):
        self.base_url = (base_url or os.getenv('GAMESTORE_API_URL', DEFAULT_API_URL)).rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        self._log = logging.getLogger('gamestore.client')

    def _request(self, method: str, path: str, error_message: str,
                 payload: Optional[Dict] = None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            self._log.error("API error on %s %s: %s", method, url, e)
            raise StorefrontError(error_message) from e

    # Games

    def get_all_games(self) -> List[Dict]:
        return self._request('GET', '/games', 'Error loading games')

    def get_game(self, game_id: int) -> Dict:
        return self._request('GET', f'/games/{int(game_id)}', 'Error loading the game')

    def create_game(self, game_data: Dict) -> Dict:
        """Validate *game_data* locally, then POST it.

        Raises:
            ValidationError: the payload breaks the shared contract (no request sent).
            StorefrontError: the API call failed.
        """
        payload = to_wire(validate_game(game_data))
        return self._request('POST', '/games', 'Error creating the game', payload)

    def update_game(self, game_id: int, game_data: Dict) -> Dict:
        payload = to_wire(validate_game(game_data))
        return self._request('PUT', f'/games/{int(game_id)}', 'Error updating the game', payload)

    def delete_game(self, game_id: int) -> Dict:
        return self._request('DELETE', f'/games/{int(game_id)}', 'Error deleting the game')

    # Categories

    def get_all_categories(self) -> List[Dict]:
        return self._request('GET', '/categories', 'Error loading categories')

    def create_category(self, category_data: Dict) -> Dict:
        payload = validate_category(category_data)
        return self._request('POST', '/categories', 'Error creating the category', payload)

    def delete_category(self, category_id: int) -> Dict:
        return self._request('DELETE', f'/categories/{int(category_id)}',
                             'Error deleting the category')


def load_catalog(client: StorefrontAPIClient) -> Tuple[List[Dict], List[Dict]]:
    """Fetch games and categories in parallel.

    Both requests must succeed; the first failure is re-raised.
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        games_future = executor.submit(client.get_all_games)
        categories_future = executor.submit(client.get_all_categories)
        games = games_future.result()
        categories = categories_future.result()
    logger.info("Loaded %d games and %d categories", len(games), len(categories))
    return games, categories


# ---------------------------------------------------------------------------
# Derived view
# ---------------------------------------------------------------------------

SORT_KEYS = ('created_at', 'title', 'price', 'rating', 'release_date')


def _newest_first(games: List[Dict], field: str) -> List[Dict]:
    dated = [g for g in games if _parse_when(g.get(field)) is not None]
    undated = [g for g in games if _parse_when(g.get(field)) is None]
    dated.sort(key=lambda g: _parse_when(g.get(field)), reverse=True)
    return dated + undated


def _title_key(game: Dict):
    title = str(game.get('title') or '')
    return (locale.strxfrm(title.casefold()), title)


def sort_games(games: List[Dict], sort_by: str = 'created_at') -> List[Dict]:
    """Return a sorted copy of *games*; unknown keys fall back to ``created_at``."""
    if sort_by == 'title':
        return sorted(games, key=_title_key)
    if sort_by == 'price':
        return sorted(games, key=lambda g: _to_float(g.get('price')))
    if sort_by == 'rating':
        return sorted(games, key=lambda g: _to_float(g.get('rating')), reverse=True)
    if sort_by == 'release_date':
        return _newest_first(games, 'release_date')
    return _newest_first(games, 'created_at')


def _notify_log(message: str) -> None:
    logger.info(message)


class CatalogView:
    """In-memory game collection plus the criteria that derive what is shown.

    ``games`` keeps the order the API returned.  Every derived list is
    computed from it on demand and never reorders it.
    """

    FEATURED_MIN_RATING = 8.5
    FEATURED_LIMIT = 3
    TOP_RATED_LIMIT = 4

    def __init__(self, games: Optional[List[Dict]] = None,
                 categories: Optional[List[Dict]] = None,
                 notifier: Callable[[str], None] = _notify_log):
        self.games: List[Dict] = list(games or [])
        self.categories: List[Dict] = list(categories or [])
        self.search_term = ''
        self.selected_category: Optional[int] = None
        self.sort_by = 'created_at'
        self.cart_count = 0
        self._notify = notifier

    @classmethod
    def load(cls, client: StorefrontAPIClient, **kwargs) -> 'CatalogView':
        games, categories = load_catalog(client)
        return cls(games, categories, **kwargs)

    def set_category(self, category_id) -> None:
        self.selected_category = None if category_id in (None, '') else int(category_id)

    def _matches(self, game: Dict) -> bool:
        if self.search_term:
            term = self.search_term.lower()
            haystacks = (game.get('title'), game.get('description'), game.get('genre'))
            if not any(term in str(h or '').lower() for h in haystacks):
                return False
        if self.selected_category is not None:
            if game.get('category_id') != self.selected_category:
                return False
        return True

    def filtered_games(self) -> List[Dict]:
        """Games matching the search term and category, in the active order."""
        return sort_games([g for g in self.games if self._matches(g)], self.sort_by)

    def featured_games(self) -> List[Dict]:
        """First three games rated 8.5 or higher, in source order."""
        featured = [g for g in self.games
                    if _to_float(g.get('rating')) >= self.FEATURED_MIN_RATING]
        return featured[:self.FEATURED_LIMIT]

    def top_rated_games(self) -> List[Dict]:
        return sort_games(self.games, 'rating')[:self.TOP_RATED_LIMIT]

    def free_games(self) -> List[Dict]:
        return [g for g in self.games if _to_float(g.get('price')) == 0]

    def category_name(self, category_id) -> Optional[str]:
        for category in self.categories:
            if category.get('id') == category_id:
                return category.get('name')
        return None

    def add_to_cart(self, game: Dict) -> int:
        """Bump the local cart counter; nothing is sent to the API."""
        self.cart_count += 1
        self._notify(f"{game.get('title', 'Game')} added to cart!")
        return self.cart_count


# ---------------------------------------------------------------------------
# Terminal rendering
# ---------------------------------------------------------------------------

def print_game_row(game: Dict) -> None:
    price = format_price(game.get('price'))
    price_color = Fore.GREEN if price == 'FREE' else Fore.CYAN
    print(f"{Fore.YELLOW}{game.get('id', '?'):>4} {Fore.WHITE}{game.get('title', 'Unknown Game'):<40} "
          f"{Fore.MAGENTA}★ {format_rating(game.get('rating')):>4} "
          f"{Fore.BLUE}{primary_platform(game.get('platform')):<10} "
          f"{price_color}{price}")


def print_games(title: str, games: List[Dict]) -> None:
    print(f"\n{Fore.CYAN}{Style.BRIGHT}{title} ({len(games)})")
    print(f"{Fore.GREEN}{'='*72}")
    if not games:
        print(f"{Fore.YELLOW}No games found.")
    for game in games:
        print_game_row(game)


def display_game_info(game: Dict) -> None:
    """Display every field of a game."""
    print(f"\n{Fore.GREEN}{'='*60}")
    print(f"{Fore.CYAN}{Style.BRIGHT}🎮 {game.get('title', 'Unknown Game')}")
    print(f"{Fore.GREEN}{'='*60}")
    print(f"{Fore.YELLOW}Genre: {Fore.WHITE}{game.get('genre', '')}")
    print(f"{Fore.YELLOW}Platforms: {Fore.WHITE}{game.get('platform', '')}")
    print(f"{Fore.YELLOW}Category: {Fore.WHITE}{game.get('category_name') or 'None'}")
    print(f"{Fore.YELLOW}Release Date: {Fore.WHITE}{game.get('release_date') or 'Unknown'}")
    print(f"{Fore.YELLOW}Rating: {Fore.WHITE}{format_rating(game.get('rating'))}")
    print(f"{Fore.YELLOW}Price: {Fore.WHITE}{format_price(game.get('price'))}")
    if game.get('description'):
        print(f"\n{Fore.YELLOW}Description:")
        print(f"{Fore.WHITE}{game['description']}")
    if game.get('image_url'):
        print(f"\n{Fore.YELLOW}Image: {Fore.WHITE}{game['image_url']}")
    print(f"{Fore.GREEN}{'='*60}\n")


def print_highlights(view: CatalogView) -> None:
    print_games('⭐ Featured', view.featured_games())
    print_games('🏆 Top Rated', view.top_rated_games())
    print_games('🎁 Free to Play', view.free_games())


def print_categories(categories: List[Dict]) -> None:
    print(f"\n{Fore.CYAN}{Style.BRIGHT}Categories ({len(categories)})")
    print(f"{Fore.GREEN}{'='*40}")
    for category in categories:
        print(f"{Fore.YELLOW}{category.get('id'):>4} {Fore.WHITE}{category.get('name')}")


def browse(view: CatalogView) -> None:
    """Interactive browsing loop over an already loaded catalog."""
    while True:
        print(f"\n{Fore.CYAN}{Style.BRIGHT}GameStore  {Fore.WHITE}🛒 {view.cart_count}")
        print(f"{Fore.WHITE}{'='*40}")
        print(f"{Fore.YELLOW}1. {Fore.WHITE}Show games")
        print(f"{Fore.YELLOW}2. {Fore.WHITE}Search (current: {view.search_term or '-'})")
        print(f"{Fore.YELLOW}3. {Fore.WHITE}Filter by category")
        print(f"{Fore.YELLOW}4. {Fore.WHITE}Sort (current: {view.sort_by})")
        print(f"{Fore.YELLOW}5. {Fore.WHITE}Highlights")
        print(f"{Fore.YELLOW}6. {Fore.WHITE}Add a game to the cart")
        print(f"{Fore.YELLOW}q. {Fore.WHITE}Quit")
        print(f"{Fore.WHITE}{'='*40}")

        choice = input(f"\n{Fore.GREEN}Enter your choice: {Fore.WHITE}").strip().lower()

        if choice == 'q':
            print(f"\n{Fore.CYAN}Thanks for visiting GameStore! 🎮")
            break
        elif choice == '1':
            print_games('Games', view.filtered_games())
        elif choice == '2':
            view.search_term = input(f"{Fore.GREEN}Search term (empty to clear): {Fore.WHITE}").strip()
        elif choice == '3':
            print_categories(view.categories)
            raw = input(f"{Fore.GREEN}Category id (empty for all): {Fore.WHITE}").strip()
            try:
                view.set_category(raw)
            except ValueError:
                print(f"{Fore.RED}Category id must be a number.")
        elif choice == '4':
            raw = input(f"{Fore.GREEN}Sort by ({', '.join(SORT_KEYS)}): {Fore.WHITE}").strip()
            if raw in SORT_KEYS:
                view.sort_by = raw
            else:
                print(f"{Fore.RED}Unknown sort key.")
        elif choice == '5':
            print_highlights(view)
        elif choice == '6':
            raw = input(f"{Fore.GREEN}Game id: {Fore.WHITE}").strip()
            game = next((g for g in view.games if str(g.get('id')) == raw), None)
            if game is None:
                print(f"{Fore.RED}No game with id {raw}.")
            else:
                view.add_to_cart(game)
        else:
            print(f"{Fore.RED}Invalid choice. Please try again.")


def _game_payload(args: argparse.Namespace) -> Dict:
    return {
        'title': args.title,
        'description': args.description,
        'genre': args.genre,
        'platform': args.platform,
        'price': args.price,
        'release_date': args.release_date,
        'rating': args.rating,
        'image_url': args.image_url,
        'category_id': args.category_id,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='GameStore - browse the game catalog from your terminal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 gamestore.py                          # Interactive browsing
  python3 gamestore.py list --search zelda      # Search titles, descriptions and genres
  python3 gamestore.py list --sort price        # Cheapest first
  python3 gamestore.py highlights               # Featured, top rated and free games
        """
    )
    parser.add_argument('--api-url', default=None,
                        help=f'API base URL (default: $GAMESTORE_API_URL or {DEFAULT_API_URL})')
    parser.add_argument('--log-level', default=os.getenv('GAMESTORE_LOG_LEVEL', 'WARNING'),
                        help='Log level (default: WARNING)')
    sub = parser.add_subparsers(dest='command')

    list_p = sub.add_parser('list', help='List games')
    list_p.add_argument('--search', default='', help='Case-insensitive search term')
    list_p.add_argument('--category', type=int, default=None, help='Category id')
    list_p.add_argument('--sort', choices=SORT_KEYS, default='created_at', help='Sort order')

    show_p = sub.add_parser('show', help='Show one game')
    show_p.add_argument('game_id', type=int)

    sub.add_parser('highlights', help='Featured, top rated and free games')
    sub.add_parser('categories', help='List categories')
    sub.add_parser('browse', help='Interactive browsing (default)')

    add_p = sub.add_parser('add-game', help='Create a game')
    add_p.add_argument('--title', required=True)
    add_p.add_argument('--description', required=True)
    add_p.add_argument('--genre', required=True)
    add_p.add_argument('--platform', required=True, help='Comma-separated, e.g. "PC,PS5"')
    add_p.add_argument('--price', type=float, required=True)
    add_p.add_argument('--release-date', default=None, help='YYYY-MM-DD')
    add_p.add_argument('--rating', type=float, default=None)
    add_p.add_argument('--image-url', default=None)
    add_p.add_argument('--category-id', type=int, default=None)

    del_p = sub.add_parser('delete-game', help='Delete a game')
    del_p.add_argument('game_id', type=int)

    cat_p = sub.add_parser('add-category', help='Create a category')
    cat_p.add_argument('--name', required=True)
    cat_p.add_argument('--description', default=None)

    del_cat_p = sub.add_parser('delete-category', help='Delete a category (its games are kept)')
    del_cat_p.add_argument('category_id', type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error:
        logger.debug("System locale unavailable, using default collation")

    client = StorefrontAPIClient(args.api_url)
    command = args.command or 'browse'

    try:
        if command == 'show':
            display_game_info(client.get_game(args.game_id))
        elif command == 'categories':
            print_categories(client.get_all_categories())
        elif command == 'add-game':
            result = client.create_game(_game_payload(args))
            print(f"{Fore.GREEN}{result.get('message', 'Game created')} (id {result.get('id')})")
        elif command == 'delete-game':
            result = client.delete_game(args.game_id)
            print(f"{Fore.GREEN}{result.get('message', 'Game deleted')}")
        elif command == 'add-category':
            result = client.create_category({'name': args.name, 'description': args.description})
            print(f"{Fore.GREEN}{result.get('message', 'Category created')} (id {result.get('id')})")
        elif command == 'delete-category':
            result = client.delete_category(args.category_id)
            print(f"{Fore.GREEN}{result.get('message', 'Category deleted')}")
        else:
            view = CatalogView.load(client, notifier=lambda msg: print(f"{Fore.GREEN}🛒 {msg}"))
            print(f"{Fore.GREEN}{len(view.games)} games loaded!")
            if command == 'list':
                view.search_term = args.search
                view.set_category(args.category)
                view.sort_by = args.sort
                print_games('Games', view.filtered_games())
            elif command == 'highlights':
                print_highlights(view)
            else:
                browse(view)
    except (StorefrontError, ValidationError) as e:
        print(f"{Fore.RED}{e}")
        return 1
    except KeyboardInterrupt:
        print(f"\n{Fore.CYAN}Goodbye! 🎮")
    return 0


if __name__ == "__main__":
    sys.exit(main())
