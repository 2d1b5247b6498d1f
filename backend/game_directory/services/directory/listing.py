from typing import Optional

SORT_KEYS = {
    'name': lambda s: (s.get('name') or '').lower(),
    'region': lambda s: (s.get('region') or '').lower(),
    'status': lambda s: (s.get('status') or '').lower(),
    'players': lambda s: s.get('current_players') or 0,
}
DEFAULT_SORT = 'players'


def _matches(value, wanted: Optional[str]) -> bool:
    if not wanted:
        return True
    return (value or '').lower() == wanted.lower()


class ListingEngine:
    """Filter and order the full directory snapshot for the server browser."""

    def __init__(self, directory):
        self.directory = directory

    def list_servers(self, status=None, game_mode=None, region=None, sort_by=None, sort_order=None):
        servers = [
            s for s in self.directory.list_servers()
            if _matches(s.get('status'), status)
            and _matches(s.get('game_mode'), game_mode)
            and _matches(s.get('region'), region)
        ]
        key = SORT_KEYS.get((sort_by or DEFAULT_SORT).lower(), SORT_KEYS[DEFAULT_SORT])
        # Direction only applies to an explicit key; anything but "asc" is descending
        descending = not sort_by or (sort_order or '').lower() != 'asc'
        return sorted(servers, key=key, reverse=descending)
