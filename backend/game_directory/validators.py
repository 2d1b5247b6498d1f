import re

NAME_PATTERN = re.compile(r'^[A-Za-z0-9\s_-]+$')
REGION_PATTERN = re.compile(r'^[A-Za-z0-9\s]+$')
UNSAFE_CHARS = re.compile(r'[<>{}#%&*;:\'"\[\]/\\`~]')

MAX_PLAYERS_LIMIT = 1000
# game mode -> (min players, max players)
GAME_MODE_PLAYER_LIMITS = {
    'ffa': (1, 50),
    'tdm': (2, MAX_PLAYERS_LIMIT),
}


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_create_server(data):
    """Return a list of error messages; empty when the request is acceptable."""
    errors = []
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        errors.append('Server Name is required.')
    else:
        if len(name) > 255:
            errors.append('Server Name cannot exceed 255 characters.')
        if not NAME_PATTERN.match(name):
            errors.append('Server Name can only contain letters, numbers, spaces, underscores, and hyphens.')
        if UNSAFE_CHARS.search(name):
            errors.append('Server Name contains potentially unsafe characters.')

    place_id = data.get('place_id')
    if not _is_int(place_id) or place_id <= 0:
        errors.append('Place ID must be a positive number.')

    max_players = data.get('max_players')
    if not _is_int(max_players) or not 1 <= max_players <= MAX_PLAYERS_LIMIT:
        errors.append(f'Max Players must be between 1 and {MAX_PLAYERS_LIMIT}.')

    region = data.get('region')
    if not isinstance(region, str) or not region.strip():
        errors.append('Region is required.')
    elif len(region) > 50 or not REGION_PATTERN.match(region):
        errors.append('Region can only contain letters, numbers, and spaces (max 50).')

    game_mode = data.get('game_mode')
    if not isinstance(game_mode, str) or not game_mode.strip():
        errors.append('Game Mode is required.')
    elif len(game_mode) > 100 or not NAME_PATTERN.match(game_mode):
        errors.append('Game Mode can only contain letters, numbers, spaces, underscores, and hyphens (max 100).')
    elif _is_int(max_players):
        low, high = GAME_MODE_PLAYER_LIMITS.get(game_mode.strip().lower(), (1, MAX_PLAYERS_LIMIT))
        if not low <= max_players <= high:
            errors.append('Max Players is not valid for the selected Game Mode.')

    port = data.get('server_port')
    if port is not None and (not _is_int(port) or not 1 <= port <= 65535):
        errors.append('Server Port must be between 1 and 65535.')
    return errors
