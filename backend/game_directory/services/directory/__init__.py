"""Directory domain services: servers, sessions, listing, players, places.

HTTP routes and socket handlers reach these through ``get_services()``,
keeping transport concerns separated from the consistency rules.
"""
from dataclasses import dataclass

from flask import current_app

EXTENSION_KEY = 'game_directory'


@dataclass
class DirectoryServices:
    directory: object
    sessions: object
    listing: object
    players: object
    places: object


def get_services() -> DirectoryServices:
    return current_app.extensions[EXTENSION_KEY]
