import logging

from game_directory.errors import DuplicateRecordError
from game_directory.models import Player, new_id, utcnow
from game_directory.store import PlayerStore
from .results import Result

logger = logging.getLogger(__name__)


class PlayerRegistry:
    """Player identities that sessions refer to."""

    def __init__(self, players: PlayerStore):
        self.players = players

    def get_player(self, player_id) -> Result:
        player = self.players.get(player_id)
        if player is None:
            return Result.not_found('Player not found')
        return Result.found(player.to_dict())

    def create_player(self, data) -> Result:
        username = (data.get('username') or '').strip()
        if not username:
            return Result.invalid('Username cannot be empty.')
        if self.players.by_username(username) is not None:
            return Result.conflict('Username already exists')
        player = Player(
            id=new_id(),
            username=username,
            display_name=(data.get('display_name') or '').strip() or username,
            created_timestamp=utcnow(),
        )
        try:
            self.players.put(player)
        except DuplicateRecordError:
            return Result.conflict('Username already exists')
        logger.info(f'[player-create] player={player.id} username={username}')
        return Result.found(player.to_dict(), created=True)

    def update_player(self, player_id, data) -> Result:
        player = self.players.get(player_id)
        if player is None:
            return Result.not_found('Player not found')
        display_name = (data.get('display_name') or '').strip()
        if display_name:
            player.display_name = display_name
        self.players.put(player)
        return Result.found(player.to_dict())

    def delete_player(self, player_id) -> bool:
        return self.players.delete(player_id)
