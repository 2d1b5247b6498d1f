import pytest


@pytest.fixture()
def fleet(services, make_server, make_player):
    """A:5, B:2, C:8 in NA; D:9 in EU."""
    rows = [('A', 'NA', 5, 'tdm'), ('B', 'NA', 2, 'ctf'), ('C', 'NA', 8, 'tdm'), ('D', 'EU', 9, 'tdm')]
    created = {}
    for name, region, players, mode in rows:
        server = make_server(name=name, region=region, game_mode=mode, max_players=20)
        for i in range(players):
            player = make_player(f'{name}-{i}')
            assert services.sessions.join(server['server_id'], player['player_id']).ok
        created[name] = server['server_id']
    services.directory.update_server(created['C'], {'status': 'Running'})
    return created


def _names(servers):
    return [s['name'] for s in servers]


def test_region_filter_sorted_by_players_ascending(services, fleet):
    result = services.listing.list_servers(region='NA', sort_by='players', sort_order='asc')
    assert _names(result) == ['B', 'A', 'C']


def test_default_order_is_players_descending(services, fleet):
    assert _names(services.listing.list_servers()) == ['D', 'C', 'A', 'B']


def test_direction_without_sort_key_is_ignored(services, fleet):
    assert _names(services.listing.list_servers(sort_order='asc')) == ['D', 'C', 'A', 'B']
    assert _names(services.listing.list_servers(region='NA', sort_order='asc')) == ['C', 'A', 'B']


def test_filters_ignore_case(services, fleet):
    assert _names(services.listing.list_servers(region='na', game_mode='TDM')) == ['C', 'A']
    assert _names(services.listing.list_servers(status='running')) == ['C']
    assert services.listing.list_servers(region='APAC') == []


@pytest.mark.parametrize('order', ['desc', 'DESC', 'sideways', None, ''])
def test_anything_but_asc_sorts_descending(services, fleet, order):
    assert _names(services.listing.list_servers(sort_by='name', sort_order=order)) == ['D', 'C', 'B', 'A']


def test_asc_is_case_insensitive(services, fleet):
    assert _names(services.listing.list_servers(sort_by='Name', sort_order='ASC')) == ['A', 'B', 'C', 'D']


def test_unknown_sort_key_falls_back_to_players(services, fleet):
    assert _names(services.listing.list_servers(sort_by='uptime', sort_order='asc')) == ['B', 'A', 'C', 'D']


def test_sort_by_region_and_status(services, fleet):
    by_region = services.listing.list_servers(sort_by='region', sort_order='asc')
    assert by_region[0]['name'] == 'D'
    by_status = services.listing.list_servers(sort_by='status', sort_order='asc')
    assert by_status[0]['name'] == 'C'
