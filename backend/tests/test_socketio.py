NS = '/ws/serverstatus'


def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received(NS) if pkt['name'] == name]


def test_socket_connect_and_ping(sio_client):
    assert sio_client.is_connected(NS)
    received = sio_client.get_received(NS)
    assert any(pkt['name'] == 'connected' for pkt in received)

    sio_client.emit('ping', {'n': 1}, namespace=NS)
    assert _events(sio_client, 'pong') == [{'n': 1}]


def test_create_and_delete_are_broadcast(sio_client, client, manager_headers):
    sio_client.get_received(NS)  # flush

    res = client.post('/api/servers', json={
        'name': 'Arena-1', 'place_id': 1818, 'game_mode': 'tdm', 'region': 'NA', 'max_players': 10,
    }, headers=manager_headers)
    sid = res.get_json()['server_id']
    statuses = _events(sio_client, 'server_status')
    assert [s['server_id'] for s in statuses] == [sid]

    client.delete(f'/api/servers/{sid}', headers=manager_headers)
    assert _events(sio_client, 'server_removed') == [{'server_id': sid}]


def test_stalled_heartbeat_is_broadcast(sio_client, client, node_headers, make_server, age_heartbeat):
    sid = make_server()['server_id']
    client.post(f'/api/servers/{sid}/heartbeat', headers=node_headers)
    age_heartbeat(sid, minutes=10)
    sio_client.get_received(NS)  # flush

    client.post(f'/api/servers/{sid}/heartbeat', headers=node_headers)
    received = sio_client.get_received(NS)
    timeouts = [pkt['args'][0] for pkt in received if pkt['name'] == 'heartbeat_timeout']
    assert len(timeouts) == 1
    assert timeouts[0]['server_id'] == sid
    assert timeouts[0]['last_heartbeat'] is not None
    # The refreshed projection follows the timeout notice
    assert any(pkt['name'] == 'server_status' for pkt in received)
