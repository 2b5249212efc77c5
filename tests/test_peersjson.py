import pytest

from raftcore.peersjson import (
    Configuration,
    ConfigurationError,
    Server,
    ServerSuffrage,
    read_config_json,
    read_peers_json,
)


def test_bad_configuration(tmp_path):
    peers = tmp_path / "peers.json"
    peers.write_text("null")
    with pytest.raises(ConfigurationError, match="at least one voter"):
        read_peers_json(peers)


def test_read_peers_json(tmp_path):
    peers = tmp_path / "peers.json"
    peers.write_text('\n["127.0.0.1:123",\n "127.0.0.2:123",\n "127.0.0.3:123"]\n')
    configuration = read_peers_json(peers)
    expected = Configuration(
        servers=[
            Server(ServerSuffrage.VOTER, "127.0.0.1:123", "127.0.0.1:123"),
            Server(ServerSuffrage.VOTER, "127.0.0.2:123", "127.0.0.2:123"),
            Server(ServerSuffrage.VOTER, "127.0.0.3:123", "127.0.0.3:123"),
        ]
    )
    assert configuration == expected


def test_read_config_json(tmp_path):
    peers = tmp_path / "peers.json"
    peers.write_text(
        """
[
  {
    "id": "adf4238a-882b-9ddc-4a9d-5b6758e4159e",
    "address": "127.0.0.1:123",
    "non_voter": false
  },
  {
    "id": "8b6dda82-3103-11e7-93ae-92361f002671",
    "address": "127.0.0.2:123"
  },
  {
    "id": "97e17742-3103-11e7-93ae-92361f002671",
    "address": "127.0.0.3:123",
    "non_voter": true
  }
]
"""
    )
    configuration = read_config_json(peers)
    expected = Configuration(
        servers=[
            Server(ServerSuffrage.VOTER, "adf4238a-882b-9ddc-4a9d-5b6758e4159e", "127.0.0.1:123"),
            Server(ServerSuffrage.VOTER, "8b6dda82-3103-11e7-93ae-92361f002671", "127.0.0.2:123"),
            Server(ServerSuffrage.NONVOTER, "97e17742-3103-11e7-93ae-92361f002671", "127.0.0.3:123"),
        ]
    )
    assert configuration == expected


def test_read_config_json_only_nonvoters_rejected(tmp_path):
    peers = tmp_path / "peers.json"
    peers.write_text('[{"id": "a", "address": "127.0.0.1:123", "non_voter": true}]')
    with pytest.raises(ConfigurationError, match="at least one voter"):
        read_config_json(peers)


def test_read_peers_json_malformed(tmp_path):
    peers = tmp_path / "peers.json"
    peers.write_text("[1, 2]")
    with pytest.raises(ConfigurationError):
        read_peers_json(peers)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_peers_json(tmp_path / "absent.json")