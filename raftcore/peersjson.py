"""Cluster configuration types and readers for peers.json recovery files."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from typing import Union

PathArg = Union[str, "PathLike[str]"]


class ServerSuffrage(Enum):
    """Whether a server takes part in elections and commitment."""

    VOTER = 0
    NONVOTER = 1
    STAGING = 2

    def __str__(self) -> str:
        return {
            ServerSuffrage.VOTER: "Voter",
            ServerSuffrage.NONVOTER: "Nonvoter",
            ServerSuffrage.STAGING: "Staging",
        }[self]


@dataclass(frozen=True)
class Server:
    """A member of the cluster."""

    suffrage: ServerSuffrage
    id: str
    address: str


@dataclass
class Configuration:
    """The set of servers making up the cluster."""

    servers: list[Server] = field(default_factory=list)


class ConfigurationError(ValueError):
    """Raised when a configuration or peers file is invalid."""


def _check_configuration(configuration: Configuration) -> None:
    ids: set[str] = set()
    addresses: set[str] = set()
    voters = 0
    for server in configuration.servers:
        if not server.id:
            raise ConfigurationError(f"empty ID in configuration: {configuration}")
        if not server.address:
            raise ConfigurationError(f"empty address in configuration: {server}")
        if server.id in ids:
            raise ConfigurationError(f"found duplicate ID in configuration: {server.id}")
        ids.add(server.id)
        if server.address in addresses:
            raise ConfigurationError(
                f"found duplicate address in configuration: {server.address}"
            )
        addresses.add(server.address)
        if server.suffrage is ServerSuffrage.VOTER:
            voters += 1
    if voters == 0:
        raise ConfigurationError(
            f"need at least one voter in configuration: {configuration}"
        )


def _load_list(path: PathArg) -> list:
    with open(path, encoding="utf-8") as handle:
        payload = json.load(handle)
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ConfigurationError("peers file must hold a JSON array")
    return payload


def read_peers_json(path: PathArg) -> Configuration:
    """Read a legacy peers.json holding a list of addresses; all become voters."""
    configuration = Configuration()
    for peer in _load_list(path):
        if not isinstance(peer, str):
            raise ConfigurationError(f"peer entry must be a string: {peer!r}")
        configuration.servers.append(
            Server(suffrage=ServerSuffrage.VOTER, id=peer, address=peer)
        )
    _check_configuration(configuration)
    return configuration


def read_config_json(path: PathArg) -> Configuration:
    """Read a peers.json holding objects with id, address and non_voter."""
    configuration = Configuration()
    for entry in _load_list(path):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"peer entry must be an object: {entry!r}")
        server_id = entry.get("id", "")
        address = entry.get("address", "")
        non_voter = entry.get("non_voter", False)
        if not isinstance(server_id, str) or not isinstance(address, str):
            raise ConfigurationError(f"id and address must be strings: {entry!r}")
        if not isinstance(non_voter, bool):
            raise ConfigurationError(f"non_voter must be a boolean: {entry!r}")
        suffrage = ServerSuffrage.NONVOTER if non_voter else ServerSuffrage.VOTER
        configuration.servers.append(
            Server(suffrage=suffrage, id=server_id, address=address)
        )
    _check_configuration(configuration)
    return configuration