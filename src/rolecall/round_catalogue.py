"""Contains the round definitions served by a game and the loader that reads
them from disk.

The catalogue is loaded once at startup and never modified afterwards.

"""
import json
import os
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple


class RoundOutOfRangeError(IndexError):
    """Exception raised when a round index is outside the catalogue.

    Attributes
    ----------
    index : int
        The requested round index
    length : int
        Number of rounds in the catalogue
    """

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        message = f"Round {index} is out of range (catalogue has {length} rounds)"
        super().__init__(message)


@dataclass(frozen=True)
class RoundDefinition(object):
    """A single round: the prompt shown to everyone and the roles handed out.

    Attributes
    ----------
    prompt : str
        Shared prompt displayed on the host screen
    roles : Tuple[str, ...]
        Assignable roles, in catalogue order.  Role indices refer to positions
        in this tuple.
    """
    prompt: str
    roles: Tuple[str, ...]

    @property
    def num_roles(self) -> int:
        return len(self.roles)


class RoundCatalogue(object):
    """Read-only, ordered sequence of round definitions."""

    def __init__(self, rounds: Iterable[RoundDefinition]):
        self._rounds = tuple(rounds)

    def get(self, index: int) -> RoundDefinition:
        """Return the round at the given index.

        Raises RoundOutOfRangeError if index is negative or past the end.

        """
        if index < 0 or index >= len(self._rounds):
            raise RoundOutOfRangeError(index, len(self._rounds))
        return self._rounds[index]

    def length(self) -> int:
        return len(self._rounds)

    def __len__(self) -> int:
        return len(self._rounds)

    def __iter__(self) -> Iterator[RoundDefinition]:
        return iter(self._rounds)

    @classmethod
    def from_records(cls, records: List[dict]) -> 'RoundCatalogue':
        """Build a catalogue from a list of ``{"prompt", "roles"}`` dicts.

        Raises ValueError if the list is empty or any record is malformed.

        """
        if not isinstance(records, list) or not records:
            raise ValueError("Round catalogue must be a non-empty list of rounds")

        rounds = []
        for i, record in enumerate(records):
            if not isinstance(record, dict):
                raise ValueError(f"Round {i} must be an object")

            # 'theme' is an alias for 'prompt'
            prompt = record.get('prompt', record.get('theme'))
            if not isinstance(prompt, str) or not prompt.strip():
                raise ValueError(f"Round {i} is missing a prompt")

            roles = record.get('roles')
            if not isinstance(roles, list) or not roles:
                raise ValueError(f"Round {i} must have a non-empty list of roles")
            if not all(isinstance(role, str) for role in roles):
                raise ValueError(f"Round {i} roles must all be strings")

            rounds.append(RoundDefinition(prompt=prompt, roles=tuple(roles)))

        return cls(rounds)


def default_rounds_path() -> str:
    """Path of the catalogue shipped in the data/ subdirectory of the repo root."""
    script_dir = os.path.dirname(os.path.abspath(__file__))
    repo_root = os.path.dirname(os.path.dirname(script_dir))
    return os.path.join(repo_root, 'data', 'rounds.json')


def load_round_catalogue(path: str) -> RoundCatalogue:
    """Loads a round catalogue from a JSON file.

    The file holds a JSON array of objects, each with a ``prompt`` string and
    a ``roles`` list of strings.

    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Round catalogue not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Round catalogue {path} is not valid JSON: {e}") from e

    return RoundCatalogue.from_records(records)
