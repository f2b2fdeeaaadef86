import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from .errors import CorruptStoreError, HostNotFoundError, ProfileNotFoundError
from .files import write_text_atomic

# File where the registry of profiles is stored
REGISTRY_FILE = Path.home() / ".config" / "gakun" / "config.json"

Registry = Dict[str, Any]


class HostEntry(NamedTuple):
    """A host pattern and the identity file used for it."""

    host: str
    identity_file: str

    def to_dict(self) -> Dict[str, str]:
        return {"host": self.host, "identity_file": self.identity_file}


def empty_registry() -> Registry:
    return {"profiles": {}, "active_profile": None, "updated_at": None}


def _entry_from_dict(data: Any, path: Path, profile_name: str) -> Dict[str, str]:
    if not isinstance(data, dict):
        raise CorruptStoreError(path, f"host entry in profile '{profile_name}' is not an object")
    host = data.get("host")
    identity_file = data.get("identity_file")
    if not isinstance(host, str) or not host:
        raise CorruptStoreError(path, f"host entry in profile '{profile_name}' has no host")
    if not isinstance(identity_file, str):
        raise CorruptStoreError(
            path, f"host '{host}' in profile '{profile_name}' has no identity_file"
        )
    return HostEntry(host, identity_file).to_dict()


def _profile_from_data(data: Any, path: Path, profile_name: str) -> Dict[str, Any]:
    """Normalise one stored profile into ``{"hosts": [...]}`` form.

    Older registries kept a profile as a flat ``{host: key}`` object; those
    are converted, keeping the stored host order.
    """
    if not isinstance(data, dict):
        raise CorruptStoreError(path, f"profile '{profile_name}' is not an object")
    if isinstance(data.get("hosts"), list):
        unknown = sorted(set(data) - {"hosts"})
        if unknown:
            raise CorruptStoreError(
                path, f"profile '{profile_name}' has unknown keys: {', '.join(unknown)}"
            )
        entries = [_entry_from_dict(item, path, profile_name) for item in data["hosts"]]
    elif all(isinstance(key, str) for key in data.values()):
        if "" in data:
            raise CorruptStoreError(path, f"profile '{profile_name}' has an empty host")
        entries = [HostEntry(host, key).to_dict() for host, key in data.items()]
    else:
        raise CorruptStoreError(path, f"profile '{profile_name}' has an invalid host list")
    hosts = [entry["host"] for entry in entries]
    if len(set(hosts)) != len(hosts):
        raise CorruptStoreError(path, f"profile '{profile_name}' lists a host twice")
    return {"hosts": entries}


def load_registry(file_path: Union[str, Path] = REGISTRY_FILE) -> Registry:
    """Load the registry from JSON storage.

    Parameters
    ----------
    file_path: str | Path
        Location of the JSON registry file.

    Returns
    -------
    dict
        The registry.  A missing file yields :func:`empty_registry`.

    Raises
    ------
    CorruptStoreError
        If the file exists but is not valid JSON or not shaped like a registry.
    """
    logger = logging.getLogger(__name__)
    path = Path(file_path)
    if not path.exists():
        logger.info("Registry file %s not found; starting empty", path)
        return empty_registry()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error("Registry file %s could not be parsed: %s", path, exc)
        raise CorruptStoreError(path, str(exc)) from exc

    if not isinstance(data, dict):
        raise CorruptStoreError(path, "top level is not an object")
    profiles = data.get("profiles", {})
    if not isinstance(profiles, dict):
        raise CorruptStoreError(path, "'profiles' is not an object")
    active = data.get("active_profile")
    if "" in profiles:
        raise CorruptStoreError(path, "a profile has an empty name")
    if active is not None and not isinstance(active, str):
        raise CorruptStoreError(path, "'active_profile' is not a string")
    updated_at = data.get("updated_at")
    if updated_at is not None and not isinstance(updated_at, int):
        raise CorruptStoreError(path, "'updated_at' is not an integer")

    registry = {
        "profiles": {
            name: _profile_from_data(profile, path, name)
            for name, profile in profiles.items()
        },
        "active_profile": active,
        "updated_at": updated_at,
    }
    logger.info("Loaded %d profiles", len(registry["profiles"]))
    return registry


def save_registry(registry: Registry, file_path: Union[str, Path] = REGISTRY_FILE) -> None:
    """Persist the registry to JSON storage, stamping ``updated_at``."""
    logger = logging.getLogger(__name__)
    path = Path(file_path)
    registry["updated_at"] = int(time.time())
    payload = json.dumps(registry, ensure_ascii=False, indent=2) + "\n"
    try:
        write_text_atomic(path, payload)
    except OSError as exc:
        logger.error("Failed to save registry to %s: %s", path, exc)
        raise
    logger.info("Saved %d profiles to %s", len(registry["profiles"]), path)


def upsert_host(
    registry: Registry, profile_name: str, host: str, identity_file: str
) -> Registry:
    """Record ``identity_file`` for ``host`` in the given profile.

    The profile is created when missing.  An existing entry for the same
    host is replaced where it stands; otherwise the entry is appended.
    """
    logger = logging.getLogger(__name__)
    profile = registry["profiles"].get(profile_name)
    if profile is None:
        profile = registry["profiles"][profile_name] = {"hosts": []}
        logger.info("Created profile '%s'", profile_name)
    entry = HostEntry(host, identity_file).to_dict()
    hosts = profile["hosts"]
    for index, existing in enumerate(hosts):
        if existing["host"] == host:
            hosts[index] = entry
            logger.info("Replaced host '%s' in profile '%s'", host, profile_name)
            break
    else:
        hosts.append(entry)
        logger.info("Added host '%s' to profile '%s'", host, profile_name)
    return registry


def find_host(registry: Registry, profile_name: str, host: str) -> HostEntry:
    profile = registry["profiles"].get(profile_name)
    if profile is None:
        raise ProfileNotFoundError(profile_name)
    entry = next((h for h in profile["hosts"] if h["host"] == host), None)
    if entry is None:
        raise HostNotFoundError(profile_name, host)
    return HostEntry(entry["host"], entry["identity_file"])


def list_profiles(registry: Registry) -> List[Tuple[str, List[HostEntry]]]:
    """Return ``(name, hosts)`` pairs in stored order."""
    return [
        (name, [HostEntry(h["host"], h["identity_file"]) for h in profile["hosts"]])
        for name, profile in registry["profiles"].items()
    ]


def active_profile(registry: Registry) -> Optional[str]:
    return registry.get("active_profile")
