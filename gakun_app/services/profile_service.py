import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..errors import CorruptStoreError, GakunError
from ..profiles import (
    REGISTRY_FILE,
    HostEntry,
    active_profile,
    find_host,
    list_profiles,
    load_registry,
    save_registry,
    upsert_host,
)
from ..ssh_config import (
    SSH_CONFIG_FILE,
    read_config,
    remove_section,
    upsert_section,
    write_config,
)


class ProfileService:
    """Service layer implementing the gakun commands."""

    def __init__(
        self,
        registry_file: Optional[Union[str, Path]] = None,
        ssh_config_file: Optional[Union[str, Path]] = None,
    ) -> None:
        """Create the service using configurable file locations.

        Parameters
        ----------
        registry_file: str | Path | None
            JSON registry of profiles.  Defaults to
            :data:`gakun_app.profiles.REGISTRY_FILE`.
        ssh_config_file: str | Path | None
            SSH client config holding the managed block.  Defaults to
            :data:`gakun_app.ssh_config.SSH_CONFIG_FILE`.
        """
        self.registry_file = Path(registry_file) if registry_file is not None else REGISTRY_FILE
        self.ssh_config_file = (
            Path(ssh_config_file) if ssh_config_file is not None else SSH_CONFIG_FILE
        )
        self.logger = logging.getLogger(__name__)
        self.logger.debug(
            "Using registry %s and SSH config %s", self.registry_file, self.ssh_config_file
        )

    def add(self, profile_name: str, host: str, identity_file: str) -> HostEntry:
        if not profile_name:
            raise ValueError("Profile name must be provided")
        if not host:
            raise ValueError("Host must be provided")
        if not identity_file:
            raise ValueError("Key path must be provided")
        registry = load_registry(self.registry_file)
        upsert_host(registry, profile_name, host, identity_file)
        save_registry(registry, self.registry_file)
        self.logger.info(
            "Key '%s' stored for host '%s' in profile '%s'", identity_file, host, profile_name
        )
        return HostEntry(host, identity_file)

    def use(self, profile_name: str, host: str) -> HostEntry:
        """Activate the key stored for ``host`` in ``profile_name``.

        Nothing is written unless the lookup succeeds and the new SSH config
        text could be computed.
        """
        registry = load_registry(self.registry_file)
        try:
            entry = find_host(registry, profile_name, host)
        except LookupError as exc:
            self.logger.warning("Cannot use '%s' for '%s': %s", profile_name, host, exc)
            raise
        original = read_config(self.ssh_config_file, self.logger)
        try:
            updated = upsert_section(original, entry.host, entry.identity_file)
        except GakunError as exc:
            self.logger.error("Cannot update %s: %s", self.ssh_config_file, exc)
            raise
        if updated != original:
            write_config(updated, self.ssh_config_file, self.logger)
        else:
            self.logger.debug("SSH config already up to date")
        registry["active_profile"] = profile_name
        save_registry(registry, self.registry_file)
        self.logger.info(
            "Key '%s' active for host '%s' (profile '%s')",
            entry.identity_file,
            entry.host,
            profile_name,
        )
        return entry

    def list_profiles(self) -> List[Tuple[str, List[HostEntry]]]:
        return list_profiles(load_registry(self.registry_file))

    def active_profile(self) -> Optional[str]:
        return active_profile(load_registry(self.registry_file))

    def overview(self) -> Tuple[List[Tuple[str, List[HostEntry]]], Optional[str]]:
        """Return the profiles and the active profile name from one load."""
        registry = load_registry(self.registry_file)
        return list_profiles(registry), active_profile(registry)

    def detach(self) -> bool:
        """Remove the managed block from the SSH config.

        The registry is only touched afterwards to forget the active
        profile; a corrupt registry is logged and left as it is.

        Returns
        -------
        bool
            ``True`` if the file was changed, ``False`` if there was no block.
        """
        original = read_config(self.ssh_config_file, self.logger)
        try:
            updated = remove_section(original)
        except GakunError as exc:
            self.logger.error("Cannot detach from %s: %s", self.ssh_config_file, exc)
            raise
        if updated == original:
            self.logger.info("No managed section in %s", self.ssh_config_file)
            return False
        write_config(updated, self.ssh_config_file, self.logger)
        self.logger.info("Managed section removed from %s", self.ssh_config_file)
        try:
            registry = load_registry(self.registry_file)
        except CorruptStoreError as exc:
            self.logger.warning("Active profile not cleared: %s", exc)
            return True
        if registry.get("active_profile") is not None:
            registry["active_profile"] = None
            save_registry(registry, self.registry_file)
        return True
