"""Profile Registry — enumerates configured directory servers.

Profiles live in the config store as ``<prefix>ldap_*`` keys.  A profile is
enabled when ``<prefix>ldap_configuration_active`` is ``"1"``.  The
enumeration order is the sorted prefix order, which keeps round-robin
scheduling stable across calls.
"""

from __future__ import annotations

from dirsync.domain.common.errors import ConfigValueError, EntityNotFoundError

from .models import DEFAULT_PAGING_SIZE, DirectoryProfile
from .ports import ConfigStore

ACTIVE_KEY = "ldap_configuration_active"
PAGING_SIZE_KEY = "ldap_paging_size"

# DirectoryProfile field -> config key suffix
_PROFILE_KEYS: dict[str, str] = {
    "host": "ldap_host",
    "port": "ldap_port",
    "bind_dn": "ldap_dn",
    "bind_password": "ldap_agent_password",
    "base_dn": "ldap_base_users",
    "user_filter": "ldap_userlist_filter",
    "display_name_attribute": "ldap_display_name",
    "email_attribute": "ldap_email_attr",
    "uuid_attribute": "ldap_expert_uuid_user_attr",
    "search_attributes": "ldap_attributes_for_user_search",
    "paging_size": PAGING_SIZE_KEY,
    "use_tls": "ldap_tls",
}


def config_int(namespace: str, key: str, value: str | None, default: int = 0) -> int:
    """Parse a stored integer; missing or empty values give *default*."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigValueError(namespace, key, value) from None


class ProfileRegistry:
    """Read-only view over the profiles stored in *namespace*."""

    def __init__(
        self,
        config: ConfigStore,
        namespace: str,
        *,
        default_paging_size: int = DEFAULT_PAGING_SIZE,
    ) -> None:
        self._config = config
        self._namespace = namespace
        self._default_paging_size = default_paging_size

    def list_enabled_profiles(self) -> list[str]:
        prefixes = []
        for key in self._config.list_keys(self._namespace):
            if not key.endswith(ACTIVE_KEY):
                continue
            if self._config.get_value(self._namespace, key, "0") == "1":
                prefixes.append(key[: -len(ACTIVE_KEY)])
        return sorted(prefixes)

    def next_prefix(self, last_prefix: str | None) -> str | None:
        """Return the profile following *last_prefix*, wrapping around.

        Starts at the first profile when *last_prefix* is None or no longer
        enabled.  Returns None when no profile is enabled.
        """
        prefixes = self.list_enabled_profiles()
        if not prefixes:
            return None
        if last_prefix is None or last_prefix not in prefixes:
            return prefixes[0]
        i = prefixes.index(last_prefix) + 1
        if i >= len(prefixes):
            i = 0
        return prefixes[i]

    def get_profile(self, prefix: str) -> DirectoryProfile:
        if prefix not in self.list_enabled_profiles():
            raise EntityNotFoundError("DirectoryProfile", prefix)

        raw: dict[str, str] = {}
        for field_name, suffix in _PROFILE_KEYS.items():
            value = self._config.get_value(self._namespace, prefix + suffix)
            if value is not None and value != "":
                raw[field_name] = value

        fields: dict[str, object] = {"prefix": prefix}
        for name, value in raw.items():
            if name in ("port", "paging_size"):
                key = prefix + _PROFILE_KEYS[name]
                fields[name] = config_int(self._namespace, key, value)
                if fields[name] < 0:
                    raise ConfigValueError(self._namespace, key, value, "a non-negative integer")
            elif name == "use_tls":
                fields[name] = value == "1"
            elif name == "search_attributes":
                fields[name] = tuple(
                    a.strip() for a in value.splitlines() if a.strip()
                )
            else:
                fields[name] = value
        fields.setdefault("paging_size", self._default_paging_size)
        return DirectoryProfile(**fields)
