"""SQLAlchemy implementation of the ConfigStore port."""

from __future__ import annotations

from collections.abc import Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dirsync.domain.common.errors import PersistenceError
from dirsync.domain.sync.ports import ConfigStore
from dirsync.infra.db.models.config import AppConfigValue


class SqlConfigStore(ConfigStore):
    """Persist namespaced config values in the ``app_config`` table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_value(self, namespace: str, key: str, default: str | None = None) -> str | None:
        row = self._session.get(AppConfigValue, (namespace, key))
        if row is None or row.config_value is None:
            return default
        return row.config_value

    def set_value(self, namespace: str, key: str, value: object) -> None:
        self.set_values(namespace, {key: value})

    def set_values(self, namespace: str, values: Mapping[str, object]) -> None:
        try:
            for key, value in values.items():
                text = None if value is None else str(value)
                row = self._session.get(AppConfigValue, (namespace, key))
                if row is None:
                    self._session.add(
                        AppConfigValue(namespace=namespace, config_key=key, config_value=text)
                    )
                else:
                    row.config_value = text
            self._session.flush()  # visible to list_keys() without committing
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to write {namespace}/{sorted(values)}: {e}") from e

    def list_keys(
        self, namespace: str, *, prefix: str = "", contains: str = ""
    ) -> list[str]:
        query = self._session.query(AppConfigValue.config_key).filter(
            AppConfigValue.namespace == namespace
        )
        if prefix:
            query = query.filter(AppConfigValue.config_key.startswith(prefix, autoescape=True))
        if contains:
            query = query.filter(AppConfigValue.config_key.contains(contains, autoescape=True))
        return [key for (key,) in query.order_by(AppConfigValue.config_key).all()]
