from __future__ import annotations

from typing import Iterable

from .connectors import Connector, GenericOpenAIConnector
from .errors import NotFoundError
from .instance import Instance

DEFAULT_CONNECTORS: tuple[type[Connector], ...] = (GenericOpenAIConnector,)


class ConnectorFactory:
    """Resolves connectors by name from an explicit registry.

    Callers receive the factory as a constructor argument; there is no
    module-level registry.
    """

    def __init__(self, connectors: Iterable[type[Connector]] | None = None, timeout: float = 60.0) -> None:
        self.timeout = timeout
        self._connectors: dict[str, type[Connector]] = {}
        for connector_class in DEFAULT_CONNECTORS if connectors is None else connectors:
            self.register(connector_class)

    def register(self, connector_class: type[Connector]) -> None:
        self._connectors[connector_class.connector_name] = connector_class

    def get_connector_names(self) -> list[str]:
        return sorted(self._connectors)

    def _connector_class(self, name: str) -> type[Connector]:
        try:
            return self._connectors[name]
        except KeyError:
            raise NotFoundError(f"Connector {name!r} is not registered") from None

    def get_connector_by_connectorname(self, name: str) -> Connector:
        return self._connector_class(name)(timeout=self.timeout)

    def get_connector_by_connectorname_and_model(self, name: str, model: str) -> Connector:
        connector_class = self._connector_class(name)
        instance = Instance()
        instance.set_connector(name)
        instance.set_model(model)
        return connector_class(instance, timeout=self.timeout)

    def get_connector_by_instanceid(self, id: int) -> Connector:
        instance = Instance(id)
        connector_class = self._connector_class(instance.get_connector())
        return connector_class(instance, timeout=self.timeout)
