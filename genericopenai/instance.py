from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .errors import NotFoundError, PersistenceError, ValidationError
from .extensions import db
from .models import AiInstance

CUSTOMFIELD_COUNT = 5


class Instance:
    """One configured binding of a connector to an endpoint, key and model.

    ``Instance(0)`` is a new, unsaved record; ``Instance(id)`` loads the stored
    row. Mutators keep values verbatim and never validate them; the only check
    happens in :meth:`store`, which requires ``connector`` and ``endpoint``.
    """

    FIELDS = (
        "name",
        "connector",
        "tenant",
        "endpoint",
        "apikey",
        "model",
        "infolink",
        *(f"customfield{index}" for index in range(1, CUSTOMFIELD_COUNT + 1)),
    )
    REQUIRED_FIELDS = ("connector", "endpoint")

    def __init__(self, id: int | None = 0) -> None:
        self._id = int(id or 0)
        self._values: dict[str, Any] = dict.fromkeys(self.FIELDS)
        if self._id:
            self._load()

    def _load(self) -> None:
        record = db.session.get(AiInstance, self._id)
        if record is None:
            raise NotFoundError(f"Instance {self._id} does not exist")
        for field in self.FIELDS:
            self._values[field] = getattr(record, field)

    @classmethod
    def record_exists(cls, id: int) -> bool:
        return bool(id) and db.session.get(AiInstance, int(id)) is not None

    @classmethod
    def get_all(cls, connector: str | None = None, tenant: str | None = None) -> list[Instance]:
        query = AiInstance.query
        if connector is not None:
            query = query.filter_by(connector=connector)
        if tenant is not None:
            query = query.filter_by(tenant=tenant)
        return [cls(record.id) for record in query.order_by(AiInstance.id.asc()).all()]

    def get_id(self) -> int:
        return self._id

    def get_name(self) -> str | None:
        return self._values["name"]

    def set_name(self, name: str) -> None:
        self._values["name"] = name

    def get_connector(self) -> str | None:
        return self._values["connector"]

    def set_connector(self, connector: str) -> None:
        self._values["connector"] = connector

    def get_tenant(self) -> str | None:
        return self._values["tenant"]

    def set_tenant(self, tenant: str) -> None:
        self._values["tenant"] = tenant

    def get_endpoint(self) -> str | None:
        return self._values["endpoint"]

    def set_endpoint(self, endpoint: str) -> None:
        self._values["endpoint"] = endpoint

    def get_apikey(self) -> str | None:
        return self._values["apikey"]

    def set_apikey(self, apikey: str) -> None:
        self._values["apikey"] = apikey

    def get_model(self) -> str | None:
        return self._values["model"]

    def set_model(self, model: str) -> None:
        # Free text: custom and self-hosted model names are stored as given.
        self._values["model"] = model

    def get_infolink(self) -> str | None:
        return self._values["infolink"]

    def set_infolink(self, infolink: str) -> None:
        self._values["infolink"] = infolink

    def get_customfield(self, index: int) -> str | None:
        return self._values[self._customfield_key(index)]

    def set_customfield(self, index: int, value: str | None) -> None:
        self._values[self._customfield_key(index)] = value

    @staticmethod
    def _customfield_key(index: int) -> str:
        if not 1 <= index <= CUSTOMFIELD_COUNT:
            raise IndexError(f"customfield index must be between 1 and {CUSTOMFIELD_COUNT}")
        return f"customfield{index}"

    def store(self) -> int:
        missing = [
            field
            for field in self.REQUIRED_FIELDS
            if not isinstance(self._values[field], str) or not self._values[field].strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        try:
            if self._id:
                record = db.session.get(AiInstance, self._id)
                if record is None:
                    raise NotFoundError(f"Instance {self._id} does not exist")
            else:
                record = AiInstance()
                db.session.add(record)

            for field in self.FIELDS:
                setattr(record, field, self._values[field])
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not store instance: {exc}") from exc

        self._id = record.id
        return self._id

    def delete(self) -> None:
        if not self._id:
            raise NotFoundError("Instance has not been stored")
        record = db.session.get(AiInstance, self._id)
        if record is None:
            raise NotFoundError(f"Instance {self._id} does not exist")

        try:
            db.session.delete(record)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not delete instance: {exc}") from exc
        self._id = 0

    def to_dict(self, include_secret: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self._id}
        data.update(self._values)
        if not include_secret and data["apikey"]:
            data["apikey"] = "********"
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instance):
            return NotImplemented
        return self._id == other._id and self._values == other._values

    def __repr__(self) -> str:
        return f"Instance(id={self._id}, connector={self._values['connector']!r}, model={self._values['model']!r})"
