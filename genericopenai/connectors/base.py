from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Sequence

import requests
from sqlalchemy.exc import SQLAlchemyError

from ..errors import CapabilityMismatchError, ConnectorError, NotFoundError
from ..extensions import db
from ..instance import Instance
from ..models import ConnectorLog
from ..purposes import Purpose, validate_catalog

logger = logging.getLogger(__name__)


@dataclass
class PromptResponse:
    content: str
    model: str | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None


class Connector(ABC):
    """Base connector bound to at most one :class:`Instance`.

    Subclasses declare ``connector_name`` and a ``MODELS_BY_PURPOSE`` catalog;
    the catalog is checked when the subclass is defined.
    """

    connector_name: ClassVar[str]
    MODELS_BY_PURPOSE: ClassVar[Mapping[Purpose, Sequence[str]]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "MODELS_BY_PURPOSE" in cls.__dict__:
            cls.MODELS_BY_PURPOSE = validate_catalog(cls.MODELS_BY_PURPOSE, cls.__name__)

    def __init__(self, instance: Instance | None = None, timeout: float = 60.0) -> None:
        self._instance = instance
        self.timeout = timeout

    def get_instance(self) -> Instance:
        if self._instance is None:
            raise NotFoundError(f"{self.connector_name} connector is not bound to an instance")
        return self._instance

    def has_customvalue2(self) -> bool:
        return False

    def get_customvalue2(self) -> str | None:
        if not self.has_customvalue2():
            raise CapabilityMismatchError(f"{self.connector_name} does not use customvalue2")
        return self.get_instance().get_customfield(2)

    def get_models_by_purpose(self) -> dict[str, list[str]]:
        return {purpose.value: list(self.MODELS_BY_PURPOSE[purpose]) for purpose in Purpose}

    def get_models(self) -> list[str]:
        models: list[str] = []
        for purpose in Purpose:
            for model in self.MODELS_BY_PURPOSE[purpose]:
                if model not in models:
                    models.append(model)
        return models

    def get_selectable_models(self) -> list[str]:
        return self.get_models()

    def get_endpoint_url(self) -> str:
        endpoint = self.get_instance().get_endpoint()
        if not endpoint:
            raise ConnectorError(f"{self.connector_name} instance has no endpoint")
        return endpoint

    def get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        apikey = self.get_instance().get_apikey()
        if apikey:
            headers["Authorization"] = f"Bearer {apikey}"
        return headers

    @abstractmethod
    def get_prompt_data(self, prompt: str, purpose: Purpose, options: dict[str, Any]) -> dict[str, Any]:
        """Build the request body for a prompt."""

    @abstractmethod
    def parse_response(self, data: dict[str, Any]) -> PromptResponse:
        """Turn a decoded response body into a :class:`PromptResponse`."""

    def execute_prompt_completion(
        self,
        prompt: str,
        purpose: Purpose | str = Purpose.SINGLEPROMPT,
        options: dict[str, Any] | None = None,
    ) -> PromptResponse:
        purpose = Purpose.from_value(purpose)
        payload = self.get_prompt_data(prompt, purpose, dict(options or {}))
        url = self.get_endpoint_url()

        logger.info("Sending %s request for purpose %s to %s", self.connector_name, purpose.value, url)
        try:
            response = requests.post(url, json=payload, headers=self.get_headers(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("%s request failed: %s", self.connector_name, exc)
            self._log_request(purpose, payload, None, error=str(exc))
            raise ConnectorError(f"{self.connector_name} request failed: {exc}") from exc

        if not isinstance(data, dict):
            self._log_request(purpose, payload, None, error="response body is not an object")
            raise ConnectorError(f"{self.connector_name} response body is not an object")

        try:
            result = self.parse_response(data)
        except ConnectorError as exc:
            self._log_request(purpose, payload, data, error=str(exc))
            raise

        self._log_request(purpose, payload, data)
        return result

    def _log_request(
        self,
        purpose: Purpose,
        payload: dict[str, Any],
        response: dict[str, Any] | None,
        error: str | None = None,
    ) -> None:
        entry = ConnectorLog(
            connector_type=self.connector_name,
            instance_id=self.get_instance().get_id() or None,
            purpose=purpose.value,
            request=payload,
            response=response,
            success=error is None,
            error=error,
        )
        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Could not write connector log entry")
