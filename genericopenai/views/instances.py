from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from genericopenai.errors import CapabilityMismatchError
from genericopenai.factory import ConnectorFactory
from genericopenai.instance import CUSTOMFIELD_COUNT, Instance
from genericopenai.purposes import Purpose
from genericopenai.security import sanitize_text_input, validate_url

instances_bp = Blueprint("instances", __name__, url_prefix="/api")

_TEXT_FIELDS = {
    "name": 255,
    "connector": 64,
    "tenant": 255,
    "endpoint": 2048,
    "apikey": 4096,
    "model": 255,
    "infolink": 2048,
}
_URL_FIELDS = ("endpoint", "infolink")


@dataclass
class ValidationResult:
    ok: bool
    data: dict[str, Any] | None = None
    error: str | None = None


def _factory() -> ConnectorFactory:
    return current_app.extensions["connector_factory"]


def _validate_instance_payload(payload: Any, required: set[str]) -> ValidationResult:
    if not isinstance(payload, dict):
        return ValidationResult(ok=False, error="Invalid JSON payload")

    missing = sorted(field for field in required if field not in payload)
    if missing:
        return ValidationResult(ok=False, error=f"Missing required fields: {', '.join(missing)}")

    data: dict[str, Any] = {}
    for key, max_length in _TEXT_FIELDS.items():
        if key in payload:
            try:
                data[key] = sanitize_text_input(payload.get(key), key, max_length=max_length)
            except ValueError as exc:
                return ValidationResult(ok=False, error=str(exc))

    for key in _URL_FIELDS:
        if key in data and not validate_url(data[key]):
            return ValidationResult(ok=False, error=f"{key} must be an http(s) URL")

    for index in range(1, CUSTOMFIELD_COUNT + 1):
        key = f"customfield{index}"
        if key in payload:
            value = payload.get(key)
            if value is not None and not isinstance(value, str):
                return ValidationResult(ok=False, error=f"{key} must be a string")
            data[key] = value

    return ValidationResult(ok=True, data=data)


def _validate_prompt_options(options: Any) -> ValidationResult:
    if options is None:
        return ValidationResult(ok=True, data={})
    if not isinstance(options, dict):
        return ValidationResult(ok=False, error="options must be an object")

    data = dict(options)

    temperature = options.get("temperature")
    if temperature is not None:
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            return ValidationResult(ok=False, error="temperature must be a number")
        if not 0 <= temperature <= 2:
            return ValidationResult(ok=False, error="temperature must be between 0 and 2")

    max_tokens = options.get("max_tokens")
    if max_tokens is not None:
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
            return ValidationResult(ok=False, error="max_tokens must be an integer")
        if max_tokens < 1:
            return ValidationResult(ok=False, error="max_tokens must be greater than 0")

    context = options.get("conversationcontext")
    if context is not None:
        if not isinstance(context, list):
            return ValidationResult(ok=False, error="conversationcontext must be a list of messages")
        for message in context:
            if (
                not isinstance(message, dict)
                or not isinstance(message.get("role"), str)
                or not isinstance(message.get("content"), str)
            ):
                return ValidationResult(ok=False, error="conversationcontext messages need string role and content")

    return ValidationResult(ok=True, data=data)


def _apply(instance: Instance, data: dict[str, Any]) -> None:
    connector = _factory().get_connector_by_connectorname(data.get("connector", instance.get_connector()))
    if data.get("customfield2") is not None and not connector.has_customvalue2():
        raise CapabilityMismatchError(f"{connector.connector_name} does not use customfield2")
    if not connector.has_customvalue2() and instance.get_customfield(2) is not None:
        instance.set_customfield(2, None)

    for key, value in data.items():
        if key.startswith("customfield"):
            instance.set_customfield(int(key[len("customfield"):]), value)
        else:
            getattr(instance, f"set_{key}")(value)


@instances_bp.get("/connectors")
def list_connectors() -> Any:
    return jsonify({"success": True, "data": _factory().get_connector_names()})


@instances_bp.get("/connectors/<name>/models")
def connector_models(name: str) -> Any:
    connector = _factory().get_connector_by_connectorname(name)
    return jsonify(
        {
            "success": True,
            "data": {
                "connector": name,
                "has_customvalue2": connector.has_customvalue2(),
                "models_by_purpose": connector.get_models_by_purpose(),
                "models": connector.get_models(),
                "selectable_models": connector.get_selectable_models(),
            },
        }
    )


@instances_bp.get("/instances")
def list_instances() -> Any:
    instances = Instance.get_all(
        connector=request.args.get("connector"),
        tenant=request.args.get("tenant"),
    )
    return jsonify({"success": True, "data": [instance.to_dict() for instance in instances]})


@instances_bp.post("/instances")
def create_instance() -> Any:
    validation = _validate_instance_payload(
        request.get_json(silent=True),
        required={"name", "connector", "endpoint", "model"},
    )
    if not validation.ok:
        return jsonify({"success": False, "error": validation.error}), 400

    instance = Instance()
    _apply(instance, validation.data)
    instance.store()
    return jsonify({"success": True, "data": instance.to_dict()}), 201


@instances_bp.get("/instances/<int:instance_id>")
def get_instance(instance_id: int) -> Any:
    instance = Instance(instance_id)
    return jsonify({"success": True, "data": instance.to_dict()})


@instances_bp.put("/instances/<int:instance_id>")
def update_instance(instance_id: int) -> Any:
    instance = Instance(instance_id)

    validation = _validate_instance_payload(request.get_json(silent=True), required=set())
    if not validation.ok:
        return jsonify({"success": False, "error": validation.error}), 400

    _apply(instance, validation.data)
    instance.store()
    return jsonify({"success": True, "data": instance.to_dict()})


@instances_bp.delete("/instances/<int:instance_id>")
def delete_instance(instance_id: int) -> Any:
    Instance(instance_id).delete()
    return jsonify({"success": True, "data": {"message": "Instance deleted"}})


@instances_bp.post("/instances/<int:instance_id>/prompt")
def run_prompt(instance_id: int) -> Any:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"success": False, "error": "Invalid JSON payload"}), 400

    try:
        prompt = sanitize_text_input(payload.get("prompt"), "prompt", max_length=32000)
        purpose = Purpose.from_value(payload.get("purpose", Purpose.SINGLEPROMPT))
    except ValueError as exc:
        return jsonify({"success": False, "error": str(exc)}), 400

    validation = _validate_prompt_options(payload.get("options"))
    if not validation.ok:
        return jsonify({"success": False, "error": validation.error}), 400
    options = validation.data

    connector = _factory().get_connector_by_instanceid(instance_id)
    result = connector.execute_prompt_completion(prompt, purpose, options)
    return jsonify(
        {
            "success": True,
            "data": {
                "content": result.content,
                "model": result.model,
                "prompt_tokens": result.prompt_tokens,
                "completion_tokens": result.completion_tokens,
            },
        }
    )
