import unittest
from unittest.mock import MagicMock, patch

import requests

from genericopenai import create_app
from genericopenai.connectors import GenericOpenAIConnector
from genericopenai.extensions import db
from genericopenai.factory import ConnectorFactory
from genericopenai.models import AiInstance, ConnectorLog
from genericopenai.purposes import Purpose


class TestConfig:
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False


VALID_PAYLOAD = {
    "name": "Test Instance",
    "connector": "genericopenai",
    "tenant": "test",
    "endpoint": "https://api.openai.com/v1/chat/completions",
    "apikey": "test-key",
    "model": "my-custom-model-v2",
    "infolink": "https://example.com",
}


class InstancesApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app(TestConfig)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def _create(self, **overrides) -> int:
        response = self.client.post("/api/instances", json={**VALID_PAYLOAD, **overrides})
        self.assertEqual(response.status_code, 201)
        return response.get_json()["data"]["id"]

    def test_health(self) -> None:
        response = self.client.get("/health/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "healthy"})

    def test_list_connectors(self) -> None:
        response = self.client.get("/api/connectors")

        self.assertEqual(response.get_json(), {"success": True, "data": ["genericopenai"]})

    def test_connector_models(self) -> None:
        response = self.client.get("/api/connectors/genericopenai/models")

        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertFalse(data["has_customvalue2"])
        self.assertEqual(
            set(data["models_by_purpose"]),
            {"chat", "feedback", "singleprompt", "translate", "itt", "questiongeneration", "agent"},
        )
        self.assertEqual(data["selectable_models"], data["models"])

    def test_unknown_connector_models_returns_404(self) -> None:
        response = self.client.get("/api/connectors/azureopenai/models")

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])

    def test_post_instance_persists_custom_model_and_masks_key(self) -> None:
        response = self.client.post("/api/instances", json=VALID_PAYLOAD)

        self.assertEqual(response.status_code, 201)
        payload = response.get_json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["data"]["model"], "my-custom-model-v2")
        self.assertEqual(payload["data"]["apikey"], "********")

        saved = AiInstance.query.one()
        self.assertEqual(saved.model, "my-custom-model-v2")
        self.assertEqual(saved.apikey, "test-key")

    def test_post_instance_missing_fields_returns_400(self) -> None:
        response = self.client.post("/api/instances", json={"name": "Only a name"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("Missing required fields", response.get_json()["error"])

    def test_post_instance_malformed_ipv6_endpoint_returns_400(self) -> None:
        response = self.client.post("/api/instances", json={**VALID_PAYLOAD, "endpoint": "https://[2001:db8::1/v1"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("endpoint", response.get_json()["error"])

    def test_post_instance_invalid_endpoint_returns_400(self) -> None:
        response = self.client.post("/api/instances", json={**VALID_PAYLOAD, "endpoint": "ftp://example.com"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("endpoint", response.get_json()["error"])

    def test_post_instance_unknown_connector_returns_404(self) -> None:
        response = self.client.post("/api/instances", json={**VALID_PAYLOAD, "connector": "azureopenai"})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(AiInstance.query.count(), 0)

    def test_post_instance_rejects_customfield2(self) -> None:
        response = self.client.post("/api/instances", json={**VALID_PAYLOAD, "customfield2": "azure-deployment"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("customfield2", response.get_json()["error"])
        self.assertEqual(AiInstance.query.count(), 0)

    def test_get_instance(self) -> None:
        instance_id = self._create()

        response = self.client.get(f"/api/instances/{instance_id}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["name"], "Test Instance")

    def test_get_missing_instance_returns_404(self) -> None:
        response = self.client.get("/api/instances/999")

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])

    def test_list_instances_filters_by_tenant(self) -> None:
        self._create()
        self._create(tenant="other")

        response = self.client.get("/api/instances?tenant=other")

        data = response.get_json()["data"]
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["tenant"], "other")

    def test_put_instance_updates_model(self) -> None:
        instance_id = self._create()

        response = self.client.put(f"/api/instances/{instance_id}", json={"model": "another-custom-model"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(db.session.get(AiInstance, instance_id).model, "another-custom-model")

    def test_put_instance_invalid_payload_returns_400(self) -> None:
        instance_id = self._create()

        response = self.client.put(f"/api/instances/{instance_id}", json={"name": ""})

        self.assertEqual(response.status_code, 400)

    def test_delete_instance(self) -> None:
        instance_id = self._create()

        response = self.client.delete(f"/api/instances/{instance_id}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(f"/api/instances/{instance_id}").status_code, 404)

    @patch("genericopenai.connectors.base.requests.post")
    def test_prompt_returns_completion(self, mock_post: MagicMock) -> None:
        instance_id = self._create()
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.return_value = {
            "model": "my-custom-model-v2",
            "choices": [{"message": {"content": "Hallo"}}],
            "usage": {"prompt_tokens": 4, "completion_tokens": 1},
        }
        mock_post.return_value = response

        result = self.client.post(
            f"/api/instances/{instance_id}/prompt",
            json={"prompt": "Translate hello", "purpose": "translate"},
        )

        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.get_json()["data"]["content"], "Hallo")
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs["json"]["model"], "my-custom-model-v2")
        self.assertEqual(ConnectorLog.query.one().instance_id, instance_id)

    @patch("genericopenai.connectors.base.requests.post")
    def test_prompt_upstream_failure_returns_502(self, mock_post: MagicMock) -> None:
        instance_id = self._create()
        mock_post.side_effect = requests.Timeout("read timed out")

        result = self.client.post(f"/api/instances/{instance_id}/prompt", json={"prompt": "hi"})

        self.assertEqual(result.status_code, 502)
        self.assertFalse(result.get_json()["success"])

    def test_prompt_unknown_purpose_returns_400(self) -> None:
        instance_id = self._create()

        result = self.client.post(
            f"/api/instances/{instance_id}/prompt",
            json={"prompt": "hi", "purpose": "summarise"},
        )

        self.assertEqual(result.status_code, 400)


    def test_prompt_non_object_body_returns_400(self) -> None:
        instance_id = self._create()

        result = self.client.post(f"/api/instances/{instance_id}/prompt", json=["hi"])

        self.assertEqual(result.status_code, 400)
        self.assertEqual(result.get_json(), {"success": False, "error": "Invalid JSON payload"})

    @patch("genericopenai.connectors.base.requests.post")
    def test_prompt_invalid_options_return_400(self, mock_post: MagicMock) -> None:
        instance_id = self._create()
        invalid_options = [
            ({"temperature": "hot"}, "temperature"),
            ({"temperature": True}, "temperature"),
            ({"temperature": 5}, "temperature"),
            ({"max_tokens": "lots"}, "max_tokens"),
            ({"max_tokens": 0}, "max_tokens"),
            ({"conversationcontext": 5}, "conversationcontext"),
            ({"conversationcontext": "earlier chat"}, "conversationcontext"),
            ({"conversationcontext": [{"role": "user"}]}, "conversationcontext"),
            ("not-an-object", "options"),
        ]

        for options, field in invalid_options:
            with self.subTest(options=options):
                result = self.client.post(
                    f"/api/instances/{instance_id}/prompt",
                    json={"prompt": "hi", "options": options},
                )

                self.assertEqual(result.status_code, 400)
                payload = result.get_json()
                self.assertFalse(payload["success"])
                self.assertIn(field, payload["error"])

        mock_post.assert_not_called()
        self.assertEqual(ConnectorLog.query.count(), 0)

    @patch("genericopenai.connectors.base.requests.post")
    def test_prompt_passes_valid_options(self, mock_post: MagicMock) -> None:
        instance_id = self._create()
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.return_value = {"choices": [{"message": {"content": "ok"}}]}
        mock_post.return_value = response
        context = [{"role": "system", "content": "Be brief."}]

        result = self.client.post(
            f"/api/instances/{instance_id}/prompt",
            json={
                "prompt": "hi",
                "purpose": "chat",
                "options": {"temperature": 1, "max_tokens": 64, "conversationcontext": context},
            },
        )

        self.assertEqual(result.status_code, 200)
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs["json"]["temperature"], 1.0)
        self.assertEqual(kwargs["json"]["max_tokens"], 64)
        self.assertEqual(kwargs["json"]["messages"][0], context[0])


class SecondaryKeyConnector(GenericOpenAIConnector):
    connector_name = "secondarykey"
    MODELS_BY_PURPOSE = {purpose: ("secondary-model",) for purpose in Purpose}

    def has_customvalue2(self) -> bool:
        return True


class ConnectorSwitchApiTests(unittest.TestCase):
    def setUp(self) -> None:
        factory = ConnectorFactory(connectors=[GenericOpenAIConnector, SecondaryKeyConnector])
        self.app = create_app(TestConfig, connector_factory=factory)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def test_switching_to_connector_without_customvalue2_clears_secret(self) -> None:
        created = self.client.post(
            "/api/instances",
            json={**VALID_PAYLOAD, "connector": "secondarykey", "customfield2": "secondary-secret"},
        )
        self.assertEqual(created.status_code, 201)
        instance_id = created.get_json()["data"]["id"]
        self.assertEqual(db.session.get(AiInstance, instance_id).customfield2, "secondary-secret")

        response = self.client.put(f"/api/instances/{instance_id}", json={"connector": "genericopenai"})

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.get_json()["data"]["customfield2"])
        saved = db.session.get(AiInstance, instance_id)
        self.assertEqual(saved.connector, "genericopenai")
        self.assertIsNone(saved.customfield2)

    def test_update_keeps_customvalue2_when_connector_supports_it(self) -> None:
        created = self.client.post(
            "/api/instances",
            json={**VALID_PAYLOAD, "connector": "secondarykey", "customfield2": "secondary-secret"},
        )
        instance_id = created.get_json()["data"]["id"]

        self.client.put(f"/api/instances/{instance_id}", json={"model": "secondary-model"})

        self.assertEqual(db.session.get(AiInstance, instance_id).customfield2, "secondary-secret")


if __name__ == "__main__":
    unittest.main()
