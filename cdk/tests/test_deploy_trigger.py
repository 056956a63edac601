"""
Tests for the Lambda that redeploys the ECS service after an image push.
"""

import importlib
import json
from unittest.mock import MagicMock, patch

import pytest

import deploy_trigger.handler as dt

PUSH_EVENT = {
    "source": "aws.ecr",
    "detail-type": "ECR Image Action",
    "detail": {
        "action-type": "PUSH",
        "result": "SUCCESS",
        "repository-name": "radiant-cloud",
        "image-tag": "latest",
    },
}


@pytest.fixture
def mock_env(monkeypatch):
    """Set up environment variables."""
    monkeypatch.setenv("CLUSTER_NAME", "radiant-cloud-cluster")
    monkeypatch.setenv("SERVICE_NAME", "radiant-api")
    # Reload to pick up env vars
    importlib.reload(dt)


@pytest.fixture
def missing_env(monkeypatch):
    monkeypatch.delenv("CLUSTER_NAME", raising=False)
    monkeypatch.delenv("SERVICE_NAME", raising=False)
    importlib.reload(dt)


class TestHandler:

    def test_forces_new_deployment(self, mock_env):
        with patch("deploy_trigger.handler.boto3") as mock_boto3:
            mock_ecs = MagicMock()
            mock_boto3.client.return_value = mock_ecs
            mock_ecs.update_service.return_value = {
                "service": {
                    "deployments": [
                        {"id": "ecs-svc/old", "status": "ACTIVE"},
                        {"id": "ecs-svc/new", "status": "PRIMARY"},
                    ]
                }
            }

            response = dt.handler(PUSH_EVENT, None)

        mock_boto3.client.assert_called_once_with("ecs")
        mock_ecs.update_service.assert_called_once_with(
            cluster="radiant-cloud-cluster",
            service="radiant-api",
            forceNewDeployment=True,
        )
        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {
            "message": "Deployment triggered",
            "cluster": "radiant-cloud-cluster",
            "service": "radiant-api",
            "deploymentId": "ecs-svc/new",
        }

    def test_no_primary_deployment(self, mock_env):
        with patch("deploy_trigger.handler.boto3") as mock_boto3:
            mock_boto3.client.return_value.update_service.return_value = {"service": {}}

            response = dt.handler(PUSH_EVENT, None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["deploymentId"] is None

    def test_update_failure_returns_error(self, mock_env):
        with patch("deploy_trigger.handler.boto3") as mock_boto3:
            mock_boto3.client.return_value.update_service.side_effect = RuntimeError("ServiceNotActiveException")

            response = dt.handler(PUSH_EVENT, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {
            "message": "Failed to trigger deployment",
            "error": "ServiceNotActiveException",
        }

    def test_missing_configuration(self, missing_env):
        with patch("deploy_trigger.handler.boto3") as mock_boto3:
            response = dt.handler(PUSH_EVENT, None)

        mock_boto3.client.assert_not_called()
        assert response["statusCode"] == 500
        assert json.loads(response["body"])["message"] == "Deployment target not configured"

    def test_event_without_detail(self, mock_env):
        with patch("deploy_trigger.handler.boto3") as mock_boto3:
            mock_boto3.client.return_value.update_service.return_value = {"service": {"deployments": []}}

            response = dt.handler({}, None)

        assert response["statusCode"] == 200
