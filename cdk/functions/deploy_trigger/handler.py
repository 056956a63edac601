"""
Lambda handler that forces a new ECS deployment.

Triggered by:
- EventBridge rule on successful ECR image pushes of the deployed tag
"""

import json
import logging
import os

import boto3

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Configuration from environment
CLUSTER_NAME = os.environ.get("CLUSTER_NAME")
SERVICE_NAME = os.environ.get("SERVICE_NAME")


def handler(event: dict, context) -> dict:
    """Lambda entry point: restart the service tasks on the freshly pushed image."""
    if not CLUSTER_NAME or not SERVICE_NAME:
        logger.error("CLUSTER_NAME or SERVICE_NAME not configured")
        return _response(500, {"message": "Deployment target not configured"})

    detail = event.get("detail", {})
    logger.info(
        "Image pushed to %s:%s, redeploying %s/%s",
        detail.get("repository-name"),
        detail.get("image-tag"),
        CLUSTER_NAME,
        SERVICE_NAME,
    )

    try:
        deployment_id = force_new_deployment()
    except Exception as e:
        logger.exception("Failed to trigger deployment: %s", e)
        return _response(500, {"message": "Failed to trigger deployment", "error": str(e)})

    return _response(
        200,
        {
            "message": "Deployment triggered",
            "cluster": CLUSTER_NAME,
            "service": SERVICE_NAME,
            "deploymentId": deployment_id,
        },
    )


def force_new_deployment() -> str | None:
    """Start a new deployment of the configured service and return its id."""
    ecs = boto3.client("ecs")
    response = ecs.update_service(
        cluster=CLUSTER_NAME,
        service=SERVICE_NAME,
        forceNewDeployment=True,
    )

    # The PRIMARY deployment is the one just started
    for deployment in response["service"].get("deployments", []):
        if deployment.get("status") == "PRIMARY":
            return deployment.get("id")
    return None


def _response(status_code: int, body: dict) -> dict:
    return {"statusCode": status_code, "body": json.dumps(body)}
