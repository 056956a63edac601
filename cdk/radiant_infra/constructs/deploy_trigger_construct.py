from pathlib import Path

from aws_cdk import (
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_events as events,
    aws_events_targets as targets,
    aws_iam as iam,
    aws_lambda as lambda_,
    Duration,
)
from constructs import Construct

# Path to Lambda functions directory
FUNCTIONS_DIR = Path(__file__).resolve().parents[2] / "functions"

PYTHON_RUNTIME = lambda_.Runtime.PYTHON_3_12


class DeployTriggerConstruct(Construct):
    """
    Redeploys the ECS service whenever a new image is pushed to the repository
    under the watched tag.

    ECR emits "ECR Image Action" events to the default event bus; the rule
    forwards successful pushes to a function that forces a new deployment.
    """

    @property
    def function(self) -> lambda_.Function:
        return self._function

    @property
    def rule(self) -> events.Rule:
        return self._rule

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 repository: ecr.IRepository,
                 cluster: ecs.ICluster,
                 service: ecs.IBaseService,
                 image_tag: str = "latest",
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self._function = lambda_.Function(
            self,
            "Function",
            runtime=PYTHON_RUNTIME,
            handler="handler.handler",
            code=lambda_.Code.from_asset(str(FUNCTIONS_DIR / "deploy_trigger")),
            timeout=Duration.seconds(30),
            memory_size=128,
            description="Forces a new ECS deployment after an image push",
            environment={
                "CLUSTER_NAME": cluster.cluster_name,
                "SERVICE_NAME": service.service_name,
            }
        )

        self._function.add_to_role_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["ecs:UpdateService"],
                resources=[service.service_arn]
            )
        )

        self._rule = events.Rule(
            self,
            "ImagePushRule",
            description=f"Redeploy on push of :{image_tag}",
            event_pattern=events.EventPattern(
                source=["aws.ecr"],
                detail_type=["ECR Image Action"],
                detail={
                    "action-type": ["PUSH"],
                    "result": ["SUCCESS"],
                    "repository-name": [repository.repository_name],
                    "image-tag": [image_tag],
                }
            )
        )

        self._rule.add_target(targets.LambdaFunction(self._function))
