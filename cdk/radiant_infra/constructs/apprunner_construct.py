from typing import Mapping

from aws_cdk import (
    aws_apprunner as apprunner,
    aws_ecr as ecr,
    aws_iam as iam,
    aws_s3 as s3,
)
from constructs import Construct


class AppRunnerConstruct(Construct):

    @property
    def service(self) -> apprunner.CfnService:
        return self._service

    @property
    def service_arn(self) -> str:
        return self._service.attr_service_arn

    @property
    def service_url(self) -> str:
        return self._service.attr_service_url

    @property
    def instance_role(self) -> iam.Role:
        return self._instance_role

    @property
    def access_role(self) -> iam.Role:
        return self._access_role

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 repository: ecr.IRepository,
                 service_name: str,
                 port: int,
                 health_check_path: str,
                 environment: Mapping[str, str],
                 image_tag: str = "latest",
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        # Role assumed by the running containers
        self._instance_role = iam.Role(
            self,
            "InstanceRole",
            assumed_by=iam.ServicePrincipal("tasks.apprunner.amazonaws.com"),
            description="Runtime role for the App Runner service"
        )

        iam.ManagedPolicy(
            self,
            "SecretsManagerPolicy",
            statements=[
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=[
                        "secretsmanager:GetSecretValue",
                        "secretsmanager:DescribeSecret",
                    ],
                    resources=["*"]
                )
            ],
            roles=[self._instance_role]
        )

        # Role App Runner uses to pull from ECR
        self._access_role = iam.Role(
            self,
            "AccessRole",
            assumed_by=iam.ServicePrincipal("build.apprunner.amazonaws.com"),
            description="Image pull role for the App Runner service"
        )

        self._access_role.add_managed_policy(
            iam.ManagedPolicy.from_aws_managed_policy_name(
                "service-role/AWSAppRunnerServicePolicyForECRAccess"
            )
        )

        runtime_variables = [
            apprunner.CfnService.KeyValuePairProperty(name=name, value=value)
            for name, value in environment.items()
        ]

        self._service = apprunner.CfnService(
            self,
            "Service",
            service_name=service_name,
            source_configuration=apprunner.CfnService.SourceConfigurationProperty(
                image_repository=apprunner.CfnService.ImageRepositoryProperty(
                    image_identifier=f"{repository.repository_uri}:{image_tag}",
                    image_repository_type="ECR",
                    image_configuration=apprunner.CfnService.ImageConfigurationProperty(
                        port=str(port),
                        runtime_environment_variables=runtime_variables
                    )
                ),
                auto_deployments_enabled=True,
                authentication_configuration=apprunner.CfnService.AuthenticationConfigurationProperty(
                    access_role_arn=self._access_role.role_arn
                )
            ),
            instance_configuration=apprunner.CfnService.InstanceConfigurationProperty(
                cpu="0.25 vCPU",
                memory="0.5 GB",
                instance_role_arn=self._instance_role.role_arn
            ),
            health_check_configuration=apprunner.CfnService.HealthCheckConfigurationProperty(
                path=health_check_path,
                protocol="HTTP",
                interval=10,
                timeout=5,
                healthy_threshold=1,
                unhealthy_threshold=5
            )
        )

    def grant_bucket_access(self, bucket: s3.IBucket) -> iam.ManagedPolicy:
        """Attach read/write access on the media bucket to the instance role."""
        return iam.ManagedPolicy(
            self,
            "S3AccessPolicy",
            statements=[
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=[
                        "s3:GetObject",
                        "s3:PutObject",
                        "s3:DeleteObject",
                        "s3:ListBucket",
                    ],
                    resources=[bucket.bucket_arn, bucket.arn_for_objects("*")]
                )
            ],
            roles=[self._instance_role]
        )
