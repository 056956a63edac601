from aws_cdk import Stack
from constructs import Construct

from radiant_infra.config import DeploymentConfig
from radiant_infra.constructs.ecr_construct import EcrConstruct
from radiant_infra.stacks.outputs import add_output


class RegistryStack(Stack):
    """Container registry only, for pushing images ahead of any runtime."""

    def __init__(self, scope: Construct, id: str, *, config: DeploymentConfig, **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self.ecr_construct = EcrConstruct(
            self,
            "Registry",
            repository_name=config.repository_name
        )

        self.repository = self.ecr_construct.repository

        add_output(self, "EcrRepositoryUrl", self.repository.repository_uri, "ECR repository URL")
        add_output(self, "EcrRepositoryName", self.repository.repository_name, "ECR repository name")
