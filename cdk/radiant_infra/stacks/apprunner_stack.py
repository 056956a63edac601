from aws_cdk import (
    aws_route53 as route53,
    Fn,
    Stack,
)
from constructs import Construct

from radiant_infra.config import DeploymentConfig
from radiant_infra.constructs.apprunner_construct import AppRunnerConstruct
from radiant_infra.constructs.domain_construct import CustomDomainConstruct
from radiant_infra.constructs.ecr_construct import EcrConstruct
from radiant_infra.constructs.media_construct import MediaConstruct
from radiant_infra.constructs.rds_construct import DATABASE_NAME, DATABASE_USERNAME, PublicRdsConstruct
from radiant_infra.runtime_env import runtime_environment
from radiant_infra.stacks.outputs import add_output


class AppRunnerStack(Stack):
    """
    API on App Runner pulling from ECR.

    The full stack adds PostgreSQL, the media bucket behind CloudFront and the
    api subdomain in Route 53. ``trimmed=True`` keeps only the registry, the
    service and its roles.
    """

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 config: DeploymentConfig,
                 trimmed: bool = False,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self.ecr_construct = EcrConstruct(
            self,
            "Registry",
            repository_name=config.repository_name
        )
        repository = self.ecr_construct.repository

        self.rds_construct = None
        self.media_construct = None
        self.domain_construct = None
        self.hosted_zone = None

        if trimmed:
            environment = runtime_environment(config)
        else:
            self.rds_construct = PublicRdsConstruct(self, "Database")
            environment = runtime_environment(
                config,
                database_host=self.rds_construct.endpoint_address,
                include_media=True
            )

        self.apprunner_construct = AppRunnerConstruct(
            self,
            "Api",
            repository=repository,
            service_name=config.service_name,
            port=config.container_port,
            health_check_path=config.health_check_path,
            environment=environment
        )

        add_output(self, "EcrRepositoryUrl", repository.repository_uri, "ECR repository URL")
        add_output(self, "EcrRepositoryName", repository.repository_name, "ECR repository name")
        add_output(self, "AppRunnerServiceUrl", self.apprunner_construct.service_url, "App Runner default URL")
        add_output(self, "AppRunnerServiceArn", self.apprunner_construct.service_arn, "App Runner service ARN")

        if trimmed:
            return

        self.hosted_zone = route53.PublicHostedZone(
            self,
            "HostedZone",
            zone_name=config.domain_name
        )

        self.domain_construct = CustomDomainConstruct(
            self,
            "ApiDomain",
            zone=self.hosted_zone,
            service_arn=self.apprunner_construct.service_arn,
            domain_name=config.api_domain,
            record_name=config.api_subdomain,
            validation_record_count=config.validation_record_count
        )

        self.media_construct = MediaConstruct(
            self,
            "Media",
            bucket_name=config.media_bucket_name,
            cors_allowed_origins=config.cors_allowed_origins
        )

        self.apprunner_construct.grant_bucket_access(self.media_construct.bucket)

        bucket = self.media_construct.bucket
        distribution = self.media_construct.distribution

        add_output(self, "HostedZoneId", self.hosted_zone.hosted_zone_id, "Route 53 hosted zone id")
        add_output(self, "NameServers", Fn.join(",", self.hosted_zone.hosted_zone_name_servers),
                   "Name servers to delegate the domain to")
        add_output(self, "CustomDomainUrl", config.api_url, "Public API URL")
        add_output(self, "DatabaseEndpoint", self.rds_construct.endpoint_address, "PostgreSQL endpoint address")
        add_output(self, "DatabasePort", self.rds_construct.endpoint_port, "PostgreSQL port")
        add_output(self, "DatabaseName", DATABASE_NAME, "PostgreSQL database name")
        add_output(self, "DatabaseUsername", DATABASE_USERNAME, "PostgreSQL master username")
        add_output(self, "DatabaseSecretArn", self.rds_construct.secret_arn, "Master password secret ARN")
        add_output(self, "S3BucketName", bucket.bucket_name, "Media bucket name")
        add_output(self, "S3BucketArn", bucket.bucket_arn, "Media bucket ARN")
        add_output(self, "CdnDomainName", distribution.distribution_domain_name, "CloudFront domain name")
        add_output(self, "CdnUrl", f"https://{distribution.distribution_domain_name}", "CloudFront base URL")
