from aws_cdk import (
    aws_ec2 as ec2,
    aws_route53 as route53,
    Fn,
    Stack
)
from constructs import Construct

from radiant_infra.config import DeploymentConfig
from radiant_infra.constructs.alb_construct import AlbConstruct
from radiant_infra.constructs.deploy_trigger_construct import DeployTriggerConstruct
from radiant_infra.constructs.ecr_construct import EcrConstruct
from radiant_infra.constructs.ecs_construct import EcsConstruct
from radiant_infra.constructs.rds_construct import DATABASE_PORT, RdsConstruct
from radiant_infra.constructs.vpc_construct import VpcConstruct
from radiant_infra.runtime_env import runtime_environment
from radiant_infra.stacks.outputs import add_output


class EcsStack(Stack):
    """API on ECS/EC2 behind an HTTPS load balancer, redeployed on every image push."""

    def __init__(self, scope: Construct, id: str, *, config: DeploymentConfig, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.ecr_construct = EcrConstruct(
            self,
            "Registry",
            repository_name=config.repository_name
        )
        repository = self.ecr_construct.repository

        self.vpc_construct = VpcConstruct(
            self, "Network",
            vpc_name=f"{config.project}-vpc"
        )
        self.vpc: ec2.Vpc = self.vpc_construct.vpc

        self.hosted_zone = route53.PublicHostedZone(
            self,
            "HostedZone",
            zone_name=config.domain_name
        )

        self.alb_construct = AlbConstruct(
            self,
            "LoadBalancer",
            vpc=self.vpc,
            zone=self.hosted_zone,
            domain_name=config.api_domain,
            record_name=config.api_subdomain,
            target_port=config.container_port,
            health_check_path=config.health_check_path,
            vpc_subnets=self.vpc_construct.ingress_subnets
        )

        self.rds_construct = RdsConstruct(
            self,
            "Database",
            vpc=self.vpc,
            vpc_subnets=self.vpc_construct.database_subnets
        )

        self.ecs_construct = EcsConstruct(
            self,
            "Compute",
            vpc=self.vpc,
            repository=repository,
            cluster_name=f"{config.project}-cluster",
            service_name=config.service_name,
            container_port=config.container_port,
            environment=runtime_environment(
                config,
                database_host=self.rds_construct.endpoint_address,
                database_password_placeholder=False
            ),
            alb_sg=self.alb_construct.alb_security_group,
            app_target_group=self.alb_construct.application_target_group,
            db_sg=self.rds_construct.rds_security_group,
            db_secret=self.rds_construct.rds_secret,
            vpc_subnets=self.vpc_construct.application_subnets
        )

        self.rds_construct.rds_security_group.add_ingress_rule(
            peer=self.ecs_construct.asg_sg,
            connection=ec2.Port.tcp(DATABASE_PORT),
            description="Allow postgres connection from container instances"
        )

        self.deploy_trigger = DeployTriggerConstruct(
            self,
            "DeployTrigger",
            repository=repository,
            cluster=self.ecs_construct.cluster,
            service=self.ecs_construct.service
        )

        add_output(self, "EcrRepositoryUrl", repository.repository_uri, "ECR repository URL")
        add_output(self, "EcrRepositoryName", repository.repository_name, "ECR repository name")
        add_output(self, "HostedZoneId", self.hosted_zone.hosted_zone_id, "Route 53 hosted zone id")
        add_output(self, "NameServers", Fn.join(",", self.hosted_zone.hosted_zone_name_servers),
                   "Name servers to delegate the domain to")
        add_output(self, "LoadBalancerDnsName", self.alb_construct.alb.load_balancer_dns_name,
                   "Load balancer DNS name")
        add_output(self, "CustomDomainUrl", config.api_url, "Public API URL")
        add_output(self, "ClusterName", self.ecs_construct.cluster.cluster_name, "ECS cluster name")
        add_output(self, "ServiceName", self.ecs_construct.service.service_name, "ECS service name")
        add_output(self, "DatabaseEndpoint", self.rds_construct.endpoint_address, "PostgreSQL endpoint address")
        add_output(self, "DatabaseSecretArn", self.rds_construct.secret_arn, "Database credentials secret ARN")
        add_output(self, "DeployTriggerFunctionName", self.deploy_trigger.function.function_name,
                   "Function that redeploys the service on image push")
