from typing import Mapping, Optional

from aws_cdk import (
    aws_autoscaling as autoscaling,
    aws_ec2 as ec2,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_secretsmanager as secretsmanager,
    Duration,
)
from constructs import Construct

# Docker assigns host ports from this range in bridge mode with host_port=0
EPHEMERAL_PORTS = ec2.Port.tcp_range(32768, 65535)


class EcsConstruct(Construct):
    """ECS cluster on EC2 capacity running the API container from ECR."""

    @property
    def cluster(self) -> ecs.Cluster:
        return self._cluster

    @property
    def service(self) -> ecs.Ec2Service:
        return self._service

    @property
    def auto_scaling_group(self) -> autoscaling.AutoScalingGroup:
        return self._asg

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 vpc: ec2.IVpc,
                 repository: ecr.IRepository,
                 cluster_name: str,
                 service_name: str,
                 container_port: int,
                 environment: Mapping[str, str],
                 alb_sg: ec2.ISecurityGroup,
                 app_target_group: elbv2.ApplicationTargetGroup,
                 db_sg: Optional[ec2.ISecurityGroup] = None,
                 db_secret: Optional[secretsmanager.ISecret] = None,
                 image_tag: str = "latest",
                 vpc_subnets: Optional[ec2.SubnetSelection] = None,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        # Container host role, ECS agent permissions are added by the capacity provider
        instance_role = iam.Role(
            self, "InstanceRole",
            assumed_by=iam.ServicePrincipal("ec2.amazonaws.com"),
            description="IAM role for ECS container instances, enabling SSM access"
        )

        instance_role.add_managed_policy(
            iam.ManagedPolicy.from_aws_managed_policy_name("AmazonSSMManagedInstanceCore")
        )

        self.asg_sg = ec2.SecurityGroup(
            self,
            "InstanceSecurityGroup",
            vpc=vpc,
            description="Security Group for ECS container instances in private subnets",
            allow_all_outbound=False
        )

        self.asg_sg.add_ingress_rule(
            peer=alb_sg,
            connection=EPHEMERAL_PORTS,
            description="Allow traffic from ALB to dynamically mapped container ports"
        )

        if db_sg is not None:
            self.asg_sg.add_egress_rule(
                peer=db_sg,
                connection=ec2.Port.tcp(5432),
                description="Allow containers to connect to RDS"
            )

        self.asg_sg.add_egress_rule(
            peer=ec2.Peer.any_ipv4(),
            connection=ec2.Port.tcp(443),
            description="Allow HTTPS outbound for ECR pulls and ECS agent calls via NAT Gateway"
        )

        self._cluster = ecs.Cluster(
            self,
            "Cluster",
            cluster_name=cluster_name,
            vpc=vpc
        )

        self._asg = autoscaling.AutoScalingGroup(
            self,
            "CapacityAutoScalingGroup",
            vpc=vpc,
            instance_type=ec2.InstanceType("t3.small"),
            machine_image=ecs.EcsOptimizedImage.amazon_linux2(),
            role=instance_role,
            security_group=self.asg_sg,
            vpc_subnets=vpc_subnets or ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            min_capacity=1,
            max_capacity=2,
            health_checks=autoscaling.HealthChecks.ec2(
                grace_period=Duration.minutes(5)
            )
        )

        capacity_provider = ecs.AsgCapacityProvider(
            self,
            "CapacityProvider",
            auto_scaling_group=self._asg,
            enable_managed_termination_protection=False
        )
        self._cluster.add_asg_capacity_provider(capacity_provider)

        task_definition = ecs.Ec2TaskDefinition(
            self,
            "TaskDefinition",
            network_mode=ecs.NetworkMode.BRIDGE
        )

        secrets = {}
        if db_secret is not None:
            secrets["DB_PASSWORD"] = ecs.Secret.from_secrets_manager(db_secret, "password")

        container = task_definition.add_container(
            "Api",
            image=ecs.ContainerImage.from_ecr_repository(repository, tag=image_tag),
            memory_limit_mib=512,
            environment=dict(environment),
            secrets=secrets,
            logging=ecs.LogDrivers.aws_logs(stream_prefix=service_name)
        )

        container.add_port_mappings(
            ecs.PortMapping(container_port=container_port, host_port=0)
        )

        self._service = ecs.Ec2Service(
            self,
            "Service",
            cluster=self._cluster,
            task_definition=task_definition,
            service_name=service_name,
            desired_count=1,
            capacity_provider_strategies=[
                ecs.CapacityProviderStrategy(
                    capacity_provider=capacity_provider.capacity_provider_name,
                    weight=1
                )
            ]
        )

        self._service.attach_to_application_target_group(app_target_group)
