from aws_cdk import aws_ec2 as ec2
from constructs import Construct

INGRESS_SUBNETS = "Ingress"
APPLICATION_SUBNETS = "Application"
DATABASE_SUBNETS = "Database"


class VpcConstruct(Construct):
    """
    Network for the ECS variant: load balancer in public subnets, container
    instances behind a single NAT gateway, database subnets without a route out.
    """

    @property
    def ingress_subnets(self) -> ec2.SubnetSelection:
        return ec2.SubnetSelection(subnet_group_name=INGRESS_SUBNETS)

    @property
    def application_subnets(self) -> ec2.SubnetSelection:
        return ec2.SubnetSelection(subnet_group_name=APPLICATION_SUBNETS)

    @property
    def database_subnets(self) -> ec2.SubnetSelection:
        return ec2.SubnetSelection(subnet_group_name=DATABASE_SUBNETS)

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 vpc_name: str,
                 vpc_cidr: str = "10.0.0.0/16",
                 max_azs: int = 2,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self.vpc = ec2.Vpc(
            self,
            "Vpc",
            vpc_name=vpc_name,
            ip_addresses=ec2.IpAddresses.cidr(vpc_cidr),
            max_azs=max_azs,
            nat_gateways=1,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name=INGRESS_SUBNETS,
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=24
                ),
                # Container instances need egress for image pulls and the ECS agent
                ec2.SubnetConfiguration(
                    name=APPLICATION_SUBNETS,
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=20
                ),
                ec2.SubnetConfiguration(
                    name=DATABASE_SUBNETS,
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                    cidr_mask=24
                )
            ]
        )
