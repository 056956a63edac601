from typing import Optional

from aws_cdk import (
    aws_ec2 as ec2,
    aws_rds as rds,
    aws_secretsmanager as secretsmanager,
    RemovalPolicy,
)
from constructs import Construct

DATABASE_NAME = "radiant"
DATABASE_USERNAME = "radiantuser"
DATABASE_PORT = 5432


class RdsConstruct(Construct):
    """PostgreSQL instance inside the application VPC."""

    @property
    def rds_security_group(self) -> ec2.SecurityGroup:
        return self._rds_security_group

    @property
    def rds_secret(self) -> secretsmanager.ISecret:
        return self._rds_secret

    @property
    def endpoint_address(self) -> str:
        return self.rds_instance.db_instance_endpoint_address

    @property
    def endpoint_port(self) -> str:
        return self.rds_instance.db_instance_endpoint_port

    @property
    def secret_arn(self) -> str:
        return self._rds_secret.secret_arn

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 vpc: ec2.IVpc,
                 vpc_subnets: Optional[ec2.SubnetSelection] = None,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self._rds_security_group = ec2.SecurityGroup(
            self,
            "RDSSecurityGroup",
            vpc=vpc,
            allow_all_outbound=False,
            description="Security Group for RDS"
        )

        credentials = rds.Credentials.from_generated_secret(DATABASE_USERNAME)

        self.rds_instance = rds.DatabaseInstance(
            self,
            "RDSInstance",
            engine=rds.DatabaseInstanceEngine.postgres(version=rds.PostgresEngineVersion.of("15.12", "15")),
            instance_type=ec2.InstanceType("t3.micro"),
            vpc=vpc,
            credentials=credentials,
            database_name=DATABASE_NAME,
            allocated_storage=20,
            vpc_subnets=vpc_subnets or ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
            security_groups=[self._rds_security_group],
            publicly_accessible=False,
            delete_automated_backups=True,
            removal_policy=RemovalPolicy.DESTROY
        )

        self._rds_secret = self.rds_instance.secret


class PublicRdsConstruct(Construct):
    """
    PostgreSQL instance in the account's default VPC, reachable from App Runner
    without a VPC connector. RDS owns the master password and keeps it in
    Secrets Manager.
    """

    @property
    def endpoint_address(self) -> str:
        return self.rds_instance.attr_endpoint_address

    @property
    def endpoint_port(self) -> str:
        return self.rds_instance.attr_endpoint_port

    @property
    def secret_arn(self) -> str:
        return self.rds_instance.attr_master_user_secret_secret_arn

    def __init__(self, scope: Construct, id: str, *, identifier: str = "radiant-db", **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self.rds_instance = rds.CfnDBInstance(
            self,
            "RDSInstance",
            db_instance_identifier=identifier,
            engine="postgres",
            engine_version="15.12",
            db_instance_class="db.t3.micro",
            allocated_storage="20",
            db_name=DATABASE_NAME,
            master_username=DATABASE_USERNAME,
            manage_master_user_password=True,
            publicly_accessible=True,
            backup_retention_period=0,
            delete_automated_backups=True
        )

        # No final snapshot on delete
        self.rds_instance.apply_removal_policy(RemovalPolicy.DESTROY)
