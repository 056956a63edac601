"""
CDK validation aspects for pre-deployment checks.

These aspects run during `cdk synth` and add warnings/info annotations,
catching risky settings before deployment.

Usage:
    from radiant_infra.validation import add_validation_aspects
    add_validation_aspects(app)
"""

import aws_cdk as cdk
import jsii
from aws_cdk import aws_ecr as ecr
from aws_cdk import aws_rds as rds
from aws_cdk import aws_s3 as s3
from constructs import IConstruct


@jsii.implements(cdk.IAspect)
class DatabaseExposureAspect:
    """
    Flags database instances reachable from the internet.

    The App Runner variants run without a VPC connector, so their database is
    public on purpose; the warning keeps that visible in every synth.
    """

    def visit(self, node: IConstruct) -> None:
        if isinstance(node, rds.CfnDBInstance) and node.publicly_accessible is True:
            cdk.Annotations.of(node).add_warning_v2(
                "radiant:public-database",
                "Database instance is publicly accessible",
            )


@jsii.implements(cdk.IAspect)
class SecurityAspect:
    """
    Validates security requirements for deployed resources.

    Checks:
    - S3 buckets block public access
    - ECR repositories scan images on push
    """

    def visit(self, node: IConstruct) -> None:
        if isinstance(node, s3.CfnBucket) and node.public_access_block_configuration is None:
            cdk.Annotations.of(node).add_warning_v2(
                "radiant:bucket-public-access",
                "Bucket does not block public access",
            )

        if isinstance(node, ecr.CfnRepository) and not _scan_on_push(node):
            cdk.Annotations.of(node).add_info("Image scanning on push is disabled")


def _scan_on_push(repository: ecr.CfnRepository) -> bool:
    configuration = repository.image_scanning_configuration
    if configuration is None:
        return False
    if isinstance(configuration, dict):
        return bool(configuration.get("scanOnPush"))
    return bool(getattr(configuration, "scan_on_push", False))


def add_validation_aspects(scope: cdk.App, enable_security_checks: bool = True) -> None:
    """
    Add validation aspects to all stacks in the CDK app.

    Args:
        scope: The CDK App to add aspects to
        enable_security_checks: Whether to run bucket and registry checks
    """
    cdk.Aspects.of(scope).add(DatabaseExposureAspect())

    if enable_security_checks:
        cdk.Aspects.of(scope).add(SecurityAspect())
