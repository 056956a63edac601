from dataclasses import dataclass
from typing import List, Sequence

from aws_cdk import (
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_route53 as route53,
    custom_resources as cr,
    CustomResource,
    Duration,
)
from constructs import Construct

from radiant_infra.constructs.deploy_trigger_construct import FUNCTIONS_DIR, PYTHON_RUNTIME

VALIDATION_RECORD_TTL = "60"


@dataclass(frozen=True)
class ValidationRecord:
    """One DNS record a certificate authority asks for, as literals or tokens."""

    name: str
    value: str
    type: str


def expand_validation_records(scope: Construct,
                              zone: route53.IHostedZone,
                              records: Sequence[ValidationRecord],
                              id_prefix: str = "CertValidation") -> List[route53.CfnRecordSet]:
    """
    Declare one record set per validation record, keyed by list position.

    The construct ids are index-suffixed, so a reordered upstream list maps
    existing ids onto different records and CloudFormation replaces them.
    """
    return [
        route53.CfnRecordSet(
            scope,
            f"{id_prefix}{index}",
            hosted_zone_id=zone.hosted_zone_id,
            name=record.name,
            type=record.type,
            ttl=VALIDATION_RECORD_TTL,
            resource_records=[record.value]
        )
        for index, record in enumerate(records)
    ]


class CustomDomainConstruct(Construct):
    """
    Associates a custom domain with an App Runner service and publishes the
    records App Runner needs: a CNAME to its DNS target and the certificate
    validation records.

    CloudFormation has no App Runner custom domain resource, so the
    association is an SDK call custom resource. The validation records are
    issued asynchronously after it; a provider polls for them and fails the
    deployment when App Runner issues a different number than
    ``validation_record_count``.
    """

    @property
    def dns_target(self) -> str:
        return self._association.get_response_field("DNSTarget")

    @property
    def validation_records(self) -> List[ValidationRecord]:
        return [
            ValidationRecord(
                name=self._records.get_att_string(f"Record{index}Name"),
                value=self._records.get_att_string(f"Record{index}Value"),
                type=self._records.get_att_string(f"Record{index}Type"),
            )
            for index in range(self._record_count)
        ]

    @property
    def validation_record_sets(self) -> List[route53.CfnRecordSet]:
        return self._validation_record_sets

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 zone: route53.IHostedZone,
                 service_arn: str,
                 domain_name: str,
                 record_name: str,
                 validation_record_count: int,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self._record_count = validation_record_count

        self._association = cr.AwsCustomResource(
            self,
            "Association",
            on_create=cr.AwsSdkCall(
                service="AppRunner",
                action="associateCustomDomain",
                parameters={
                    "ServiceArn": service_arn,
                    "DomainName": domain_name,
                    "EnableWWWSubdomain": False,
                },
                physical_resource_id=cr.PhysicalResourceId.of(domain_name),
                output_paths=["DNSTarget"]
            ),
            on_delete=cr.AwsSdkCall(
                service="AppRunner",
                action="disassociateCustomDomain",
                parameters={
                    "ServiceArn": service_arn,
                    "DomainName": domain_name,
                }
            ),
            policy=cr.AwsCustomResourcePolicy.from_sdk_calls(resources=[service_arn]),
            install_latest_aws_sdk=False
        )

        self.cname_record = route53.CnameRecord(
            self,
            "CnameRecord",
            zone=zone,
            record_name=record_name,
            domain_name=self.dns_target,
            ttl=Duration.minutes(5)
        )

        self.provider = self._validation_records_provider(service_arn)

        self._records = CustomResource(
            self,
            "ValidationRecords",
            service_token=self.provider.service_token,
            resource_type="Custom::AppRunnerValidationRecords",
            properties={
                "ServiceArn": service_arn,
                "DomainName": domain_name,
                "ExpectedRecordCount": str(validation_record_count),
            }
        )
        # Records exist only once the association call has returned
        self._records.node.add_dependency(self._association)

        self._validation_record_sets = expand_validation_records(
            self,
            zone,
            self.validation_records,
            id_prefix="ApiCertValidation"
        )

    def _validation_records_provider(self, service_arn: str) -> cr.Provider:
        on_event = self._handler_function("OnEventFunction", "handler.on_event")
        is_complete = self._handler_function("IsCompleteFunction", "handler.is_complete")

        is_complete.add_to_role_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["apprunner:DescribeCustomDomains"],
                resources=[service_arn]
            )
        )

        return cr.Provider(
            self,
            "ValidationRecordsProvider",
            on_event_handler=on_event,
            is_complete_handler=is_complete,
            query_interval=Duration.seconds(30),
            total_timeout=Duration.minutes(30)
        )

    def _handler_function(self, id: str, handler: str) -> lambda_.Function:
        return lambda_.Function(
            self,
            id,
            runtime=PYTHON_RUNTIME,
            handler=handler,
            code=lambda_.Code.from_asset(str(FUNCTIONS_DIR / "validation_records")),
            timeout=Duration.seconds(30),
            memory_size=128,
            description="Reads App Runner certificate validation records"
        )
