"""
Custom resource handlers that publish App Runner certificate validation records.

App Runner fills in a custom domain's validation records some time after the
association call returns. ``is_complete`` polls ``DescribeCustomDomains`` until
they are there and fails the deployment if their number differs from the
number of DNS records the stack declares.

Resource properties:
- ServiceArn, DomainName: the association to read
- ExpectedRecordCount: how many records the stack publishes
"""

import logging

import boto3

logger = logging.getLogger()
logger.setLevel(logging.INFO)


class ValidationRecordCountError(Exception):
    """Raised when App Runner reports a different number of records than declared."""


def on_event(event: dict, context) -> dict:
    """Provider entry point: nothing to create, the records are read in is_complete."""
    properties = event["ResourceProperties"]
    logger.info("%s validation records for %s", event["RequestType"], properties["DomainName"])

    physical_id = event.get("PhysicalResourceId") or f"{properties['DomainName']}-validation-records"
    return {"PhysicalResourceId": physical_id}


def is_complete(event: dict, context) -> dict:
    """Poll until App Runner has issued the validation records for the domain."""
    if event["RequestType"] == "Delete":
        return {"IsComplete": True}

    properties = event["ResourceProperties"]
    expected = int(properties["ExpectedRecordCount"])

    records = describe_validation_records(properties["ServiceArn"], properties["DomainName"])
    if not records:
        logger.info("No validation records for %s yet", properties["DomainName"])
        return {"IsComplete": False}

    if len(records) != expected:
        raise ValidationRecordCountError(
            f"App Runner issued {len(records)} validation records for {properties['DomainName']}, "
            f"the stack publishes {expected}; set validation_record_count={len(records)} and redeploy"
        )

    return {"IsComplete": True, "Data": record_attributes(records)}


def describe_validation_records(service_arn: str, domain_name: str) -> list:
    """Validation records of one custom domain, empty while App Runner is still preparing them."""
    client = boto3.client("apprunner")
    kwargs = {"ServiceArn": service_arn}

    while True:
        response = client.describe_custom_domains(**kwargs)
        for domain in response.get("CustomDomains", []):
            if domain.get("DomainName") == domain_name:
                return domain.get("CertificateValidationRecords", [])

        next_token = response.get("NextToken")
        if not next_token:
            return []
        kwargs["NextToken"] = next_token


def record_attributes(records: list) -> dict:
    """Flatten records into the attributes read by ``Fn::GetAtt``: Record0Name, Record0Value, ..."""
    data = {}
    for index, record in enumerate(records):
        data[f"Record{index}Name"] = record["Name"]
        data[f"Record{index}Value"] = record["Value"]
        data[f"Record{index}Type"] = record["Type"]
    return data
