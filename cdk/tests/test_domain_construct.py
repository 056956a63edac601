"""Tests for expanding certificate validation records into DNS record sets."""

import aws_cdk as cdk
from aws_cdk import assertions, aws_route53 as route53

from radiant_infra.constructs.domain_construct import ValidationRecord, expand_validation_records

RECORDS = [
    ValidationRecord(name="_a1.api.radiant.ink.", value="_b1.acm-validations.aws.", type="CNAME"),
    ValidationRecord(name="_a2.www.api.radiant.ink.", value="_b2.acm-validations.aws.", type="CNAME"),
    ValidationRecord(name="_a3.api.radiant.ink.", value="_b3.acm-validations.aws.", type="CNAME"),
]


def expand(records, **kwargs):
    stack = cdk.Stack(cdk.App(), "DomainTest")
    zone = route53.PublicHostedZone(stack, "Zone", zone_name="radiant.ink")
    record_sets = expand_validation_records(stack, zone, records, **kwargs)
    return stack, record_sets


def record_bodies(stack) -> dict:
    return assertions.Template.from_stack(stack).find_resources("AWS::Route53::RecordSet")


def test_one_record_set_per_record():
    stack, record_sets = expand(RECORDS)

    assert len(record_sets) == 3
    assert len(record_bodies(stack)) == 3


def test_record_fields_are_copied_verbatim():
    stack, _ = expand(RECORDS)
    template = assertions.Template.from_stack(stack)

    for record in RECORDS:
        template.has_resource_properties(
            "AWS::Route53::RecordSet",
            {
                "Name": record.name,
                "Type": record.type,
                "TTL": "60",
                "ResourceRecords": [record.value],
                "HostedZoneId": assertions.Match.object_like({"Ref": assertions.Match.any_value()}),
            },
        )


def test_ids_follow_list_position():
    _, record_sets = expand(RECORDS, id_prefix="ApiCertValidation")

    assert [record_set.node.id for record_set in record_sets] == [
        "ApiCertValidation0",
        "ApiCertValidation1",
        "ApiCertValidation2",
    ]


def test_reordering_remaps_ids():
    _, original = expand(RECORDS)
    _, reordered = expand(list(reversed(RECORDS)))

    first = {record_set.node.id: record_set.name for record_set in original}
    second = {record_set.node.id: record_set.name for record_set in reordered}

    assert first.keys() == second.keys()
    assert first["CertValidation0"] == second["CertValidation2"]
    assert first["CertValidation0"] != second["CertValidation0"]


def test_empty_list_declares_nothing():
    stack, record_sets = expand([])

    assert record_sets == []
    assert record_bodies(stack) == {}
