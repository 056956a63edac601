"""Tests for previewing changes between two templates."""

import copy

import pytest

from radiant_infra.config import Variant
from radiant_infra.errors import DependencyCycleError
from radiant_infra.graph import ResourceGraph
from radiant_infra.plan import ChangeAction, plan_changes

BASE = {
    "Resources": {
        "Zone": {"Type": "AWS::Route53::HostedZone", "Properties": {"Name": "radiant.ink."}},
        "Certificate": {
            "Type": "AWS::CertificateManager::Certificate",
            "Properties": {"DomainName": "api.radiant.ink", "ValidationMethod": "DNS"},
        },
        "Bucket": {
            "Type": "AWS::S3::Bucket",
            "Properties": {"BucketName": "radiant-media-dev", "VersioningConfiguration": {"Status": "Enabled"}},
        },
        "Record": {
            "Type": "AWS::Route53::RecordSet",
            "Properties": {"HostedZoneId": {"Ref": "Zone"}, "Name": "api.radiant.ink.", "Type": "CNAME"},
        },
    },
    "Outputs": {
        "HostedZoneId": {"Value": {"Ref": "Zone"}},
        "BucketArn": {"Value": {"Fn::GetAtt": ["Bucket", "Arn"]}},
        "DatabaseName": {"Value": "radiant"},
    },
}


def modified(**properties) -> dict:
    """BASE with the given resources' properties merged in."""
    template = copy.deepcopy(BASE)
    for logical_id, changes in properties.items():
        template["Resources"][logical_id]["Properties"].update(changes)
    return template


def actions(plan) -> dict:
    return {change.logical_id: change.action for change in plan.changes}


class TestInitialApply:

    def test_everything_is_created_in_dependency_order(self):
        plan = plan_changes(None, BASE)

        assert plan.creates_only
        ids = [change.logical_id for change in plan.changes]
        assert set(ids) == set(BASE["Resources"])
        assert ids.index("Zone") < ids.index("Record")

    @pytest.mark.parametrize("variant", list(Variant))
    def test_every_variant_creates_each_resource_once(self, variant_templates, variant):
        template = variant_templates[variant]
        plan = plan_changes(None, template)

        assert plan.creates_only
        assert len(plan.changes) == len(template["Resources"])
        assert len({change.logical_id for change in plan.changes}) == len(plan.changes)

    @pytest.mark.parametrize("variant", list(Variant))
    def test_replanning_the_same_template_is_empty(self, variant_templates, variant):
        template = variant_templates[variant]

        assert plan_changes(template, template).is_empty


class TestUpdates:

    def test_mutable_property_updates_in_place(self):
        plan = plan_changes(BASE, modified(Bucket={"VersioningConfiguration": {"Status": "Suspended"}}))

        assert [(c.logical_id, c.action, c.changed_properties) for c in plan.changes] == [
            ("Bucket", ChangeAction.UPDATE, ("VersioningConfiguration",)),
        ]

    def test_certificate_domain_change_replaces(self):
        plan = plan_changes(BASE, modified(Certificate={"DomainName": "backend.radiant.ink"}))

        assert actions(plan) == {"Certificate": ChangeAction.REPLACE}

    def test_bucket_rename_replaces(self):
        plan = plan_changes(BASE, modified(Bucket={"BucketName": "radiant-media-prod"}))

        assert plan.by_action(ChangeAction.REPLACE)[0].logical_id == "Bucket"

    def test_removed_property_is_a_change(self):
        desired = copy.deepcopy(BASE)
        del desired["Resources"]["Bucket"]["Properties"]["VersioningConfiguration"]

        plan = plan_changes(BASE, desired)

        assert plan.changes[0].changed_properties == ("VersioningConfiguration",)
        assert plan.changes[0].action is ChangeAction.UPDATE

    def test_type_change_replaces(self):
        desired = copy.deepcopy(BASE)
        desired["Resources"]["Record"]["Type"] = "AWS::Route53::RecordSetGroup"

        plan = plan_changes(BASE, desired)

        assert plan.changes[0].action is ChangeAction.REPLACE
        assert plan.changes[0].changed_properties == ("Type",)

    def test_replacement_cascades_through_immutable_reference(self):
        plan = plan_changes(BASE, modified(Zone={"Name": "radiant.dev."}))

        assert [(c.logical_id, c.action) for c in plan.changes] == [
            ("Zone", ChangeAction.REPLACE),
            ("Record", ChangeAction.REPLACE),
        ]
        assert plan.changes[1].changed_properties == ("HostedZoneId",)

    def test_replacement_updates_mutable_reference(self):
        previous = modified(Bucket={"Tags": [{"Key": "Zone", "Value": {"Ref": "Zone"}}]})
        desired = copy.deepcopy(previous)
        desired["Resources"]["Zone"]["Properties"]["Name"] = "radiant.dev."

        plan = plan_changes(previous, desired)

        assert actions(plan) == {
            "Zone": ChangeAction.REPLACE,
            "Record": ChangeAction.REPLACE,
            "Bucket": ChangeAction.UPDATE,
        }
        assert plan.by_action(ChangeAction.UPDATE)[0].changed_properties == ("Tags",)

    def test_cascade_continues_past_replaced_dependents(self):
        previous = copy.deepcopy(BASE)
        previous["Resources"]["Alias"] = {
            "Type": "AWS::Route53::RecordSet",
            "Properties": {"Name": {"Ref": "Record"}, "Type": "CNAME"},
        }
        desired = copy.deepcopy(previous)
        desired["Resources"]["Zone"]["Properties"]["Name"] = "radiant.dev."

        plan = plan_changes(previous, desired)

        assert [c.logical_id for c in plan.by_action(ChangeAction.REPLACE)] == ["Zone", "Record", "Alias"]

    def test_depends_on_alone_does_not_cascade(self):
        previous = copy.deepcopy(BASE)
        previous["Resources"]["Bucket"]["DependsOn"] = "Zone"
        desired = copy.deepcopy(previous)
        desired["Resources"]["Zone"]["Properties"]["Name"] = "radiant.dev."

        assert "Bucket" not in actions(plan_changes(previous, desired))

    def test_unknown_type_never_replaces(self):
        previous = {"Resources": {"Thing": {"Type": "Custom::Thing", "Properties": {"Name": "a"}}}}
        desired = {"Resources": {"Thing": {"Type": "Custom::Thing", "Properties": {"Name": "b"}}}}

        assert actions(plan_changes(previous, desired)) == {"Thing": ChangeAction.UPDATE}


class TestDeletes:

    def test_removed_resources_deleted_last_dependents_first(self):
        desired = copy.deepcopy(BASE)
        del desired["Resources"]["Zone"]
        del desired["Resources"]["Record"]
        del desired["Outputs"]["HostedZoneId"]
        desired["Resources"]["Bucket"]["Properties"]["BucketName"] = "radiant-media-prod"

        plan = plan_changes(BASE, desired)

        assert [(c.logical_id, c.action) for c in plan.changes] == [
            ("Bucket", ChangeAction.REPLACE),
            ("Record", ChangeAction.DELETE),
            ("Zone", ChangeAction.DELETE),
        ]

    def test_cyclic_desired_template_is_rejected(self):
        desired = copy.deepcopy(BASE)
        desired["Resources"]["Zone"]["DependsOn"] = "Record"

        with pytest.raises(DependencyCycleError):
            plan_changes(BASE, desired)


class TestOutputs:

    def test_literal_outputs_resolve_immediately(self):
        plan = plan_changes(None, BASE)

        assert plan.resolvable_outputs([]) == ["DatabaseName"]

    def test_outputs_resolve_after_their_sources(self):
        plan = plan_changes(None, BASE)

        assert plan.resolvable_outputs(["Zone"]) == ["DatabaseName", "HostedZoneId"]
        assert plan.resolvable_outputs(["Zone", "Bucket"]) == ["BucketArn", "DatabaseName", "HostedZoneId"]

    def test_app_runner_outputs_follow_provisioning(self, variant_templates):
        template = variant_templates[Variant.APPRUNNER]
        plan = plan_changes(None, template)
        graph = ResourceGraph.from_template(template)

        completed = []
        resolved = set(plan.resolvable_outputs(completed))
        for change in plan.changes:
            completed.append(change.logical_id)
            now = set(plan.resolvable_outputs(completed))
            for name in now - resolved:
                assert change.logical_id in graph.output_sources(name)
            resolved = now

        assert resolved == set(template["Outputs"])
