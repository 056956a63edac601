"""
Change plan preview between two synthesized templates.

Mirrors how CloudFormation reconciles a stack update: resources new to the
template are created, removed ones deleted, and changed ones updated in place
unless the change touches a property that can only be set at creation time,
in which case the resource is replaced.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from radiant_infra.errors import GraphError
from radiant_infra.graph import ResourceGraph, collect_references


class ChangeAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    REPLACE = "REPLACE"
    DELETE = "DELETE"


# Properties whose change forces CloudFormation to replace the resource
REPLACEMENT_PROPERTIES: Dict[str, FrozenSet[str]] = {
    "AWS::AppRunner::Service": frozenset({"ServiceName"}),
    "AWS::CertificateManager::Certificate": frozenset(
        {"DomainName", "SubjectAlternativeNames", "ValidationMethod", "DomainValidationOptions"}
    ),
    "AWS::ECR::Repository": frozenset({"RepositoryName"}),
    "AWS::ECS::Cluster": frozenset({"ClusterName"}),
    "AWS::ECS::Service": frozenset({"ServiceName", "Cluster", "LaunchType", "Role"}),
    "AWS::EC2::Subnet": frozenset({"AvailabilityZone", "CidrBlock", "VpcId"}),
    "AWS::EC2::VPC": frozenset({"CidrBlock"}),
    "AWS::ElasticLoadBalancingV2::LoadBalancer": frozenset({"Name", "Scheme"}),
    "AWS::IAM::ManagedPolicy": frozenset({"ManagedPolicyName", "Path"}),
    "AWS::IAM::Role": frozenset({"RoleName", "Path"}),
    "AWS::Lambda::Function": frozenset({"FunctionName"}),
    "AWS::RDS::DBInstance": frozenset(
        {"DBInstanceIdentifier", "DBName", "Engine", "MasterUsername", "DBSubnetGroupName"}
    ),
    "AWS::Route53::HostedZone": frozenset({"Name"}),
    "AWS::Route53::RecordSet": frozenset({"Name", "HostedZoneId", "HostedZoneName"}),
    "AWS::S3::Bucket": frozenset({"BucketName"}),
}


@dataclass(frozen=True)
class ResourceChange:
    logical_id: str
    resource_type: str
    action: ChangeAction
    changed_properties: Tuple[str, ...] = ()


@dataclass
class Plan:
    changes: List[ResourceChange] = field(default_factory=list)
    # output name -> resources its value is read from
    outputs: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.changes

    @property
    def creates_only(self) -> bool:
        return all(change.action is ChangeAction.CREATE for change in self.changes)

    def by_action(self, action: ChangeAction) -> List[ResourceChange]:
        return [change for change in self.changes if change.action is action]

    def resolvable_outputs(self, completed: Iterable[str]) -> List[str]:
        """Outputs whose source resources have all finished provisioning."""
        done = set(completed)
        return sorted(name for name, sources in self.outputs.items() if sources <= done)


def plan_changes(previous: Optional[Mapping[str, Any]], desired: Mapping[str, Any]) -> Plan:
    """
    Compute the create/update/replace/delete plan that turns ``previous`` into
    ``desired``. ``previous`` is None for a stack that was never applied.

    Raises GraphError subclasses if the desired template cannot be provisioned.
    """
    desired_graph = ResourceGraph.from_template(desired)
    desired_graph.validate()

    previous_graph = ResourceGraph.from_template(previous or {})

    changes = []
    replaced = set()
    for logical_id in desired_graph.topological_order():
        resource = desired_graph.resources[logical_id]
        prior = previous_graph.resources.get(logical_id)

        if prior is None:
            changes.append(ResourceChange(logical_id, resource.resource_type, ChangeAction.CREATE))
            continue

        if prior.resource_type != resource.resource_type:
            changes.append(ResourceChange(logical_id, resource.resource_type, ChangeAction.REPLACE, ("Type",)))
            replaced.add(logical_id)
            continue

        # A replaced dependency gets a new physical id, so every property
        # reading it changes even when its template text does not
        changed = set(_changed_properties(prior.properties, resource.properties))
        changed |= _properties_referencing(resource.properties, replaced)
        if not changed:
            continue

        immutable = REPLACEMENT_PROPERTIES.get(resource.resource_type, frozenset())
        action = ChangeAction.REPLACE if immutable & changed else ChangeAction.UPDATE
        if action is ChangeAction.REPLACE:
            replaced.add(logical_id)
        changes.append(ResourceChange(logical_id, resource.resource_type, action, tuple(sorted(changed))))

    # Dependents go first when tearing down
    for logical_id in reversed(_removal_order(previous_graph)):
        if logical_id not in desired_graph:
            prior = previous_graph.resources[logical_id]
            changes.append(ResourceChange(logical_id, prior.resource_type, ChangeAction.DELETE))

    outputs = {name: desired_graph.output_sources(name) for name in desired_graph.outputs}
    return Plan(changes=changes, outputs=outputs)


def _changed_properties(before: Mapping[str, Any], after: Mapping[str, Any]) -> Tuple[str, ...]:
    names = set(before) | set(after)
    return tuple(sorted(name for name in names if before.get(name) != after.get(name)))


def _properties_referencing(properties: Mapping[str, Any], targets: Set[str]) -> Set[str]:
    if not targets:
        return set()
    return {name for name, value in properties.items() if collect_references(value) & targets}


def _removal_order(graph: ResourceGraph) -> List[str]:
    # A cyclic previous template never applied cleanly; fall back to name order
    try:
        return graph.topological_order()
    except GraphError:
        return sorted(graph.resources)
