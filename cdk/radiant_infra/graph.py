"""
Desired-state resource graph of a synthesized CloudFormation template.

CloudFormation resolves the graph itself when it applies a stack. This module
reads the same edges out of the template so the graph can be checked at synth
time and a change plan can be previewed in dependency order.

An edge A -> B means "A needs a materialized output of B". Edges come from
``Ref``, ``Fn::GetAtt``, ``Fn::Sub`` placeholders and ``DependsOn``.
"""

import logging
import re
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from radiant_infra.errors import DanglingReferenceError, DependencyCycleError

logger = logging.getLogger(__name__)

PSEUDO_PARAMETER_PREFIX = "AWS::"
OUTPUT_PREFIX = "Outputs."

# ${Name} or ${Name.Attribute}; ${!Literal} is an escape, not a reference
_SUB_PLACEHOLDER = re.compile(r"\$\{([^!}][^}]*)\}")


@dataclass(frozen=True)
class Resource:
    """One declared resource: kind, logical name and attribute map."""

    logical_id: str
    resource_type: str
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)
    references: FrozenSet[str] = frozenset()


class ResourceGraph:

    def __init__(self,
                 resources: Mapping[str, Resource],
                 outputs: Optional[Mapping[str, FrozenSet[str]]] = None,
                 parameters: Iterable[str] = ()):
        self.resources: Dict[str, Resource] = dict(resources)
        self.outputs: Dict[str, FrozenSet[str]] = dict(outputs or {})
        self.parameters: FrozenSet[str] = frozenset(parameters)

    @classmethod
    def from_template(cls, template: Mapping[str, Any]) -> "ResourceGraph":
        resources = {}
        for logical_id, body in template.get("Resources", {}).items():
            references = collect_references(body.get("Properties", {}))
            references |= _depends_on(body.get("DependsOn"))
            resources[logical_id] = Resource(
                logical_id=logical_id,
                resource_type=body.get("Type", ""),
                properties=body.get("Properties", {}),
                references=frozenset(references),
            )

        outputs = {
            name: frozenset(collect_references(body.get("Value")))
            for name, body in template.get("Outputs", {}).items()
        }

        return cls(resources, outputs, template.get("Parameters", {}).keys())

    def __len__(self) -> int:
        return len(self.resources)

    def __contains__(self, logical_id: str) -> bool:
        return logical_id in self.resources

    def dependencies_of(self, logical_id: str) -> FrozenSet[str]:
        """Resources that must be materialized before ``logical_id``."""
        return frozenset(
            ref for ref in self.resources[logical_id].references if ref in self.resources
        )

    def output_sources(self, name: str) -> FrozenSet[str]:
        """Resources an output's value is read from."""
        return frozenset(ref for ref in self.outputs[name] if ref in self.resources)

    def dangling_references(self) -> List[Tuple[str, str]]:
        """(source, target) pairs whose target is declared nowhere in the template."""
        known = self.resources.keys() | self.parameters
        dangling = []
        for logical_id in sorted(self.resources):
            for ref in sorted(self.resources[logical_id].references - known):
                dangling.append((logical_id, ref))
        for name in sorted(self.outputs):
            for ref in sorted(self.outputs[name] - known):
                dangling.append((f"{OUTPUT_PREFIX}{name}", ref))
        return dangling

    def provisioning_waves(self) -> List[List[str]]:
        """
        Group resources into waves that can be provisioned in parallel.

        Every resource appears in a later wave than all of its dependencies.
        Waves are sorted so the result is deterministic.
        """
        sorter = TopologicalSorter(
            {logical_id: self.dependencies_of(logical_id) for logical_id in self.resources}
        )
        try:
            sorter.prepare()
        except CycleError as e:
            # graphlib reports the cycle closed, first node repeated at the end
            raise DependencyCycleError(list(reversed(e.args[1]))) from None

        waves = []
        while sorter.is_active():
            ready = sorted(sorter.get_ready())
            waves.append(ready)
            sorter.done(*ready)
        return waves

    def topological_order(self) -> List[str]:
        return [logical_id for wave in self.provisioning_waves() for logical_id in wave]

    def validate(self) -> None:
        """Raise if the graph cannot be provisioned: unknown targets first, then cycles."""
        dangling = self.dangling_references()
        if dangling:
            raise DanglingReferenceError(dangling)

        waves = self.provisioning_waves()
        logger.debug("Graph of %d resources resolves in %d waves", len(self), len(waves))


def collect_references(node: Any, local_names: FrozenSet[str] = frozenset()) -> Set[str]:
    """Logical ids referenced anywhere inside a template fragment."""
    if isinstance(node, list):
        refs = set()
        for item in node:
            refs |= collect_references(item, local_names)
        return refs

    if not isinstance(node, dict):
        return set()

    if len(node) == 1:
        key, value = next(iter(node.items()))
        if key == "Ref":
            return _named(value, local_names)
        if key == "Fn::GetAtt":
            return _get_att_target(value, local_names)
        if key == "Fn::Sub":
            return _sub_references(value, local_names)

    refs = set()
    for value in node.values():
        refs |= collect_references(value, local_names)
    return refs


def _named(name: Any, local_names: FrozenSet[str]) -> Set[str]:
    if not isinstance(name, str):
        return set()
    if name.startswith(PSEUDO_PARAMETER_PREFIX) or name in local_names:
        return set()
    return {name}


def _get_att_target(value: Any, local_names: FrozenSet[str]) -> Set[str]:
    if isinstance(value, list) and value:
        return _named(value[0], local_names)
    if isinstance(value, str):
        return _named(value.split(".", 1)[0], local_names)
    return set()


def _sub_references(value: Any, local_names: FrozenSet[str]) -> Set[str]:
    if isinstance(value, list):
        template = value[0] if value else ""
        variables = value[1] if len(value) > 1 and isinstance(value[1], dict) else {}
        refs = collect_references(variables, local_names)
        scope_names = local_names | frozenset(variables)
    else:
        template = value
        refs = set()
        scope_names = local_names

    if isinstance(template, str):
        for placeholder in _SUB_PLACEHOLDER.findall(template):
            refs |= _named(placeholder.split(".", 1)[0].strip(), scope_names)
    return refs


def _depends_on(value: Any) -> Set[str]:
    if value is None:
        return set()
    if isinstance(value, str):
        return {value}
    return set(value)
