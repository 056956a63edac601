"""Selects and builds the stack for the configured variant."""

import functools
import logging
from typing import Callable, Dict

import aws_cdk as cdk
from aws_cdk import Stack
from constructs import Construct

from radiant_infra.config import DeploymentConfig, Variant
from radiant_infra.stacks.apprunner_stack import AppRunnerStack
from radiant_infra.stacks.ecs_stack import EcsStack
from radiant_infra.stacks.registry_stack import RegistryStack

logger = logging.getLogger(__name__)

StackFactory = Callable[..., Stack]

STACK_FACTORIES: Dict[Variant, StackFactory] = {
    Variant.APPRUNNER: AppRunnerStack,
    Variant.APPRUNNER_LITE: functools.partial(AppRunnerStack, trimmed=True),
    Variant.ECS: EcsStack,
    Variant.REGISTRY: RegistryStack,
}


def build_stack(scope: Construct, config: DeploymentConfig, **kwargs) -> Stack:
    """
    Declare the resources of one variant inside ``scope`` and return the stack.

    Variants are alternatives: exactly one stack is built per app, so every
    reference resolves within that stack.
    """
    factory = STACK_FACTORIES[config.variant]
    logger.info("Building %s stack '%s'", config.variant.value, config.stack_name)

    stack = factory(scope, config.stack_name, config=config, **kwargs)

    cdk.Tags.of(stack).add("Environment", config.environment)
    cdk.Tags.of(stack).add("Project", config.project)
    return stack
