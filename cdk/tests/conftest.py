"""
Shared fixtures for synthesizing the stack variants.

Synthesis is the slow part of every test here, so each variant is built once
per session and its template reused.
"""

import aws_cdk as cdk
import pytest
from aws_cdk import assertions

from radiant_infra.config import DeploymentConfig, Variant
from radiant_infra.validation import add_validation_aspects
from radiant_infra.variants import build_stack

# Region only, like `cdk synth` without CDK_DEFAULT_ACCOUNT
TEST_ENV = cdk.Environment(region="ap-northeast-2")


def synth_stack(variant: Variant, with_aspects: bool = False, **context) -> cdk.Stack:
    """Build one variant in a fresh app with optional extra context."""
    app = cdk.App(context={"variant": variant.value, **context})
    config = DeploymentConfig.from_context(app)
    stack = build_stack(app, config, env=TEST_ENV)
    if with_aspects:
        add_validation_aspects(app)
    return stack


def template_dict(stack: cdk.Stack) -> dict:
    return assertions.Template.from_stack(stack).to_json()


@pytest.fixture(scope="session")
def apprunner_stack():
    return synth_stack(Variant.APPRUNNER)


@pytest.fixture(scope="session")
def apprunner_template(apprunner_stack):
    return assertions.Template.from_stack(apprunner_stack)


@pytest.fixture(scope="session")
def apprunner_lite_template():
    return assertions.Template.from_stack(synth_stack(Variant.APPRUNNER_LITE))


@pytest.fixture(scope="session")
def ecs_template():
    return assertions.Template.from_stack(synth_stack(Variant.ECS))


@pytest.fixture(scope="session")
def registry_template():
    return assertions.Template.from_stack(synth_stack(Variant.REGISTRY))


@pytest.fixture(scope="session")
def variant_templates(apprunner_template, apprunner_lite_template, ecs_template, registry_template):
    """Synthesized template dict for every variant."""
    return {
        Variant.APPRUNNER: apprunner_template.to_json(),
        Variant.APPRUNNER_LITE: apprunner_lite_template.to_json(),
        Variant.ECS: ecs_template.to_json(),
        Variant.REGISTRY: registry_template.to_json(),
    }
