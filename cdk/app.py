#!/usr/bin/env python3
"""
AWS CDK app entry point for Radiant Cloud infrastructure.

Pick the topology with the variant context key:

    cdk synth -c variant=apprunner       # App Runner + RDS + S3/CloudFront + DNS
    cdk synth -c variant=apprunner-lite  # App Runner only
    cdk synth -c variant=ecs             # ECS on EC2 + ALB + RDS + redeploy trigger
    cdk synth -c variant=registry        # ECR only
"""

import logging
import os

import aws_cdk as cdk

from radiant_infra.config import DeploymentConfig
from radiant_infra.graph import ResourceGraph
from radiant_infra.validation import add_validation_aspects
from radiant_infra.variants import build_stack

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("radiant_infra")

app = cdk.App()

config = DeploymentConfig.from_context(app)

env = cdk.Environment(
    account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
    region=config.region,
)

stack = build_stack(app, config, env=env)

add_validation_aspects(app)

assembly = app.synth()

# Unresolvable references and cycles abort here, before anything is deployed
graph = ResourceGraph.from_template(assembly.get_stack_by_name(stack.stack_name).template)
graph.validate()
logger.info("Stack '%s' declares %d resources", stack.stack_name, len(graph))
