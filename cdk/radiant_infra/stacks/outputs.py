from aws_cdk import CfnOutput, Stack
from constructs import Construct


def add_output(scope: Construct, name: str, value: str, description: str) -> CfnOutput:
    """Declare a stack output, exported as ``<stack name>-<name>``."""
    return CfnOutput(
        scope,
        name,
        value=value,
        description=description,
        export_name=f"{Stack.of(scope).stack_name}-{name}"
    )
