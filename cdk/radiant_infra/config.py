"""
Deployment configuration read from CDK context.

Defaults live in cdk.json and can be overridden per invocation:

    cdk synth -c variant=ecs -c environment=prod
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import List

from constructs import Construct

from radiant_infra.errors import ConfigurationError


class Variant(str, Enum):
    """Alternative topologies for the Radiant backend."""

    APPRUNNER = "apprunner"
    APPRUNNER_LITE = "apprunner-lite"
    ECS = "ecs"
    REGISTRY = "registry"


@dataclass(frozen=True)
class DeploymentConfig:

    variant: Variant = Variant.APPRUNNER
    environment: str = "dev"
    region: str = "ap-northeast-2"
    project: str = "radiant-cloud"

    # Naming
    domain_name: str = "radiant.ink"
    api_subdomain: str = "api"
    repository_name: str = "radiant-cloud"
    service_name: str = "radiant-api"

    # Application
    container_port: int = 8080
    health_check_path: str = "/actuator/health"
    openai_base_url: str = "https://openrouter.ai/api"
    openai_model: str = "gpt-4o-mini"

    # App Runner issues this many certificate validation records per custom domain
    validation_record_count: int = 2

    @property
    def api_domain(self) -> str:
        return f"{self.api_subdomain}.{self.domain_name}"

    @property
    def api_url(self) -> str:
        return f"https://{self.api_domain}"

    @property
    def cdn_domain(self) -> str:
        return f"https://cdn.{self.domain_name}"

    @property
    def media_bucket_name(self) -> str:
        return f"radiant-media-{self.environment}"

    @property
    def stack_name(self) -> str:
        return f"{self.project}-{self.variant.value}-{self.environment}"

    @property
    def cors_allowed_origins(self) -> List[str]:
        return [f"https://{self.domain_name}", self.api_url]

    @classmethod
    def from_context(cls, scope: Construct) -> "DeploymentConfig":
        """
        Build the configuration from the scope's CDK context.

        Keys that are absent keep their defaults. Values passed on the
        command line arrive as strings and are converted here.
        """
        values = {}
        for field in fields(cls):
            raw = scope.node.try_get_context(field.name)
            if raw is None:
                continue
            values[field.name] = _convert(field.name, field.type, raw)

        config = cls(**values)
        if config.validation_record_count < 1:
            raise ConfigurationError("validation_record_count must be at least 1")
        if not 0 < config.container_port < 65536:
            raise ConfigurationError(f"container_port out of range: {config.container_port}")
        if not config.environment:
            raise ConfigurationError("environment must not be empty")
        return config


def _convert(name, field_type, raw):
    if field_type in (Variant, "Variant"):
        try:
            return Variant(str(raw))
        except ValueError:
            choices = ", ".join(v.value for v in Variant)
            raise ConfigurationError(f"Unknown variant '{raw}' (expected one of: {choices})") from None

    if field_type in (int, "int"):
        if isinstance(raw, bool):
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None

    return str(raw)
