"""Environment variables handed to the Spring Boot API container."""

from typing import Dict, Optional

from radiant_infra.config import DeploymentConfig
from radiant_infra.constructs.rds_construct import DATABASE_NAME, DATABASE_PORT, DATABASE_USERNAME


def runtime_environment(config: DeploymentConfig,
                        *,
                        database_host: Optional[str] = None,
                        database_password_placeholder: bool = True,
                        include_media: bool = False) -> Dict[str, str]:
    """
    Build the container environment for a variant.

    Secrets are left empty here; the service reads the real values from
    Secrets Manager through its instance role.
    """
    environment = {
        "SPRING_PROFILES_ACTIVE": "prod",
        "AWS_REGION": config.region,
        "JWT_SECRET": "",
        "OPENAI_API_KEY": "",
        "OPENAI_BASE_URL": config.openai_base_url,
        "OPENAI_MODEL": config.openai_model,
    }

    if database_host is not None:
        environment.update({
            "DB_HOST": database_host,
            "DB_PORT": str(DATABASE_PORT),
            "DB_NAME": DATABASE_NAME,
            "DB_USERNAME": DATABASE_USERNAME,
        })
        if database_password_placeholder:
            environment["DB_PASSWORD"] = ""

    if include_media:
        environment.update({
            "S3_BUCKET_NAME": config.media_bucket_name,
            "CDN_DOMAIN": config.cdn_domain,
        })

    return environment
