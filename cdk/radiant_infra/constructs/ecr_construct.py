from aws_cdk import (
    aws_ecr as ecr,
    Duration,
    RemovalPolicy,
)
from constructs import Construct


class EcrConstruct(Construct):

    @property
    def repository(self) -> ecr.Repository:
        return self._repository

    def __init__(self, scope: Construct, id: str, *, repository_name: str, **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self._repository = ecr.Repository(
            self,
            "Repository",
            repository_name=repository_name,
            image_scan_on_push=False,
            empty_on_delete=True,
            removal_policy=RemovalPolicy.DESTROY
        )

        # Rule 1: untagged build leftovers
        self._repository.add_lifecycle_rule(
            rule_priority=1,
            description="Keep last 3 untagged images",
            tag_status=ecr.TagStatus.UNTAGGED,
            max_image_count=3
        )

        # Rule 2: tagged releases
        self._repository.add_lifecycle_rule(
            rule_priority=2,
            description="Keep last 5 tagged images",
            tag_status=ecr.TagStatus.TAGGED,
            tag_prefix_list=["any"],
            max_image_count=5
        )

        # Rule 3: must carry the highest priority since it matches any tag status
        self._repository.add_lifecycle_rule(
            rule_priority=3,
            description="Delete images older than 30 days",
            tag_status=ecr.TagStatus.ANY,
            max_image_age=Duration.days(30)
        )
