"""Tests for synth-time validation aspects."""

import aws_cdk as cdk
from aws_cdk import assertions, aws_s3 as s3
from aws_cdk.assertions import Match

from radiant_infra.config import Variant
from radiant_infra.validation import add_validation_aspects

from conftest import synth_stack


def test_public_database_is_flagged():
    stack = synth_stack(Variant.APPRUNNER, with_aspects=True)

    assertions.Annotations.from_stack(stack).has_warning(
        "*", Match.string_like_regexp("publicly accessible")
    )


def test_repository_without_scan_on_push_is_noted():
    stack = synth_stack(Variant.REGISTRY, with_aspects=True)

    assertions.Annotations.from_stack(stack).has_info(
        "*", Match.string_like_regexp("scanning on push is disabled")
    )


def test_media_bucket_blocks_public_access():
    stack = synth_stack(Variant.APPRUNNER, with_aspects=True)

    assertions.Annotations.from_stack(stack).has_no_warning(
        "*", Match.string_like_regexp("does not block public access")
    )


def test_open_bucket_is_flagged():
    app = cdk.App()
    stack = cdk.Stack(app, "OpenBucket")
    s3.CfnBucket(stack, "Bucket")
    add_validation_aspects(app)

    assertions.Annotations.from_stack(stack).has_warning(
        "/OpenBucket/Bucket", Match.string_like_regexp("does not block public access")
    )


def test_security_checks_can_be_disabled():
    app = cdk.App()
    stack = cdk.Stack(app, "OpenBucket")
    s3.CfnBucket(stack, "Bucket")
    add_validation_aspects(app, enable_security_checks=False)

    assertions.Annotations.from_stack(stack).has_no_warning("*", Match.any_value())
