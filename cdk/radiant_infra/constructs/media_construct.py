from typing import List

from aws_cdk import (
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_s3 as s3,
    Duration,
    RemovalPolicy,
    Tags,
)
from constructs import Construct

ORIGIN_ID = "S3-radiant-media"


class MediaConstruct(Construct):
    """
    Private media bucket fronted by CloudFront.

    Object layout drives the lifecycle and cache rules:
    - thumbnails/  generated images, cached for a week at the edge
    - media/       original uploads
    - temp/        scratch files, removed after a week
    """

    @property
    def bucket(self) -> s3.Bucket:
        return self._bucket

    @property
    def distribution(self) -> cloudfront.Distribution:
        return self._distribution

    @property
    def origin_access_identity(self) -> cloudfront.OriginAccessIdentity:
        return self._origin_access_identity

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 bucket_name: str,
                 cors_allowed_origins: List[str],
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self._bucket = s3.Bucket(
            self,
            "MediaBucket",
            bucket_name=bucket_name,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            versioned=True,
            encryption=s3.BucketEncryption.S3_MANAGED,
            removal_policy=RemovalPolicy.DESTROY,
            lifecycle_rules=[
                s3.LifecycleRule(
                    id="thumbnail-lifecycle",
                    prefix="thumbnails/",
                    transitions=[
                        s3.Transition(
                            storage_class=s3.StorageClass.INFREQUENT_ACCESS,
                            transition_after=Duration.days(30)
                        ),
                        s3.Transition(
                            storage_class=s3.StorageClass.GLACIER,
                            transition_after=Duration.days(90)
                        ),
                    ],
                    expiration=Duration.days(365)
                ),
                s3.LifecycleRule(
                    id="temp-files-cleanup",
                    prefix="temp/",
                    expiration=Duration.days(7)
                ),
                s3.LifecycleRule(
                    id="original-media-lifecycle",
                    prefix="media/",
                    transitions=[
                        s3.Transition(
                            storage_class=s3.StorageClass.INFREQUENT_ACCESS,
                            transition_after=Duration.days(60)
                        ),
                        s3.Transition(
                            storage_class=s3.StorageClass.GLACIER,
                            transition_after=Duration.days(180)
                        ),
                    ]
                ),
            ],
            intelligent_tiering_configurations=[
                s3.IntelligentTieringConfiguration(
                    name="EntireBucket",
                    archive_access_tier_time=Duration.days(90),
                    deep_archive_access_tier_time=Duration.days(180)
                )
            ],
            cors=[
                s3.CorsRule(
                    allowed_headers=["*"],
                    allowed_methods=[s3.HttpMethods.GET, s3.HttpMethods.HEAD],
                    allowed_origins=cors_allowed_origins,
                    exposed_headers=["ETag"],
                    max_age=3000
                )
            ]
        )

        Tags.of(self._bucket).add("Purpose", "media-storage")

        self._origin_access_identity = cloudfront.OriginAccessIdentity(
            self,
            "MediaOAI",
            comment="OAI for radiant media bucket"
        )

        # Binding the origin writes the bucket policy granting s3:GetObject to the OAI
        origin = origins.S3BucketOrigin.with_origin_access_identity(
            self._bucket,
            origin_access_identity=self._origin_access_identity,
            origin_id=ORIGIN_ID
        )

        default_cache_policy = cloudfront.CachePolicy(
            self,
            "DefaultCachePolicy",
            comment="Radiant media default caching",
            min_ttl=Duration.seconds(0),
            default_ttl=Duration.days(1),
            max_ttl=Duration.days(365),
            query_string_behavior=cloudfront.CacheQueryStringBehavior.none(),
            cookie_behavior=cloudfront.CacheCookieBehavior.none(),
            enable_accept_encoding_gzip=True,
            enable_accept_encoding_brotli=True
        )

        thumbnail_cache_policy = cloudfront.CachePolicy(
            self,
            "ThumbnailCachePolicy",
            comment="Radiant thumbnails caching",
            min_ttl=Duration.seconds(0),
            default_ttl=Duration.days(7),
            max_ttl=Duration.days(365),
            query_string_behavior=cloudfront.CacheQueryStringBehavior.none(),
            cookie_behavior=cloudfront.CacheCookieBehavior.none(),
            enable_accept_encoding_gzip=True,
            enable_accept_encoding_brotli=True
        )

        self._distribution = cloudfront.Distribution(
            self,
            "MediaDistribution",
            comment="Radiant media CDN distribution",
            default_root_object="index.html",
            enable_ipv6=True,
            default_behavior=cloudfront.BehaviorOptions(
                origin=origin,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_ALL,
                cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD,
                compress=True,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                cache_policy=default_cache_policy
            ),
            additional_behaviors={
                "thumbnails/*": self._read_only_behavior(origin, thumbnail_cache_policy),
                "media/*": self._read_only_behavior(origin, default_cache_policy),
            }
        )

    @staticmethod
    def _read_only_behavior(origin: cloudfront.IOrigin,
                            cache_policy: cloudfront.ICachePolicy) -> cloudfront.BehaviorOptions:
        return cloudfront.BehaviorOptions(
            origin=origin,
            allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD,
            cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD,
            compress=True,
            viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            cache_policy=cache_policy
        )
