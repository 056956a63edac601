from typing import Optional

from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
    Duration,
)
from constructs import Construct


class AlbConstruct(Construct):

    @property
    def alb_security_group(self) -> ec2.SecurityGroup:
        return self._alb_security_group

    @property
    def application_target_group(self) -> elbv2.ApplicationTargetGroup:
        return self._application_target_group

    @property
    def certificate(self) -> acm.Certificate:
        return self._certificate

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 vpc: ec2.IVpc,
                 zone: route53.IHostedZone,
                 domain_name: str,
                 record_name: str,
                 target_port: int,
                 health_check_path: str,
                 vpc_subnets: Optional[ec2.SubnetSelection] = None,
                 **kwargs):
        super().__init__(scope, id, **kwargs)

        self._alb_security_group = ec2.SecurityGroup(
            self,
            "AlbSecurityGroup",
            vpc=vpc,
            allow_all_outbound=True,
            description="Security Group for Application Load Balancer"
        )

        self._alb_security_group.add_ingress_rule(
            peer=ec2.Peer.any_ipv4(),
            connection=ec2.Port.tcp(80),
            description="Allow HTTP access from anywhere for the HTTPS redirect"
        )

        self._alb_security_group.add_ingress_rule(
            peer=ec2.Peer.any_ipv4(),
            connection=ec2.Port.tcp(443),
            description="Allow HTTPS access from anywhere"
        )

        # Stays in CREATE_IN_PROGRESS until the DNS validation records resolve,
        # so the HTTPS listener is only created once the certificate is issued
        self._certificate = acm.Certificate(
            self,
            "Certificate",
            domain_name=domain_name,
            validation=acm.CertificateValidation.from_dns(zone)
        )

        self.alb = elbv2.ApplicationLoadBalancer(
            self,
            "ApplicationLoadBalancer",
            vpc=vpc,
            internet_facing=True,
            security_group=self.alb_security_group,
            vpc_subnets=vpc_subnets or ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)
        )

        self._application_target_group = elbv2.ApplicationTargetGroup(
            self,
            "AppTargetGroup",
            port=target_port,
            vpc=vpc,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.INSTANCE,
            deregistration_delay=Duration.seconds(30),
            health_check=elbv2.HealthCheck(
                path=health_check_path,
                interval=Duration.seconds(15),
                timeout=Duration.seconds(5),
                healthy_threshold_count=2,
                unhealthy_threshold_count=5
            )
        )

        self.listener = self.alb.add_listener(
            "HTTPSListener",
            port=443,
            certificates=[self._certificate],
            default_target_groups=[self._application_target_group]
        )

        self.redirect_listener = self.alb.add_redirect(
            source_port=80,
            target_port=443
        )

        self.alias_record = route53.ARecord(
            self,
            "AliasRecord",
            zone=zone,
            record_name=record_name,
            target=route53.RecordTarget.from_alias(route53_targets.LoadBalancerTarget(self.alb))
        )
