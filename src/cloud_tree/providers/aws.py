from __future__ import annotations

import shlex
from typing import Callable, List, Optional, Tuple

from ..command.adapter import CommandRunner
from ..config import RunConfig
from ..tree.node import TreeNode, new_node
from ..util.errors import ConfigError, ScopeResolutionError
from ..util.rich_progress import CollectProgress
from .base import attach_category, collect_scopes, single_line

CategoryFetcher = Callable[[CommandRunner, str], List[str]]


def _region_flag(region: str) -> str:
    return f"--region={shlex.quote(region)} --output=json"


def account_label(runner: CommandRunner) -> str:
    """
    Resolve 'Account: <name> (<id>)' for the caller's credentials.

    The account id is mandatory; the name is best-effort because
    organizations:DescribeAccount is often not granted to member accounts.
    """
    identity = runner.structured("aws sts get-caller-identity --output=json")
    account_id = identity.get("Account").text()
    if not account_id:
        raise ScopeResolutionError("Unable to determine the AWS account for the current credentials")
    details = runner.structured(
        f"aws organizations describe-account --account-id={shlex.quote(account_id)} --output=json"
    )
    name = details.get("Account", "Name").text()
    return f"Account: {name} ({account_id})"


def ec2_instances(runner: CommandRunner, region: str) -> List[str]:
    result = runner.structured(
        "aws ec2 describe-instances --filters Name=instance-state-name,Values=running " + _region_flag(region)
    )
    labels: List[str] = []
    for reservation in result.get("Reservations"):
        for instance in reservation.get("Instances"):
            name = instance.get("Tags").find("Key", "Name").get("Value").text()
            labels.append(
                f"Compute Instance name: {name}"
                f" id: {instance.get('InstanceId').text()}"
                f" type: {instance.get('InstanceType').text()}"
                f" zone: {instance.get('Placement', 'AvailabilityZone').text()}"
                f" IP: {instance.get('PublicIpAddress').text()}"
            )
    return labels


def load_balancers(runner: CommandRunner, region: str) -> List[str]:
    result = runner.structured("aws elbv2 describe-load-balancers " + _region_flag(region))
    labels: List[str] = []
    for lb in result.get("LoadBalancers"):
        zones = ",".join(zone.get("ZoneName").text() for zone in lb.get("AvailabilityZones"))
        labels.append(
            f"Load Balancer {lb.get('LoadBalancerName').text()}"
            f" type: {lb.get('Type').text()}"
            f" DNS: {lb.get('DNSName').text()}"
            f" zones: {zones}"
        )
    return labels


def rds_instances(runner: CommandRunner, region: str) -> List[str]:
    result = runner.structured("aws rds describe-db-instances " + _region_flag(region))
    labels: List[str] = []
    for db in result.get("DBInstances"):
        labels.append(
            f"Database {db.get('DBInstanceIdentifier').text()}"
            f" engine: {db.get('Engine').text()} {db.get('EngineVersion').text()}"
            f" type: {db.get('DBInstanceClass').text()}"
            f" zone: {db.get('AvailabilityZone').text()}/{db.get('SecondaryAvailabilityZone').text('-')}"
        )
    return labels


def cloudformation_stacks(runner: CommandRunner, region: str) -> List[str]:
    result = runner.structured("aws cloudformation list-stacks " + _region_flag(region))
    return [
        f"Stack name: {stack.get('StackName').text()} status: {stack.get('StackStatus').text()}"
        for stack in result.get("StackSummaries")
    ]


def elastic_ips(runner: CommandRunner, region: str) -> List[str]:
    result = runner.structured("aws ec2 describe-addresses " + _region_flag(region))
    return [f"Elastic IP {address.get('PublicIp').text()}" for address in result.get("Addresses")]


def s3_buckets(runner: CommandRunner) -> List[str]:
    # `aws s3 ls` prints "<date> <time> <bucket>" per line
    return [f"Bucket {line.split()[-1]}" for line in runner.lines("aws s3 ls")]


REGION_CATEGORIES: Tuple[Tuple[str, CategoryFetcher], ...] = (
    ("EC2", ec2_instances),
    ("Elastic Load Balancers", load_balancers),
    ("RDS", rds_instances),
    ("Cloudformation", cloudformation_stacks),
    ("Elastic IPs", elastic_ips),
)


def build_region(runner: CommandRunner, region: str) -> TreeNode:
    node = new_node(f"region: {region}")
    for title, fetch in REGION_CATEGORIES:
        attach_category(node, title, fetch(runner, region))
    return node


class AwsCollector:
    """
    Account -> regions -> product categories -> resources, followed by the
    account-wide S3 category.
    """

    name = "aws"

    def collect(
        self,
        runner: CommandRunner,
        cfg: RunConfig,
        *,
        progress: Optional[CollectProgress] = None,
    ) -> TreeNode:
        regions = cfg.regions or []
        if not regions:
            raise ConfigError("USAGE: cloud-tree aws <regions>  (e.g. us-east-1,us-west-1)")

        root = new_node(single_line(account_label(runner)))
        subtrees = collect_scopes(
            regions,
            lambda region: build_region(runner, region),
            workers=cfg.workers,
            progress=progress,
            description="Regions",
        )
        for subtree in subtrees:
            root.append(subtree)
        attach_category(root, "S3", s3_buckets(runner))
        return root