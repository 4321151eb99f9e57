from __future__ import annotations

import shlex
from typing import Callable, List, Optional, Tuple

from ..command.adapter import CommandRunner
from ..command.value import Value
from ..config import RunConfig
from ..tree.node import TreeNode, new_node
from ..util.errors import ScopeResolutionError
from ..util.rich_progress import CollectProgress
from .base import attach_category, collect_scopes, last_segment, single_line

CategoryFetcher = Callable[[CommandRunner, str], List[str]]


def _project_flag(project_id: str) -> str:
    return f"--project {shlex.quote(project_id)} --format=json"


def resolve_organisation(runner: CommandRunner) -> Value:
    """Return the single organisation visible to the caller."""
    organisations = runner.structured("gcloud organizations list --format=json").items()
    if not organisations:
        raise ScopeResolutionError("No organisations found")
    if len(organisations) > 1:
        raise ScopeResolutionError("Unable to process more than one organisation")
    return organisations[0]


def list_projects(runner: CommandRunner, organisation_id: str) -> List[Value]:
    parent_filter = shlex.quote(f"parent.id={organisation_id}")
    return runner.structured(f"gcloud projects list --filter {parent_filter} --format=json").items()


def compute_instances(runner: CommandRunner, project_id: str) -> List[str]:
    result = runner.structured("gcloud -q compute instances list " + _project_flag(project_id))
    return [
        f"Instance name: {instance.get('name').text()}"
        f" type: {last_segment(instance.get('machineType').text())}"
        f" zone: {last_segment(instance.get('zone').text())}"
        for instance in result
    ]


def dns_zones(runner: CommandRunner, project_id: str) -> List[str]:
    result = runner.structured("gcloud -q dns managed-zones list " + _project_flag(project_id))
    return [f"DNS Zone: {zone.get('dnsName').text()}" for zone in result]


def gke_clusters(runner: CommandRunner, project_id: str) -> List[str]:
    result = runner.structured("gcloud -q container clusters list " + _project_flag(project_id))
    return [
        f"Cluster name: {cluster.get('name').text()}"
        f" zone: {cluster.get('zone').text()}"
        f" nodes: {cluster.get('currentNodeCount').text()}"
        f" master-version: {cluster.get('currentMasterVersion').text()}"
        for cluster in result
    ]


PROJECT_CATEGORIES: Tuple[Tuple[str, CategoryFetcher], ...] = (
    ("Compute Engine", compute_instances),
    ("Cloud DNS", dns_zones),
    ("Google Kubernetes Engine", gke_clusters),
)


def build_project(runner: CommandRunner, project: Value) -> TreeNode:
    project_id = project.get("projectId").text()
    node = new_node(single_line(f"project: {project.get('name').text()} ({project_id})"))
    for title, fetch in PROJECT_CATEGORIES:
        attach_category(node, title, fetch(runner, project_id))
    return node


class GcpCollector:
    """Organisation -> projects -> product categories -> resources."""

    name = "gcp"

    def collect(
        self,
        runner: CommandRunner,
        cfg: RunConfig,
        *,
        progress: Optional[CollectProgress] = None,
    ) -> TreeNode:
        organisation = resolve_organisation(runner)
        organisation_id = last_segment(organisation.get("name").text())
        root = new_node(single_line(f"Organisation: {organisation.get('displayName').text()}"))

        subtrees = collect_scopes(
            list_projects(runner, organisation_id),
            lambda project: build_project(runner, project),
            workers=cfg.workers,
            describe=lambda project: project.get("projectId").text(),
            progress=progress,
            description="Projects",
        )
        for subtree in subtrees:
            root.append(subtree)
        return root
