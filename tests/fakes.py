"""Fake collaborators and sample objects shared by the tests."""

from collections.abc import Callable
import copy
from pathlib import Path
from typing import Any

from kube_dup.client import ResourceClient
from kube_dup.editor import Editor
from kube_dup.exceptions import ApiException, ObjectNotFoundError


def make_container(name: str, probes: bool = True) -> dict[str, Any]:
    """Return a container definition used in test pod specs."""
    container: dict[str, Any] = {
        "name": name,
        "image": f"example.com/{name}:1.0",
        "command": ["/bin/server"],
    }
    if probes:
        container["readinessProbe"] = {"httpGet": {"path": "/ready", "port": 8080}}
        container["livenessProbe"] = {"httpGet": {"path": "/live", "port": 8080}}
    return container


def make_deployment(name: str = "web", namespace: str = "default") -> dict[str, Any]:
    """Return a Deployment with two containers that have probes."""
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": {"app": name},
            "uid": "1111-2222",
            "resourceVersion": "42",
        },
        "spec": {
            "replicas": 2,
            "selector": {"matchLabels": {"app": name}},
            "template": {
                "metadata": {"labels": {"app": name}},
                "spec": {
                    "containers": [make_container("server"), make_container("sidecar")],
                },
            },
        },
    }


def make_pod(
    name: str = "web-7d9f8-abcde", namespace: str = "default"
) -> dict[str, Any]:
    """Return a Pod owned by a ReplicaSet."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": {"app": "web", "pod-template-hash": "7d9f8"},
            "uid": "3333-4444",
            "resourceVersion": "100",
            "ownerReferences": [
                {
                    "apiVersion": "apps/v1",
                    "kind": "ReplicaSet",
                    "name": "web-7d9f8",
                    "uid": "5555",
                    "controller": True,
                }
            ],
            "managedFields": [{"manager": "kube-controller-manager"}],
        },
        "spec": {
            "containers": [make_container("server")],
            "restartPolicy": "Always",
        },
    }


class FakeClient(ResourceClient):
    """A client that stores objects in memory."""

    def __init__(self, objects: list[dict[str, Any]] | None = None) -> None:
        self.objects = objects or []
        self.created: list[dict[str, Any]] = []
        self.create_errors: list[ApiException | None] = []

    async def get(
        self, kind: str, name: str, namespace: str | None
    ) -> list[dict[str, Any]]:
        for obj in self.objects:
            if obj["metadata"]["name"] == name:
                return [copy.deepcopy(obj)]
        raise ObjectNotFoundError(f'{kind} "{name}" not found', reason="NotFound")

    async def create(
        self, obj: dict[str, Any], namespace: str | None
    ) -> dict[str, Any]:
        if self.create_errors and (err := self.create_errors.pop(0)) is not None:
            raise err
        created = copy.deepcopy(obj)
        self.created.append(created)
        return created


class ScriptedEditor(Editor):
    """An editor that applies a scripted change on every launch."""

    def __init__(self, edits: list[Callable[[str], str]]) -> None:
        super().__init__(["scripted-editor"])
        self._edits = list(edits)
        self.seen: list[str] = []
        self.paths: list[Path] = []

    async def launch(self, path: Path) -> None:
        # Bytes that are not UTF-8 survive the round trip as surrogates
        content = path.read_bytes().decode("utf-8", errors="surrogateescape")
        self.seen.append(content)
        self.paths.append(path)
        edit = self._edits.pop(0)
        path.write_bytes(edit(content).encode("utf-8", errors="surrogateescape"))
