"""Tests for the client library."""

import json
from typing import Any

import pytest

from kube_dup import client as client_lib
from kube_dup.client import KubectlClient, classify_error
from kube_dup.command import Command
from kube_dup.exceptions import (
    ApiException,
    CommandException,
    InvalidObjectError,
    ObjectNotFoundError,
)

from fakes import make_deployment


def test_classify_not_found() -> None:
    """Test a request for an object that does not exist."""
    err = classify_error(
        'Error from server (NotFound): deployments.apps "web" not found'
    )
    assert isinstance(err, ObjectNotFoundError)
    assert err.reason == "NotFound"


def test_classify_namespace_not_found() -> None:
    """Test creating an object in a namespace that does not exist."""
    err = classify_error(
        'Error from server (NotFound): error when creating "STDIN": '
        'namespaces "prod" not found'
    )
    assert isinstance(err, ObjectNotFoundError)


def test_classify_invalid_bullets() -> None:
    """Test an invalid object with one cause per line."""
    err = classify_error(
        'The Pod "web-dup-1234" is invalid: \n'
        "* spec.containers[0].image: Required value\n"
        "* spec.restartPolicy: Unsupported value: \"Sometimes\"\n"
    )
    assert isinstance(err, InvalidObjectError)
    assert err.reason == "Invalid"
    assert err.causes == [
        "spec.containers[0].image: Required value",
        'spec.restartPolicy: Unsupported value: "Sometimes"',
    ]


def test_classify_invalid_brackets() -> None:
    """Test an invalid object with causes on a single line."""
    err = classify_error(
        'Error from server (Invalid): error when creating "STDIN": Pod "Web" is '
        'invalid: [metadata.name: Invalid value: "Web", spec.containers: Required value]'
    )
    assert isinstance(err, InvalidObjectError)
    assert err.causes == [
        'metadata.name: Invalid value: "Web"',
        "spec.containers: Required value",
    ]


def test_classify_invalid_single_cause() -> None:
    """Test an invalid object with a single cause."""
    err = classify_error('The Pod "web" is invalid: spec: Forbidden: may not change')
    assert isinstance(err, InvalidObjectError)
    assert err.causes == ["spec: Forbidden: may not change"]


@pytest.mark.parametrize(
    "message",
    [
        'Error from server (AlreadyExists): pods "web-dup-1234" already exists',
        "The connection to the server localhost:8080 was refused",
    ],
)
def test_classify_other(message: str) -> None:
    """Test failures that are neither invalid nor missing objects."""
    err = classify_error(message)
    assert type(err) is ApiException


class FakeRun:
    """Records kubectl invocations and returns a canned response."""

    def __init__(self, output: str = "", error: str | None = None) -> None:
        self.output = output
        self.error = error
        self.calls: list[tuple[list[str], bytes | None]] = []

    async def __call__(self, cmd: Command, stdin: bytes | None = None) -> str:
        self.calls.append((cmd.cmd, stdin))
        if self.error:
            raise CommandException(self.error)
        return self.output


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    """Replace the command runner of the client."""
    fake = FakeRun()
    monkeypatch.setattr(client_lib, "run", fake)
    return fake


async def test_get(fake_run: FakeRun) -> None:
    """Test fetching a single object."""
    fake_run.output = json.dumps(make_deployment())
    kubectl = KubectlClient(context="kind-kind", kubeconfig="/tmp/config")
    objs = await kubectl.get("deploy", "web", "default")
    assert objs == [make_deployment()]
    assert fake_run.calls == [
        (
            [
                "kubectl",
                "--kubeconfig",
                "/tmp/config",
                "--context",
                "kind-kind",
                "--namespace",
                "default",
                "get",
                "deploy",
                "web",
                "-o",
                "json",
            ],
            None,
        )
    ]


async def test_get_list(fake_run: FakeRun) -> None:
    """Test that List results are flattened."""
    items: list[dict[str, Any]] = [make_deployment("web"), make_deployment("api")]
    fake_run.output = json.dumps({"apiVersion": "v1", "kind": "List", "items": items})
    objs = await KubectlClient().get("deploy", "web", None)
    assert objs == items
    assert fake_run.calls[0][0] == ["kubectl", "get", "deploy", "web", "-o", "json"]


async def test_get_not_found(fake_run: FakeRun) -> None:
    """Test fetching an object that does not exist."""
    fake_run.error = 'Error from server (NotFound): deployments.apps "web" not found'
    with pytest.raises(ObjectNotFoundError):
        await KubectlClient().get("deploy", "web", "default")


async def test_get_invalid_output(fake_run: FakeRun) -> None:
    """Test kubectl output that isn't json."""
    fake_run.output = "not json"
    with pytest.raises(ApiException, match="Unable to parse"):
        await KubectlClient().get("deploy", "web", "default")


async def test_create(fake_run: FakeRun) -> None:
    """Test creating an object from stdin."""
    pod = {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "web-dup-1234"}}
    fake_run.output = json.dumps({**pod, "status": {"phase": "Pending"}})
    created = await KubectlClient().create(pod, "default")
    assert created["status"] == {"phase": "Pending"}
    ((args, stdin),) = fake_run.calls
    assert args == [
        "kubectl",
        "--namespace",
        "default",
        "create",
        "-f",
        "-",
        "-o",
        "json",
    ]
    assert stdin is not None
    assert json.loads(stdin) == pod


async def test_create_invalid(fake_run: FakeRun) -> None:
    """Test creating an object the server rejects."""
    fake_run.error = (
        'The Pod "web-dup-1234" is invalid: \n'
        "* spec.containers[0].image: Required value\n"
    )
    with pytest.raises(InvalidObjectError) as exc_info:
        await KubectlClient().create({"kind": "Pod"}, "default")
    assert exc_info.value.causes == ["spec.containers[0].image: Required value"]
