"""Configuration objects for kube-dup."""

from dataclasses import dataclass, field
import os

__all__ = [
    "DuplicationOptions",
    "EditOptions",
    "LOOP_COMMAND",
    "IDENTITY_LABELS",
    "LAST_APPLIED_ANNOTATION",
    "EDITOR_ENVS",
    "YAML",
    "JSON",
]

# Keeps the container running without starting the original workload.
LOOP_COMMAND = ["sh", "-c", "trap : TERM INT; sleep infinity & wait"]

# Labels a controller adds to its pods to claim them.
IDENTITY_LABELS = ("pod-template-hash", "controller-revision-hash")

LAST_APPLIED_ANNOTATION = "kubectl.kubernetes.io/last-applied-configuration"

# Checked in order, the first non-empty value selects the editor.
EDITOR_ENVS = ("KUBE_EDITOR", "EDITOR")

YAML = "yaml"
JSON = "json"


@dataclass(frozen=True)
class DuplicationOptions:
    """Options controlling how duplicates are built and submitted."""

    duplicate_inner_pod: bool = True
    """Create a standalone Pod from the pod template of a workload."""

    disable_probes: bool = True
    """Remove readiness and liveness probes from every container."""

    loop_command: bool = False
    """Replace every container command with an idle loop."""

    skip_edit: bool = False
    """Create the duplicates without opening an editor."""

    windows_line_endings: bool = os.name == "nt"
    """Write the edited document with CRLF line endings."""

    apply_annotation: bool = False
    """Record the submitted object in the last-applied-configuration annotation."""

    image: str | None = None
    """Replace every container image when set."""

    name: str | None = None
    """Explicit name for the duplicate instead of a generated one."""

    strip_template_ownership: bool = False
    """Also remove ownership from pods built out of a workload template."""


@dataclass
class EditOptions:
    """Options for an interactive edit session."""

    output_format: str = YAML
    """Serialization presented in the editor, either yaml or json."""

    validate: bool = True
    """Check the structure of the edited document before it is submitted."""

    namespace: str | None = None
    """Namespace the edited objects must stay in."""

    editor_envs: tuple[str, ...] = field(default=EDITOR_ENVS)
    """Environment variables consulted to pick an editor."""

    temp_prefix: str = "kube-dup"
    """Prefix of the temporary file handed to the editor."""
