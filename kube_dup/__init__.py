"""
kube-dup duplicates a kubernetes workload into a new, independent object.

A Pod, Deployment, StatefulSet, Job or CronJob is reduced to a standalone Pod
built from its pod template (other kinds are copied as a whole), optionally
edited in the user's editor, and created in the cluster.
"""

__all__ = [
    "duplicate",
    "edit",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
