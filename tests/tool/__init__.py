"""Test helpers for kube-dup tools."""

from kube_dup.command import Command, run

KUBE_DUP_BIN = "kube-dup"


async def run_command(args: list[str], env: dict[str, str] | None = None) -> str:
    return await run(Command([KUBE_DUP_BIN] + args, env=env))
