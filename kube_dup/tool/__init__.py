"""Command line tool for kube-dup."""
