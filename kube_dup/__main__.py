"""Run the kube-dup command line tool with `python -m kube_dup`."""

from kube_dup.tool.kube_dup import main

if __name__ == "__main__":
    main()
