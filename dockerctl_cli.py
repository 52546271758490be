#!/usr/bin/env python3
"""
dockerctl

Interactive Docker container management: pick a container with fzf, then
start, stop, restart, remove, export, commit, inspect it or exec into it.
"""

from dockerctl.cli.commands import app


if __name__ == '__main__':
    app(prog_name="dockerctl")
