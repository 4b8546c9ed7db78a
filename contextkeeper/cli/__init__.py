"""Command-line interface: ``python -m contextkeeper <command>``.

``serve`` runs the API server in-process; every other subcommand is an
HTTP client for a running server (see ``client.py``).
"""
