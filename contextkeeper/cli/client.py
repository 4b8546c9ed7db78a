"""Command-line client for a running contextkeeper server.

Usage::

    python -m contextkeeper serve
    python -m contextkeeper store --content "Rust is great" --tags rust,lang
    python -m contextkeeper get --id <context-id>
    python -m contextkeeper list --tags rust --limit 10
    python -m contextkeeper search --query "great language" --tags rust
    python -m contextkeeper update --id <context-id> --content "..."
    python -m contextkeeper delete --id <context-id>

Every client subcommand talks to the server over HTTP (httpx).  A non-2xx
response prints the server's error code and detail to stderr and exits 1.
The server URL comes from ``--server`` or the ``SERVER_URL`` setting.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from typing import Any

import httpx

from contextkeeper.config.settings import Settings

_API_PREFIX = "/api/v1"
_TIMEOUT_SECONDS = 30.0
_PREVIEW_CHARS = 80


def _split_tags(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= _PREVIEW_CHARS:
        return flat
    return flat[: _PREVIEW_CHARS - 3] + "..."


def _print_context(context: dict[str, Any]) -> None:
    print(f"ID:           {context['id']}")
    print(f"Created:      {context['created_at']}")
    if context.get("expires_at"):
        print(f"Expires:      {context['expires_at']}")
    if context.get("source"):
        print(f"Source:       {context['source']}")
    if context.get("content_type"):
        print(f"Content type: {context['content_type']}")
    if context.get("tags"):
        print(f"Tags:         {', '.join(context['tags'])}")
    for key, value in sorted(context.get("metadata", {}).items()):
        print(f"  {key}: {value}")
    print()
    print(context["content"])


def _report_error(response: httpx.Response) -> int:
    """Print the server's ErrorResponse (or raw body) to stderr; return exit code 1."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and "code" in body:
        print(f"Error {response.status_code} [{body['code']}]: {body.get('detail')}", file=sys.stderr)
    else:
        print(f"Error {response.status_code}: {response.text}", file=sys.stderr)
    return 1


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


def _handle_store(args: argparse.Namespace, client: httpx.Client) -> int:
    payload = {
        "content": args.content,
        "source": args.source,
        "content_type": args.content_type,
        "tags": _split_tags(args.tags),
    }
    response = client.post(f"{_API_PREFIX}/contexts", json=payload)
    if response.is_error:
        return _report_error(response)
    print(f"Stored context {response.json()['id']}")
    return 0


def _handle_get(args: argparse.Namespace, client: httpx.Client) -> int:
    response = client.get(f"{_API_PREFIX}/contexts/{args.id}")
    if response.is_error:
        return _report_error(response)
    _print_context(response.json())
    return 0


def _handle_list(args: argparse.Namespace, client: httpx.Client) -> int:
    params: dict[str, Any] = {"limit": args.limit, "offset": args.offset}
    if args.tags:
        params["tags"] = args.tags
    response = client.get(f"{_API_PREFIX}/contexts", params=params)
    if response.is_error:
        return _report_error(response)

    contexts = response.json()
    if not contexts:
        print("No contexts found.")
        return 0
    for context in contexts:
        tags = f" [{', '.join(context['tags'])}]" if context.get("tags") else ""
        print(f"{context['id']}{tags}  {_preview(context['content'])}")
    return 0


def _handle_search(args: argparse.Namespace, client: httpx.Client) -> int:
    payload = {"query": args.query, "tags": _split_tags(args.tags), "limit": args.limit}
    response = client.post(f"{_API_PREFIX}/search", json=payload)
    if response.is_error:
        return _report_error(response)

    result = response.json()
    print(f"{result['total_matches']} match(es)")
    for rank, match in enumerate(result["matches"], start=1):
        context = match["context"]
        print(f"{rank:>3}. {match['score']:.3f}  {context['id']}  {_preview(context['content'])}")
    return 0


def _handle_update(args: argparse.Namespace, client: httpx.Client) -> int:
    payload = {
        "content": args.content,
        "source": args.source,
        "content_type": args.content_type,
        "tags": _split_tags(args.tags),
    }
    response = client.put(f"{_API_PREFIX}/contexts/{args.id}", json=payload)
    if response.is_error:
        return _report_error(response)
    print(f"Updated context {args.id}")
    return 0


def _handle_delete(args: argparse.Namespace, client: httpx.Client) -> int:
    response = client.delete(f"{_API_PREFIX}/contexts/{args.id}")
    if response.is_error:
        return _report_error(response)
    print(f"Deleted context {args.id}")
    return 0


_HANDLERS: dict[str, Callable[[argparse.Namespace, httpx.Client], int]] = {
    "store": _handle_store,
    "get": _handle_get,
    "list": _handle_list,
    "search": _handle_search,
    "update": _handle_update,
    "delete": _handle_delete,
}


# ---------------------------------------------------------------------------
# Argument parsing & entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contextkeeper",
        description="Run the contextkeeper server or talk to a running one.",
    )
    parser.add_argument("--server", default=None, help="Server URL (default: SERVER_URL setting)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run the API server")

    store = subparsers.add_parser("store", help="Store a new context")
    store.add_argument("--content", "-c", required=True)
    store.add_argument("--source", "-s")
    store.add_argument("--content-type")
    store.add_argument("--tags", "-t", help="Comma-separated tags")

    get = subparsers.add_parser("get", help="Show one context")
    get.add_argument("--id", "-i", required=True)

    list_ = subparsers.add_parser("list", help="List contexts")
    list_.add_argument("--tags", "-t", help="Comma-separated; all must match")
    list_.add_argument("--limit", "-l", type=int, default=10)
    list_.add_argument("--offset", type=int, default=0)

    search = subparsers.add_parser("search", help="Search contexts")
    search.add_argument("--query", "-q", required=True)
    search.add_argument("--tags", "-t", help="Comma-separated; restricts to tagged contexts")
    search.add_argument("--limit", "-l", type=int, default=5)

    update = subparsers.add_parser("update", help="Replace a context's content and metadata")
    update.add_argument("--id", "-i", required=True)
    update.add_argument("--content", "-c", required=True)
    update.add_argument("--source")
    update.add_argument("--content-type")
    update.add_argument("--tags", "-t", help="Comma-separated tags")

    delete = subparsers.add_parser("delete", help="Delete a context")
    delete.add_argument("--id", "-i", required=True)

    return parser


def execute(args: argparse.Namespace, client: httpx.Client) -> int:
    """Run one client subcommand against *client* and return the exit code."""
    try:
        return _HANDLERS[args.command](args, client)
    except httpx.HTTPError as exc:
        print(f"Error: request to {client.base_url} failed: {exc}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "serve":
        # Deferred: the server stack is not needed by client subcommands.
        from contextkeeper.main import run

        run()
        return 0

    server_url = args.server or Settings().server_url
    with httpx.Client(base_url=server_url, timeout=_TIMEOUT_SECONDS) as client:
        return execute(args, client)


if __name__ == "__main__":
    sys.exit(main())
