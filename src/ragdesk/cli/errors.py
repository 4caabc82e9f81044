"""ragdesk rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause, tagged with its category)
  2. Where possible, the action the user should take to fix it

Exit codes are stable per category so scripts can branch on them.

Usage:
    from ragdesk.cli.errors import fail
    except RagdeskError as exc:
        fail(console, exc)
"""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from ragdesk.errors import RagdeskError
from ragdesk.rag.llm_client import key_env_var

EXIT_CODES: dict[str, int] = {
    "internal": 1,
    "validation": 2,
    "extraction": 3,
    "external": 4,
    "storage": 5,
}


def exit_code_for(exc: RagdeskError) -> int:
    return EXIT_CODES.get(exc.category, 1)


def err_from_exception(exc: RagdeskError) -> str:
    """Render *exc* as a one-line error with its category."""
    return f"[red]Error:[/] ({exc.category}) {escape(str(exc))}"


def fail(console: Console, exc: RagdeskError) -> NoReturn:
    """Print *exc* and exit with its category's code."""
    console.print(err_from_exception(exc))
    raise typer.Exit(exit_code_for(exc))


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_var = key_env_var(provider) or f"{provider.upper()}_API_KEY"
    return (
        f"[red]Error:[/] (validation) No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_empty_store(store_path: str) -> str:
    """Nothing indexed yet."""
    return (
        f"[red]Error:[/] (validation) No data indexed in '{store_path}'.\n"
        "  Run:  ragdesk ingest <file>  or  ragdesk crawl <url>"
    )


def err_corrupt_store(store_path: str, detail: str) -> str:
    """Snapshot exists but cannot be parsed."""
    return (
        f"[red]Error:[/] (storage) Cannot load chunk store '{store_path}'.\n"
        f"  {escape(detail)}\n"
        "  Restore the file from a backup or move it aside to start a new store."
    )


def err_no_content(url: str) -> str:
    """Crawl finished without any indexable page."""
    return (
        f"[red]Error:[/] (validation) No content found at '{url}'.\n"
        "  Check that the URL is reachable and returns HTML or plain text."
    )
