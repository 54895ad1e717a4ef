# Import necessary modules and libraries for CLI
import os
from typing import Optional

import requests
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Define functions to send queries and render results
BASE_URL = os.getenv("LOGOS_API_URL", "http://localhost:8000/api/bible")
DEFAULT_VERSION = os.getenv("DEFAULT_BIBLE_VERSION", "ESV")
PAGE_SIZE = 20
REQUEST_TIMEOUT = 30

console = Console()


def search_verses(query: str, version: str, book: Optional[str] = None, page: int = 1, limit: int = PAGE_SIZE):
    params = {"q": query, "version": version, "page": page, "limit": limit}
    if book:
        params["book"] = book
    try:
        response = requests.get(f"{BASE_URL}/search", params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except requests.HTTPError as e:
        detail = ""
        try:
            detail = e.response.json().get("detail", "")
        except ValueError:
            pass
        console.print(f"[red]❌ Search failed:[/red] {detail or e}")
        return None
    except requests.RequestException as e:
        console.print(f"[red]❌ Request failed:[/red] {e}")
        return None


def get_versions():
    """Fetch the active Bible versions"""
    try:
        response = requests.get(f"{BASE_URL}/versions", timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except requests.RequestException:
        return []


def render_results(response: dict):
    verses = response.get("results", [])
    version = response.get("version", DEFAULT_VERSION).upper()
    console.print(f"[bold cyan]📚 Bible Version: {version}[/bold cyan]")

    book = response.get("book")
    if book:
        console.print(f"[blue]📖 Book filter:[/blue] {book}")
    console.print(f"[blue]🔍 Query:[/blue] {response.get('query', 'N/A')}\n")

    if not verses:
        console.print("[yellow]⚠️ No verses found.[/yellow]")
        return

    table = Table(title="📖 Bible Verses", show_lines=True, expand=True)
    table.add_column("Reference", style="cyan", no_wrap=False, min_width=12)
    table.add_column("Text", style="white", ratio=3, overflow="fold")

    for verse in verses:
        table.add_row(f"{verse['book']} {verse['chapter']}:{verse['verse']}", verse["text"])

    console.print(table)

    total = response.get("totalCount", len(verses))
    page = response.get("page", 1)
    limit = response.get("limit", PAGE_SIZE) or PAGE_SIZE
    pages = max(1, -(-total // limit))
    footer = f"[dim]Total: {total} verses · Page {page} of {pages}[/dim]"
    if response.get("hasMore"):
        footer += " [dim](type 'next' for more)[/dim]"
    console.print(footer)


def show_help():
    """Show help information"""
    help_text = """
[bold blue]🔍 Logos Bible Search Help[/bold blue]

[bold yellow]Query Types:[/bold yellow]
• [green]Single Verse[/green]: John 3:16, Rom 8:28, 1 John 4:7
• [green]Verse Range[/green]: Genesis 1:1-3, Psalm 23:1-6
• [green]Whole Chapter[/green]: Psalm 23, Isaiah 53
• [green]Keywords[/green]: love your enemies, living water

[bold yellow]Commands:[/bold yellow]
• [cyan]help[/cyan] - Show this help
• [cyan]:versions[/cyan] - List available Bible versions
• [cyan]:version <code>[/cyan] - Change Bible version (e.g. ESV, NIV, IBP)
• [cyan]:book <name>[/cyan] - Restrict keyword searches to one book
• [cyan]:book all[/cyan] - Clear the book filter
• [cyan]next[/cyan] / [cyan]prev[/cyan] - Page through keyword results
• [cyan]exit/quit[/cyan] - Exit the program
"""
    console.print(Panel(help_text, border_style="blue"))


def show_versions():
    versions = get_versions()
    if not versions:
        console.print("[yellow]⚠️ Could not load Bible versions.[/yellow]")
        return

    table = Table(title="📚 Bible Versions")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Language", style="green")
    table.add_column("Description", style="white", overflow="fold")
    for version in versions:
        table.add_row(version["id"], version["language"], version["description"])
    console.print(table)


def run_cli():
    console.print("[bold magenta]📖 Logos Bible Search[/bold magenta]")
    console.print("[dim]Type 'help' for usage, 'exit' to quit[/dim]\n")

    current_version = DEFAULT_VERSION.upper()
    current_book = None
    last_query = None
    page = 1
    has_more = False
    console.print(f"[bold cyan]Current Bible version:[/bold cyan] [green]{current_version}[/green]")

    while True:
        try:
            query = console.input("[bold yellow]🔍 Query[/bold yellow]: ").strip()
            command = query.lower()

            if command in ["exit", "quit", "q"]:
                console.print("\n👋 Goodbye!")
                break
            elif command in ["help", "h", "?"]:
                show_help()
                continue
            elif command == ":versions":
                show_versions()
                continue
            elif command.startswith(":version "):
                current_version = query[len(":version "):].strip().upper()
                console.print(f"[bold green]✅ Bible version changed to:[/bold green] [cyan]{current_version}[/cyan]\n")
                continue
            elif command == ":book" or command.startswith(":book "):
                current_book = query[len(":book"):].strip() or None
                if current_book and current_book.lower() == "all":
                    current_book = None
                if current_book:
                    console.print(f"[bold green]✅ Keyword searches limited to:[/bold green] [cyan]{current_book}[/cyan]\n")
                else:
                    console.print("[bold green]✅ Book filter cleared[/bold green]\n")
                continue
            elif command in ["next", "n", "prev", "p"]:
                if not last_query:
                    console.print("[yellow]⚠️ Search for something first.[/yellow]\n")
                    continue
                if command in ["next", "n"]:
                    if not has_more:
                        console.print("[yellow]⚠️ No more results.[/yellow]\n")
                        continue
                    page += 1
                elif page > 1:
                    page -= 1
                else:
                    console.print("[yellow]⚠️ Already on the first page.[/yellow]\n")
                    continue
                query = last_query
            elif not query:
                continue
            else:
                last_query = query
                page = 1

            with console.status("[bold green]Searching Bible database..."):
                response = search_verses(query, current_version, current_book, page)

            has_more = bool(response and response.get("hasMore"))
            if response:
                console.print()
                render_results(response)
                console.print()

        except KeyboardInterrupt:
            console.print("\n\n👋 Exiting...")
            break


if __name__ == "__main__":
    run_cli()
