"""Auction House CLI for operators."""

import asyncio
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import get_settings

app = typer.Typer(name="auctionhouse", help="Auction House - auction marketplace backend")
console = Console()


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


# ============================================================
# Server Commands
# ============================================================

@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to settings)"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to settings)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "auctionhouse.api:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@app.command()
def setup():
    """Verify the MongoDB connection and create indexes."""
    from .db import AuctionDB

    async def _setup():
        console.print("[bold blue]Setting up Auction House...[/]")
        db = AuctionDB.connect()

        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Connecting to MongoDB...", total=None)
                await db.ping()
                progress.update(task, description="Connected to MongoDB!")

                progress.add_task("Creating indexes...", total=None)
                await db.setup_indexes()
        finally:
            db.close()

        console.print("[bold green]Setup complete![/]")

    run_async(_setup())


# ============================================================
# Listing Commands
# ============================================================

@app.command()
def auctions():
    """List all auction listings."""
    from .db import AuctionDB, serialize_doc
    from .listings import list_listings
    from .bidding import listing_state

    async def _list():
        db = AuctionDB.connect()
        try:
            items = await list_listings(db)
        finally:
            db.close()

        if not items:
            console.print("[yellow]No auctions found.[/]")
            return

        table = Table(title="Auctions")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Starting", justify="right")
        table.add_column("Highest", justify="right", style="green")
        table.add_column("Bidder")
        table.add_column("Ends")
        table.add_column("State")

        for item in items:
            state = listing_state(item)
            row = serialize_doc(item)
            table.add_row(
                row["_id"],
                row.get("title", ""),
                f"{row.get('startingBid', 0):g}",
                f"{row.get('highestBid', 0):g}",
                row.get("highestBidder") or "-",
                row.get("auctionEndTime", ""),
                f"[red]{state.value}[/]" if state.value == "closed" else state.value,
            )

        console.print(table)

    run_async(_list())


@app.command()
def show(item_id: str = typer.Argument(..., help="Auction item ID")):
    """Show one auction listing."""
    from .db import AuctionDB, serialize_doc
    from .errors import AuctionHouseError
    from .listings import get_listing
    from .bidding import listing_state

    async def _show():
        db = AuctionDB.connect()
        try:
            item = await get_listing(db, item_id)
        except AuctionHouseError as e:
            console.print(f"[bold red]{e.message}[/]")
            raise typer.Exit(code=1)
        finally:
            db.close()

        row = serialize_doc(item)
        console.print(Panel(
            f"[bold]{row['title']}[/]\n"
            f"{row['description']}\n\n"
            f"Starting bid: {row['startingBid']:g}\n"
            f"Highest bid: {row.get('highestBid', 0):g} by {row.get('highestBidder') or '-'}\n"
            f"Ends: {row['auctionEndTime']}\n"
            f"State: {listing_state(item).value}",
            title=row["_id"],
        ))

    run_async(_show())


if __name__ == "__main__":
    app()
