"""driveup CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TransferSpeedColumn
)

app = typer.Typer(
    name="driveup",
    help="Resumable uploads to document storage",
    add_completion=False
)
console = Console()


@app.callback()
def callback():
    """Resumable uploads to document storage."""


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def configure_logging(verbose: bool):
    from driveuploader import setup_logging
    
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)]
    )
    setup_logging(level)


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload"),
    location: str = typer.Argument(..., help="Parent location, or document location with --existing"),
    title: str = typer.Option(None, "--title", "-t", help="Document title (defaults to file name)"),
    existing: bool = typer.Option(False, "--existing", "-e", help="Overwrite the document at LOCATION"),
    content_type: str = typer.Option(None, "--content-type", "-c", help="MIME type (guessed if omitted)"),
    token: Optional[str] = typer.Option(None, "--token", envvar="DRIVEUP_TOKEN", help="Bearer token"),
    retries: int = typer.Option(3, "--retries", "-r", min=0, help="Retries for transient failures"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Upload a file with the resumable protocol."""
    from driveuploader import (
        DriveClient,
        APIConfig,
        RetryConfig,
        UploadProgress,
        UploadFailedError,
        SourceNotFoundError
    )
    
    if existing and title:
        console.print("[red]--title cannot be used with --existing[/red]")
        raise typer.Exit(2)
    
    configure_logging(verbose)
    
    async def do_upload():
        config = APIConfig(auth_token=token, retry=RetryConfig(max_retries=retries))
        
        async with DriveClient(config) as drive:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                TransferSpeedColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=None)
                
                def on_progress(session_id: int, p: UploadProgress):
                    progress.update(task, total=p.total_bytes, completed=p.uploaded_bytes)
                
                try:
                    result = await drive.upload(
                        file_path,
                        location,
                        title=title,
                        existing=existing,
                        content_type=content_type,
                        progress_callback=on_progress
                    )
                except SourceNotFoundError as e:
                    console.print(f"[red]File not found: {e.path}[/red]")
                    raise typer.Exit(1)
                except UploadFailedError as e:
                    console.print(f"[red]Upload failed: {e.kind.value}[/red]")
                    raise typer.Exit(1)
        
        entry = result.entry
        console.print(f"[green]Uploaded:[/green] {entry.title or file_path.name}")
        console.print(f"ID: {entry.id}")
        if entry.file_size is not None:
            console.print(f"Size: {entry.file_size:,} bytes")
    
    run_async(do_upload())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
