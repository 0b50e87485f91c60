"""
CLI entry point for kb-gaps.
"""

import logging
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console

from kb_gaps.exceptions import KbGapsError, WorkspaceNotFoundError, format_error_for_cli
from kb_gaps.models.conversation import Conversation
from kb_gaps.models.intent import ExtractionResult, Intent
from kb_gaps.models.pipeline import RunStatus
from kb_gaps.models.search import SearchSummary
from kb_gaps.workspace import Workspace

app = typer.Typer(
    name="kb-gaps",
    help="Find knowledge-base gaps from customer chat transcripts",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except KbGapsError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            console.print("\n[yellow]Run again with --verbose for details.[/yellow]")
            raise typer.Exit(1)

    return wrapper


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Find knowledge-base gaps from customer chat transcripts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _open_workspace() -> tuple[Workspace, dict]:
    workspace = Workspace(Path.cwd())
    if not workspace.config_file.exists():
        raise WorkspaceNotFoundError()
    return workspace, workspace.load_config()


def _relative(workspace: Workspace, path: Path) -> str:
    try:
        return str(path.relative_to(workspace.root))
    except ValueError:
        return str(path)


def _assemble(workspace: Workspace, file: str) -> list[Conversation]:
    from kb_gaps.conversations import ConversationAssembler
    from kb_gaps.loaders import load_message_rows
    from kb_gaps.report import write_conversations
    from kb_gaps.util.progress import operation_status, show_summary

    with operation_status("Assembling conversations"):
        records = load_message_rows(file)
        conversations, stats = ConversationAssembler().assemble(records)

    path = write_conversations(workspace.output_dir, conversations, stats)
    show_summary(
        "Conversations",
        {
            "Rows read": len(records),
            "Conversations": stats.total_conversations,
            "Messages": stats.total_messages,
            "Avg messages/conversation": stats.avg_messages_per_conversation,
            "Date range": stats.date_range_label,
            "Unique ConvIDs": stats.unique_conv_ids,
        },
    )
    console.print(f"[green]✓ Conversations written to {_relative(workspace, path)}[/green]")
    return conversations


def _extract(
    workspace: Workspace,
    config: dict,
    conversations: list[Conversation],
    batch_size: int | None = None,
    model: str | None = None,
    retry_limit: int | None = None,
) -> ExtractionResult:
    from kb_gaps.intent import IntentExtractionOrchestrator
    from kb_gaps.intent.prompts import PromptRenderer
    from kb_gaps.llm import get_provider
    from kb_gaps.report import write_extraction
    from kb_gaps.util.config import llm_settings
    from kb_gaps.util.progress import show_summary, track_progress

    settings = llm_settings(config)
    provider = get_provider({"llm": settings})
    orchestrator = IntentExtractionOrchestrator(
        provider,
        batch_size=batch_size if batch_size is not None else settings["batch_size"],
        model=model,
        retry_limit=retry_limit if retry_limit is not None else settings["retry_limit"],
        batch_delay=settings["batch_delay"],
        max_tokens=settings["max_tokens"],
        temperature=settings["temperature"],
        prompt_renderer=PromptRenderer(workspace.root),
    )

    console.print(
        f"[bold blue]Extracting intents with {provider.label} "
        f"({model or provider.get_model_name()})[/bold blue]"
    )
    interrupted = False
    try:
        with track_progress() as progress:
            task = progress.add_task("Extracting intents", total=len(conversations))
            for state in orchestrator.run(conversations):
                progress.update(task, completed=state.processed_count, description=state.message)
    except KeyboardInterrupt:
        # Only whole batches are committed, so the partial result is consistent
        orchestrator.interrupt()
        interrupted = True

    state = orchestrator.state
    result = orchestrator.result()
    json_path, csv_path = write_extraction(workspace.output_dir, result)

    show_summary(
        "Intent extraction",
        {
            "Status": state.status,
            "Processed": f"{state.processed_count}/{state.total_count}",
            "Successful": result.successful_extractions,
            "Unclear": result.unclear_intents,
            "Errors": result.error_count,
            "Model": result.model,
        },
    )
    console.print(f"[green]✓ Intents written to {_relative(workspace, json_path)}[/green]")
    console.print(f"[green]✓ CSV written to {_relative(workspace, csv_path)}[/green]")

    if interrupted:
        console.print(
            f"\n[yellow]Interrupted - partial results saved "
            f"({state.processed_count}/{state.total_count} conversations)[/yellow]"
        )
        raise typer.Exit(1)

    if state.status is RunStatus.PAUSED and state.permission_error:
        console.print(f"\n[red]Error:[/red] {state.error}")
        console.print(
            "[yellow]The API key was rejected. Check its permissions (it must be "
            "allowed to call the model), then run the extraction again. "
            "Partial results have been saved.[/yellow]"
        )
        raise typer.Exit(1)

    return result


def _search(
    workspace: Workspace,
    config: dict,
    intents: list[Intent],
    threshold: float | None = None,
    top_k: int | None = None,
    namespace: str | None = None,
) -> SearchSummary:
    from kb_gaps.report import write_review
    from kb_gaps.search import KnowledgeBaseSearchEngine, get_search_client
    from kb_gaps.util.config import search_settings
    from kb_gaps.util.progress import show_summary, track_progress

    settings = search_settings(config)
    client = get_search_client({"search": settings})
    engine = KnowledgeBaseSearchEngine(
        client,
        threshold=threshold if threshold is not None else settings["threshold"],
        top_k=top_k if top_k is not None else settings["top_k"],
        namespace=namespace if namespace is not None else settings["namespace"],
        item_delay=settings["item_delay"],
    )

    with track_progress() as progress:
        task = progress.add_task("Searching knowledge base", total=len(intents))
        summary = engine.search(
            intents, on_progress=lambda done, total: progress.update(task, completed=done)
        )

    json_path, csv_path = write_review(workspace.output_dir, summary)
    show_summary(
        "Knowledge-base search",
        {
            "Intents searched": summary.total_searched,
            "Threshold": engine.threshold,
            "High confidence": summary.high_confidence_matches,
            "For review": summary.low_confidence_matches,
        },
    )
    console.print(f"[green]✓ Review items written to {_relative(workspace, json_path)}[/green]")
    console.print(f"[green]✓ CSV written to {_relative(workspace, csv_path)}[/green]")
    return summary


@app.command()
def init(
    workspace_dir: str = typer.Argument(..., help="Workspace directory to initialize"),
    with_templates: bool = typer.Option(
        False, "--with-templates", help="Copy default prompt templates for customization"
    ),
):
    """Initialize a new kb-gaps workspace."""
    console.print(f"[bold blue]Initializing workspace:[/bold blue] {workspace_dir}")

    workspace = Workspace(Path(workspace_dir))
    workspace.initialize()

    console.print(f"[green]✓ Created directory structure in {workspace_dir}[/green]")
    console.print(f"[green]✓ Wrote configuration to {Workspace.CONFIG_NAME}[/green]")

    if with_templates:
        from kb_gaps.util.templates import TemplateLoader

        try:
            TemplateLoader(workspace.root).copy_default_templates_to_workspace()
        except (FileNotFoundError, PermissionError) as e:
            console.print(f"[red]✗ Could not copy templates: {e}[/red]")
            logger.error("Template copy failed: %s", e)
            raise typer.Exit(1)
        console.print("[green]✓ Copied default templates to templates/[/green]")

    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"  cd {workspace_dir}")
    console.print("  export OPENAI_API_KEY=... PINECONE_API_KEY=...")
    console.print("  kb-gaps run --file <chat-export.csv>")


@app.command()
@handle_errors
def assemble(
    file: str = typer.Option(..., "--file", help="Exported chat rows (CSV, XLSX or JSON)"),
):
    """Group exported chat rows into conversations."""
    workspace, _ = _open_workspace()
    _assemble(workspace, file)


@app.command()
@handle_errors
def extract(
    conversations: str = typer.Option(
        None, "--conversations", help="Conversations file (default: output/conversations.json)"
    ),
    batch_size: int = typer.Option(None, "--batch-size", help="Conversations per request (1-25)"),
    model: str = typer.Option(None, "--model", help="Model override"),
    retry_limit: int = typer.Option(None, "--retry-limit", help="Attempts per batch"),
):
    """Extract one customer intent per conversation."""
    from kb_gaps.loaders import load_conversations

    workspace, config = _open_workspace()
    path = Path(conversations) if conversations else workspace.output_dir / "conversations.json"
    _extract(
        workspace,
        config,
        load_conversations(path),
        batch_size=batch_size,
        model=model,
        retry_limit=retry_limit,
    )


@app.command()
@handle_errors
def search(
    intents: str = typer.Option(
        None, "--intents", help="Intents file (default: output/intents.json)"
    ),
    threshold: float = typer.Option(None, "--threshold", help="Confidence threshold (0-1)"),
    top_k: int = typer.Option(None, "--top-k", help="Matches requested per intent"),
    namespace: str = typer.Option(None, "--namespace", help="Index namespace"),
):
    """Search the knowledge base for every intent and list the gaps."""
    from kb_gaps.loaders import load_intents

    workspace, config = _open_workspace()
    path = Path(intents) if intents else workspace.output_dir / "intents.json"
    _search(
        workspace,
        config,
        load_intents(path),
        threshold=threshold,
        top_k=top_k,
        namespace=namespace,
    )


@app.command()
@handle_errors
def run(
    file: str = typer.Option(..., "--file", help="Exported chat rows (CSV, XLSX or JSON)"),
):
    """Assemble, extract and search in one go."""
    workspace, config = _open_workspace()
    conversations = _assemble(workspace, file)
    result = _extract(workspace, config, conversations)
    _search(workspace, config, result.intents)


if __name__ == "__main__":
    app()
