"""Main CLI application"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from legal_contract_ai.services.exporter import ExportFormat, default_filename, export_document
from legal_contract_ai.services.template_store import get_template_store
from legal_contract_ai.utils.config import configure_logging
from legal_contract_ai.utils.errors import RequestError, SessionError

app = typer.Typer(
    name="legal-contract-ai",
    help="AI-assisted contract drafting under Indonesian law",
    add_completion=False,
)
key_app = typer.Typer(help="Manage the AI API key")
app.add_typer(key_app, name="key")

console = Console(force_terminal=True)


@app.callback()
def main():
    configure_logging()


def _read_document(path: str) -> str:
    file_path = Path(path)
    if not file_path.exists():
        console.print(f"[red]Error: file not found: {path}[/red]")
        raise typer.Exit(code=1)
    return file_path.read_text(encoding="utf-8")


def _write_output(document: str, output: Optional[str], fmt: Optional[ExportFormat], title: str) -> str:
    """Write the document; format comes from --format, else the output suffix."""
    if fmt is None:
        suffix = Path(output).suffix.lstrip(".").lower() if output else ""
        fmt = ExportFormat(suffix) if suffix in {f.value for f in ExportFormat} else ExportFormat.TEXT
    output = output or default_filename(fmt)
    Path(output).write_bytes(export_document(document, fmt, title))
    return output


def _ai_service():
    from legal_contract_ai.services.ai_service import AIService
    from legal_contract_ai.services.credentials import get_credential_store

    return AIService(api_key_provider=get_credential_store().get)


@app.command("templates")
def templates():
    """List available contract templates"""
    template_list = get_template_store().list_templates()

    if not template_list:
        console.print("[yellow]No templates available[/yellow]")
        return

    table = Table(title="Available Contract Templates")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Description")
    table.add_column("Fields", justify="right")

    for template in template_list:
        table.add_row(
            template.id,
            template.name,
            template.description,
            str(len(template.fields)),
        )

    console.print(table)
    console.print("\nUse [cyan]python -m legal_contract_ai template <type> --fields[/cyan] to see the form fields")


@app.command("template")
def template_detail(
    template_type: str = typer.Argument(..., help="Template type (commercial, partnership, employment, nda, vendor)"),
    fields: bool = typer.Option(False, "--fields", "-f", help="Show form fields"),
    check: bool = typer.Option(False, "--check", help="List placeholders no field fills"),
    sample: bool = typer.Option(False, "--sample", "-s", help="Print the sample document"),
):
    """Show template details"""
    from legal_contract_ai.services.substitution import derive_placeholder, unmatched_placeholders

    template = get_template_store().get_template(template_type)
    if not template:
        console.print(f"[red]Template '{template_type}' not found[/red]")
        console.print(f"Available templates: {', '.join(t.id for t in get_template_store().list_templates())}")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold]{template.name}[/bold]\n\n{template.description}",
        title=f"Template: {template_type}",
        border_style="blue",
    ))

    if fields:
        table = Table(title="Form Fields")
        table.add_column("Field", style="cyan")
        table.add_column("Label", style="green")
        table.add_column("Type")
        table.add_column("Required")
        table.add_column("Placeholder")

        for field in template.fields:
            table.add_row(
                field.id,
                field.label,
                field.type.value,
                "Yes" if field.required else "No",
                escape(derive_placeholder(field.id)),
            )

        console.print(table)

    if check:
        unmatched = unmatched_placeholders(template)
        if unmatched:
            console.print("[yellow]Placeholders left unchanged by substitution:[/yellow]")
            for token in unmatched:
                console.print(f"  - {escape(token)}")
        else:
            console.print("[green][OK] Every placeholder has a matching field[/green]")

    if sample:
        console.print(escape(template.sample))


@app.command("generate")
def generate(
    template_type: str = typer.Option(..., "--type", "-t", help="Contract type"),
    data: str = typer.Option(None, "--data", "-d", help="JSON data for fields"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Interactive mode"),
    output: str = typer.Option(None, "--output", "-o", help="Output file path"),
    fmt: Optional[ExportFormat] = typer.Option(None, "--format", help="txt, html or pdf"),
):
    """Generate a contract from a template and form data"""
    from legal_contract_ai.services.session import DraftingSession

    session = DraftingSession(_ai_service(), get_template_store())
    try:
        template = session.select_type(template_type)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if data:
        try:
            field_data = json.loads(data)
        except json.JSONDecodeError:
            console.print("[red]Invalid JSON data[/red]")
            raise typer.Exit(code=1)
        if not isinstance(field_data, dict):
            console.print("[red]JSON data must be an object[/red]")
            raise typer.Exit(code=1)
        try:
            session.update_form({k: str(v) for k, v in field_data.items()})
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

    elif interactive:
        console.print(f"\n[blue]Generating: {template.name}[/blue]")
        console.print("Enter values for each field (press Enter to keep the default):\n")
        for field in template.fields:
            label = field.label + ("" if field.required else " (optional)")
            value = Prompt.ask(label, default=session.form_data.get(field.id) or "", show_default=True)
            if value:
                session.set_field(field.id, value)

    console.print(f"[blue]Drafting {template.name}...[/blue]")
    try:
        document = asyncio.run(session.submit_form())
    except (RequestError, SessionError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    path = _write_output(document, output, fmt, template.name)
    console.print(f"\n[green][OK] Contract generated: {path}[/green]")
    console.print("[dim]Note: This is a reference document only, not legal advice.[/dim]")


@app.command("review")
def review(
    file: str = typer.Argument(..., help="Contract text file"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Review a contract for clarity, compliance and risks"""
    document = _read_document(file)
    try:
        result = asyncio.run(_ai_service().review_contract(document))
    except RequestError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if json_output:
        print(json.dumps(result.model_dump(by_alias=True), ensure_ascii=False, indent=2))
        return

    console.print(Panel(
        f"Completeness: [bold]{result.completeness}%[/bold]",
        title="Contract Review",
        border_style="blue",
    ))
    if result.suggestions:
        console.print("\n[bold]Suggestions[/bold]")
        for item in result.suggestions:
            console.print(f"  - {escape(item)}")
    if result.risks:
        console.print("\n[bold red]Risks[/bold red]")
        for item in result.risks:
            console.print(f"  - {escape(item)}")
    if result.revised_content:
        console.print("\n[dim]A revised version was suggested. Use --json to get it.[/dim]")


@app.command("revise")
def revise(
    file: str = typer.Argument(..., help="Contract text file"),
    instructions: str = typer.Option(..., "--instructions", "-m", help="What to change"),
    contract_type: str = typer.Option("", "--type", "-t", help="Contract type"),
    output: str = typer.Option(None, "--output", "-o", help="Output file path (default: overwrite input)"),
    fmt: Optional[ExportFormat] = typer.Option(None, "--format", help="txt, html or pdf"),
):
    """Revise a contract following free-text instructions"""
    document = _read_document(file)
    try:
        revised = asyncio.run(_ai_service().revise_contract(document, instructions, contract_type))
    except (RequestError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    path = _write_output(revised, output or file, fmt, "Contract")
    console.print(f"[green][OK] Revised contract written to {path}[/green]")


@key_app.command("set")
def key_set(
    api_key: str = typer.Option(..., "--key", prompt="API key", hide_input=True, help="API key"),
):
    """Store the API key"""
    from legal_contract_ai.services.credentials import get_credential_store

    try:
        get_credential_store().set(api_key)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    console.print("[green][OK] API key saved[/green]")


@key_app.command("clear")
def key_clear():
    """Remove the stored API key"""
    from legal_contract_ai.services.credentials import get_credential_store

    get_credential_store().clear()
    console.print("[green][OK] API key removed[/green]")


@key_app.command("status")
def key_status():
    """Show whether an API key is available"""
    from legal_contract_ai.services.credentials import get_credential_store

    credentials = get_credential_store()
    if credentials.is_set:
        console.print(f"[green]API key is set[/green] (source: {credentials.source})")
    else:
        console.print("[yellow]API key not set[/yellow]")


@key_app.command("check")
def key_check():
    """Test the connection to the AI engine"""
    result = asyncio.run(_ai_service().check_api_key())
    if result.valid:
        console.print(f"[green][OK] {result.message}[/green]")
    else:
        console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(54321, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the HTTP API and the generate-contract function"""
    import uvicorn

    console.print(f"[blue]Serving on http://{host}:{port}[/blue]")
    uvicorn.run(
        "legal_contract_ai.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    app()
