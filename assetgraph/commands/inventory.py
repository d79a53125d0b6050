import asyncio
from pathlib import Path

import structlog
import typer
from rich.panel import Panel
from rich.table import Table

from assetgraph.core.container import get_container
from assetgraph.core.decorators import handle_errors
from assetgraph.core.formatting import classification_style
from assetgraph.core.formatting import criticality_style
from assetgraph.core.formatting import format_date
from assetgraph.core.formatting import relative_time
from assetgraph.core.formatting import risk_score_style
from assetgraph.core.formatting import status_style
from assetgraph.core.logging import console
from assetgraph.core.storage import load_records
from assetgraph.engine.graph import is_isolated
from assetgraph.engine.graph import is_on_critical_path
from assetgraph.engine.stats import AssetStats
from assetgraph.models.asset import Asset
from assetgraph.services.inventory_session import InventorySession

logger = structlog.get_logger('inventory_command')

# --flag value -> derived filter change
FLAGS = {
    'has-vulnerabilities': {'has_vulnerabilities': 'yes'},
    'no-vulnerabilities': {'has_vulnerabilities': 'no'},
    'missing-compliance': {'missing_compliance': True},
    'overdue-assessment': {'overdue_assessment': True},
    'multiple-frameworks': {'multiple_frameworks': True},
    'has-dependencies': {'has_dependencies': True},
    'isolated': {'isolated_assets': True},
    'critical-path': {'critical_path_assets': True},
}


def _flag_changes(flags: list[str]) -> dict:
    derived: dict = {}
    for flag in flags:
        if flag not in FLAGS:
            raise ValueError(f"Unknown flag '{flag}' (accepted: {', '.join(FLAGS)})")
        derived.update(FLAGS[flag])
    return derived


async def _open_session(organization_id: str | None) -> InventorySession:
    session = get_container().create_session()
    await session.init(organization_id=organization_id)
    return session


def _styled(value, style: str) -> str:
    if value is None:
        return '[dim]-[/dim]'
    return f"[{style}]{value}[/{style}]"


def render_assets(session: InventorySession) -> Table:
    table = Table(
        title='Assets',
        caption=(
            f"Page {session.pagination.page} of {max(session.total_pages, 1)} "
            f"({len(session.filtered)} matching of {len(session.assets)})"
        ),
    )
    table.add_column('Name', style='bold')
    table.add_column('Type', style='cyan')
    table.add_column('Criticality')
    table.add_column('Status')
    table.add_column('Owner', style='green')
    table.add_column('Risk', justify='right')
    table.add_column('Tags', style='dim')
    table.add_column('ID', style='dim', no_wrap=True)

    for asset in session.page_assets:
        table.add_row(
            asset.name,
            asset.type,
            _styled(asset.criticality, criticality_style(asset.criticality)),
            _styled(asset.status, status_style(asset.status)),
            asset.owner,
            _styled(asset.risk_score, risk_score_style(asset.risk_score)),
            ', '.join(asset.tags),
            asset.id,
        )
    return table


@handle_errors
def list_assets(
    search: str = typer.Option('', '--search', '-s', help='Free-text search (2+ characters)'),
    types: list[str] = typer.Option([], '--type', help='Asset type (repeatable)'),
    criticalities: list[str] = typer.Option([], '--criticality', help='Criticality (repeatable)'),
    status: list[str] = typer.Option([], '--status', help='Lifecycle status (repeatable)'),
    tags: list[str] = typer.Option([], '--tag', help='Tag (repeatable)'),
    frameworks: list[str] = typer.Option([], '--framework', help='Compliance framework (repeatable)'),
    owners: list[str] = typer.Option([], '--owner', help='Owner (repeatable)'),
    min_risk: int = typer.Option(0, '--min-risk', help='Minimum risk score'),
    max_risk: int = typer.Option(100, '--max-risk', help='Maximum risk score'),
    flags: list[str] = typer.Option([], '--flag', help=f"Structural filter: {', '.join(FLAGS)}"),
    sort: str | None = typer.Option(None, '--sort', help='Field to sort by (e.g. risk_score)'),
    desc: bool = typer.Option(False, '--desc', help='Sort descending'),
    page: int = typer.Option(1, '--page', help='Page number'),
    page_size: int | None = typer.Option(None, '--page-size', help='Rows per page (10-100)'),
    organization: str | None = typer.Option(None, '--org', help='Organization id'),
):
    """
    List assets matching the given filters.
    """
    changes = {
        'search': search,
        'types': types,
        'criticalities': criticalities,
        'status': status,
        'tags': tags,
        'compliance_frameworks': frameworks,
        'owners': owners,
        'risk_score_range': (min_risk, max_risk),
        'metadata': _flag_changes(flags),
    }

    async def build_view() -> InventorySession:
        session = await _open_session(organization)
        session.update_filters(**changes)
        if sort:
            session.set_sort(sort, 'desc' if desc else 'asc')
        session.flush()
        if page_size is not None:
            session.set_page_size(page_size)
        session.set_page(page)
        session.teardown()
        return session

    session = asyncio.run(build_view())
    if not session.filtered:
        console.print('[yellow]No assets match the current filters.[/yellow]')
        return
    console.print(render_assets(session))


def render_stats(stats: AssetStats) -> list:
    summary = Panel.fit(
        f"Total Assets: [bold green]{stats.total:,}[/bold green]\n"
        f"Critical: [bold red]{stats.critical:,}[/bold red]\n"
        f"Untagged: [yellow]{stats.untagged:,}[/yellow]\n"
        f"Recently Added (30d): [cyan]{stats.recently_added:,}[/cyan]\n"
        f"Privacy Compliant: {stats.privacy_compliant:,}  "
        f"With PIA: {stats.with_pia:,}  "
        f"Cross-border: {stats.cross_border_transfer:,}  "
        f"Third-party Sharing: {stats.third_party_sharing:,}",
        title='Asset Inventory',
    )
    renderables: list = [summary]
    breakdowns = [
        ('By Type', stats.by_type),
        ('By Criticality', stats.by_criticality),
        ('By Status', stats.by_status),
        ('By Data Classification', stats.by_data_classification),
        ('By Encryption Status', stats.by_encryption_status),
    ]
    for title, counts in breakdowns:
        if not counts:
            continue
        table = Table(title=title)
        table.add_column('Value', style='cyan')
        table.add_column('Count', style='magenta', justify='right')
        for value, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
            table.add_row(value, f"{count:,}")
        renderables.append(table)
    return renderables


@handle_errors
def stats(
    organization: str | None = typer.Option(None, '--org', help='Organization id'),
):
    """
    Show inventory statistics and breakdowns.
    """
    session = asyncio.run(_open_session(organization))
    for renderable in render_stats(session.stats):
        console.print(renderable)


def render_detail(asset: Asset) -> list:
    lines = [
        f"[bold]{asset.name}[/bold] [dim]({asset.id})[/dim]",
        f"Type: {asset.type} / {asset.category}",
        f"Owner: {asset.owner}" + (f"  Custodian: {asset.custodian}" if asset.custodian else ''),
        f"Location: {asset.location_text or '-'}",
        f"Criticality: {_styled(asset.criticality, criticality_style(asset.criticality))}  "
        f"Status: {_styled(asset.status, status_style(asset.status))}  "
        f"Classification: {_styled(asset.data_classification, classification_style(asset.data_classification))}",
        f"Risk Score: {_styled(asset.risk_score, risk_score_style(asset.risk_score))}",
        f"Frameworks: {', '.join(asset.compliance_frameworks) or '-'}",
        f"Tags: {', '.join(asset.tags) or '-'}",
        f"Created: {format_date(asset.created_at)} ({relative_time(asset.created_at)})",
        f"Last Assessed: {format_date(asset.last_assessed)}  Next Review: {format_date(asset.next_review)}",
        f"Critical Path: {'yes' if is_on_critical_path(asset) else 'no'}  "
        f"Isolated: {'yes' if is_isolated(asset) else 'no'}",
    ]
    if asset.description:
        lines.insert(1, f"[dim]{asset.description}[/dim]")
    renderables: list = [Panel('\n'.join(lines), title='Asset')]

    if asset.relationships:
        table = Table(title='Relationships')
        table.add_column('Type', style='cyan')
        table.add_column('Related Asset', style='green')
        table.add_column('Strength')
        table.add_column('Data Flow')
        for rel in asset.relationships:
            table.add_row(
                rel.relationship_type,
                rel.related_asset_name or f"[dim]{rel.related_asset_id} (missing)[/dim]",
                rel.strength,
                str(rel.data_flow_direction or '-'),
            )
        renderables.append(table)

    if asset.dependencies:
        table = Table(title='Dependencies')
        table.add_column('Type', style='cyan')
        table.add_column('Dependent Asset', style='green')
        table.add_column('Criticality')
        table.add_column('Active')
        for dep in asset.dependencies:
            table.add_row(
                dep.dependency_type,
                dep.dependent_asset_name or f"[dim]{dep.dependent_asset_id} (missing)[/dim]",
                _styled(dep.criticality, criticality_style(dep.criticality)),
                'yes' if dep.is_active else 'no',
            )
        renderables.append(table)

    if asset.vulnerabilities:
        table = Table(title='Vulnerabilities')
        table.add_column('CVE', style='cyan')
        table.add_column('Title')
        table.add_column('Severity')
        table.add_column('CVSS', justify='right')
        table.add_column('Status')
        table.add_column('Discovered')
        for vuln in asset.vulnerabilities:
            table.add_row(
                vuln.cve_id or '-',
                vuln.title,
                str(vuln.severity),
                '-' if vuln.cvss_score is None else f"{vuln.cvss_score:.1f}",
                str(vuln.status),
                format_date(vuln.discovered_at),
            )
        renderables.append(table)
    return renderables


@handle_errors
def show(
    asset_id: str = typer.Argument(..., help='Asset id'),
):
    """
    Show one asset with its relationships, dependencies and vulnerabilities.
    """
    service = get_container().get_asset_service()
    asset = asyncio.run(service.fetch_asset_detail(asset_id))
    if asset is None:
        console.print(f"[yellow]Asset not found: {asset_id}[/yellow]")
        raise typer.Exit(1)
    for renderable in render_detail(asset):
        console.print(renderable)


@handle_errors
def import_assets(
    input_file: Path = typer.Argument(..., exists=True, dir_okay=False, help='JSON array or JSONL file of assets'),
    organization: str | None = typer.Option(None, '--org', help='Organization id'),
):
    """
    Bulk-import assets; bad rows are reported and skipped.
    """
    records = load_records(input_file)
    logger.info('Importing assets', path=str(input_file), records=len(records))

    service = get_container().get_asset_service()
    result = asyncio.run(service.import_assets(records, organization))

    table = Table(title='Import Summary')
    table.add_column('Metric', style='cyan')
    table.add_column('Value', style='magenta')
    table.add_row('Records', str(result.total))
    table.add_row('Imported', str(result.succeeded))
    table.add_row('Failed', str(result.failed))
    table.add_row('Duration', f"{result.elapsed_time:.2f}s")
    console.print(table)

    if result.errors:
        console.print('[bold red]Errors:[/bold red]')
        for reason in result.errors:
            console.print(f"  - {reason}")
        if result.failed > len(result.errors):
            console.print(f"[dim]... and more ({result.failed} failed rows in total)[/dim]")


@handle_errors
def delete(
    asset_ids: list[str] = typer.Argument(..., help='Asset ids to delete'),
    yes: bool = typer.Option(False, '--yes', '-y', help='Skip confirmation'),
):
    """
    Delete assets and every edge pointing at them.
    """
    if not yes:
        typer.confirm(f"Delete {len(asset_ids)} asset(s)?", abort=True)
    service = get_container().get_asset_service()
    asyncio.run(service.delete_assets(asset_ids))
    console.print(f"[green]Deleted {len(asset_ids)} asset(s).[/green]")
