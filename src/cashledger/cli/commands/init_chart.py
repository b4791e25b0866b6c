"""Initialize the default chart of accounts."""

import click

from cashledger.cli.error_handling import handle_domain_error
from cashledger.domain.chart import ChartOfAccountsService
from cashledger.domain.enums import LedgerClass
from cashledger.domain.errors import DomainError

# (code, name, classification, parent code, imputable); parents come first
INITIAL_CHART = [
    ("1", "Activo", LedgerClass.ASSET, None, False),
    ("1.1", "Activo corriente", None, "1", False),
    ("1.1.01", "Caja", None, "1.1", True),
    ("1.1.02", "Bancos", None, "1.1", True),
    ("1.1.03", "Billeteras virtuales", None, "1.1", True),
    ("1.1.04", "Inversiones", None, "1.1", True),
    ("1.1.05", "Créditos por ventas", None, "1.1", True),
    ("2", "Pasivo", LedgerClass.LIABILITY, None, False),
    ("2.1", "Pasivo corriente", None, "2", False),
    ("2.1.01", "Proveedores", None, "2.1", True),
    ("2.1.02", "Anticipos de clientes", None, "2.1", True),
    ("2.1.03", "Deudas fiscales", None, "2.1", True),
    ("3", "Patrimonio neto", LedgerClass.EQUITY, None, False),
    ("3.1", "Capital", None, "3", True),
    ("3.2", "Resultados acumulados", None, "3", True),
    ("4", "Ingresos", LedgerClass.INCOME, None, False),
    ("4.1", "Ingresos operativos", None, "4", False),
    ("4.1.01", "Servicios facturados", None, "4.1", True),
    ("4.1.02", "Reintegros", None, "4.1", True),
    ("4.2", "Ingresos financieros", None, "4", True),
    ("5", "Gastos", LedgerClass.EXPENSE, None, False),
    ("5.1", "Costos operativos", None, "5", False),
    ("5.1.01", "Materiales", None, "5.1", True),
    ("5.1.02", "Mano de obra", None, "5.1", True),
    ("5.1.03", "Subcontratistas", None, "5.1", True),
    ("5.1.04", "Combustible y viáticos", None, "5.1", True),
    ("5.2", "Gastos administrativos", None, "5", False),
    ("5.2.01", "Servicios", None, "5.2", True),
    ("5.2.02", "Impuestos y tasas", None, "5.2", True),
    ("5.2.03", "Herramientas", None, "5.2", True),
]


@click.command("init-chart")
@click.pass_context
def init_chart(ctx):
    """Initialize the database with a default chart of accounts.

    Existing codes are left untouched, so running it twice is harmless.
    """
    db = ctx.obj["db"]
    service = ChartOfAccountsService(db)

    click.echo("Creating chart of accounts...")
    created = 0
    skipped = 0
    ids_by_code: dict[str, int] = {}

    for code, name, classification, parent_code, imputable in INITIAL_CHART:
        existing = service.get_node_by_code(code)
        if existing is not None:
            ids_by_code[code] = existing.id
            skipped += 1
            continue
        try:
            ids_by_code[code] = service.create_node(
                code=code,
                name=name,
                classification=classification,
                parent_id=ids_by_code.get(parent_code) if parent_code else None,
                imputable=imputable,
            )
            created += 1
        except DomainError as e:
            handle_domain_error(ctx, e)

    click.echo(f"Created {created} ledger account(s), {skipped} already existed.")


def register_commands(cli):
    """Register init-chart command with main CLI."""
    cli.add_command(init_chart)
