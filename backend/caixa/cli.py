# Overview: Flask CLI command groups for bootstrap, demo data, and sale inspection.

# backend/caixa/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed-demo
#   Insert a handful of demo products with opening stock (skips existing barcodes).
#
# Sales inspection:
# - python -m flask sales show INV-20261017-0042
#   Print a sale with its lines and the stock movements it produced.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, Sale
from .services import sales_service, stock_service


DEMO_PRODUCTS = [
    # barcode, name, cost_cents, price_cents, opening stock
    ("6001234500011", "Arroz 1kg", 6500, 8900, 40),
    ("6001234500028", "Oleo Vegetal 1L", 11000, 14500, 24),
    ("6001234500035", "Acucar 1kg", 5200, 7000, 36),
    ("6001234500042", "Agua Mineral 500ml", 1500, 2500, 120),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask catalog seed-demo' for sample data.")


@click.group('catalog')
def catalog_group():
    """Demo catalog commands."""


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Insert demo products; opening stock is recorded as an 'in' movement."""
    created = 0
    for barcode, name, cost, price, opening in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(barcode=barcode).first():
            click.echo(f"SKIP  {barcode} {name} already exists")
            continue

        product = Product(
            barcode=barcode,
            sku=f"SKU-{barcode[-5:]}",
            name=name,
            cost_price_cents=cost,
            sale_price_cents=price,
            stock_quantity=0,
        )
        db.session.add(product)
        db.session.commit()

        stock_service.add_movement(
            product_id=product.id,
            movement_type="in",
            quantity=opening,
            cost_price_cents=cost,
            notes="Opening stock",
        )
        created += 1
        click.echo(f"PASS  {barcode} {name} (stock {opening})")

    click.echo(f"DONE  {created} product(s) created")


@click.group('sales')
def sales_group():
    """Sale inspection commands."""


@sales_group.command('show')
@click.argument('invoice_number')
@with_appcontext
def show_sale(invoice_number):
    """Show a sale, its lines and its stock movements."""
    sale = db.session.query(Sale).filter_by(invoice_number=invoice_number).first()
    if not sale:
        raise click.ClickException(f"Sale {invoice_number} not found")

    click.echo("\n" + "=" * 80)
    click.echo(f"{sale.invoice_number}  status={sale.status}  method={sale.payment_method}")
    click.echo("=" * 80)
    click.echo(f"{'Product':<30} {'Qty':>5} {'Unit':>10} {'Disc':>8} {'Tax':>8} {'Total':>10}")
    click.echo("-" * 80)
    for item in sales_service.get_sale_items(sale.id):
        click.echo(
            f"{item.product_name[:30]:<30} {item.quantity:>5} {item.unit_price_cents:>10} "
            f"{item.discount_cents:>8} {item.tax_cents:>8} {item.total_cents:>10}"
        )
    click.echo("-" * 80)
    click.echo(
        f"subtotal={sale.subtotal_cents} discount={sale.discount_cents} "
        f"tax={sale.tax_cents} total={sale.total_cents} change={sale.change_given_cents}"
    )

    movements = stock_service.list_sale_movements(sale.id)
    click.echo(f"\nStock movements: {len(movements)}")
    for m in movements:
        click.echo(f"  product={m.product_id} {m.type} {m.quantity}: {m.previous_quantity} -> {m.new_quantity}")
    click.echo("=" * 80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(sales_group)
