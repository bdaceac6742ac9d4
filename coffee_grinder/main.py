import argparse
import sys

from tabulate import tabulate

from coffee_grinder.config import config
from coffee_grinder.db import db, session_scope
from coffee_grinder.exceptions import CoffeeGrinderError
from coffee_grinder.logging_setup import logger, get_logger, log_exception
from coffee_grinder.models import OrderStatus
from coffee_grinder.utils.math_utils import format_currency

log = get_logger('cli')

def init_application():
    """Initialize application components.

    Raises:
        DatabaseError: If the configured database cannot be reached
    """
    db.initialize()
    db.check_connection()
    db.create_all_tables()

    app_log = logger.app_logger
    app_log.info("Coffee Grinder initialized")
    app_log.info(f"Using database: {config.get('DATABASE', 'engine')} {config.get('DATABASE', 'database')}")

    return True

def _money(amount):
    return format_currency(amount, config.order_config['currency_symbol'])

def _print_items(items):
    table_data = [
        [
            item.id,
            item.coffee_name,
            item.coffee_type.type_name if item.coffee_type else '',
            item.quantity_in_stock,
            _money(item.price_per_kg),
            item.description or ''
        ]
        for item in items
    ]
    print(tabulate(table_data, headers=['ID', 'Name', 'Type', 'Stock (kg)', 'Price/kg', 'Description']))

def _inventory_fields(args):
    fields = {
        'coffee_name': args.name,
        'coffee_type_id': args.type_id,
        'quantity_in_stock': args.quantity,
        'price_per_kg': args.price,
        'description': args.description
    }
    return {k: v for k, v in fields.items() if v is not None}

def inventory_command(args):
    """Browse and maintain the coffee catalog."""
    from coffee_grinder.services.inventory_service import InventoryService

    with session_scope() as session:
        service = InventoryService(session)

        if args.action == 'list':
            items = service.list_items(search=args.search, coffee_type_id=args.type_id, in_stock_only=args.in_stock)
            if not items:
                print("No coffees found")
                return 0
            _print_items(items)
            print(f"\nTotal: {len(items)} coffees")

        elif args.action == 'show':
            _print_items([service.find_item(args.id)])

        elif args.action == 'add':
            item_id = service.create_item(_inventory_fields(args))
            print(f"Coffee added to inventory successfully (ID {item_id}).")

        elif args.action == 'update':
            service.update_item(args.id, _inventory_fields(args))
            print("Coffee updated successfully.")

        elif args.action == 'delete':
            if not args.yes:
                print("Deleting a coffee also deletes all related order details. Re-run with --yes to confirm.")
                return 1
            removed = service.delete_item(args.id)
            print(f"Coffee deleted successfully ({removed} order line(s) removed).")

    return 0

def types_command(args):
    """List or add coffee types."""
    from coffee_grinder.services.inventory_service import InventoryService

    with session_scope() as session:
        service = InventoryService(session)

        if args.action == 'list':
            print(tabulate([[t.id, t.type_name] for t in service.list_coffee_types()], headers=['ID', 'Type']))
        elif args.action == 'add':
            type_id = service.create_coffee_type(args.name)
            print(f"New coffee type added successfully (ID {type_id}).")

    return 0

def _parse_item_spec(value):
    try:
        item_id, quantity = value.split(':', 1)
        return int(item_id), int(quantity)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected ITEM_ID:QUANTITY, got '{value}'")

def create_order(args):
    """Compose and submit an order through the order composer."""
    from coffee_grinder.core.order_composer import OrderComposer

    composer = OrderComposer()
    composer.load()

    for item_id, quantity in args.item:
        for _ in range(quantity):
            update = composer.increase(item_id)
            if update.limit_reached:
                print(f"Stock limit: {update.stock_limit.message}")
                break

    receipt = composer.submit(args.customer, args.phone or '', args.notes or '')
    print(f"Order #{receipt.order_id} created successfully!\nTotal: {_money(receipt.total)}")
    return 0

def orders_command(args):
    """List, show or create orders."""
    from coffee_grinder.services.order_service import OrderService

    if args.action == 'create':
        return create_order(args)

    with session_scope() as session:
        service = OrderService(session)

        if args.action == 'list':
            status = OrderStatus.from_string(args.status) if args.status else None
            orders = service.get_orders(status=status)
            table_data = [
                [o.id, o.order_date.strftime('%Y-%m-%d %H:%M'), str(o.status), o.customer_name, o.phone_number or '', _money(o.total_price)]
                for o in orders
            ]
            print(tabulate(table_data, headers=['ID', 'Date', 'Status', 'Customer', 'Phone', 'Total']))

        elif args.action == 'show':
            order = service.get_order(args.id)
            print(f"Order #{order.id} - {order.customer_name} ({order.status})")
            print(f"Date: {order.order_date:%Y-%m-%d %H:%M}")
            if order.notes:
                print(f"Notes: {order.notes}")
            table_data = [
                [line.coffee.coffee_name, line.quantity, _money(line.unit_price), _money(line.subtotal)]
                for line in order.line_items
            ]
            print(tabulate(table_data, headers=['Coffee', 'Qty (kg)', 'Unit price', 'Subtotal']))
            print(f"\nTotal: {_money(order.total_price)}")

    return 0

def build_parser():
    parser = argparse.ArgumentParser(description='Coffee Grinder inventory and orders')

    parser.add_argument('--setup-db', action='store_true', help='Set up the database schema')
    parser.add_argument('--drop-db', action='store_true', help='Drop existing tables before setup')
    parser.add_argument('--seed', action='store_true', help='Add the demo catalog during setup')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Inventory commands
    inventory_parser = subparsers.add_parser('inventory', help='Browse and edit inventory')
    inventory_actions = inventory_parser.add_subparsers(dest='action', required=True)

    list_parser = inventory_actions.add_parser('list', help='List coffees')
    list_parser.add_argument('--search', type=str, help='Filter by name fragment')
    list_parser.add_argument('--type-id', type=int, help='Filter by coffee type')
    list_parser.add_argument('--in-stock', action='store_true', help='Only coffees with stock left')

    show_parser = inventory_actions.add_parser('show', help='Show one coffee')
    show_parser.add_argument('id', type=str, help='Coffee ID')

    for action in ('add', 'update'):
        edit_parser = inventory_actions.add_parser(action, help=f'{action.capitalize()} a coffee')
        if action == 'update':
            edit_parser.add_argument('id', type=int, help='Coffee ID')
        required = action == 'add'
        edit_parser.add_argument('--name', type=str, required=required, help='Coffee name')
        edit_parser.add_argument('--type-id', type=int, required=required, help='Coffee type ID')
        edit_parser.add_argument('--quantity', type=str, required=required, help='Stock in kg')
        edit_parser.add_argument('--price', type=str, required=required, help='Price per kg')
        edit_parser.add_argument('--description', type=str, help='Description')

    delete_parser = inventory_actions.add_parser('delete', help='Delete a coffee and its order lines')
    delete_parser.add_argument('id', type=int, help='Coffee ID')
    delete_parser.add_argument('--yes', action='store_true', help='Confirm the deletion')

    # Coffee type commands
    types_parser = subparsers.add_parser('types', help='Coffee types')
    types_actions = types_parser.add_subparsers(dest='action', required=True)
    types_actions.add_parser('list', help='List coffee types')
    add_type_parser = types_actions.add_parser('add', help='Add a coffee type')
    add_type_parser.add_argument('name', type=str, help='Type name')

    # Order commands
    orders_parser = subparsers.add_parser('orders', help='Customer orders')
    orders_actions = orders_parser.add_subparsers(dest='action', required=True)
    orders_list_parser = orders_actions.add_parser('list', help='List orders')
    orders_list_parser.add_argument('--status', type=str, help='Pending, Completed or Cancelled')
    orders_show_parser = orders_actions.add_parser('show', help='Show one order')
    orders_show_parser.add_argument('id', type=int, help='Order ID')
    create_parser = orders_actions.add_parser('create', help='Create an order')
    create_parser.add_argument('--customer', type=str, required=True, help='Customer name')
    create_parser.add_argument('--phone', type=str, help='Customer phone')
    create_parser.add_argument('--notes', type=str, help='Order notes')
    create_parser.add_argument('--item', type=_parse_item_spec, action='append', required=True,
                               help='ITEM_ID:QUANTITY, repeatable')

    return parser

def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        init_application()
    except CoffeeGrinderError as e:
        log_exception('cli', e, "Startup failed")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if args.setup_db:
        from coffee_grinder.scripts.setup_db import setup_database
        return 0 if setup_database(args.drop_db, args.seed) else 1

    handlers = {
        'inventory': inventory_command,
        'types': types_command,
        'orders': orders_command
    }

    if args.command not in handlers:
        parser.print_help()
        return 0

    try:
        return handlers[args.command](args)
    except CoffeeGrinderError as e:
        log.error(f"{args.command} {args.action} failed: {e}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
