# coffee_grinder/scripts/setup_db.py
import argparse
from decimal import Decimal

from coffee_grinder.db import db, session_scope
from coffee_grinder.logging_setup import get_logger
from coffee_grinder.models import CoffeeType, InventoryItem

logger = get_logger('db_setup')

DEMO_CATALOG = {
    'Arabica': [
        ('Ethiopia Yirgacheffe', 25, Decimal('32.50'), 'Floral, bergamot and lemon notes'),
        ('Colombia Supremo', 40, Decimal('24.00'), 'Balanced, caramel sweetness'),
    ],
    'Robusta': [
        ('Vietnam Dak Lak', 30, Decimal('14.75'), 'Dark chocolate, heavy body'),
    ],
    'Blend': [
        ('House Espresso', 50, Decimal('21.90'), 'Arabica/Robusta blend for espresso'),
    ],
    'Decaf': [
        ('Swiss Water Decaf', 12, Decimal('27.00'), None),
    ],
}

def setup_database(drop_existing=False, seed=False):
    """Set up the database schema.

    Args:
        drop_existing: If True, drop existing tables before creating new ones
        seed: If True, add the demo catalog to an empty database

    Returns:
        True if setup was successful, False otherwise
    """
    try:
        if drop_existing:
            logger.info("Dropping all existing tables...")
            db.drop_all_tables()
            logger.info("All tables dropped successfully.")

        logger.info("Creating database tables...")
        db.create_all_tables()
        logger.info("Database tables created successfully.")

        if seed:
            seed_demo_catalog()

        return True
    except Exception as e:
        logger.error(f"Error setting up database: {str(e)}")
        logger.exception(e)
        return False

def seed_demo_catalog():
    """Populate coffee types and inventory when the catalog is empty.

    Returns:
        Number of inventory items created
    """
    created = 0

    with session_scope() as session:
        if session.query(InventoryItem).first() is not None:
            logger.info("Inventory already populated, skipping demo catalog.")
            return created

        for type_name, coffees in DEMO_CATALOG.items():
            coffee_type = session.query(CoffeeType).filter(CoffeeType.type_name == type_name).first()
            if coffee_type is None:
                coffee_type = CoffeeType(type_name=type_name)
                session.add(coffee_type)

            for name, quantity, price, description in coffees:
                session.add(InventoryItem(
                    coffee_name=name,
                    coffee_type=coffee_type,
                    quantity_in_stock=quantity,
                    price_per_kg=price,
                    description=description
                ))
                created += 1

    logger.info(f"Seeded {created} demo coffees.")
    return created

def main():
    parser = argparse.ArgumentParser(description='Create the Coffee Grinder database')
    parser.add_argument('--drop', '-d', action='store_true', help='Drop existing tables before creating new ones')
    parser.add_argument('--seed', '-s', action='store_true', help='Add the demo catalog')

    args = parser.parse_args()

    success = setup_database(args.drop, args.seed)
    return 0 if success else 1

if __name__ == "__main__":
    raise SystemExit(main())
