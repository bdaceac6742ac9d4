"""
Shared database fixtures for the Coffee Grinder tests.
"""
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coffee_grinder.models import Base, CoffeeType, InventoryItem

def make_session_factory():
    """Create an in-memory SQLite database with the full schema.

    Returns:
        Tuple of (engine, session factory)
    """
    engine = create_engine(
        'sqlite://',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False}
    )
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine)

def seed_catalog(session_factory):
    """Add two coffee types and three coffees, one of them sold out.

    Returns:
        Dictionary of name -> inventory ID
    """
    session = session_factory()
    try:
        arabica = CoffeeType(type_name='Arabica')
        robusta = CoffeeType(type_name='Robusta')
        items = {
            'Ethiopia': InventoryItem(coffee_name='Ethiopia', coffee_type=arabica,
                                      quantity_in_stock=5, price_per_kg=Decimal('10.00')),
            'Vietnam': InventoryItem(coffee_name='Vietnam', coffee_type=robusta,
                                     quantity_in_stock=8, price_per_kg=Decimal('4.50'),
                                     description='Heavy body'),
            'Kenya': InventoryItem(coffee_name='Kenya', coffee_type=arabica,
                                   quantity_in_stock=0, price_per_kg=Decimal('18.00')),
        }
        session.add_all([arabica, robusta] + list(items.values()))
        session.commit()
        return {name: item.id for name, item in items.items()}
    finally:
        session.close()
