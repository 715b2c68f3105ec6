import logging

from sqlalchemy.orm import Session

from . import clock, crud, models

logger = logging.getLogger(__name__)

REGULAR_TABLE_COUNT = 16

SAMPLE_MENU = [
    {"name": "Black Coffee", "price": 15000, "category": "Coffee"},
    {"name": "Milk Coffee", "price": 20000, "category": "Coffee"},
    {"name": "Salted Cream Coffee", "price": 25000, "category": "Coffee"},
    {"name": "Coconut Coffee", "price": 30000, "category": "Coffee"},
    {"name": "Peach Tea", "price": 30000, "category": "Tea"},
    {"name": "Lotus Tea", "price": 25000, "category": "Tea"},
    {"name": "Orange Juice", "price": 30000, "category": "Juice"},
    {"name": "Banh Mi", "price": 20000, "category": "Food"},
]


def seed_tables(db: Session):
    if db.query(models.Table).count() > 0:
        return
    tables = [
        models.Table(name=f"Table {number}", type="regular", status="available")
        for number in range(1, REGULAR_TABLE_COUNT + 1)
    ]
    tables.append(models.Table(name="Takeaway", type="special", status="available"))
    db.add_all(tables)
    db.commit()
    logger.info("Seeded %s tables", len(tables))


def seed_menu(db: Session):
    collection = (
        db.query(models.MenuCollection)
        .order_by(models.MenuCollection.is_active.desc(), models.MenuCollection.id)
        .first()
    )
    if collection is None:
        collection = models.MenuCollection(
            name="Main Menu",
            description="Everyday food and drinks",
            is_active=True,
            created_at=clock.now_iso(),
        )
        db.add(collection)
        db.commit()
        db.refresh(collection)
        logger.info("Seeded default menu collection %s", collection.id)

    if db.query(models.MenuItem).count() > 0:
        return
    for item in SAMPLE_MENU:
        crud.create_menu_item(db, {**item, "menu_collection_id": collection.id})
    logger.info("Seeded %s menu items", len(SAMPLE_MENU))


def seed_all(db: Session):
    seed_tables(db)
    seed_menu(db)
