import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import clock, models
from .db import transaction
from .errors import Conflict, InvalidArgument, NotFound

logger = logging.getLogger(__name__)


def _clean_name(name: str, what: str):
    name = (name or "").strip()
    if not name:
        raise InvalidArgument(f"{what} name must not be blank")
    return name


# Tables


def list_tables(db: Session):
    return db.query(models.Table).order_by(models.Table.id).all()


def get_table(db: Session, table_id: int):
    table = db.query(models.Table).filter(models.Table.id == table_id).first()
    if not table:
        raise NotFound(f"Table {table_id} not found")
    return table


def create_table(db: Session, name: str, table_type: str = "regular"):
    if table_type not in models.TABLE_TYPES:
        raise InvalidArgument(f"Invalid table type: {table_type!r}")
    table = models.Table(name=_clean_name(name, "Table"), type=table_type, status="available")
    db.add(table)
    db.commit()
    db.refresh(table)
    return table


def update_table_status(db: Session, table_id: int, status: str):
    if status not in models.TABLE_STATUSES:
        raise InvalidArgument(f"Invalid table status: {status!r}")
    table = get_table(db, table_id)
    table.status = status
    db.commit()
    db.refresh(table)
    logger.info("Table %s status set to %s", table_id, status)
    return table


def delete_table(db: Session, table_id: int):
    table = get_table(db, table_id)
    if table.status != "available":
        raise Conflict(f"Table {table_id} is {table.status} and cannot be deleted")
    db.delete(table)
    db.commit()


# Menu collections


def list_menu_collections(db: Session):
    return db.query(models.MenuCollection).order_by(models.MenuCollection.id).all()


def get_menu_collection(db: Session, collection_id: int):
    collection = (
        db.query(models.MenuCollection)
        .filter(models.MenuCollection.id == collection_id)
        .first()
    )
    if not collection:
        raise NotFound(f"Menu collection {collection_id} not found")
    return collection


def _ensure_collection_name_free(db: Session, name: str, exclude_id=None):
    query = db.query(models.MenuCollection).filter(models.MenuCollection.name == name)
    if exclude_id is not None:
        query = query.filter(models.MenuCollection.id != exclude_id)
    if query.first():
        raise Conflict(f"Menu collection {name!r} already exists")


def create_menu_collection(db: Session, data):
    name = _clean_name(data["name"], "Menu collection")
    _ensure_collection_name_free(db, name)
    collection = models.MenuCollection(
        name=name,
        description=data.get("description"),
        is_active=data.get("is_active", True),
        created_at=clock.now_iso(),
    )
    db.add(collection)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"Menu collection {name!r} already exists")
    db.refresh(collection)
    return collection


def update_menu_collection(db: Session, collection_id: int, data):
    collection = get_menu_collection(db, collection_id)
    if data.get("name") is not None:
        data["name"] = _clean_name(data["name"], "Menu collection")
        _ensure_collection_name_free(db, data["name"], exclude_id=collection_id)
    for key in ["name", "description", "is_active"]:
        if key in data and (data[key] is not None or key == "description"):
            setattr(collection, key, data[key])
    db.commit()
    db.refresh(collection)
    return collection


def delete_menu_collection(db: Session, collection_id: int):
    collection = get_menu_collection(db, collection_id)
    linked = (
        db.query(models.MenuItem.id)
        .filter(models.MenuItem.menu_collection_id == collection_id)
        .first()
    )
    if linked:
        raise Conflict(f"Menu collection {collection_id} still has menu items")
    db.delete(collection)
    db.commit()


# Menu items


def list_menu_items(db: Session, collection_id=None, search_term=None, category=None):
    query = db.query(models.MenuItem)
    if collection_id is not None:
        query = query.filter(models.MenuItem.menu_collection_id == collection_id)
    if search_term:
        query = query.filter(models.MenuItem.name.ilike(f"%{search_term}%"))
    if category:
        query = query.filter(models.MenuItem.category == category)
    return query.order_by(models.MenuItem.category, models.MenuItem.name).all()


def get_menu_item(db: Session, item_id: int):
    item = db.query(models.MenuItem).filter(models.MenuItem.id == item_id).first()
    if not item:
        raise NotFound(f"Menu item {item_id} not found")
    return item


def create_menu_item(db: Session, item_data):
    get_menu_collection(db, item_data["menu_collection_id"])
    item = models.MenuItem(
        name=_clean_name(item_data["name"], "Menu item"),
        price=item_data["price"],
        category=item_data["category"],
        image_url=item_data.get("image_url"),
        available=item_data.get("available", True),
        menu_collection_id=item_data["menu_collection_id"],
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_menu_item(db: Session, item_id: int, item_data):
    item = get_menu_item(db, item_id)
    if item_data.get("name") is not None:
        item_data["name"] = _clean_name(item_data["name"], "Menu item")
    if item_data.get("menu_collection_id") is not None:
        get_menu_collection(db, item_data["menu_collection_id"])
    for key in ["name", "price", "category", "image_url", "available", "menu_collection_id"]:
        if key in item_data and (item_data[key] is not None or key == "image_url"):
            setattr(item, key, item_data[key])
    db.commit()
    db.refresh(item)
    return item


def delete_menu_item(db: Session, item_id: int):
    item = get_menu_item(db, item_id)
    with transaction(db):
        # order lines keep their name/price snapshot
        db.query(models.OrderItem).filter(models.OrderItem.menu_item_id == item_id).update(
            {models.OrderItem.menu_item_id: None}, synchronize_session=False
        )
        db.delete(item)
