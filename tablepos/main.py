import logging
import time
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import billing, clock, config, crud, orders, reporting, schemas, seed
from .db import Base, SessionLocal, engine, get_db
from .errors import POSError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="tablepos")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@app.on_event("startup")
def on_startup():
    if not clock.has_fixed_offset(config.TIMEZONE):
        logger.warning(
            "Timezone %s changes its UTC offset during the year; bill date ranges near the switch will be wrong",
            config.TIMEZONE,
        )
    Base.metadata.create_all(bind=engine)
    if not config.SEED_ON_STARTUP:
        return
    db = SessionLocal()
    try:
        seed.seed_all(db)
    finally:
        db.close()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s %s in %.0fms", request.method, request.url.path, response.status_code, elapsed
    )
    return response


@app.exception_handler(POSError)
async def handle_pos_error(request: Request, exc: POSError):
    if exc.status_code < 500:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def handle_storage_error(request: Request, exc: SQLAlchemyError):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal storage error"})


def order_to_out(order) -> schemas.OrderWithItems:
    return schemas.OrderWithItems.model_validate(order)


# Tables


@app.get("/tables", response_model=List[schemas.TableOut])
def get_tables(db: Session = Depends(get_db)):
    return crud.list_tables(db)


@app.post("/tables", response_model=schemas.TableOut, status_code=201)
def create_table(table_in: schemas.TableCreate, db: Session = Depends(get_db)):
    return crud.create_table(db, table_in.name, table_in.type)


@app.delete("/tables/{table_id}")
def delete_table(table_id: int, db: Session = Depends(get_db)):
    crud.delete_table(db, table_id)
    return {"ok": True}


@app.put("/tables/{table_id}/status", response_model=schemas.TableOut)
def update_table_status(
    table_id: int, status_in: schemas.TableStatusUpdate, db: Session = Depends(get_db)
):
    return crud.update_table_status(db, table_id, status_in.status)


@app.get("/tables/{table_id}/active-order", response_model=Optional[schemas.OrderWithItems])
def get_active_order(table_id: int, db: Session = Depends(get_db)):
    order = orders.get_active_order(db, table_id)
    if not order:
        return None
    return order_to_out(order)


# Menu collections


@app.get("/menu-collections", response_model=List[schemas.MenuCollectionOut])
def get_menu_collections(db: Session = Depends(get_db)):
    return crud.list_menu_collections(db)


@app.get("/menu-collections/{collection_id}", response_model=schemas.MenuCollectionOut)
def get_menu_collection(collection_id: int, db: Session = Depends(get_db)):
    return crud.get_menu_collection(db, collection_id)


@app.post("/menu-collections", response_model=schemas.MenuCollectionOut, status_code=201)
def create_menu_collection(
    collection_in: schemas.MenuCollectionCreate, db: Session = Depends(get_db)
):
    return crud.create_menu_collection(db, collection_in.model_dump())


@app.put("/menu-collections/{collection_id}", response_model=schemas.MenuCollectionOut)
def update_menu_collection(
    collection_id: int,
    collection_in: schemas.MenuCollectionUpdate,
    db: Session = Depends(get_db),
):
    return crud.update_menu_collection(
        db, collection_id, collection_in.model_dump(exclude_unset=True)
    )


@app.delete("/menu-collections/{collection_id}")
def delete_menu_collection(collection_id: int, db: Session = Depends(get_db)):
    crud.delete_menu_collection(db, collection_id)
    return {"ok": True}


# Menu items


@app.get("/menu-items", response_model=List[schemas.MenuItemOut])
def get_menu_items(
    collection_id: Optional[int] = Query(default=None, alias="collectionId"),
    search_term: Optional[str] = Query(default=None, alias="searchTerm"),
    category: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return crud.list_menu_items(db, collection_id, search_term, category)


@app.get("/menu-items/{item_id}", response_model=schemas.MenuItemOut)
def get_menu_item(item_id: int, db: Session = Depends(get_db)):
    return crud.get_menu_item(db, item_id)


@app.post("/menu-items", response_model=schemas.MenuItemOut, status_code=201)
def create_menu_item(menu_in: schemas.MenuItemCreate, db: Session = Depends(get_db)):
    return crud.create_menu_item(db, menu_in.model_dump())


@app.put("/menu-items/{item_id}", response_model=schemas.MenuItemOut)
def update_menu_item(
    item_id: int, menu_in: schemas.MenuItemUpdate, db: Session = Depends(get_db)
):
    return crud.update_menu_item(db, item_id, menu_in.model_dump(exclude_unset=True))


@app.delete("/menu-items/{item_id}")
def delete_menu_item(item_id: int, db: Session = Depends(get_db)):
    crud.delete_menu_item(db, item_id)
    return {"ok": True}


# Orders


@app.get("/orders", response_model=List[schemas.OrderOut])
def list_orders(db: Session = Depends(get_db)):
    return orders.list_orders(db)


@app.post("/orders", response_model=schemas.OrderWithItems, status_code=201)
def create_order(order_in: schemas.OrderCreate, db: Session = Depends(get_db)):
    order = orders.create_order(db, order_in.table_id, order_in.table_name)
    return order_to_out(order)


@app.put("/orders/{order_id}/complete", response_model=schemas.OrderOut)
def complete_order(
    order_id: int, payment_in: schemas.CompleteRequest, db: Session = Depends(get_db)
):
    return billing.complete_order(
        db, order_id, payment_in.payment_method, payment_in.discount_amount
    )


@app.put("/orders/{order_id}/note", response_model=schemas.OrderOut)
def update_order_note(
    order_id: int, note_in: schemas.NoteUpdate, db: Session = Depends(get_db)
):
    return orders.set_note(db, order_id, note_in.note)


@app.put("/orders/{order_id}/cancel", response_model=schemas.OrderOut)
def cancel_order(
    order_id: int,
    cancel_in: Optional[schemas.CancelRequest] = None,
    db: Session = Depends(get_db),
):
    table_id = cancel_in.table_id if cancel_in else None
    return orders.cancel_order(db, order_id, table_id)


@app.post("/orders/{order_id}/partial-payment", response_model=schemas.OrderWithItems)
def partial_payment(
    order_id: int, payment_in: schemas.PartialPaymentRequest, db: Session = Depends(get_db)
):
    order = billing.process_partial_payment(
        db,
        order_id,
        [(item.order_item_id, item.quantity) for item in payment_in.items_to_pay],
        payment_in.payment_method,
        payment_in.partial_discount_amount,
    )
    return order_to_out(order)


# Order items


@app.get("/orders/{order_id}/items", response_model=List[schemas.OrderItemOut])
def get_order_items(order_id: int, db: Session = Depends(get_db)):
    orders.get_order(db, order_id)
    return orders.list_order_items(db, order_id)


@app.post("/orders/{order_id}/items", response_model=schemas.OrderWithItems, status_code=201)
def add_order_item(
    order_id: int, item_in: schemas.OrderItemCreate, db: Session = Depends(get_db)
):
    order = orders.add_item(db, order_id, item_in.menu_item_id, item_in.quantity, item_in.note)
    return order_to_out(order)


@app.put("/order-items/{item_id}", response_model=schemas.OrderItemOut)
def update_order_item(
    item_id: int, item_in: schemas.OrderItemUpdate, db: Session = Depends(get_db)
):
    updates = item_in.model_dump(exclude_unset=True)
    return orders.update_item(db, item_id, **updates)


@app.delete("/order-items/{item_id}", response_model=schemas.OrderWithItems)
def remove_order_item(item_id: int, db: Session = Depends(get_db)):
    order = orders.remove_item(db, item_id)
    return order_to_out(order)


# Revenue and bills


@app.get("/revenue/daily", response_model=schemas.DailyRevenueOut)
def daily_revenue(date: Optional[str] = None, db: Session = Depends(get_db)):
    return {"revenue": reporting.daily_revenue(db, clock.parse_day_start(date))}


@app.get("/revenue/by-table", response_model=List[schemas.TableRevenueOut])
def revenue_by_table(date: Optional[str] = None, db: Session = Depends(get_db)):
    return reporting.revenue_by_table(db, clock.parse_day_start(date))


def _bill_range(start_date: Optional[str], end_date: Optional[str]):
    start = clock.parse_instant(start_date, "startDate") if start_date else None
    end = clock.parse_instant(end_date, "endDate") if end_date else None
    return start, end


@app.get("/bills", response_model=List[schemas.BillOut])
def list_bills(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    return reporting.list_bills(db, *_bill_range(start_date, end_date))


@app.get("/bills/{bill_id}/items", response_model=List[schemas.OrderItemOut])
def get_bill_items(bill_id: int, db: Session = Depends(get_db)):
    return reporting.bill_items(db, bill_id)


@app.get("/reports/export-bills")
def export_bills(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    bills = reporting.list_bills(db, *_bill_range(start_date, end_date))
    content = reporting.export_bills_workbook(bills)
    logger.info("Exported %s bills", len(bills))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{reporting.export_filename()}"'
        },
    )
