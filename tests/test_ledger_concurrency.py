import threading

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from backoffice.db.base import Base
from backoffice.models.inventory import InventoryRecord, StockMovement
from backoffice.models.product import Product
from backoffice.schemas.inventory import StockMovementIn
from backoffice.services.inventory_service import record_stock_movement

WORKERS = 30


@pytest.fixture()
def file_session_local(tmp_path):
    # Every session gets its own connection to one database file, as separate
    # request threads do in production.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )
    Base.metadata.create_all(bind=engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield session_local
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def _seed_product(session_local) -> str:
    with session_local() as db:
        product = Product(name="Thread Tee", slug="thread-tee", price=10)
        db.add(product)
        db.commit()
        return product.id


def _stock_in(session_local, product_id: str, quantity: int = 1, reason: str = "restock") -> StockMovement:
    with session_local() as db:
        return record_stock_movement(
            db,
            StockMovementIn(product_id=product_id, movement_type="in", quantity=quantity, reason=reason),
        )


def _inventory(session_local, product_id: str) -> InventoryRecord | None:
    with session_local() as db:
        return db.execute(
            select(InventoryRecord).where(InventoryRecord.product_id == product_id)
        ).scalar_one_or_none()


def _movement_count(session_local) -> int:
    with session_local() as db:
        return db.execute(select(func.count(StockMovement.id))).scalar_one()


def test_parallel_stock_in_on_one_key_loses_no_update(file_session_local):
    product_id = _seed_product(file_session_local)
    start = threading.Barrier(WORKERS)
    errors: list[BaseException] = []
    guard = threading.Lock()

    def worker():
        start.wait()
        try:
            _stock_in(file_session_local, product_id)
        except Exception as exc:  # collected and asserted below
            with guard:
                errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(WORKERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    record = _inventory(file_session_local, product_id)
    assert record.quantity == WORKERS
    assert record.available_quantity == WORKERS

    with file_session_local() as db:
        movements = db.execute(select(StockMovement)).scalars().all()
    assert len(movements) == WORKERS
    assert {movement.inventory_id for movement in movements} == {record.id}
    assert sorted(movement.previous_quantity for movement in movements) == list(range(WORKERS))
    assert sorted(movement.new_quantity for movement in movements) == list(range(1, WORKERS + 1))


def test_failed_ledger_insert_leaves_existing_inventory_unchanged(file_session_local):
    product_id = _seed_product(file_session_local)
    _stock_in(file_session_local, product_id, quantity=7)

    def fail_insert(mapper, connection, target):
        raise RuntimeError("ledger insert failed")

    event.listen(StockMovement, "before_insert", fail_insert)
    try:
        with pytest.raises(RuntimeError):
            _stock_in(file_session_local, product_id, quantity=5)
    finally:
        event.remove(StockMovement, "before_insert", fail_insert)

    record = _inventory(file_session_local, product_id)
    assert record.quantity == 7
    assert record.available_quantity == 7
    assert _movement_count(file_session_local) == 1


def test_failed_ledger_insert_creates_no_inventory_record(file_session_local):
    product_id = _seed_product(file_session_local)

    def fail_insert(mapper, connection, target):
        raise RuntimeError("ledger insert failed")

    event.listen(StockMovement, "before_insert", fail_insert)
    try:
        with pytest.raises(RuntimeError):
            _stock_in(file_session_local, product_id, quantity=5)
    finally:
        event.remove(StockMovement, "before_insert", fail_insert)

    assert _inventory(file_session_local, product_id) is None
    assert _movement_count(file_session_local) == 0


def test_failed_commit_leaves_inventory_and_ledger_unchanged(file_session_local):
    product_id = _seed_product(file_session_local)
    _stock_in(file_session_local, product_id, quantity=3)

    def fail_commit(session):
        raise RuntimeError("commit failed")

    with file_session_local() as db:
        event.listen(db, "before_commit", fail_commit)
        with pytest.raises(RuntimeError):
            record_stock_movement(
                db,
                StockMovementIn(product_id=product_id, movement_type="out", quantity=2, reason="sale"),
            )

    record = _inventory(file_session_local, product_id)
    assert record.quantity == 3
    assert _movement_count(file_session_local) == 1

    # The key lock was released, so the next movement goes through.
    _stock_in(file_session_local, product_id, quantity=1)
    assert _inventory(file_session_local, product_id).quantity == 4
