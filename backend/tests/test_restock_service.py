import threading

import pytest

from tabstock import create_app
from tabstock.extensions import db
from tabstock.errors import ValidationError, NotFoundError, InsufficientStockError, StockConflictError
from tabstock.models import Product, RestockMovement, RestockMovementLine
from tabstock.services import restock_service
from tabstock.validation import MAX_DB_INT, RestockLine, normalize_restock_lines

from conftest import ADMIN_TOKEN, stock_of


def _movement_count() -> int:
    return db.session.query(RestockMovement).count()


def test_correction_larger_than_stock_is_rejected(make_product):
    product = make_product("Cola", qty=5)

    with pytest.raises(InsufficientStockError) as exc:
        restock_service.restock(lines=[RestockLine(product.id, -6)])

    assert exc.value.product_id == product.id
    assert exc.value.current_qty == 5
    assert exc.value.requested_removal == 6
    assert stock_of(product.id) == 5
    assert _movement_count() == 0


def test_correction_down_to_zero_is_accepted(make_product):
    product = make_product("Cola", qty=5)

    move_id = restock_service.restock(lines=[RestockLine(product.id, -5)])

    assert stock_of(product.id) == 0
    move = db.session.get(RestockMovement, move_id)
    assert move is not None
    assert [(line.product_id, line.qty_delta, line.qty_after) for line in move.lines] == [(product.id, -5, 0)]


def test_rejected_batch_leaves_every_line_unchanged(make_product):
    water = make_product("Water", qty=10)
    juice = make_product("Juice", qty=2)

    with pytest.raises(InsufficientStockError):
        restock_service.restock(lines=[
            RestockLine(water.id, 12),
            RestockLine(water.id, -4),
            RestockLine(juice.id, -3),
        ])

    assert stock_of(water.id) == 10
    assert stock_of(juice.id) == 2
    assert _movement_count() == 0


def test_removals_are_summed_per_product(make_product):
    product = make_product("Cola", qty=5)

    with pytest.raises(InsufficientStockError) as exc:
        restock_service.restock(lines=[RestockLine(product.id, -3), RestockLine(product.id, -3)])

    assert exc.value.requested_removal == 6
    assert stock_of(product.id) == 5


def test_sequential_batches_net_out(make_product):
    product = make_product("Soda", qty=0)

    restock_service.restock(lines=[RestockLine(product.id, 10)], comment="delivery")
    restock_service.restock(lines=[RestockLine(product.id, -3)], comment="two broken, one missing")

    assert stock_of(product.id) == 7
    assert _movement_count() == 2


def test_multi_line_batch_writes_one_movement(make_product):
    cola = make_product("Cola", qty=1)
    water = make_product("Water", qty=4)

    move_id = restock_service.restock(
        lines=[RestockLine(cola.id, 24), RestockLine(water.id, -1)],
        comment="  weekly run  ",
    )

    assert stock_of(cola.id) == 25
    assert stock_of(water.id) == 3
    assert _movement_count() == 1
    move = restock_service.get_movement(move_id)
    assert move.comment == "weekly run"
    assert [line.position for line in move.lines] == [0, 1]
    assert len(move_id) == 32


def test_empty_batch_is_rejected(db_session):
    with pytest.raises(ValidationError):
        restock_service.restock(lines=[])
    assert _movement_count() == 0


def test_unknown_product_is_not_found(make_product):
    product = make_product("Cola", qty=3)

    with pytest.raises(NotFoundError):
        restock_service.restock(lines=[RestockLine(product.id, 5), RestockLine(product.id + 999, 1)])

    assert stock_of(product.id) == 3
    assert _movement_count() == 0


def test_lost_conditional_update_rolls_back_whole_batch(make_product, monkeypatch):
    cola = make_product("Cola", qty=3)
    water = make_product("Water", qty=2)

    stale = {cola.id: 3, water.id: 5}

    # Simulates a stale read: another writer took stock between read and write
    def stale_quantities(product_ids, lock=False):
        return dict(stale)

    monkeypatch.setattr(restock_service, "get_quantities", stale_quantities)

    with pytest.raises(StockConflictError) as exc:
        restock_service.restock(lines=[RestockLine(cola.id, 10), RestockLine(water.id, -4)])

    assert exc.value.retryable is True
    # First line was applied inside the transaction, then rolled back
    assert stock_of(cola.id) == 3
    assert stock_of(water.id) == 2
    assert _movement_count() == 0
    assert db.session.query(RestockMovementLine).count() == 0


def test_stock_conflict_is_a_conflict_not_a_validation_error():
    from tabstock.errors import ConflictError

    assert issubclass(StockConflictError, ConflictError)
    assert not issubclass(InsufficientStockError, ConflictError)


def test_comment_too_long(make_product):
    product = make_product("Cola", qty=0)
    with pytest.raises(ValidationError):
        restock_service.restock(lines=[RestockLine(product.id, 1)], comment="x" * 501)
    assert stock_of(product.id) == 0


def test_normalize_drops_incomplete_rows():
    lines = normalize_restock_lines([
        {"product_id": 0, "qty": 1},
        {"product_id": -2, "qty": 5},
        {"product_id": 3, "qty": 0},
        {"product_id": 4, "qty": float("nan")},
        {"product_id": 5, "qty": float("inf")},
        {"product_id": 6},
        {"qty": 2},
        {"product_id": 7, "qty": 10},
        {"product_id": 7, "qty": -3.0},
    ])

    assert lines == [RestockLine(7, 10), RestockLine(7, -3)]


def test_normalize_rejects_malformed_rows():
    with pytest.raises(ValidationError):
        normalize_restock_lines({"product_id": 1, "qty": 1})
    with pytest.raises(ValidationError):
        normalize_restock_lines(["oops"])
    with pytest.raises(ValidationError):
        normalize_restock_lines([{"product_id": "1", "qty": 1}])
    with pytest.raises(ValidationError):
        normalize_restock_lines([{"product_id": 1, "qty": 1.5}])
    with pytest.raises(ValidationError):
        normalize_restock_lines([{"product_id": 1, "qty": True}])


def test_normalize_rejects_values_past_integer_column():
    assert normalize_restock_lines([{"product_id": MAX_DB_INT, "qty": -MAX_DB_INT}]) == [
        RestockLine(MAX_DB_INT, -MAX_DB_INT)
    ]
    for row in (
        {"product_id": MAX_DB_INT + 1, "qty": 1},
        {"product_id": 1, "qty": 10**20},
        {"product_id": 1, "qty": -(10**20)},
        {"product_id": 1, "qty": 1e300},
        {"product_id": 1e300, "qty": 1},
    ):
        with pytest.raises(ValidationError):
            normalize_restock_lines([row])


def test_two_threads_removing_the_same_stock(tmp_path, monkeypatch):
    """
    Two admins each remove the full stock of 5 after both have read 5.

    Runs against a file database so each thread gets its own connection.
    The first commit wins; the other's conditional update matches no row.
    """
    race_app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {
            'connect_args': {'check_same_thread': False, 'timeout': 10},
        },
        'ADMIN_TOKEN': ADMIN_TOKEN,
        'RESTOCK_RETRY_ATTEMPTS': 1,
    })

    with race_app.app_context():
        db.create_all()
        product = Product(name="Cola", qty=5)
        db.session.add(product)
        db.session.commit()
        product_id = product.id

    # Both threads must hold the same fresh read before either one writes
    barrier = threading.Barrier(2, timeout=10)
    real_get_quantities = restock_service.get_quantities

    def get_quantities_then_wait(product_ids, lock=False):
        stock = real_get_quantities(product_ids, lock=lock)
        barrier.wait()
        return stock

    monkeypatch.setattr(restock_service, "get_quantities", get_quantities_then_wait)

    results = []
    results_lock = threading.Lock()

    def remove_five():
        with race_app.app_context():
            try:
                outcome = restock_service.restock(lines=[RestockLine(product_id, -5)])
            except Exception as e:
                outcome = e
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=remove_five) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert len(results) == 2
    move_ids = [r for r in results if isinstance(r, str)]
    conflicts = [r for r in results if isinstance(r, StockConflictError)]
    assert len(move_ids) == 1, results
    assert len(conflicts) == 1, results

    with race_app.app_context():
        assert stock_of(product_id) == 0
        assert _movement_count() == 1
        line = db.session.query(RestockMovementLine).one()
        assert line.move_id == move_ids[0]
        assert line.qty_after == 0
        db.engine.dispose()
