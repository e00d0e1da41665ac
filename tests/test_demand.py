"""Tests for demand ranking, stock cross-reference and the content plan."""

from collections import Counter

import pytest
from conftest import (
    NOW,
    TODAY_START,
    make_demand_event,
    make_exchange,
    make_message,
    make_product,
    make_thread,
)

from phonedesk.analytics.demand import (
    GENERIC_TOPICS,
    DemandSignal,
    DemandSignalRanker,
    StockItem,
    build_content_plan,
    build_restock_suggestions,
    build_stock_snapshot,
    find_unavailable,
    rank_demand,
    restock_tier,
    stock_by_phone_type,
    tally_signals,
)
from phonedesk.analytics.windows import DAY_MS, HOUR_MS, resolve_windows
from phonedesk.config import settings
from phonedesk.db.reader import CollectionReader
from phonedesk.ingest.demand_events import log_demand_event


def test_tally_normalizes_phone_types():
    counts = tally_signals(["iPhone 13", "  iphone   13 ", "IPHONE 13", "Galaxy S23", "  "])
    assert counts == Counter({"iphone 13": 3, "galaxy s23": 1})


class TestRanking:
    def test_most_signals_first(self):
        ranked = rank_demand(Counter({"pixel 8": 2, "iphone 13": 5, "galaxy s23": 3}))
        assert [d.phone_type for d in ranked] == ["iphone 13", "galaxy s23", "pixel 8"]

    def test_ties_break_alphabetically(self):
        ranked = rank_demand(Counter({"pixel 8": 2, "galaxy s23": 2, "iphone 13": 2}))
        assert [d.phone_type for d in ranked] == ["galaxy s23", "iphone 13", "pixel 8"]

    def test_ranking_is_stable_across_insertion_order(self):
        first = rank_demand(Counter({"b": 1, "a": 1, "c": 4}))
        second = rank_demand(Counter({"c": 4, "a": 1, "b": 1}))
        assert first == second


class TestStock:
    def test_stock_sums_active_products_by_type(self):
        products = [
            make_product(phone_type="iPhone 13", stock_quantity=2),
            make_product(phone_type="iphone  13", stock_quantity=3),
            make_product(phone_type="iPhone 13", stock_quantity=9, is_archived=True),
        ]
        assert stock_by_phone_type(products) == {"iphone 13": 5}

    def test_unavailable_lists_types_with_no_stock(self):
        top = [DemandSignal("iphone 13", 5), DemandSignal("pixel 8", 3), DemandSignal("galaxy s23", 1)]
        stock = {"iphone 13": 2, "galaxy s23": 0}
        assert [d.phone_type for d in find_unavailable(top, stock)] == ["pixel 8", "galaxy s23"]

    def test_snapshot_orders_by_quantity_and_skips_empty(self):
        products = [
            make_product(id=1, phone_type="A", stock_quantity=3),
            make_product(id=2, phone_type="B", stock_quantity=0),
            make_product(id=3, phone_type="C", stock_quantity=7),
            make_product(id=4, phone_type="D", stock_quantity=3),
            make_product(id=5, phone_type="E", stock_quantity=4, is_archived=True),
        ]
        snapshot = build_stock_snapshot(products)
        assert [s.product_id for s in snapshot] == [3, 1, 4]

    def test_snapshot_is_capped(self):
        products = [make_product(id=i, stock_quantity=i) for i in range(1, 20)]
        assert len(build_stock_snapshot(products)) == settings.stock_snapshot_count


class TestRestock:
    def test_tiers(self):
        assert restock_tier(8) == "high"
        assert restock_tier(12) == "high"
        assert restock_tier(7) == "medium"
        assert restock_tier(4) == "medium"
        assert restock_tier(3) == "low"
        assert restock_tier(1) == "low"

    def test_suggestions_follow_ranking(self):
        ranked = [DemandSignal(f"phone {i}", 10 - i) for i in range(8)]
        suggestions = build_restock_suggestions(ranked, {"phone 0": 4})
        assert len(suggestions) == settings.restock_count
        assert suggestions[0].phone_type == "phone 0"
        assert suggestions[0].stock_quantity == 4
        assert suggestions[0].tier == "high"
        assert suggestions[1].stock_quantity == 0


class TestContentPlan:
    def test_demand_then_stock_then_generic(self):
        ranked = [DemandSignal("iphone 13", 4)]
        snapshot = [
            StockItem(1, "iphone 13", "iPhone", "iPhone 13", 5),
            StockItem(2, "galaxy s23", "Samsung", "Galaxy S23", 3),
        ]
        plan = build_content_plan(ranked, snapshot, day_index=0)

        assert len(plan) == 7
        assert [c.kind for c in plan] == ["demand", "stock"] + ["generic"] * 5
        assert plan[0].topic == "Customers are asking for the iphone 13"
        assert plan[1].topic == "In stock now: galaxy s23"
        assert [c.topic for c in plan[2:]] == list(GENERIC_TOPICS[:5])

    def test_generic_rotation_advances_daily(self):
        today = build_content_plan([], [], day_index=3)
        tomorrow = build_content_plan([], [], day_index=4)
        assert today[0].topic == GENERIC_TOPICS[3]
        assert tomorrow[0].topic == GENERIC_TOPICS[4]
        assert len({c.topic for c in today}) == len(GENERIC_TOPICS)

    def test_demand_fills_every_slot(self):
        ranked = [DemandSignal(f"phone {i}", 20 - i) for i in range(10)]
        plan = build_content_plan(ranked, [], day_index=0)
        assert len(plan) == 7
        assert all(c.kind == "demand" for c in plan)


@pytest.mark.asyncio
async def test_ranker_end_to_end(db_session):
    iphone = make_product(phone_type="iPhone 13", stock_quantity=5)
    galaxy = make_product(brand="Samsung", model="Galaxy S23", phone_type="Galaxy S23", stock_quantity=0)
    pixel = make_product(brand="Google", model="Pixel 8", phone_type="Pixel 8", stock_quantity=3, is_archived=True)
    today_thread = make_thread(telegram_id="1", first_message_at=TODAY_START + HOUR_MS)
    older_thread = make_thread(telegram_id="2", first_message_at=NOW - 10 * DAY_MS)
    ancient_thread = make_thread(telegram_id="3", first_message_at=NOW - 40 * DAY_MS)
    db_session.add_all([iphone, galaxy, pixel, today_thread, older_thread, ancient_thread])
    await db_session.flush()

    db_session.add_all(
        [
            make_demand_event("iphone 13", NOW - HOUR_MS),
            make_demand_event("iphone 13", NOW - 2 * DAY_MS, source="bot"),
            make_demand_event("iphone 13", NOW - 8 * DAY_MS),  # outside window
            make_demand_event("pixel 8", NOW - DAY_MS, source="select"),
            make_demand_event("galaxy s23", NOW - 3 * DAY_MS),
            make_exchange(today_thread, iphone, created_at=NOW - HOUR_MS),
            make_demand_event("iphone 13", NOW - HOUR_MS, source="select", thread_id=today_thread.id),
            make_message(today_thread, "customer", TODAY_START + HOUR_MS),
            make_message(today_thread, "customer", TODAY_START + 2 * HOUR_MS),
            make_message(older_thread, "customer", NOW - 10 * DAY_MS),
            make_message(ancient_thread, "customer", NOW - 40 * DAY_MS),
            make_message(today_thread, "admin", TODAY_START + 3 * HOUR_MS, sender_role="bot"),
        ]
    )
    await db_session.commit()

    metrics = await DemandSignalRanker(CollectionReader(db_session)).compute(resolve_windows(NOW))

    assert [(d.phone_type, d.signals) for d in metrics.top_demand] == [
        ("iphone 13", 3),
        ("galaxy s23", 1),
        ("pixel 8", 1),
    ]
    assert [d.phone_type for d in metrics.unavailable] == ["galaxy s23", "pixel 8"]
    assert [(r.phone_type, r.stock_quantity, r.tier) for r in metrics.restock] == [
        ("iphone 13", 5, "low"),
        ("galaxy s23", 0, "low"),
        ("pixel 8", 0, "low"),
    ]
    assert [s.product_id for s in metrics.stock_snapshot] == [iphone.id]
    assert metrics.total_conversations.to_dict() == {"today": 1, "last_7d": 1, "last_30d": 2}
    assert metrics.first_time_conversations.to_dict() == {"today": 1, "last_7d": 1, "last_30d": 2}

    plan = metrics.content_plan
    assert len(plan) == 7
    assert [c.kind for c in plan[:3]] == ["demand"] * 3
    assert plan[3].topic == GENERIC_TOPICS[resolve_windows(NOW).business_day_index % 7]

    data = metrics.to_dict()
    assert "ranking" not in data
    assert data["top_demand"][0] == {"phone_type": "iphone 13", "signals": 3}


@pytest.mark.asyncio
async def test_ranker_exchange_only_source(db_session, monkeypatch):
    monkeypatch.setattr(settings, "demand_signal_source", "exchanges")
    thread = make_thread()
    product = make_product(phone_type="Galaxy A54")
    db_session.add_all([thread, product])
    await db_session.flush()
    db_session.add_all(
        [
            make_exchange(thread, product, created_at=NOW - HOUR_MS),
            make_exchange(thread, product, created_at=NOW - 2 * HOUR_MS),
            make_demand_event("iphone 13", NOW - HOUR_MS),
        ]
    )
    await db_session.commit()

    metrics = await DemandSignalRanker(CollectionReader(db_session)).compute(resolve_windows(NOW))
    assert [(d.phone_type, d.signals) for d in metrics.ranking] == [("galaxy a54", 2)]


@pytest.mark.asyncio
async def test_ranker_rejects_unknown_source(db_session, monkeypatch):
    monkeypatch.setattr(settings, "demand_signal_source", "rumours")
    with pytest.raises(ValueError):
        await DemandSignalRanker(CollectionReader(db_session)).compute(resolve_windows(NOW))


@pytest.mark.asyncio
async def test_exchange_submission_counts_once_by_default(db_session):
    """Each submission creates an exchange and a select event; only the event is a signal."""
    thread = make_thread()
    product = make_product(phone_type="iPhone 13")
    db_session.add_all([thread, product])
    await db_session.commit()

    for i in range(4):
        db_session.add(make_exchange(thread, product, created_at=NOW - (i + 1) * HOUR_MS))
        await db_session.commit()
        await log_demand_event(
            db_session,
            source="select",
            phone_type="iPhone 13",
            now=NOW - (i + 1) * HOUR_MS,
            thread_id=thread.id,
        )

    metrics = await DemandSignalRanker(CollectionReader(db_session)).compute(resolve_windows(NOW))
    assert [(d.phone_type, d.signals) for d in metrics.ranking] == [("iphone 13", 4)]
    assert [r.tier for r in metrics.restock] == ["medium"]


@pytest.mark.asyncio
async def test_both_sources_skip_exchanges_with_select_events(db_session, monkeypatch):
    """Older exchanges without a select event still count alongside the events."""
    monkeypatch.setattr(settings, "demand_signal_source", "both")
    thread = make_thread()
    product = make_product(phone_type="iPhone 13")
    db_session.add_all([thread, product])
    await db_session.flush()
    db_session.add_all(
        [make_exchange(thread, product, created_at=NOW - (i + 1) * HOUR_MS) for i in range(4)]
        + [
            make_demand_event("iphone 13", NOW - HOUR_MS, source="select", thread_id=thread.id),
            make_demand_event("iphone 13", NOW - 2 * HOUR_MS, source="select", thread_id=thread.id),
            make_demand_event("iphone 13", NOW - 3 * HOUR_MS, source="search"),
        ]
    )
    await db_session.commit()

    metrics = await DemandSignalRanker(CollectionReader(db_session)).compute(resolve_windows(NOW))
    # 3 events + 2 exchanges without a matching select event
    assert [(d.phone_type, d.signals) for d in metrics.ranking] == [("iphone 13", 5)]
