"""Demand signal ranking, stock cross-reference and restock suggestions.

A signal is one unit of evidence that a customer wants a phone type: a logged
demand event (bot query, search, exchange form selection) or an exchange
submission for a product of that type.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from phonedesk.analytics.kpi import count_first_contacts, in_window
from phonedesk.analytics.windows import TimeWindows
from phonedesk.config import settings
from phonedesk.db.models import DemandEvent, Exchange, Message, Product, Thread
from phonedesk.db.reader import CollectionReader
from phonedesk.ingest.demand_events import PhoneType, normalize_phone_type

logger = logging.getLogger(__name__)

SIGNAL_SOURCES = ("events", "exchanges", "both")

# Fallback content topics, rotated one step per business day
GENERIC_TOPICS = (
    "How trade-in pricing works",
    "Customer pickup of the week",
    "Battery care tips",
    "Checking a used phone before you buy",
    "New arrivals this week",
    "Storage sizes explained",
    "Why trade in instead of selling",
)


@dataclass
class DemandSignal:
    phone_type: PhoneType
    signals: int

    def to_dict(self) -> dict:
        return {"phone_type": self.phone_type, "signals": self.signals}


@dataclass
class RestockSuggestion:
    phone_type: PhoneType
    signals: int
    stock_quantity: int
    tier: str

    def to_dict(self) -> dict:
        return {
            "phone_type": self.phone_type,
            "signals": self.signals,
            "stock_quantity": self.stock_quantity,
            "tier": self.tier,
        }


@dataclass
class StockItem:
    product_id: int
    phone_type: PhoneType
    brand: str
    model: str
    stock_quantity: int

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "phone_type": self.phone_type,
            "brand": self.brand,
            "model": self.model,
            "stock_quantity": self.stock_quantity,
        }


@dataclass
class ContentTopic:
    topic: str
    kind: str  # demand, stock, generic
    phone_type: Optional[PhoneType] = None

    def to_dict(self) -> dict:
        return {"topic": self.topic, "kind": self.kind, "phone_type": self.phone_type}


@dataclass
class ConversationCounts:
    today: int
    last_7d: int
    last_30d: int

    def to_dict(self) -> dict:
        return {"today": self.today, "last_7d": self.last_7d, "last_30d": self.last_30d}


@dataclass
class DemandMetrics:
    total_conversations: ConversationCounts
    first_time_conversations: ConversationCounts
    ranking: list[DemandSignal]
    top_demand: list[DemandSignal]
    unavailable: list[DemandSignal]
    restock: list[RestockSuggestion]
    stock_snapshot: list[StockItem]
    content_plan: list[ContentTopic] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_conversations": self.total_conversations.to_dict(),
            "first_time_conversations": self.first_time_conversations.to_dict(),
            "top_demand": [d.to_dict() for d in self.top_demand],
            "unavailable": [d.to_dict() for d in self.unavailable],
            "restock": [r.to_dict() for r in self.restock],
            "stock_snapshot": [s.to_dict() for s in self.stock_snapshot],
            "content_plan": [c.to_dict() for c in self.content_plan],
        }


def tally_signals(phone_types: Iterable[str]) -> Counter:
    """Count signals per normalized phone type. Blank types are dropped."""
    counts: Counter = Counter()
    for raw in phone_types:
        if raw is None:
            continue
        key = normalize_phone_type(raw)
        if key:
            counts[key] += 1
    return counts


def rank_demand(counts: Counter) -> list[DemandSignal]:
    """Most signals first; equal counts ordered alphabetically by phone type."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [DemandSignal(phone_type=pt, signals=n) for pt, n in ranked]


def is_active_product(product: Product) -> bool:
    return not product.is_archived


def stock_by_phone_type(products: Iterable[Product]) -> dict[PhoneType, int]:
    """Live stock per normalized phone type across active products."""
    stock: dict[PhoneType, int] = {}
    for product in products:
        if not is_active_product(product):
            continue
        key = normalize_phone_type(product.phone_type or "")
        if not key:
            continue
        stock[key] = stock.get(key, 0) + max(product.stock_quantity or 0, 0)
    return stock


def restock_tier(signals: int) -> str:
    if signals >= settings.restock_high_signals:
        return "high"
    if signals >= settings.restock_medium_signals:
        return "medium"
    return "low"


def find_unavailable(top: list[DemandSignal], stock: dict[PhoneType, int]) -> list[DemandSignal]:
    """Requested types with no active stock at all."""
    return [d for d in top if stock.get(d.phone_type, 0) == 0]


def build_restock_suggestions(
    ranked: list[DemandSignal], stock: dict[PhoneType, int]
) -> list[RestockSuggestion]:
    return [
        RestockSuggestion(
            phone_type=d.phone_type,
            signals=d.signals,
            stock_quantity=stock.get(d.phone_type, 0),
            tier=restock_tier(d.signals),
        )
        for d in ranked[: settings.restock_count]
    ]


def build_stock_snapshot(products: Iterable[Product]) -> list[StockItem]:
    """Active in-stock products, largest quantity first."""
    in_stock = [
        p for p in products if is_active_product(p) and (p.stock_quantity or 0) > 0
    ]
    in_stock.sort(key=lambda p: (-p.stock_quantity, p.id))
    return [
        StockItem(
            product_id=p.id,
            phone_type=normalize_phone_type(p.phone_type or ""),
            brand=p.brand,
            model=p.model,
            stock_quantity=p.stock_quantity,
        )
        for p in in_stock[: settings.stock_snapshot_count]
    ]


def build_content_plan(
    ranked: list[DemandSignal],
    snapshot: list[StockItem],
    day_index: int,
    slots: int | None = None,
) -> list[ContentTopic]:
    """
    Fill the content plan slots.

    Demand-backed topics come first (requested types, then well-stocked types
    not already covered); remaining slots take generic topics from a rotation
    that advances one step per business day.
    """
    if slots is None:
        slots = settings.content_plan_slots

    plan: list[ContentTopic] = []
    seen: set[str] = set()
    for demand in ranked:
        if len(plan) >= slots:
            break
        plan.append(
            ContentTopic(
                topic=f"Customers are asking for the {demand.phone_type}",
                kind="demand",
                phone_type=demand.phone_type,
            )
        )
        seen.add(demand.phone_type)

    for item in snapshot:
        if len(plan) >= slots:
            break
        if not item.phone_type or item.phone_type in seen:
            continue
        plan.append(
            ContentTopic(
                topic=f"In stock now: {item.phone_type}",
                kind="stock",
                phone_type=item.phone_type,
            )
        )
        seen.add(item.phone_type)

    offset = day_index % len(GENERIC_TOPICS)
    step = 0
    while len(plan) < slots and step < len(GENERIC_TOPICS):
        plan.append(
            ContentTopic(
                topic=GENERIC_TOPICS[(offset + step) % len(GENERIC_TOPICS)],
                kind="generic",
            )
        )
        step += 1
    return plan


def count_conversations(
    customer_messages: Iterable[Message], start: int, end: int
) -> int:
    """Distinct threads with at least one customer message in ``[start, end)``."""
    return len({m.thread_id for m in customer_messages if in_window(m.created_at, start, end)})


class DemandSignalRanker:
    """Computes the demand dashboard from one snapshot."""

    def __init__(self, reader: CollectionReader):
        self.reader = reader

    async def _signal_phone_types(self, window_start: int) -> list[str]:
        source = settings.demand_signal_source
        if source not in SIGNAL_SOURCES:
            raise ValueError(f"Invalid demand_signal_source '{source}'")

        phone_types: list[str] = []
        # Exchange submissions already logged as "select" events, per (thread, type)
        covered: Counter = Counter()
        if source in ("events", "both"):
            events = await (
                self.reader.query(DemandEvent).gte("created_at", window_start).collect()
            )
            phone_types.extend(e.phone_type for e in events)
            covered.update(
                (e.thread_id, e.phone_type)
                for e in events
                if e.source == "select" and e.thread_id is not None
            )

        if source in ("exchanges", "both"):
            exchanges = await (
                self.reader.query(Exchange).gte("created_at", window_start).collect()
            )
            # One batched lookup per distinct product
            products = await self.reader.get_many(
                Product, (e.desired_phone_id for e in exchanges)
            )
            skipped = 0
            for exchange in exchanges:
                product = products.get(exchange.desired_phone_id)
                if product is None:
                    continue
                key = (exchange.thread_id, normalize_phone_type(product.phone_type or ""))
                if covered[key] > 0:
                    covered[key] -= 1
                    skipped += 1
                    continue
                phone_types.append(product.phone_type)
            if skipped:
                logger.debug(f"Skipped {skipped} exchanges already counted as select events")
        return phone_types

    async def compute(self, windows: TimeWindows) -> DemandMetrics:
        phone_types = await self._signal_phone_types(windows.cutoff_7d)
        ranked = rank_demand(tally_signals(phone_types))

        products = await self.reader.query(Product).eq("is_archived", False).collect()
        stock = stock_by_phone_type(products)
        top = ranked[: settings.demand_top_count]
        snapshot = build_stock_snapshot(products)

        threads = await self.reader.scan(Thread)
        customer_messages = await (
            self.reader.query(Message)
            .eq("sender", "customer")
            .gte("created_at", windows.cutoff_30d)
            .collect()
        )

        metrics = DemandMetrics(
            total_conversations=ConversationCounts(
                today=count_conversations(customer_messages, windows.today_start, windows.now),
                last_7d=count_conversations(customer_messages, windows.cutoff_7d, windows.now),
                last_30d=count_conversations(customer_messages, windows.cutoff_30d, windows.now),
            ),
            first_time_conversations=ConversationCounts(
                today=count_first_contacts(threads, windows.today_start, windows.now),
                last_7d=count_first_contacts(threads, windows.cutoff_7d, windows.now),
                last_30d=count_first_contacts(threads, windows.cutoff_30d, windows.now),
            ),
            ranking=ranked,
            top_demand=top,
            unavailable=find_unavailable(top, stock),
            restock=build_restock_suggestions(ranked, stock),
            stock_snapshot=snapshot,
            content_plan=build_content_plan(ranked, snapshot, windows.business_day_index),
        )
        logger.info(
            f"Demand over {settings.demand_window_days}d: {len(phone_types)} signals, "
            f"{len(ranked)} phone types, {len(metrics.unavailable)} unavailable"
        )
        return metrics
