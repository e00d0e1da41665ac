"""SQLAlchemy database models.

All timestamps are epoch milliseconds. The rows are written by the messaging,
exchange and inventory layers; the analytics code only reads them.
"""

from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Thread(Base):
    """One customer conversation."""

    __tablename__ = "threads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    telegram_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_first_name: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    customer_last_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="new")  # new, seen, done
    unread_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_message_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    last_message_preview: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_customer_message_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    last_admin_message_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    # Earliest customer message; absent on rows created before it was tracked
    first_message_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    has_customer_messaged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_admin_replied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_customer_message_has_budget_keyword: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # Relationships
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="thread", cascade="all, delete-orphan"
    )
    exchanges: Mapped[list["Exchange"]] = relationship(
        "Exchange", back_populates="thread", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_threads_status", "status"),
        Index("ix_threads_last_message_at", "last_message_at"),
    )


class Message(Base):
    """A single message inside a thread."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    thread_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("threads.id"), nullable=False
    )
    sender: Mapped[str] = mapped_column(String(16), nullable=False)  # customer, admin
    # Only meaningful for admin messages: "admin" or "bot". Absent on legacy rows.
    sender_role: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    sender_telegram_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    exchange_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("exchanges.id"), nullable=True
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    thread: Mapped["Thread"] = relationship("Thread", back_populates="messages")

    __table_args__ = (
        Index("ix_messages_sender_created_at", "sender", "created_at"),
        Index("ix_messages_thread_created_at", "thread_id", "created_at"),
        Index("ix_messages_created_at", "created_at"),
    )


class Product(Base):
    """Inventory item."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_type: Mapped[str] = mapped_column(String(16), nullable=False, default="phone")
    brand: Mapped[str] = mapped_column(String(32), nullable=False, default="Other")
    model: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    # Free-text category key used for demand matching
    phone_type: Mapped[str] = mapped_column(String(80), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    low_stock_threshold: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_products_is_archived_created_at", "is_archived", "created_at"),
    )


class Exchange(Base):
    """Trade-in request."""

    __tablename__ = "exchanges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    thread_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("threads.id"), nullable=False
    )
    desired_phone_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False
    )

    trade_in_brand: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    trade_in_model: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    trade_in_storage: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    trade_in_condition: Mapped[str] = mapped_column(String(16), nullable=False, default="Good")

    budget_mentioned_in_submission: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    final_difference: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    priority_value_etb: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Pending")
    clicked_continue: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    quoted_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    completed_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    rejected_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    thread: Mapped["Thread"] = relationship("Thread", back_populates="exchanges")
    desired_phone: Mapped["Product"] = relationship("Product")

    __table_args__ = (
        Index("ix_exchanges_status_created_at", "status", "created_at"),
        Index("ix_exchanges_status_completed_at", "status", "completed_at"),
        Index("ix_exchanges_created_at", "created_at"),
        Index("ix_exchanges_thread_created_at", "thread_id", "created_at"),
    )


class DemandEvent(Base):
    """A customer expressing interest in a phone type."""

    __tablename__ = "demand_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source: Mapped[str] = mapped_column(String(16), nullable=False)  # bot, search, select
    phone_type: Mapped[str] = mapped_column(String(80), nullable=False)  # normalized
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    thread_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("threads.id"), nullable=True
    )
    meta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Business-day number; set only on bot events tied to a thread
    business_day: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_demand_events_phone_type_created_at", "phone_type", "created_at"),
        Index("ix_demand_events_created_at", "created_at"),
        # At most one bot event per thread and phone type per business day.
        # Rows with a NULL business_day never conflict.
        Index(
            "uq_demand_events_bot_thread_day",
            "source",
            "thread_id",
            "phone_type",
            "business_day",
            unique=True,
        ),
    )
