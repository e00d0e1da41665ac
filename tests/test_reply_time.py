"""Tests for the median reply-time estimator."""

import pytest
from conftest import NOW, TODAY_START, YESTERDAY_START, make_message, make_thread

from phonedesk.analytics.reply_time import (
    MedianReplyTimeEstimator,
    ReplySpeedTier,
    SenderKind,
    TimedMessage,
    human_replies_by_thread,
    last_customer_by_thread,
    median_ms,
    median_reply_minutes,
    pair_reply_samples,
    reply_speed_tier,
    sender_kind,
)
from phonedesk.analytics.windows import HOUR_MS, MINUTE_MS
from phonedesk.db.reader import CollectionReader

CUSTOMER = SenderKind.CUSTOMER
HUMAN = SenderKind.HUMAN_ADMIN
BOT = SenderKind.BOT


def msg(thread_id: int, at: int, kind: SenderKind) -> TimedMessage:
    return TimedMessage(thread_id=thread_id, created_at=at, kind=kind)


class TestSenderKind:
    def test_customer(self):
        assert sender_kind("customer") is CUSTOMER

    def test_bot(self):
        assert sender_kind("admin", "bot") is BOT

    def test_admin_with_role(self):
        assert sender_kind("admin", "admin") is HUMAN

    def test_legacy_admin_without_role_is_human(self):
        assert sender_kind("admin", None) is HUMAN


class TestMedian:
    def test_empty(self):
        assert median_ms([]) == 0

    def test_single(self):
        assert median_ms([7 * MINUTE_MS]) == 7 * MINUTE_MS

    def test_odd(self):
        assert median_ms([30, 10, 20]) == 20

    def test_even_averages_middle_pair(self):
        samples = [10 * MINUTE_MS, 20 * MINUTE_MS, 30 * MINUTE_MS, 40 * MINUTE_MS]
        assert median_ms(samples) == 25 * MINUTE_MS


class TestPairing:
    """Per-thread pairing of last customer message and first human reply."""

    def test_keeps_latest_customer_message_in_window(self):
        start, end = TODAY_START, NOW
        latest = last_customer_by_thread(
            [
                msg(1, start + 10, CUSTOMER),
                msg(1, start + 50, CUSTOMER),
                msg(1, end + 5, CUSTOMER),  # outside window
                msg(2, start - 5, CUSTOMER),  # outside window
            ],
            start,
            end,
        )
        assert latest == {1: start + 50}

    def test_bot_replies_are_ignored(self):
        grouped = human_replies_by_thread(
            [msg(1, TODAY_START + 30, BOT), msg(1, TODAY_START + 20, HUMAN)],
            TODAY_START,
        )
        assert grouped == {1: [TODAY_START + 20]}

    def test_replies_sorted_ascending(self):
        grouped = human_replies_by_thread(
            [msg(1, TODAY_START + 90, HUMAN), msg(1, TODAY_START + 10, HUMAN)],
            TODAY_START,
        )
        assert grouped[1] == [TODAY_START + 10, TODAY_START + 90]

    def test_first_reply_after_customer_wins(self):
        t = TODAY_START + HOUR_MS
        samples = pair_reply_samples(
            {1: t},
            {1: [t - 5 * MINUTE_MS, t + 4 * MINUTE_MS, t + 9 * MINUTE_MS]},
        )
        assert samples == [4 * MINUTE_MS]

    def test_reply_at_same_instant_does_not_count(self):
        t = TODAY_START + HOUR_MS
        assert pair_reply_samples({1: t}, {1: [t]}) == []

    def test_unanswered_thread_contributes_nothing(self):
        t = TODAY_START + HOUR_MS
        assert pair_reply_samples({1: t, 2: t}, {1: [t + MINUTE_MS]}) == [MINUTE_MS]

    def test_samples_are_capped_at_one_hour(self):
        t = TODAY_START
        samples = pair_reply_samples({1: t, 2: t}, {1: [t + 3 * 24 * HOUR_MS], 2: [t + HOUR_MS + 1]})
        assert samples == [HOUR_MS, HOUR_MS]
        assert all(s <= 3_600_000 for s in samples)


class TestMedianReplyMinutes:
    def test_no_customer_messages(self):
        assert median_reply_minutes([], [msg(1, TODAY_START + 5, HUMAN)], TODAY_START, NOW) == 0

    def test_bot_only_replies_give_zero(self):
        customers = [msg(1, TODAY_START + HOUR_MS, CUSTOMER)]
        admins = [msg(1, TODAY_START + HOUR_MS + MINUTE_MS, BOT)]
        assert median_reply_minutes(customers, admins, TODAY_START, NOW) == 0

    def test_reply_after_window_closes_counts(self):
        t = NOW - 2 * MINUTE_MS
        customers = [msg(1, t, CUSTOMER)]
        admins = [msg(1, NOW + 3 * MINUTE_MS, HUMAN)]
        assert median_reply_minutes(customers, admins, TODAY_START, NOW) == 5

    def test_even_sample_count(self):
        base = TODAY_START + HOUR_MS
        customers = [msg(i, base, CUSTOMER) for i in range(1, 5)]
        admins = [msg(i, base + i * 10 * MINUTE_MS, HUMAN) for i in range(1, 5)]
        assert median_reply_minutes(customers, admins, TODAY_START, NOW) == 25

    def test_half_minute_rounds_up(self):
        base = TODAY_START + HOUR_MS
        customers = [msg(1, base, CUSTOMER), msg(2, base, CUSTOMER)]
        admins = [msg(1, base + 2 * MINUTE_MS, HUMAN), msg(2, base + 3 * MINUTE_MS, HUMAN)]
        assert median_reply_minutes(customers, admins, TODAY_START, NOW) == 3


def test_reply_speed_tier():
    assert reply_speed_tier(0) is ReplySpeedTier.GOOD
    assert reply_speed_tier(10) is ReplySpeedTier.GOOD
    assert reply_speed_tier(11) is ReplySpeedTier.CAUTION
    assert reply_speed_tier(30) is ReplySpeedTier.CAUTION
    assert reply_speed_tier(31) is ReplySpeedTier.POOR


@pytest.mark.asyncio
async def test_estimator_reads_window_from_database(db_session):
    """Today's and yesterday's windows are estimated independently."""
    answered = make_thread(telegram_id="1")
    bot_only = make_thread(telegram_id="2")
    yesterday_thread = make_thread(telegram_id="3")
    db_session.add_all([answered, bot_only, yesterday_thread])
    await db_session.flush()

    t = TODAY_START + 2 * HOUR_MS
    db_session.add_all(
        [
            make_message(answered, "customer", t - 30 * MINUTE_MS),
            make_message(answered, "customer", t),
            make_message(answered, "admin", t - MINUTE_MS, sender_role="admin"),
            make_message(answered, "admin", t + 6 * MINUTE_MS, sender_role="admin"),
            make_message(bot_only, "customer", t),
            make_message(bot_only, "admin", t + MINUTE_MS, sender_role="bot"),
            make_message(yesterday_thread, "customer", YESTERDAY_START + HOUR_MS),
            make_message(yesterday_thread, "admin", YESTERDAY_START + HOUR_MS + 20 * MINUTE_MS),
        ]
    )
    await db_session.commit()

    estimator = MedianReplyTimeEstimator(CollectionReader(db_session))
    assert await estimator.median_minutes(TODAY_START, NOW) == 6
    assert await estimator.median_minutes(YESTERDAY_START, TODAY_START) == 20


@pytest.mark.asyncio
async def test_estimator_empty_window(db_session):
    estimator = MedianReplyTimeEstimator(CollectionReader(db_session))
    assert await estimator.median_minutes(TODAY_START, NOW) == 0
