"""SyncLoop unit tests: dedup, partial failure, budget and token gating."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.application.services.message_pipeline import MessagePipelineAdapter
from app.application.services.token_lifecycle import TokenLifecycleManager
from app.application.use_cases.sync.deadline import Deadline
from app.application.use_cases.sync.sync_loop import SyncLoop
from app.domain.enums import IntegrationStatus, SyncErrorCategory, SyncState, VerdictClassification
from app.domain.exceptions import ProviderAPIError
from app.domain.value_objects.email import Verdict
from app.infrastructure.external.email.oauth_drivers import OAuthTokens
from sync_fakes import (
    NOW,
    FakeAuditSink,
    FakeClock,
    FakeDetector,
    FakeIntegrationStore,
    FakeProvider,
    FakeProviderFactory,
    FakeVerdictStore,
    FakeWallClock,
    fake_parser,
    make_integration,
)


@pytest.fixture
def harness():
    """Loop wired to fakes; returns a namespace-like dict of collaborators."""
    clock = FakeClock()
    wall = FakeWallClock()
    integration = make_integration()
    store = FakeIntegrationStore([integration])
    verdicts = FakeVerdictStore()
    audit = FakeAuditSink()
    provider = FakeProvider(["m1", "m2", "m3"], clock=clock)
    detector = FakeDetector()
    driver = MagicMock()
    driver.refresh_access_token = AsyncMock(
        return_value=OAuthTokens(
            access_token="access-new",
            refresh_token=None,
            token_type="Bearer",
            expires_in=3600,
            expires_at=NOW + timedelta(hours=1),
            scope="",
        )
    )
    drivers = MagicMock()
    drivers.get_driver.return_value = driver
    tokens = TokenLifecycleManager(drivers, store, clock=wall)
    loop = SyncLoop(
        tokens,
        FakeProviderFactory(provider),
        MessagePipelineAdapter(fake_parser, detector, verdicts),
        verdicts,
        store,
        audit,
        clock=wall,
    )
    return {
        "loop": loop,
        "clock": clock,
        "integration": integration,
        "store": store,
        "verdicts": verdicts,
        "audit": audit,
        "provider": provider,
        "detector": detector,
        "driver": driver,
    }


async def test_pass_processes_new_messages_and_advances_watermark(harness) -> None:
    """Every listed message is analyzed, stored, and the watermark moves to pass start."""
    attempt = await harness["loop"].run(harness["integration"], Deadline(50, clock=harness["clock"]))

    assert attempt.state == SyncState.DONE
    assert attempt.emails_processed == 3
    assert attempt.emails_skipped == 0
    assert attempt.errors == []
    assert len(harness["verdicts"].verdicts) == 3
    assert harness["store"].watermarks["int1"] == NOW
    assert harness["audit"].passes[0]["state"] == "done"


async def test_background_pass_skips_expensive_analysis(harness) -> None:
    await harness["loop"].run(harness["integration"], Deadline(50, clock=harness["clock"]))
    assert all(skip for _, skip in harness["detector"].calls)


async def test_second_pass_is_idempotent(harness) -> None:
    """Re-running over the same messages stores nothing new and skips everything."""
    loop, clock = harness["loop"], harness["clock"]
    await loop.run(harness["integration"], Deadline(50, clock=clock))
    second = await loop.run(harness["integration"], Deadline(50, clock=clock))

    assert second.emails_processed == 0
    assert second.emails_skipped == 3
    assert len(harness["verdicts"].verdicts) == 3
    assert harness["provider"].fetched == ["m1", "m2", "m3"]


async def test_already_stored_message_is_skipped_not_refetched(harness) -> None:
    """M1 has a verdict, M2 is new: processed=1, skipped=1, watermark = pass start."""
    harness["provider"].message_ids = ["M1", "M2"]
    harness["verdicts"].verdicts[("t1", "M1")] = Verdict(VerdictClassification.PASS, 0.0)
    old = NOW - timedelta(hours=2)
    integration = make_integration(watermark=old)
    harness["store"].watermarks["int1"] = old

    attempt = await harness["loop"].run(integration, Deadline(50, clock=harness["clock"]))

    assert attempt.emails_processed == 1
    assert attempt.emails_skipped == 1
    assert attempt.threats_found in (0, 1)
    assert harness["provider"].fetched == ["M2"]
    assert harness["provider"].list_calls[0][1] == old
    assert harness["store"].watermarks["int1"] == NOW


async def test_item_failure_does_not_stop_the_pass(harness) -> None:
    """Five items, the third fails to fetch: four processed, one item error."""
    provider = harness["provider"]
    provider.message_ids = ["m1", "m2", "m3", "m4", "m5"]
    provider.fetch_errors["m3"] = ProviderAPIError("Gmail", 500, "backend error")

    attempt = await harness["loop"].run(harness["integration"], Deadline(50, clock=harness["clock"]))

    assert attempt.state == SyncState.DONE
    assert attempt.emails_processed == 4
    assert len(attempt.errors) == 1
    error = attempt.errors[0]
    assert error.message_id == "m3"
    assert error.is_fatal is False
    assert harness["store"].statuses["int1"] == IntegrationStatus.CONNECTED
    assert harness["store"].watermarks["int1"] == NOW


async def test_budget_is_checked_before_each_item(harness) -> None:
    """Budget 10s, 3s per fetch: items start at 0, 3, 6, 9, so four run."""
    provider = harness["provider"]
    provider.message_ids = [f"m{i}" for i in range(10)]
    provider.fetch_cost = 3.0
    harness["loop"]._max_messages = 10

    attempt = await harness["loop"].run(harness["integration"], Deadline(10, clock=harness["clock"]))

    assert attempt.emails_processed == 4
    assert attempt.timed_out is True
    assert attempt.state == SyncState.DONE
    assert harness["audit"].passes[0]["timed_out"] is True


async def test_fresh_token_is_not_refreshed(harness) -> None:
    await harness["loop"].run(harness["integration"], Deadline(50, clock=harness["clock"]))
    harness["driver"].refresh_access_token.assert_not_awaited()
    assert harness["provider"].list_calls[0][0] == "access-ok"


async def test_expired_token_is_refreshed_once_and_persisted(harness) -> None:
    integration = make_integration(expires_at=NOW - timedelta(minutes=5))

    await harness["loop"].run(integration, Deadline(50, clock=harness["clock"]))

    harness["driver"].refresh_access_token.assert_awaited_once_with("refresh-ok")
    saved = harness["store"].saved_credentials["int1"]
    assert saved.access_token == "access-new"
    assert saved.refresh_token == "refresh-ok"
    assert harness["provider"].list_calls[0][0] == "access-new"


async def test_refresh_failure_aborts_and_marks_error(harness) -> None:
    harness["driver"].refresh_access_token.side_effect = ValueError(
        "Token refresh failed with status 400: invalid_grant"
    )
    integration = make_integration(expires_at=NOW - timedelta(minutes=5))

    attempt = await harness["loop"].run(integration, Deadline(50, clock=harness["clock"]))

    assert attempt.state == SyncState.ABORTED
    assert attempt.emails_processed == 0
    assert attempt.errors[0].stage == SyncErrorCategory.TOKEN_REFRESH_FAILED
    assert attempt.errors[0].category == SyncErrorCategory.AUTHENTICATION
    assert harness["store"].statuses["int1"] == IntegrationStatus.ERROR
    assert harness["store"].watermarks["int1"] is None
    assert harness["provider"].list_calls == []
    assert harness["audit"].passes[0]["state"] == "aborted"


async def test_missing_refresh_token_aborts_without_driver_call(harness) -> None:
    integration = make_integration(expires_at=None, refresh_token=None)

    attempt = await harness["loop"].run(integration, Deadline(50, clock=harness["clock"]))

    assert attempt.aborted
    harness["driver"].refresh_access_token.assert_not_awaited()


async def test_list_failure_aborts_and_keeps_watermark(harness) -> None:
    old = NOW - timedelta(hours=1)
    harness["store"].watermarks["int1"] = old
    harness["provider"].list_error = ProviderAPIError("Gmail", 429, "Rate Limit Exceeded")

    attempt = await harness["loop"].run(
        make_integration(watermark=old), Deadline(50, clock=harness["clock"])
    )

    assert attempt.state == SyncState.ABORTED
    assert attempt.errors[0].stage == SyncErrorCategory.LIST_FAILED
    assert attempt.errors[0].category == SyncErrorCategory.RATE_LIMIT
    assert harness["store"].watermarks["int1"] == old
    assert harness["store"].errors["int1"] == (
        "Listing messages failed: Gmail API error 429: Rate Limit Exceeded"
    )


async def test_threats_counted_above_threshold(harness) -> None:
    detector = harness["detector"]
    detector.by_message_id["m1"] = Verdict(VerdictClassification.QUARANTINE, 80.0)
    detector.by_message_id["m2"] = Verdict(VerdictClassification.SUSPICIOUS, 10.0)

    attempt = await harness["loop"].run(harness["integration"], Deadline(50, clock=harness["clock"]))

    assert attempt.threats_found == 1


async def test_first_sync_looks_back_24_hours(harness) -> None:
    await harness["loop"].run(harness["integration"], Deadline(50, clock=harness["clock"]))
    assert harness["provider"].list_calls[0][1] == NOW - timedelta(hours=24)


async def test_watermark_never_decreases(harness) -> None:
    """A pass starting before the stored watermark leaves it unchanged."""
    later = NOW + timedelta(hours=3)
    harness["store"].watermarks["int1"] = later

    await harness["loop"].run(make_integration(watermark=later), Deadline(50, clock=harness["clock"]))

    assert harness["store"].watermarks["int1"] == later
