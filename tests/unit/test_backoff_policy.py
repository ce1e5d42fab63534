"""Tests for per-identity retry intervals."""

from datetime import UTC, datetime, timedelta

import pytest

from certsteward.domain.backoff import BackoffPolicy
from certsteward.domain.errors import (
    CertificateControllerError,
    InvalidDurationConfig,
    IssuerNotFound,
    IssuerNotReady,
    SignDenied,
    SignPending,
    SignTransient,
    StoreConflict,
    StoreUnavailable,
)
from certsteward.domain.models import BackoffState

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def policy():
    return BackoffPolicy()


@pytest.mark.parametrize(
    "reason",
    [
        SignTransient.reason,
        StoreUnavailable.reason,
        StoreConflict.reason,
        CertificateControllerError.reason,
    ],
)
def test_transient_failures_back_off_exponentially(policy, reason):
    intervals = [policy.interval_for(reason, n) for n in range(1, 12)]

    assert intervals[0] == timedelta(seconds=5)
    assert intervals[1] == timedelta(seconds=10)
    assert intervals[2] == timedelta(seconds=20)
    assert intervals[-1] == timedelta(minutes=10)
    # Strictly increasing until the cap, then flat
    capped = intervals.index(timedelta(minutes=10))
    assert all(a < b for a, b in zip(intervals[:capped], intervals[1 : capped + 1]))
    assert set(intervals[capped:]) == {timedelta(minutes=10)}


def test_huge_failure_counts_stay_capped(policy):
    assert policy.interval_for(SignTransient.reason, 10_000) == timedelta(minutes=10)


def test_pending_uses_fixed_interval(policy):
    assert policy.interval_for(SignPending.reason, 1) == timedelta(seconds=10)
    assert policy.interval_for(SignPending.reason, 50) == timedelta(seconds=10)


def test_denied_uses_long_fixed_interval(policy):
    assert policy.interval_for(SignDenied.reason, 1) == timedelta(hours=1)
    assert policy.interval_for(SignDenied.reason, 5) == timedelta(hours=1)


@pytest.mark.parametrize("reason", [IssuerNotReady.reason, IssuerNotFound.reason])
def test_issuer_not_ready_starts_at_medium_interval(policy, reason):
    assert policy.interval_for(reason, 1) == timedelta(seconds=30)
    assert policy.interval_for(reason, 2) == timedelta(seconds=60)
    assert policy.interval_for(reason, 20) == timedelta(minutes=10)


def test_record_failure_counts_consecutive_failures(policy):
    state = BackoffState()

    state = policy.record_failure(state, SignTransient.reason, NOW, "fp")
    state = policy.record_failure(state, SignTransient.reason, NOW, "fp")

    assert state.failures == 2
    assert state.interval == timedelta(seconds=10)
    assert state.last_attempt == NOW
    assert state.retry_at() == NOW + timedelta(seconds=10)


def test_record_failure_does_not_count_pending(policy):
    state = policy.record_failure(BackoffState(), SignTransient.reason, NOW, "fp")

    state = policy.record_failure(state, SignPending.reason, NOW, "fp")

    assert state.failures == 1
    assert state.reason == SignPending.reason
    assert state.interval == timedelta(seconds=10)


def test_fingerprint_change_resets_the_count(policy):
    state = BackoffState()
    for _ in range(4):
        state = policy.record_failure(state, SignTransient.reason, NOW, "old")

    state = policy.record_failure(state, SignTransient.reason, NOW, "new")

    assert state.failures == 1
    assert state.interval == timedelta(seconds=5)
    assert state.fingerprint == "new"


def test_record_failure_does_not_mutate_input(policy):
    state = BackoffState()

    policy.record_failure(state, SignTransient.reason, NOW, "fp")

    assert state == BackoffState()


def test_invalid_config_is_not_retried_on_timer(policy):
    assert not policy.is_retryable_on_timer(InvalidDurationConfig.reason)
    assert policy.is_retryable_on_timer(SignTransient.reason)


def test_from_settings(mocker):
    settings = mocker.Mock(
        backoff_base_seconds=1,
        backoff_cap_seconds=8,
        pending_interval_seconds=2,
        denied_interval_seconds=60,
        issuer_not_ready_interval_seconds=4,
    )

    policy = BackoffPolicy.from_settings(settings)

    assert policy.interval_for(SignTransient.reason, 5) == timedelta(seconds=8)
    assert policy.interval_for(SignPending.reason, 1) == timedelta(seconds=2)
    assert policy.interval_for(IssuerNotReady.reason, 1) == timedelta(seconds=4)
