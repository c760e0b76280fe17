"""Tests for share link status evaluation.

Precedence: revoked > expired > exhausted > used > active.
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from boardshare.services.share_link_policy import evaluate, rejection_for
from boardshare.services.share_link_types import LinkStatus, RejectionReason

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _link(**overrides) -> SimpleNamespace:
    fields = {
        "is_revoked": False,
        "expires_at": None,
        "max_uses": None,
        "uses": 0,
        "single_use": False,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestEvaluate:
    """Tests for evaluate()."""

    def test_fresh_link_is_active(self):
        """No restrictions and no uses should be active."""
        assert evaluate(_link(), _NOW) is LinkStatus.ACTIVE

    def test_revoked_link(self):
        """is_revoked should yield revoked."""
        assert evaluate(_link(is_revoked=True), _NOW) is LinkStatus.REVOKED

    def test_past_expiry_is_expired(self):
        """An expiry in the past should yield expired."""
        link = _link(expires_at=_NOW - timedelta(seconds=1))
        assert evaluate(link, _NOW) is LinkStatus.EXPIRED

    def test_expiry_exactly_now_is_still_active(self):
        """Expiry is strict: a link expiring at now is still usable."""
        assert evaluate(_link(expires_at=_NOW), _NOW) is LinkStatus.ACTIVE

    def test_future_expiry_is_active(self):
        """An expiry in the future should not affect status."""
        link = _link(expires_at=_NOW + timedelta(days=1))
        assert evaluate(link, _NOW) is LinkStatus.ACTIVE

    def test_uses_at_cap_is_exhausted(self):
        """uses >= max_uses should yield exhausted."""
        assert evaluate(_link(max_uses=3, uses=3), _NOW) is LinkStatus.EXHAUSTED

    def test_uses_below_cap_is_active(self):
        """uses < max_uses should stay active."""
        assert evaluate(_link(max_uses=3, uses=2), _NOW) is LinkStatus.ACTIVE

    def test_single_use_after_one_use_is_used(self):
        """A single-use link with one use should yield used."""
        assert evaluate(_link(single_use=True, uses=1), _NOW) is LinkStatus.USED

    def test_single_use_without_uses_is_active(self):
        """A single-use link nobody joined through should stay active."""
        assert evaluate(_link(single_use=True), _NOW) is LinkStatus.ACTIVE

    def test_revoked_beats_expired(self):
        """A link both revoked and expired reports revoked."""
        link = _link(is_revoked=True, expires_at=_NOW - timedelta(days=1))
        assert evaluate(link, _NOW) is LinkStatus.REVOKED

    def test_expired_beats_exhausted(self):
        """A link both expired and exhausted reports expired."""
        link = _link(expires_at=_NOW - timedelta(days=1), max_uses=1, uses=1)
        assert evaluate(link, _NOW) is LinkStatus.EXPIRED

    def test_exhausted_beats_used(self):
        """A single-use link with max_uses=1 and one use reports exhausted."""
        link = _link(single_use=True, max_uses=1, uses=1)
        assert evaluate(link, _NOW) is LinkStatus.EXHAUSTED

    def test_evaluation_follows_the_clock(self):
        """Status is recomputed from now on every call, never cached."""
        link = _link(expires_at=_NOW)
        assert evaluate(link, _NOW) is LinkStatus.ACTIVE
        assert evaluate(link, _NOW + timedelta(microseconds=1)) is LinkStatus.EXPIRED


class TestRejectionFor:
    """Tests for rejection_for()."""

    @pytest.mark.parametrize(
        ("status", "reason"),
        [
            (LinkStatus.REVOKED, RejectionReason.REVOKED),
            (LinkStatus.EXPIRED, RejectionReason.EXPIRED),
            (LinkStatus.EXHAUSTED, RejectionReason.EXHAUSTED),
            (LinkStatus.USED, RejectionReason.ALREADY_USED),
        ],
    )
    def test_maps_inactive_status_to_reason(self, status, reason):
        """Each inactive status should map to its rejection reason."""
        assert rejection_for(status) is reason

    def test_active_status_has_no_rejection(self):
        """Asking for the rejection of an active link is a programming error."""
        with pytest.raises(ValueError):
            rejection_for(LinkStatus.ACTIVE)
