"""Share-link status evaluation.

Pure functions over a link's stored fields and a clock. Status is never
persisted or cached: it is recomputed from is_revoked, expires_at, uses,
max_uses and single_use every time a link is read.

Precedence when several conditions hold at once:
    revoked > expired > exhausted > used > active
"""

from datetime import datetime

from boardshare.models import ShareLink
from boardshare.services.share_link_types import LinkStatus, RejectionReason

_REJECTION_BY_STATUS: dict[LinkStatus, RejectionReason] = {
    LinkStatus.REVOKED: RejectionReason.REVOKED,
    LinkStatus.EXPIRED: RejectionReason.EXPIRED,
    LinkStatus.EXHAUSTED: RejectionReason.EXHAUSTED,
    LinkStatus.USED: RejectionReason.ALREADY_USED,
}


def evaluate(link: ShareLink, now: datetime) -> LinkStatus:
    """Derive the status of a share link at ``now``.

    A link whose expires_at equals ``now`` is still active; it expires only
    once ``now`` has passed it.

    Args:
        link: Share link row (or any object with the same attributes).
        now: Timezone-aware evaluation instant.

    Returns:
        The derived LinkStatus.
    """
    if link.is_revoked:
        return LinkStatus.REVOKED
    if link.expires_at is not None and link.expires_at < now:
        return LinkStatus.EXPIRED
    if link.max_uses is not None and link.uses >= link.max_uses:
        return LinkStatus.EXHAUSTED
    if link.single_use and link.uses > 0:
        return LinkStatus.USED
    return LinkStatus.ACTIVE


def rejection_for(status: LinkStatus) -> RejectionReason:
    """Map a non-active status to the redeem rejection reason.

    Raises:
        ValueError: If ``status`` is ACTIVE.
    """
    try:
        return _REJECTION_BY_STATUS[status]
    except KeyError:
        raise ValueError(f"Active links are not rejected: {status.value}") from None
