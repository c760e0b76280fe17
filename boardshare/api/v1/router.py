"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at /api/v1.
"""

from fastapi import APIRouter

from boardshare.api.v1 import join_requests, share_links

router = APIRouter()

# =============================================================================
# Share links and join requests
# =============================================================================

router.include_router(share_links.router, tags=["share-links"])
router.include_router(join_requests.router, tags=["join-requests"])
