from fastapi import APIRouter

from rentmatch.api.v1.endpoints import conversations, feed, leases, matches

api_router = APIRouter()
api_router.include_router(
    matches.router, prefix="/matches", tags=["matches"]
)
api_router.include_router(
    feed.router, prefix="/feed", tags=["feed"]
)
api_router.include_router(
    leases.router, prefix="/leases", tags=["leases"]
)
api_router.include_router(
    leases.payments_router, prefix="/payments", tags=["payments"]
)
api_router.include_router(
    conversations.router, prefix="/conversations", tags=["conversations"]
)
