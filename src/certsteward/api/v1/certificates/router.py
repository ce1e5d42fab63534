"""Certificate API Routes - Route registration only."""

from fastapi import APIRouter

from certsteward.api.v1 import CERTIFICATES_PREFIX
from certsteward.api.v1.certificates import api

router = APIRouter()
router.include_router(api.router, prefix=CERTIFICATES_PREFIX, tags=["certificates"])
