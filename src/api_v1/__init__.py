from fastapi import APIRouter

from .amazon_oauth.views import router as amazon_oauth_router
from .credentials.views import router as credentials_router
from .amazon_ads.views import router as amazon_ads_router

router = APIRouter()
router.include_router(router=amazon_oauth_router, prefix="/amazon/oauth")
router.include_router(router=credentials_router)
router.include_router(router=amazon_ads_router, prefix="/amazon-ads")
