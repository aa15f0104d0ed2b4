# certichain/api/v1/router.py
from fastapi import APIRouter

from certichain.api.v1 import auth, certificates, history, institutions, verify

api_router = APIRouter()

api_router.include_router(auth.router,         prefix="/auth",         tags=["auth"])
api_router.include_router(verify.router,       prefix="/verify",       tags=["verify"])
api_router.include_router(certificates.router, prefix="/certificates", tags=["certificates"])
api_router.include_router(institutions.router, prefix="/institutions", tags=["institutions"])
api_router.include_router(history.router,      prefix="/history",      tags=["history"])
