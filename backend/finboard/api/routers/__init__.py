from fastapi import APIRouter

from finboard.api.routers import accounts, admin_transfers, auth, transactions, transfers

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(accounts.router)
api_router.include_router(transfers.router)
api_router.include_router(transactions.router)
api_router.include_router(admin_transfers.router)
