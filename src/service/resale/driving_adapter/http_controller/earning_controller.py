from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.resale.app.command.fail_payout_use_case import FailPayoutUseCase
from src.service.resale.app.command.request_payout_use_case import RequestPayoutUseCase
from src.service.resale.app.query.get_seller_balance_use_case import GetSellerBalanceUseCase
from src.service.resale.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.resale.driving_adapter.http_controller.auth.job_token import require_job_token
from src.service.resale.driving_adapter.http_controller.schema.earning_schema import (
    PayoutCreateRequest,
    PayoutFailRequest,
    PayoutResponse,
    SellerBalanceResponse,
)


earning_router = APIRouter()
payout_router = APIRouter()


@earning_router.get('/balance')
@Logger.io
@inject
async def get_balance(
    user_id: str = Depends(get_current_user_id),
    use_case: GetSellerBalanceUseCase = Depends(Provide[Container.get_seller_balance_use_case]),
) -> SellerBalanceResponse:
    balance = await use_case.execute(seller_user_id=user_id)
    return SellerBalanceResponse.from_value(balance)


@payout_router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def request_payout(
    request: PayoutCreateRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: RequestPayoutUseCase = Depends(Provide[Container.request_payout_use_case]),
) -> PayoutResponse:
    payout = await use_case.execute(seller_user_id=user_id, earning_ids=request.earning_ids)
    return PayoutResponse.from_entity(payout)


@payout_router.post('/{payout_id}/fail', dependencies=[Depends(require_job_token)])
@Logger.io
@inject
async def fail_payout(
    payout_id: UUID,
    request: PayoutFailRequest,
    use_case: FailPayoutUseCase = Depends(Provide[Container.fail_payout_use_case]),
) -> PayoutResponse:
    payout = await use_case.execute(payout_id=payout_id, reason=request.reason)
    return PayoutResponse.from_entity(payout)
