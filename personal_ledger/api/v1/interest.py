"""POST /v1/interest/predict - Deposit interest predictor"""

from fastapi import APIRouter

from personal_ledger.api.v1.errors import to_http_exception
from personal_ledger.api.v1.schemas import InterestRequest, InterestResponse
from personal_ledger.domain.exceptions import DomainException
from personal_ledger.domain.interest import predict_monthly_interest

router = APIRouter()


@router.post("/interest/predict", response_model=InterestResponse)
def predict_interest(request_body: InterestRequest):
    try:
        monthly = predict_monthly_interest(request_body.deposit, request_body.bank)
    except DomainException as e:
        raise to_http_exception(e)
    return InterestResponse(bank=request_body.bank, deposit=request_body.deposit, monthly_interest=monthly)
