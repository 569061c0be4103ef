"""Savings endpoints: activate or change the skim percentage, inspect the profile"""

from fastapi import APIRouter, Depends, Query, Request

from personal_ledger.api.dependencies import get_request_id, get_savings_engine
from personal_ledger.api.v1.errors import to_http_exception
from personal_ledger.api.v1.schemas import SavingsRequest, SavingsResponse
from personal_ledger.domain.exceptions import DomainException
from personal_ledger.engine.savings import SavingsEngine

router = APIRouter()


@router.put("/savings", response_model=SavingsResponse)
def activate_savings(
    request_body: SavingsRequest,
    request: Request,
    savings: SavingsEngine = Depends(get_savings_engine),
):
    try:
        profile = savings.activate(request_body.user_email, request_body.percentage)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return SavingsResponse(
        user_email=profile.user_email,
        percentage=profile.percentage,
        saved_amount=profile.saved_amount,
    )


@router.get("/savings", response_model=SavingsResponse)
def get_savings(
    request: Request,
    user_email: str = Query(...),
    savings: SavingsEngine = Depends(get_savings_engine),
):
    try:
        profile = savings.get_profile(user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return SavingsResponse(
        user_email=profile.user_email,
        percentage=profile.percentage,
        saved_amount=profile.saved_amount,
    )
