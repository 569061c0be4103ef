"""User registration boundary used by the authentication layer"""

from fastapi import APIRouter, Depends, Request

from personal_ledger.api.dependencies import get_ledger, get_request_id
from personal_ledger.api.v1.errors import to_http_exception
from personal_ledger.api.v1.schemas import UserCreateRequest, UserResponse
from personal_ledger.domain.exceptions import DomainException
from personal_ledger.engine.ledger import Ledger

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def register_user(
    request_body: UserCreateRequest,
    request: Request,
    ledger: Ledger = Depends(get_ledger),
):
    try:
        user_id = ledger.register_user(request_body.name, request_body.email, request_body.credential_hash)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return UserResponse(email=request_body.email, exists=True, user_id=user_id)


@router.get("/users/{email}", response_model=UserResponse)
def user_exists(email: str, request: Request, ledger: Ledger = Depends(get_ledger)):
    try:
        exists = ledger.user_exists(email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return UserResponse(email=email, exists=exists)
