from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.payment_schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    ItemSummary,
    OrderRead,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from storefront.services import catalog
from storefront.services.access_grant import verify_and_grant
from storefront.services.checkout import create_intent
from storefront.services.payment_gateway import RazorpayGateway, get_payment_gateway
from storefront.utils.token import get_current_user

router = APIRouter()


@router.post("/create-order", response_model=CreateOrderResponse)
def create_order(
    payload: CreateOrderRequest,
    session: Session = Depends(get_session),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user),
):
    order = create_intent(
        session=session,
        gateway=gateway,
        book_id=payload.item_id,
        buyer=current_user,
    )
    book = catalog.get_item(session, order.book_id)

    return CreateOrderResponse(
        order_id=order.id,
        gateway_order_id=order.gateway_order_id,
        amount=order.amount,
        currency=order.currency,
        key_id=gateway.key_id,
        item=ItemSummary(id=book.id, title=book.title),
    )


@router.post("/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentRequest,
    session: Session = Depends(get_session),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user),
):
    order = verify_and_grant(
        session=session,
        gateway=gateway,
        book_id=payload.item_id,
        gateway_order_id=payload.gateway_order_id,
        gateway_payment_id=payload.gateway_payment_id,
        signature=payload.signature,
        buyer=current_user,
    )

    return VerifyPaymentResponse(
        message="Payment verified",
        order=OrderRead.model_validate(order),
    )
