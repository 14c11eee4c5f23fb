# backend/routes/promotions.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.promotion import PromotionOut, PromotionValidateRequest, PromotionValidateResponse
from services.errors import StorefrontError
from services.promotions import validate_promotion
from utils.http_errors import http_error

router = APIRouter(prefix="/promotions", tags=["Promotions"])

# Check a promotion code against an order amount; never consumes a use
@router.post("/validate", response_model=PromotionValidateResponse)
def validate_code(
    payload: PromotionValidateRequest,
    db: Session = Depends(get_db),
):
    try:
        quote = validate_promotion(db, payload.code, payload.order_amount)
    except StorefrontError as e:
        raise http_error(e)

    return PromotionValidateResponse(
        promotion=PromotionOut.model_validate(quote.promotion),
        discount=float(quote.discount),
        final_amount=float(quote.final_amount),
    )
