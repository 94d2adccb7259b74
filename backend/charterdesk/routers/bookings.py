"""Bookings router — charter offer submission, quotes and inquiry follow-up."""

import asyncio
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.database import get_db
from charterdesk.errors import BookingError, InvalidStatusTransitionError
from charterdesk.models.inquiry import InquiryStatus
from charterdesk.schemas.booking import (
    BookingSubmission,
    CharterRequest,
    InquiryResponse,
    StatusUpdateRequest,
)
from charterdesk.services.booking_pipeline import BookingPipeline, get_booking_pipeline
from charterdesk.services.inquiry_gateway import inquiry_service
from charterdesk.services.notification_service import offer_filename
from charterdesk.services.offer_document import OfferDocumentGenerator, offer_document_generator
from charterdesk.services.pricing import PriceBreakdown

logger = logging.getLogger(__name__)

router = APIRouter()

HTTP_MULTI_STATUS = 207


def get_offer_generator() -> OfferDocumentGenerator:
    return offer_document_generator


def _client_error(e: BookingError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": e.kind.value, "detail": e.message},
    )


@router.post("")
async def submit_booking(
    req: BookingSubmission,
    pipeline: BookingPipeline = Depends(get_booking_pipeline),
):
    """Quote, record, render and notify for a charter request."""
    try:
        outcome = await pipeline.run(req.charter_request(), req.price_breakdown)
    except BookingError as e:
        logger.info(f"Booking rejected ({e.kind.value}): {e.message}")
        return _client_error(e)
    except Exception:
        logger.exception("Booking submission failed before validation completed")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "internal", "detail": "Internal Server Error"},
        )

    status_code = HTTP_MULTI_STATUS if outcome.partial else 200
    return JSONResponse(status_code=status_code, content=outcome.to_response())


@router.post("/quote")
async def quote_booking(
    req: BookingSubmission,
    pipeline: BookingPipeline = Depends(get_booking_pipeline),
):
    """Server-side price preview. Nothing is stored, rendered or sent."""
    try:
        quote = await pipeline.validate(req.charter_request(), req.price_breakdown)
    except BookingError as e:
        return _client_error(e)

    return {
        "success": True,
        "priceBreakdown": quote.breakdown.to_dict(),
        "priceMismatch": bool(quote.price_mismatch),
    }


@router.get("", response_model=list[InquiryResponse])
async def list_inquiries(
    status: InquiryStatus | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Booking inquiries, newest first."""
    return await inquiry_service.list_inquiries(db, status=status, limit=limit)


@router.get("/{inquiry_id}", response_model=InquiryResponse)
async def get_inquiry(inquiry_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    inquiry = await inquiry_service.get_inquiry(db, inquiry_id)
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return inquiry


@router.patch("/{inquiry_id}/status", response_model=InquiryResponse)
async def update_inquiry_status(
    inquiry_id: uuid.UUID,
    req: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Move an inquiry along pending → contacted → confirmed/cancelled."""
    inquiry = await inquiry_service.get_inquiry(db, inquiry_id)
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")

    try:
        return await inquiry_service.update_status(db, inquiry, req.status)
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/{inquiry_id}/offer")
async def download_offer(
    inquiry_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    generator: OfferDocumentGenerator = Depends(get_offer_generator),
):
    """Re-render the offer PDF from the stored quote snapshot."""
    inquiry = await inquiry_service.get_inquiry(db, inquiry_id)
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    if not inquiry.price_breakdown:
        raise HTTPException(status_code=404, detail="No quote stored for this inquiry")

    request = CharterRequest(
        name=inquiry.name,
        email=inquiry.email,
        phone=inquiry.phone,
        yacht_id=inquiry.yacht_id,
        yacht_name=inquiry.yacht_name,
        start_date=inquiry.start_date,
        end_date=inquiry.end_date,
        guests=inquiry.guests,
        message=inquiry.message,
        currency=inquiry.currency,
        tax_percentage=inquiry.tax_percentage,
        apa_percentage=inquiry.apa_percentage,
    )
    breakdown = PriceBreakdown.from_dict(inquiry.price_breakdown)
    document = await asyncio.to_thread(generator.render, request, breakdown)

    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={offer_filename(request)}"},
    )
