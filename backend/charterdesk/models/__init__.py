from charterdesk.models.yacht import Yacht
from charterdesk.models.inquiry import ALLOWED_TRANSITIONS, BookingInquiry, InquiryStatus

__all__ = [
    "ALLOWED_TRANSITIONS",
    "BookingInquiry",
    "InquiryStatus",
    "Yacht",
]
