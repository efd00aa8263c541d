# detailing/schemas/__init__.py
from .appointment import (
    CreateAppointmentRequest,
    RescheduleAppointmentRequest,
    CancelAppointmentRequest,
    AppointmentResponse,
    AppointmentListResponse
)

from .service import (
    ServiceCategoryResponse,
    ServiceResponse,
    ServiceListResponse,
    TimeSlotsResponse,
    SlotAvailabilityResponse,
    ServiceAvailabilityResponse
)

from .review import (
    CreateReviewRequest,
    StartDraftRequest,
    AttachPhotoRequest,
    CommentRequest,
    ReviewResponse,
    ReviewDraftResponse
)
