"""ORM models for the rental kernel."""

from rental_kernel.models.booking import BookingModel
from rental_kernel.models.conversation import ConversationModel, MessageModel
from rental_kernel.models.listing import ListingModel
from rental_kernel.models.rent_payment import RentPaymentModel

__all__ = [
    "BookingModel",
    "ConversationModel",
    "ListingModel",
    "MessageModel",
    "RentPaymentModel",
    "import_all_models",
]


def import_all_models() -> None:
    """Ensure every model is registered on ``Base.metadata``."""
    import rental_kernel.models.booking  # noqa: F401
    import rental_kernel.models.conversation  # noqa: F401
    import rental_kernel.models.listing  # noqa: F401
    import rental_kernel.models.rent_payment  # noqa: F401
