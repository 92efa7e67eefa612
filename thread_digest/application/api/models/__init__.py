from thread_digest.application.api.models.admin import InstallationRequest
from thread_digest.application.api.models.summary import ErrorResponse, SummaryRequest, SummaryResponse

__all__ = ["SummaryRequest", "SummaryResponse", "ErrorResponse", "InstallationRequest"]
