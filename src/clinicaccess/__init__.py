"""
ClinicAccess Python SDK

Client library for the clinic records Access/Identity Service.
Provides the MFA enrollment workflow and the emergency
("break-the-glass") access workflow as client-side state machines.
"""

from .client import ClinicAccessClient
from .config import Endpoints
from .emergency_controller import EmergencyAccessController, EmergencyStep
from .exceptions import *
from .forms import FieldKind, FormField, parse_field_value, parse_form
from .mfa_controller import MFAController, MfaState
from .models import *
from .recent_patients import RecentPatients

__version__ = "1.0.0"

__all__ = [
    "ClinicAccessClient",
    "Endpoints",
    # Workflows
    "MFAController",
    "MfaState",
    "EmergencyAccessController",
    "EmergencyStep",
    # Exceptions
    "ClinicAccessError",
    "ValidationError",
    "InvalidTransitionError",
    "VerificationFailure",
    "DenialError",
    "BadRequestError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "TransportError",
    "ServerError",
    "NetworkError",
    "TimeoutError",
    # Models
    "MfaStatus",
    "MfaSetupSession",
    "SetupStep",
    "EmergencyReason",
    "EmergencyAccessRequest",
    "EmergencyAccessGrant",
    "GrantVerification",
    "GrantRecord",
    "EmergencyAccessLog",
    "ComplianceStats",
    "Notice",
    "NoticeKind",
    # Utilities
    "RecentPatients",
    "FieldKind",
    "FormField",
    "parse_field_value",
    "parse_form",
]
