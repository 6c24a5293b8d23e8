from higgsfield_client.client import HiggsfieldClient
from higgsfield_client.errors import (
    APIError,
    AuthenticationError,
    BadInputError,
    CredentialsMissedError,
    ErrorKind,
    HiggsfieldError,
    NotEnoughCreditsError,
    PollingTimeoutError,
    UnsupportedEnvironmentError,
    ValidationError,
)
from higgsfield_client.models import (
    ClientConfig,
    Credentials,
    Job,
    JobSet,
    JobStatus,
    RequestJobSet,
    Result,
    SoulId,
    SoulIdStatus,
    Webhook,
)
from higgsfield_client.v2 import (
    HiggsfieldV2Client,
    aclose_default,
    configure,
    reset,
    subscribe,
)

__version__ = "0.1.0"
__all__ = [
    "HiggsfieldClient",
    "HiggsfieldV2Client",
    "configure",
    "subscribe",
    "reset",
    "aclose_default",
    "ClientConfig",
    "Credentials",
    "Job",
    "JobSet",
    "JobStatus",
    "RequestJobSet",
    "Result",
    "SoulId",
    "SoulIdStatus",
    "Webhook",
    "HiggsfieldError",
    "ErrorKind",
    "APIError",
    "AuthenticationError",
    "BadInputError",
    "CredentialsMissedError",
    "NotEnoughCreditsError",
    "PollingTimeoutError",
    "UnsupportedEnvironmentError",
    "ValidationError",
]
