from .base import BaseEntitySync
from .companies import CompanySync
from .contacts import ContactSync
from .enrichment import AssociationEnricher
from .errors import AuthError, EnrichmentError, RemoteError, SyncError
from .hubspot_auth import CredentialRefresher
from .hubspot_client import HubSpotClient
from .meetings import MeetingSync
from .models import Account, Action, ActionName, SyncWindow
from .paginator import SearchSpec, WindowedPaginator
from .retry import RetryingCaller
from .state_store import AccountStore

__all__ = [
    "Account",
    "AccountStore",
    "Action",
    "ActionName",
    "AssociationEnricher",
    "AuthError",
    "BaseEntitySync",
    "CompanySync",
    "ContactSync",
    "CredentialRefresher",
    "EnrichmentError",
    "HubSpotClient",
    "MeetingSync",
    "RemoteError",
    "RetryingCaller",
    "SearchSpec",
    "SyncError",
    "SyncWindow",
    "WindowedPaginator",
]
