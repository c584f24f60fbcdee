from .accounts import AccountsSlice
from .cases import CasesSlice
from .contacts import ContactsSlice
from .donations import DonationsSlice
from .events import EventsSlice
from .follow_ups import FollowUpsSlice
from .outcomes import OutcomesSlice
from .settings import ProviderSettingsSlice
from .volunteers import VolunteersSlice
from .webhooks import WebhooksSlice

__all__ = [
    "AccountsSlice",
    "CasesSlice",
    "ContactsSlice",
    "DonationsSlice",
    "EventsSlice",
    "FollowUpsSlice",
    "OutcomesSlice",
    "ProviderSettingsSlice",
    "VolunteersSlice",
    "WebhooksSlice",
]
