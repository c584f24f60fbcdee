"""Application state: one instance of every slice around one API client."""

from __future__ import annotations

import requests

from .api import ApiClient
from .config import Settings, get_settings
from .logger import get_logger
from .slices import (
    AccountsSlice,
    CasesSlice,
    ContactsSlice,
    DonationsSlice,
    EventsSlice,
    FollowUpsSlice,
    OutcomesSlice,
    ProviderSettingsSlice,
    VolunteersSlice,
    WebhooksSlice,
)


logger = get_logger(__name__)


class CRMStore:
    """Holds the console's in-memory state for one session."""

    def __init__(self, api: ApiClient, settings: Settings | None = None) -> None:
        self.api = api
        self.settings = settings or get_settings()
        page_size = self.settings.page_size

        self.contacts = ContactsSlice(api, page_size=page_size)
        self.accounts = AccountsSlice(api, page_size=page_size)
        self.events = EventsSlice(api, page_size=page_size)
        self.cases = CasesSlice(api, page_size=page_size)
        self.volunteers = VolunteersSlice(api, page_size=page_size)
        self.donations = DonationsSlice(api, page_size=page_size)
        self.follow_ups = FollowUpsSlice(api, page_size=page_size)
        self.outcomes = OutcomesSlice(api)
        self.webhooks = WebhooksSlice(api)
        self.provider_settings = ProviderSettingsSlice(
            api, cache_ttl=self.settings.settings_cache_ttl
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> "CRMStore":
        settings = settings or get_settings()
        logger.info("Connecting console to %s", settings.api_url)
        return cls(ApiClient.from_settings(settings, session=session), settings)

    @property
    def slices(self) -> dict[str, object]:
        return {
            "contacts": self.contacts,
            "accounts": self.accounts,
            "events": self.events,
            "cases": self.cases,
            "volunteers": self.volunteers,
            "donations": self.donations,
            "follow_ups": self.follow_ups,
            "outcomes": self.outcomes,
            "webhooks": self.webhooks,
            "provider_settings": self.provider_settings,
        }

    def errors(self) -> dict[str, str]:
        """Stored error messages, keyed by slice name."""

        return {
            name: slice_.error
            for name, slice_ in self.slices.items()
            if getattr(slice_, "error", None)
        }

    def clear_errors(self) -> None:
        for slice_ in self.slices.values():
            slice_.clear_error()  # type: ignore[attr-defined]
