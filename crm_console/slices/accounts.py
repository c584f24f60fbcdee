"""Accounts slice: households and organizations that group contacts."""

from __future__ import annotations

from typing import Any

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..envelope import unwrap_list
from ..slice import (
    Slice,
    ThunkResult,
    insert_record,
    remove_key,
    replace_page,
    replace_record,
    select_record,
)


ACCOUNT_TYPES = ("individual", "household", "organization")


class AccountsSlice(Slice):
    name = "accounts"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.accounts: KeyedCollection[Record] = KeyedCollection("account_id")
        self.account_contacts: list[Record] = []
        self.page_size = page_size

    @property
    def selected_account(self) -> Record | None:
        return self.accounts.selected

    def clear_selected_account(self) -> None:
        self.accounts.clear_selection()
        self.account_contacts = []

    def fetch_accounts(
        self,
        page: int = 1,
        limit: int | None = None,
        search: str = "",
        account_type: str = "",
        is_active: bool | None = None,
    ) -> ThunkResult[Any]:
        if account_type and account_type not in ACCOUNT_TYPES:
            return self._reject(
                "fetch_accounts",
                "Account type must be individual, household, or organization.",
                fields={"account_type": "Unknown account type"},
            )
        limit = limit or self.page_size
        params = {
            "page": page,
            "limit": limit,
            "search": search,
            "account_type": account_type,
            "is_active": is_active,
        }
        return self._thunk(
            "fetch_accounts",
            lambda: self.api.get("/accounts", params=params),
            replace_page(self.accounts, default_limit=limit),
            fallback="Failed to fetch accounts",
        )

    def fetch_account(self, account_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_account",
            lambda: self.api.get(f"/accounts/{account_id}"),
            select_record(self.accounts),
            fallback="Failed to fetch account",
            entity=("account", account_id),
        )

    def fetch_account_contacts(self, account_id: str) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[Record]:
            self.account_contacts = unwrap_list(response, "contacts")
            return self.account_contacts

        return self._thunk(
            "fetch_account_contacts",
            lambda: self.api.get(f"/accounts/{account_id}/contacts"),
            fulfilled,
            fallback="Failed to fetch account contacts",
        )

    def create_account(self, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_account",
            lambda: self.api.post("/accounts", json=data),
            insert_record(self.accounts),
            fallback="Failed to create account",
        )

    def update_account(self, account_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_account",
            lambda: self.api.put(f"/accounts/{account_id}", json=data),
            replace_record(self.accounts),
            fallback="Failed to update account",
            entity=("account", account_id),
        )

    def delete_account(self, account_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_account",
            lambda: self.api.delete(f"/accounts/{account_id}"),
            remove_key(self.accounts, account_id),
            fallback="Failed to delete account",
            entity=("account", account_id),
        )
