"""Donations slice."""

from __future__ import annotations

from typing import Any

from ..api import ApiClient
from ..collection import KeyedCollection, Record
from ..envelope import unwrap, unwrap_page, unwrap_record
from ..slice import (
    Slice,
    ThunkResult,
    insert_record,
    remove_key,
    replace_record,
    select_record,
)


def _amount(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class DonationsSlice(Slice):
    name = "donations"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.donations: KeyedCollection[Record] = KeyedCollection("donation_id")
        self.summary: Record | None = None
        self.total_amount = 0.0
        self.average_amount = 0.0
        self.page_size = page_size

    @property
    def selected_donation(self) -> Record | None:
        return self.donations.selected

    def clear_selected_donation(self) -> None:
        self.donations.clear_selection()

    def fetch_donations(
        self,
        page: int = 1,
        limit: int | None = None,
        **filters: Any,
    ) -> ThunkResult[Any]:
        limit = limit or self.page_size
        params = {**filters, "page": page, "limit": limit}

        def fulfilled(response: Any) -> list[Record]:
            page_data = unwrap_page(response, default_limit=limit)
            self.donations.replace_all(page_data.items, page_data.pagination)
            body = unwrap(response)
            summary = body.get("summary") if isinstance(body, dict) else None
            if isinstance(summary, dict):
                self.total_amount = _amount(summary.get("total_amount"))
                self.average_amount = _amount(summary.get("average_amount"))
            return page_data.items

        return self._thunk(
            "fetch_donations",
            lambda: self.api.get("/donations", params=params),
            fulfilled,
            fallback="Failed to fetch donations",
        )

    def fetch_donation(self, donation_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_donation",
            lambda: self.api.get(f"/donations/{donation_id}"),
            select_record(self.donations),
            fallback="Failed to fetch donation",
            entity=("donation", donation_id),
        )

    def create_donation(self, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_donation",
            lambda: self.api.post("/donations", json=data),
            insert_record(self.donations),
            fallback="Failed to create donation",
        )

    def update_donation(self, donation_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_donation",
            lambda: self.api.put(f"/donations/{donation_id}", json=data),
            replace_record(self.donations),
            fallback="Failed to update donation",
            entity=("donation", donation_id),
        )

    def delete_donation(self, donation_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_donation",
            lambda: self.api.delete(f"/donations/{donation_id}"),
            remove_key(self.donations, donation_id),
            fallback="Failed to delete donation",
            entity=("donation", donation_id),
        )

    def mark_receipt_sent(self, donation_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "mark_receipt_sent",
            lambda: self.api.post(f"/donations/{donation_id}/receipt"),
            replace_record(self.donations),
            fallback="Failed to mark receipt sent",
            entity=("donation", donation_id),
        )

    def fetch_summary(self, **filters: Any) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> Record | None:
            self.summary = unwrap_record(response)
            return self.summary

        return self._thunk(
            "fetch_summary",
            lambda: self.api.get("/donations/summary", params=filters),
            fulfilled,
            fallback="Failed to fetch donation summary",
        )
