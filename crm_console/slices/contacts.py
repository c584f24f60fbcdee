"""Contacts slice: contact list, current contact, and its sub-resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO, Iterable

from ..api import ApiClient
from ..collection import InsertAt, KeyedCollection, Record
from ..counters import adjust_selected_counter
from ..envelope import unwrap, unwrap_list
from ..slice import (
    Slice,
    ThunkResult,
    insert_record,
    remove_key,
    replace_list,
    replace_page,
    replace_record,
    select_record,
)


CONTACT_ROLES = ("staff", "volunteer", "board")


def _default_filters() -> dict[str, Any]:
    return {
        "search": "",
        "account_id": "",
        "is_active": None,
        "tags": [],
        "role": "",
        "sort_by": "created_at",
        "sort_order": "desc",
    }


@dataclass(frozen=True)
class RelatedResource:
    kind: str
    label: str
    insert_at: InsertAt
    list_key: str | None = None
    counter: str | None = None


RELATED_RESOURCES: dict[str, RelatedResource] = {
    "phones": RelatedResource("phones", "phone number", "end", counter="phone_count"),
    "emails": RelatedResource("emails", "email address", "end", counter="email_count"),
    "relationships": RelatedResource(
        "relationships",
        "relationship",
        "end",
        list_key="relationships",
        counter="relationship_count",
    ),
    "notes": RelatedResource("notes", "note", "start", list_key="data", counter="note_count"),
    "documents": RelatedResource("documents", "document", "start"),
}


class ContactsSlice(Slice):
    name = "contacts"

    def __init__(self, api: ApiClient, page_size: int = 20) -> None:
        super().__init__(api)
        self.contacts: KeyedCollection[Record] = KeyedCollection("contact_id")
        self.page_size = page_size
        self.filters = _default_filters()
        self.available_tags: list[str] = []
        self.related: dict[str, KeyedCollection[Record]] = {
            kind: KeyedCollection("id", insert_at=resource.insert_at)
            for kind, resource in RELATED_RESOURCES.items()
        }
        self.phones_loading = False
        self.emails_loading = False
        self.relationships_loading = False
        self.notes_loading = False
        self.documents_loading = False

    @property
    def current_contact(self) -> Record | None:
        return self.contacts.selected

    @property
    def phones(self) -> list[Record]:
        return self.related["phones"].items

    @property
    def emails(self) -> list[Record]:
        return self.related["emails"].items

    @property
    def relationships(self) -> list[Record]:
        return self.related["relationships"].items

    @property
    def notes(self) -> list[Record]:
        return self.related["notes"].items

    @property
    def documents(self) -> list[Record]:
        return self.related["documents"].items

    def set_filters(self, **changes: Any) -> bool:
        unknown = set(changes) - set(self.filters)
        if unknown:
            self._reject("set_filters", f"Unknown contact filters: {', '.join(sorted(unknown))}")
            return False
        role = changes.get("role")
        if role and role not in CONTACT_ROLES:
            self._reject("set_filters", "Role must be staff, volunteer, or board.", fields={"role": "Unknown role"})
            return False
        self.filters.update(changes)
        self._reset_page()
        return True

    def clear_filters(self) -> None:
        self.filters = _default_filters()
        self._reset_page()

    def _reset_page(self) -> None:
        self.contacts.pagination = self.contacts.pagination.model_copy(update={"page": 1})

    def clear_current_contact(self) -> None:
        self.contacts.clear_selection()
        for collection in self.related.values():
            collection.reset()

    # Contacts

    def fetch_contacts(
        self,
        page: int | None = None,
        limit: int | None = None,
        **overrides: Any,
    ) -> ThunkResult[Any]:
        limit = limit or self.page_size
        params = {
            **self.filters,
            "page": page or self.contacts.pagination.page,
            "limit": limit,
            **overrides,
        }
        return self._thunk(
            "fetch_contacts",
            lambda: self.api.get("/contacts", params=params),
            replace_page(self.contacts, default_limit=limit),
            fallback="Failed to fetch contacts",
        )

    def fetch_contact(self, contact_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "fetch_contact",
            lambda: self.api.get(f"/contacts/{contact_id}"),
            select_record(self.contacts),
            fallback="Failed to fetch contact",
            entity=("contact", contact_id),
        )

    def create_contact(self, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "create_contact",
            lambda: self.api.post("/contacts", json=data),
            insert_record(self.contacts),
            fallback="Failed to create contact",
        )

    def update_contact(self, contact_id: str, data: Record) -> ThunkResult[Any]:
        return self._thunk(
            "update_contact",
            lambda: self.api.put(f"/contacts/{contact_id}", json=data),
            replace_record(self.contacts),
            fallback="Failed to update contact",
            entity=("contact", contact_id),
        )

    def delete_contact(self, contact_id: str) -> ThunkResult[Any]:
        return self._thunk(
            "delete_contact",
            lambda: self.api.delete(f"/contacts/{contact_id}"),
            remove_key(self.contacts, contact_id),
            fallback="Failed to delete contact",
            entity=("contact", contact_id),
        )

    def fetch_tags(self) -> ThunkResult[Any]:
        def fulfilled(response: Any) -> list[str]:
            self.available_tags = [str(tag) for tag in unwrap_list(response, "tags")]
            return self.available_tags

        return self._thunk(
            "fetch_tags",
            lambda: self.api.get("/contacts/tags"),
            fulfilled,
            fallback="Failed to fetch contact tags",
            flag="",
        )

    def bulk_update(
        self,
        contact_ids: Iterable[str],
        is_active: bool | None = None,
        add_tags: Iterable[str] = (),
        remove_tags: Iterable[str] = (),
        replace_tags: Iterable[str] | None = None,
    ) -> ThunkResult[Any]:
        ids = [contact_id for contact_id in contact_ids if contact_id]
        if not ids:
            return self._reject("bulk_update", "Select at least one contact to update.")

        payload: dict[str, Any] = {"contactIds": ids}
        if is_active is not None:
            payload["is_active"] = is_active
        tags: dict[str, list[str]] = {}
        added = list(add_tags)
        removed = list(remove_tags)
        if added:
            tags["add"] = added
        if removed:
            tags["remove"] = removed
        if replace_tags is not None:
            tags["replace"] = list(replace_tags)
        if tags:
            payload["tags"] = tags

        return self._thunk(
            "bulk_update",
            lambda: self.api.post("/contacts/bulk", json=payload),
            unwrap,
            fallback="Failed to update contacts",
        )

    # Sub-resources of the current contact

    def _adjust_contact_counter(self, resource: RelatedResource, contact_id: Any, delta: int) -> None:
        if resource.counter:
            adjust_selected_counter(self.contacts, contact_id, resource.counter, delta)

    def fetch_related(self, kind: str, contact_id: str) -> ThunkResult[Any]:
        resource = RELATED_RESOURCES.get(kind)
        if resource is None:
            return self._reject("fetch_related", f"Unknown contact sub-resource: {kind}")
        return self._thunk(
            f"fetch_{kind}",
            lambda: self.api.get(f"/contacts/{contact_id}/{kind}"),
            replace_list(self.related[kind], resource.list_key),
            fallback=f"Failed to fetch {resource.label}s",
            flag=f"{kind}_loading",
            entity=(kind, "contact", contact_id),
        )

    def create_related(self, kind: str, contact_id: str, data: Record) -> ThunkResult[Any]:
        resource = RELATED_RESOURCES.get(kind)
        if resource is None:
            return self._reject("create_related", f"Unknown contact sub-resource: {kind}")
        if kind == "documents":
            return self._reject("create_documents", "Use upload_document to add contact documents.")
        insert = insert_record(self.related[kind])

        def fulfilled(response: Any) -> Record | None:
            record = insert(response)
            if record is not None:
                self._adjust_contact_counter(resource, record.get("contact_id", contact_id), 1)
            return record

        return self._thunk(
            f"create_{kind}",
            lambda: self.api.post(f"/contacts/{contact_id}/{kind}", json=data),
            fulfilled,
            fallback=f"Failed to create {resource.label}",
            flag="",
        )

    def update_related(self, kind: str, item_id: str, data: Record) -> ThunkResult[Any]:
        resource = RELATED_RESOURCES.get(kind)
        if resource is None:
            return self._reject("update_related", f"Unknown contact sub-resource: {kind}")
        return self._thunk(
            f"update_{kind}",
            lambda: self.api.put(f"/contacts/{kind}/{item_id}", json=data),
            replace_record(self.related[kind]),
            fallback=f"Failed to update {resource.label}",
            flag="",
            entity=(kind, item_id),
        )

    def delete_related(self, kind: str, item_id: str) -> ThunkResult[Any]:
        resource = RELATED_RESOURCES.get(kind)
        if resource is None:
            return self._reject("delete_related", f"Unknown contact sub-resource: {kind}")

        def fulfilled(_: Any) -> str:
            removed = self.related[kind].remove(item_id)
            if removed is not None:
                self._adjust_contact_counter(resource, removed.get("contact_id"), -1)
            return item_id

        return self._thunk(
            f"delete_{kind}",
            lambda: self.api.delete(f"/contacts/{kind}/{item_id}"),
            fulfilled,
            fallback=f"Failed to delete {resource.label}",
            flag="",
            entity=(kind, item_id),
        )

    def upload_document(
        self,
        contact_id: str,
        filename: str,
        content: bytes | BinaryIO,
        data: Record | None = None,
    ) -> ThunkResult[Any]:
        fields = {
            name: ("true" if value else "false") if isinstance(value, bool) else str(value)
            for name, value in (data or {}).items()
            if value is not None and value != ""
        }
        return self._thunk(
            "upload_document",
            lambda: self.api.post(
                f"/contacts/{contact_id}/documents",
                data=fields,
                files={"file": (filename, content)},
            ),
            insert_record(self.related["documents"]),
            fallback="Failed to upload document",
            flag="documents_loading",
        )
