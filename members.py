"""
members.py
Member list state (server is authoritative) and the delete confirmation flow.

Deletes are staged: the record is hidden while the request is pending, then
removed on the server's ack or shown again if the request fails.
"""

from __future__ import annotations

import logging

from api import ApiClient
from auth import AuthSession
from models import Member, MemberFormData

logger = logging.getLogger(__name__)

PERMISSION_DENIED = "Anda tidak memiliki izin untuk menghapus member"
MEMBER_NOT_FOUND = "Member tidak ditemukan"


class MemberStore:
    def __init__(self, api: ApiClient, session: AuthSession):
        self.api = api
        self.session = session
        self.members: list[Member] = []
        self.pending_ids: set[str] = set()
        self.loading = False
        self.error: str | None = None
        self.load_error: str | None = None
        self._mounted = True

    @property
    def visible_members(self) -> list[Member]:
        return [m for m in self.members if m.id not in self.pending_ids]

    def unmount(self) -> None:
        """Results of calls still in flight are dropped after this."""
        self._mounted = False

    def _stale(self, what: str) -> bool:
        if not self._mounted:
            logger.debug("Discarding %s result for unmounted store", what)
            return True
        return False

    def fetch_members(self) -> None:
        self.loading = True
        self.load_error = None
        response = self.api.list_members()
        if self._stale("fetch"):
            return
        self.loading = False
        if response.ok:
            self.members = list(response.data)
        else:
            self.load_error = response.message or "Failed to fetch members."

    def add_member(self, data: MemberFormData) -> Member | None:
        self.error = None
        response = self.api.add_member(data)
        if self._stale("add"):
            return None
        if not response.ok:
            self.error = response.message or "Failed to add member."
            return None
        member: Member = response.data
        self.members = [*self.members, member]
        return member

    def _commit_delete(self, member_id: str) -> None:
        # at most one record per id
        for i, m in enumerate(self.members):
            if m.id == member_id:
                self.members = self.members[:i] + self.members[i + 1:]
                return

    def delete_member(self, member_id: str) -> bool:
        if not self.session.is_admin:
            self.error = PERMISSION_DENIED
            return False
        if member_id in self.pending_ids:
            return False
        if not any(m.id == member_id for m in self.members):
            self.error = MEMBER_NOT_FOUND
            return False

        self.error = None
        self.pending_ids.add(member_id)
        response = self.api.delete_member(member_id)
        if self._stale("delete"):
            return response.ok
        self.pending_ids.discard(member_id)

        if not response.ok:
            self.error = response.message or "Failed to delete member."
            return False
        self._commit_delete(member_id)
        logger.info("Deleted member %s", member_id)
        return True

    def delete_all_members(self) -> bool:
        """Delete every loaded record, one request each. Stops at the first failure."""
        if not self.session.is_admin:
            self.error = PERMISSION_DENIED
            return False

        self.error = None
        targets = [m.id for m in self.members if m.id not in self.pending_ids]
        self.pending_ids.update(targets)
        for index, member_id in enumerate(targets):
            response = self.api.delete_member(member_id)
            if self._stale("delete-all"):
                return False
            self.pending_ids.discard(member_id)
            if not response.ok:
                self.pending_ids.difference_update(targets[index + 1:])
                self.error = response.message or "Failed to delete member."
                return False
            self._commit_delete(member_id)
        logger.info("Deleted %d members", len(targets))
        return True


class DeleteConfirmation:
    """Two-step delete: request_* opens the dialog, confirm() executes, cancel() does nothing."""

    def __init__(self, store: MemberStore):
        self.store = store
        self.is_open = False
        self.member_id: str | None = None
        self.delete_all = False

    def request_delete(self, member_id: str) -> bool:
        if not self.store.session.is_admin:
            return False
        self.is_open = True
        self.member_id = member_id
        self.delete_all = False
        return True

    def request_delete_all(self) -> bool:
        if not self.store.session.is_admin:
            return False
        self.is_open = True
        self.member_id = None
        self.delete_all = True
        return True

    @property
    def title(self) -> str:
        return "Hapus Semua Member?" if self.delete_all else "Hapus Member?"

    @property
    def description(self) -> str:
        if self.delete_all:
            return "Anda akan menghapus semua data member. Tindakan ini tidak dapat dibatalkan."
        return "Anda akan menghapus data member ini. Tindakan ini tidak dapat dibatalkan."

    @property
    def confirm_label(self) -> str:
        return "Hapus Semua" if self.delete_all else "Hapus"

    def cancel(self) -> None:
        self.is_open = False
        self.member_id = None
        self.delete_all = False

    def confirm(self) -> bool:
        if not self.is_open:
            return False
        if self.delete_all:
            result = self.store.delete_all_members()
        elif self.member_id is not None:
            result = self.store.delete_member(self.member_id)
        else:
            result = False
        self.cancel()
        return result
