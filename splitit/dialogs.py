"""Modal dialog listing a group's transaction summaries for the current user."""

from __future__ import annotations

import enum
import logging
from typing import Any, Dict, List, Optional, Protocol

from .alerts import AlertService
from .client import APIError
from .models import Account, GroupSummaryResult
from .modal import ModalInstance
from .pagination import DEFAULT_ITEMS_PER_PAGE, Pageable

logger = logging.getLogger("splitit.dialogs")

DISMISS_REASON = "cancel"


class SummaryBackend(Protocol):
    async def identity(self) -> Dict[str, Any]: ...

    async def group_summaries(self, group_id: int | str, login: str) -> GroupSummaryResult: ...


class DialogState(str, enum.Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class TransactionByGroupDialog:
    """View-model behind the "transactions by group" modal.

    Without a ``backend`` the dialog can only be dismissed.
    """

    def __init__(
        self,
        *,
        backend: Optional[SummaryBackend],
        modal: ModalInstance,
        alerts: AlertService,
        group_id: int | str,
        predicate: str = "id",
        reverse: bool = True,
        items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
    ) -> None:
        self._backend = backend
        self._modal = modal
        self._alerts = alerts
        self.group_id = group_id

        self.state = DialogState.UNLOADED
        self.logged_in_account: Optional[Account] = None
        self.data: Optional[GroupSummaryResult] = None
        self.total_items: Optional[int] = None
        self.query_count: Optional[int] = None
        self.error_message: Optional[str] = None
        self.last_error: Optional[APIError] = None

        # Paging fields are kept for the view; the summary query does not send them.
        self.page = 0
        self.items_per_page = items_per_page
        self.predicate = predicate
        self.reverse = reverse

    @property
    def summaries(self) -> List[Dict[str, Any]]:
        if self.data is None:
            return []
        return list(self.data.summaries)

    def sort(self) -> List[str]:
        return Pageable(
            page=self.page,
            size=self.items_per_page,
            predicate=self.predicate,
            reverse=self.reverse,
        ).sort()

    async def open(self) -> DialogState:
        """Resolve the current identity, then load the group's summaries."""
        backend = self._require_backend()
        self.state = DialogState.LOADING
        self.error_message = None
        self.last_error = None

        try:
            record = await backend.identity()
        except APIError as exc:
            logger.warning("Identity lookup failed for group %s dialog: %s", self.group_id, exc.message)
            self._fail(exc.data["message"], exc)
            return self.state

        try:
            account = Account.from_identity(record)
        except (TypeError, ValueError) as exc:
            logger.warning("Unusable identity record for group %s dialog: %s", self.group_id, exc)
            self._fail("The current account could not be read.")
            return self.state

        self.logged_in_account = account
        if not account.login:
            self._fail("The current account has no login.")
            return self.state

        await self.load_all()
        return self.state

    async def load_all(self) -> None:
        backend = self._require_backend()
        if self.logged_in_account is None or not self.logged_in_account.login:
            raise RuntimeError("Summaries cannot be loaded before the identity is resolved")

        try:
            result = await backend.group_summaries(self.group_id, self.logged_in_account.login)
        except APIError as exc:
            self._fail(exc.data["message"], exc)
            return

        self.total_items = result.count
        self.query_count = self.total_items
        self.data = result
        self.state = DialogState.LOADED
        logger.debug("Loaded %s summaries for group %s", result.count, self.group_id)

    def clear(self) -> None:
        self._modal.dismiss(DISMISS_REASON)

    def _require_backend(self) -> SummaryBackend:
        if self._backend is None:
            raise RuntimeError("This dialog has no backend to load summaries from")
        return self._backend

    def _fail(self, message: str, error: Optional[APIError] = None) -> None:
        self.state = DialogState.ERROR
        self.error_message = message
        self.last_error = error
        self.data = None
        self.total_items = None
        self.query_count = None
        self._alerts.error(message)


__all__ = ["DialogState", "DISMISS_REASON", "SummaryBackend", "TransactionByGroupDialog"]
