"""Settings service for per-account preferences and account deletion."""

import logging
from uuid import UUID

from auth.database import AccountDatabase
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.types import Account
from core.exceptions import ForbiddenError, InvalidRequestError, NotFoundError
from core.models.settings import AI_MODELS, THEMES, AccountSettings, SettingsUpdate, SettingsView

logger = logging.getLogger(__name__)


def _view(account: Account) -> SettingsView:
    # Unknown keys left over in the stored document are ignored
    known = {k: v for k, v in account.settings.items() if k in AccountSettings.model_fields}
    return SettingsView(
        settings=AccountSettings(**known),
        tier=account.tier.value,
        is_pro=account.is_pro,
    )


class SettingsService:
    """Service for the settings document stored on each account."""

    def __init__(self, accounts: AccountDatabase, security_logger: SecurityLogger):
        self.accounts = accounts
        self.security_logger = security_logger

    def _require_account(self, account_id: UUID) -> Account:
        account = self.accounts.get_account_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    def get(self, account_id: UUID) -> SettingsView:
        """Settings with defaults filled in, plus tier context."""
        return _view(self._require_account(account_id))

    def update(self, account_id: UUID, data: SettingsUpdate) -> SettingsView:
        """
        Apply a partial update.

        Raises:
            InvalidRequestError: Nothing to update, unknown theme or unknown model.
            ForbiddenError: Pro-only model selected on the free tier.
            NotFoundError: Account no longer exists.
        """
        changes = data.changes()
        if not changes:
            raise InvalidRequestError("No settings provided for update.")

        if "theme" in changes and changes["theme"] not in THEMES:
            raise InvalidRequestError(f"Invalid theme value. Must be one of: {', '.join(THEMES)}")

        account = self._require_account(account_id)

        if "ai_model" in changes:
            model = changes["ai_model"]
            if model not in AI_MODELS:
                raise InvalidRequestError(f"Invalid AI model selected: {model}")
            if AI_MODELS[model] and not account.is_pro:
                raise ForbiddenError("Upgrade to Pro to select this advanced AI model.")

        updated = self.accounts.merge_settings(account_id, changes)
        if updated is None:
            raise NotFoundError("Account not found")

        logger.info(f"Updated settings {sorted(changes)} for account {account_id}")
        return _view(updated)

    def delete_account(self, account_id: UUID, ip_address: str | None = None) -> None:
        """
        Permanently delete the account.

        Raises:
            NotFoundError: Account does not exist.
        """
        account = self._require_account(account_id)

        if not self.accounts.delete_account(account_id):
            raise NotFoundError("Account not found")

        self.security_logger.log(
            SecurityEvent.ACCOUNT_DELETED,
            email=account.email,
            account_id=account_id,
            ip_address=ip_address,
        )
