from dataclasses import dataclass
from decimal import Decimal
from typing import List

from account_store import AccountStore
from models import ClientAccount


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    @classmethod
    def from_account(cls, account: ClientAccount) -> "AccountSnapshot":
        return cls(
            client_id=account.client_id,
            available=account.available,
            held=account.held,
            total=account.total,
            locked=account.locked,
        )


def export_snapshots(accounts: AccountStore) -> List[AccountSnapshot]:
    """Snapshot every known account, ordered by client id."""
    all_accounts = accounts.all_accounts()
    return [AccountSnapshot.from_account(all_accounts[client_id]) for client_id in sorted(all_accounts)]
