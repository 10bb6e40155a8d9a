import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Optional

import pandas as pd

from rules_engine import (
    InvalidInput,
    NumpyRandomSource,
    TransactionCandidate,
    detect_suspicious_activity,
    validate_candidate,
    verify_business,
)

# --- Simulated network latency before a status change (seconds) ---
PAYMENT_SETTLE_DELAY = 2.5
WITHDRAWAL_SETTLE_DELAY = 1.5

WITHDRAWAL_DESTINATIONS = {
    'bank': "Linked Business Bank",
    'wallet': "Mobile Wallet Deposit",
    'agent': "Cheque Flow Agent",
}

RESOLVE_ACTIONS = ('safe', 'fraud')

TRANSACTION_COLUMNS = ['id', 'payee', 'amount', 'date', 'memo', 'status', 'is_suspicious', 'location', 'device']


class TransactionStatus(str, Enum):
    INITIATED = 'Initiated'
    PENDING = 'Pending'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'


class LedgerError(Exception):
    """Base class for rejected ledger operations."""


class InsufficientFunds(LedgerError):
    pass


class VerificationFailed(LedgerError):
    pass


class TransactionNotFound(LedgerError, KeyError):
    pass


class NotUnderReview(LedgerError):
    """The transaction is not flagged, so there is nothing to resolve."""


@dataclass
class ScheduledTransition:
    """A delayed status change. Applied by process_due_transitions() once due."""
    txn_id: str
    from_status: TransactionStatus
    to_status: TransactionStatus
    due_at: datetime


def withdrawal_token(txn: dict) -> str:
    return f"WDL-{str(txn['id'])[-6:].upper()}"


def amount_text(amount) -> str:
    """Shortest plain rendering of an amount: 3500.0 -> '3500', 75.5 -> '75.5'."""
    if amount is None or pd.isna(amount):
        return ''
    amount = float(amount)
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


class TransactionLedger:
    """
    In-memory transaction history and balance for one logged-in user.

    Every new payment or withdrawal goes through the suspicious activity
    scorer. The balance is debited as soon as a transaction is recorded;
    a transaction the user reports as fraud is cancelled and refunded.
    """

    def __init__(self, user, refs, rng=None, transactions=None,
                 clock: Callable[[], datetime] = datetime.now,
                 payment_delay: float = PAYMENT_SETTLE_DELAY,
                 withdrawal_delay: float = WITHDRAWAL_SETTLE_DELAY,
                 strict_payee_match: bool = False):
        self.user = user
        self.refs = refs
        self.rng = rng if rng is not None else NumpyRandomSource()
        self.clock = clock
        self.payment_delay = payment_delay
        self.withdrawal_delay = withdrawal_delay
        self.strict_payee_match = strict_payee_match

        # Newest first, like the history table
        self._transactions = [dict(t) for t in (transactions or [])]
        self._scheduled = []

    @property
    def balance(self) -> float:
        return self.user.balance

    @property
    def transactions(self) -> list:
        return list(self._transactions)

    # --- Commands ---

    def submit_payment(self, payee: str, amount, memo: str = '', registration_id: Optional[str] = None,
                       merchant_code: Optional[str] = None, is_business: bool = False) -> dict:
        if not payee or not amount:
            raise InvalidInput("Payee and Amount are required.")

        candidate = TransactionCandidate(
            payee=payee,
            amount=amount,
            memo=memo,
            registration_id=registration_id,
            merchant_code=merchant_code,
        )
        validate_candidate(candidate)
        if amount > self.user.balance:
            raise InsufficientFunds("Amount exceeds your current balance.")

        if is_business:
            if verify_business(payee, registration_id, merchant_code, self.refs) is None:
                raise VerificationFailed("Business details must be verified before sending.")

        txn = self._record(candidate, prefix='txn')

        if not txn['is_suspicious']:
            self._schedule(txn['id'], TransactionStatus.INITIATED, TransactionStatus.PENDING, self.payment_delay)
        return txn

    def submit_withdrawal(self, amount, destination: str) -> dict:
        candidate = TransactionCandidate(
            payee=WITHDRAWAL_DESTINATIONS.get(destination, "Withdrawal"),
            amount=amount,
            memo=f"Withdrawal via {destination}",
        )
        try:
            validate_candidate(candidate)
        except InvalidInput:
            raise InvalidInput("Please enter a valid amount.") from None
        if amount > self.user.balance:
            raise InsufficientFunds("Withdrawal amount cannot exceed your balance.")
        if destination not in WITHDRAWAL_DESTINATIONS:
            raise InvalidInput("Please select a withdrawal destination.")

        txn = self._record(candidate, prefix='wth')

        if not txn['is_suspicious']:
            self._schedule(txn['id'], TransactionStatus.INITIATED, TransactionStatus.COMPLETED, self.withdrawal_delay)
        return txn

    def resolve_suspicious(self, txn_id: str, action: str) -> tuple:
        """Applies the user's review ("safe" or "fraud") and returns (transaction, notification)."""
        if action not in RESOLVE_ACTIONS:
            raise InvalidInput(f"Unknown review action '{action}'.")
        txn = self._find(txn_id)
        if not txn.get('is_suspicious'):
            raise NotUnderReview(f"Transaction {txn_id} is not awaiting review.")

        if action == 'safe':
            if txn_id.startswith('wth_'):
                txn['status'] = TransactionStatus.COMPLETED
                message = "Withdrawal approved and is now completed."
            else:
                if txn['status'] == TransactionStatus.INITIATED:
                    txn['status'] = TransactionStatus.PENDING
                message = "Transaction marked as safe and is now pending."
        else:
            if txn['status'] != TransactionStatus.CANCELLED:
                self.user.balance += txn['amount']
            txn['status'] = TransactionStatus.CANCELLED
            message = "Transaction flagged as fraud. It has been cancelled and reported to our security team."
            print(f"🚫 Reported as fraud: {txn_id} | Amount: ${txn['amount']:,.2f} | Payee: {txn['payee']}")

        txn['is_suspicious'] = False
        return dict(txn), message

    def process_due_transitions(self, now: Optional[datetime] = None) -> list:
        """Applies every scheduled status change that is due. Returns the ids that changed."""
        now = now or self.clock()
        applied = []
        remaining = []

        for transition in self._scheduled:
            if transition.due_at > now:
                remaining.append(transition)
                continue
            txn = self._find(transition.txn_id)
            if txn['status'] == transition.from_status:
                txn['status'] = transition.to_status
                applied.append(transition.txn_id)

        self._scheduled = remaining
        return applied

    def pending_transitions(self) -> list:
        return list(self._scheduled)

    # --- Queries ---

    def get_transaction(self, txn_id: str) -> dict:
        return dict(self._find(txn_id))

    def suspicious_transactions(self) -> list:
        return [dict(t) for t in self._transactions if t.get('is_suspicious')]

    def to_frame(self) -> pd.DataFrame:
        """All transactions, newest date first. Same-day rows keep their insertion order."""
        df = pd.DataFrame(self._transactions, columns=TRANSACTION_COLUMNS)
        df['status'] = df['status'].map(lambda s: s.value if isinstance(s, TransactionStatus) else s)
        df['is_suspicious'] = df['is_suspicious'].fillna(False).astype(bool)
        return df.sort_values('date', ascending=False, kind='stable').reset_index(drop=True)

    def history(self, status=None, query: Optional[str] = None) -> pd.DataFrame:
        """
        Transaction history filtered by status and a free-text search.

        `status` is a TransactionStatus, its value, or None / 'all' for every
        status. The search is case-insensitive and matches payee, memo or the
        amount as written (1250.0 reads as "1250"); a blank query matches all.
        """
        df = self.to_frame()

        if status is not None and status != 'all':
            try:
                status = TransactionStatus(status).value
            except ValueError:
                raise InvalidInput(f"Unknown status filter '{status}'.") from None
            df = df[df['status'] == status]

        needle = (query or '').strip().lower()
        if needle and not df.empty:
            payee = df['payee'].fillna('').astype(str).str.lower().str.contains(needle, regex=False)
            memo = df['memo'].fillna('').astype(str).str.lower().str.contains(needle, regex=False)
            amount = df['amount'].map(amount_text).astype(str).str.contains(needle, regex=False)
            df = df[payee | memo | amount]

        return df.reset_index(drop=True)

    def summary(self, today: Optional[date] = None) -> dict:
        """Dashboard cards: balance, pending count, amount completed this month, open alerts."""
        today = today or self.clock().date()
        df = self.to_frame()

        if df.empty:
            completed_this_month = 0.0
            pending = 0
        else:
            dates = pd.to_datetime(df['date'], errors='coerce')
            this_month = (dates.dt.year == today.year) & (dates.dt.month == today.month)
            completed = df['status'] == TransactionStatus.COMPLETED.value
            completed_this_month = float(df.loc[completed & this_month, 'amount'].sum())
            pending = int((df['status'] == TransactionStatus.PENDING.value).sum())

        return {
            'balance': self.user.balance,
            'pending_count': pending,
            'completed_this_month': completed_this_month,
            'suspicious_count': int(df['is_suspicious'].sum()) if not df.empty else 0,
        }

    def security_events(self, limit: int = 4) -> list:
        """This session's login plus flagged transactions, newest first."""
        events = [{
            'id': 'login',
            'type': 'login',
            'description': f"Successful login from {self.user.name}'s MacBook Pro",
            'date': self.clock().isoformat(),
        }]
        events += [
            {
                'id': t['id'],
                'type': 'suspicious',
                'description': f"Suspicious transaction of ${t['amount']:.2f} to {t['payee']} was flagged",
                'date': t['date'],
            }
            for t in self._transactions if t.get('is_suspicious')
        ]
        events.sort(key=lambda e: e['date'], reverse=True)
        return events[:limit]

    def spending_by_payee(self) -> pd.DataFrame:
        df = self.to_frame()
        completed = df[df['status'] == TransactionStatus.COMPLETED.value]
        return (
            completed.groupby('payee', as_index=False)['amount'].sum()
            .sort_values('amount', ascending=False)
            .reset_index(drop=True)
        )

    # --- Internals ---

    def _record(self, candidate: TransactionCandidate, prefix: str) -> dict:
        verdict = detect_suspicious_activity(candidate, self.refs, self.rng, strict_payee_match=self.strict_payee_match)

        amount = float(candidate.amount)
        now = self.clock()
        txn = {
            'id': f"{prefix}_{uuid.uuid4().hex[:12]}",
            'payee': candidate.payee,
            'amount': amount,
            'date': now.date().isoformat(),
            'memo': candidate.memo,
            'status': TransactionStatus.INITIATED,
            'is_suspicious': verdict.is_suspicious,
            'location': verdict.location,
            'device': verdict.device,
        }
        self._transactions.insert(0, txn)
        self.user.balance -= amount

        if verdict.is_suspicious:
            print(f"🚨 SUSPICIOUS ACTIVITY: {txn['id']} | Score: {verdict.score} | Amount: ${amount:,.2f} "
                  f"| Payee: {candidate.payee} | {', '.join(verdict.reasons)}")
        return dict(txn)

    def _schedule(self, txn_id, from_status, to_status, delay_seconds):
        due_at = self.clock() + timedelta(seconds=delay_seconds)
        self._scheduled.append(ScheduledTransition(txn_id, from_status, to_status, due_at))

    def _find(self, txn_id: str) -> dict:
        for txn in self._transactions:
            if txn['id'] == txn_id:
                return txn
        raise TransactionNotFound(txn_id)
