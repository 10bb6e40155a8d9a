from datetime import date, timedelta

from fraud_score_service import TransactionStatus
from rules_engine import TransactionCandidate

# --- Config ---
# Payees used when generating demo traffic, besides the known businesses
UNVERIFIED_PAYEES = ['Jane Doe', 'Acme Supplies', 'Prime Real Estate', 'Nairobi Hardware', 'Sam Otieno']
RISKY_PAYEES = ['QuickCash Services', 'CoinVortex Exchange', 'CryptoVault', 'FastCash Agents']
RISKY_PAYEE_RATE = 0.15
HIGH_VALUE_RATE = 0.10


def _days_ago(today: date, days: int) -> str:
    return (today - timedelta(days=days)).isoformat()


def build_initial_transactions(today: date = None) -> list:
    """The demo account's starting history, newest first, dated relative to today."""
    today = today or date.today()

    return [
        {
            'id': 'chq_1', 'payee': 'Green Energy Corp', 'amount': 1250.00,
            'date': _days_ago(today, 2), 'memo': 'Monthly Utilities',
            'status': TransactionStatus.COMPLETED, 'is_suspicious': False, 'location': None, 'device': None,
        },
        {
            'id': 'chq_8', 'payee': 'CoinVortex Exchange', 'amount': 780.00,
            'date': _days_ago(today, 1), 'memo': 'Crypto purchase',
            'status': TransactionStatus.PENDING, 'is_suspicious': True,
            'location': 'Remote Server via VPN', 'device': 'Chrome on Linux',
        },
        {
            'id': 'chq_2', 'payee': 'Innovate Solutions Ltd.', 'amount': 5000.00,
            'date': _days_ago(today, 5), 'memo': 'Project Deposit',
            'status': TransactionStatus.COMPLETED, 'is_suspicious': False, 'location': None, 'device': None,
        },
        {
            'id': 'chq_3', 'payee': 'Prime Real Estate', 'amount': 2200.00,
            'date': _days_ago(today, 1), 'memo': 'Rent Payment',
            'status': TransactionStatus.PENDING, 'is_suspicious': False, 'location': None, 'device': None,
        },
        {
            'id': 'chq_4', 'payee': 'The Corner Cafe', 'amount': 75.50,
            'date': _days_ago(today, 0), 'memo': 'Business Lunch',
            'status': TransactionStatus.INITIATED, 'is_suspicious': False, 'location': None, 'device': None,
        },
        {
            'id': 'chq_7', 'payee': 'QuickCash Services', 'amount': 3500.00,
            'date': _days_ago(today, 0), 'memo': 'Urgent withdrawal',
            'status': TransactionStatus.PENDING, 'is_suspicious': True,
            'location': 'Lisbon, Portugal', 'device': 'Unknown Android Device',
        },
        {
            'id': 'chq_5', 'payee': 'Tech Gadgets Inc.', 'amount': 499.99,
            'date': _days_ago(today, 10), 'memo': 'Office Supplies',
            'status': TransactionStatus.CANCELLED, 'is_suspicious': False, 'location': None, 'device': None,
        },
        {
            'id': 'chq_6', 'payee': 'Jane Doe', 'amount': 300.00,
            'date': _days_ago(today, 15), 'memo': 'Personal',
            'status': TransactionStatus.COMPLETED, 'is_suspicious': False, 'location': None, 'device': None,
        },
    ]


def generate_payment_candidate(rng, refs) -> TransactionCandidate:
    """Random payment: mostly known or ordinary payees, sometimes a risky name or a large amount."""
    roll = rng.random()
    if roll < RISKY_PAYEE_RATE:
        payee = rng.choice(RISKY_PAYEES)
    elif roll < 0.6 and refs.known_payees:
        payee = rng.choice(refs.known_payees).name
    else:
        payee = rng.choice(UNVERIFIED_PAYEES)

    if rng.random() < HIGH_VALUE_RATE:
        amount = 4000 + rng.random() * 6000
    else:
        amount = 10 + rng.random() * 1500

    return TransactionCandidate(payee=payee, amount=round(amount, 2), memo='Simulated payment')


def run_simulator(transaction_queue, rng, refs, stop_event, interval=(0.5, 1.5)):
    """Puts random payment candidates on the queue until stop_event is set."""
    print("Starting demo payment simulator...")
    low, high = interval

    while not stop_event.is_set():
        transaction_queue.put(generate_payment_candidate(rng, refs))
        stop_event.wait(low + rng.random() * (high - low))

    print("Demo payment simulator stopped.")
