import queue
import threading
from datetime import date

from conftest import FixedRandomSource
from fraud_score_service import TransactionStatus
from rules_engine import NumpyRandomSource, TransactionCandidate
from simulator import (
    RISKY_PAYEES,
    UNVERIFIED_PAYEES,
    build_initial_transactions,
    generate_payment_candidate,
    run_simulator,
)


def test_initial_transactions_dated_from_today():
    txns = build_initial_transactions(date(2024, 3, 15))
    by_id = {t['id']: t for t in txns}

    assert len(txns) == 8
    assert by_id['chq_1']['date'] == '2024-03-13'
    assert by_id['chq_6']['date'] == '2024-02-29'
    assert by_id['chq_4']['status'] == TransactionStatus.INITIATED
    assert {t['id'] for t in txns if t['is_suspicious']} == {'chq_7', 'chq_8'}
    assert by_id['chq_7']['location'] == 'Lisbon, Portugal'


def test_initial_transactions_are_fresh_copies():
    first = build_initial_transactions(date(2024, 3, 15))
    first[0]['status'] = TransactionStatus.CANCELLED
    assert build_initial_transactions(date(2024, 3, 15))[0]['status'] == TransactionStatus.COMPLETED


def test_risky_candidate(refs):
    rng = FixedRandomSource(floats=[0.05, 0.5, 0.5], picks=[0])
    candidate = generate_payment_candidate(rng, refs)
    assert candidate.payee == RISKY_PAYEES[0]
    assert 10 <= candidate.amount <= 1510


def test_known_candidate_high_value(refs):
    rng = FixedRandomSource(floats=[0.3, 0.05, 0.5], picks=[2])
    candidate = generate_payment_candidate(rng, refs)
    assert candidate.payee == refs.known_payees[2].name
    assert candidate.amount == 7000.0


def test_unverified_candidate(refs):
    rng = FixedRandomSource(floats=[0.9, 0.9, 0.0], picks=[1])
    candidate = generate_payment_candidate(rng, refs)
    assert candidate.payee == UNVERIFIED_PAYEES[1]
    assert candidate.amount == 10.0


def test_run_simulator_fills_queue_until_stopped(refs):
    q = queue.Queue()
    stop = threading.Event()
    thread = threading.Thread(
        target=run_simulator, args=(q, NumpyRandomSource(seed=5), refs, stop), kwargs={'interval': (0.01, 0.02)},
        daemon=True,
    )
    thread.start()
    first = q.get(timeout=2)
    stop.set()
    thread.join(timeout=2)

    assert not thread.is_alive()
    assert isinstance(first, TransactionCandidate)
    assert first.amount > 0
