import math
from dataclasses import dataclass, field
from decimal import Decimal
from numbers import Number
from typing import Optional, Sequence

import numpy as np

# --- Config ---
HIGH_AMOUNT_THRESHOLD = 4000  # Strictly greater than this is "high value"
HIGH_AMOUNT_POINTS = 3
KEYWORD_POINTS = 4
UNKNOWN_PAYEE_POINTS = 2

# Random review flag (detector noise)
JITTER_PROBABILITY = 0.10
JITTER_POINTS = 2

SUSPICIOUS_SCORE_THRESHOLD = 5


class InvalidInput(ValueError):
    """Raised when a transaction candidate cannot be scored."""


@dataclass(frozen=True)
class TransactionCandidate:
    payee: str
    amount: float
    memo: str = ""
    registration_id: Optional[str] = None
    merchant_code: Optional[str] = None


@dataclass(frozen=True)
class KnownPayee:
    name: str
    registration_id: str
    merchant_code: str


@dataclass(frozen=True)
class ReferenceData:
    """
    Static lists the scorer treats as configuration.

    Locations and devices carry no weight in scoring; they are only a pool to
    sample display details from when a transaction is flagged.
    """
    known_payees: tuple
    suspicious_keywords: frozenset
    suspicious_locations: tuple
    suspicious_devices: tuple


@dataclass
class ScoreVerdict:
    is_suspicious: bool
    location: Optional[str] = None
    device: Optional[str] = None
    score: int = 0
    reasons: list = field(default_factory=list)

    def to_dict(self) -> dict:
        if not self.is_suspicious:
            return {'is_suspicious': False}
        return {
            'is_suspicious': True,
            'location': self.location,
            'device': self.device,
        }


class NumpyRandomSource:
    """Random source backed by a numpy Generator. Pass a seed for reproducible runs."""

    def __init__(self, seed=None):
        self._rng = np.random.default_rng(seed)

    def random(self) -> float:
        return float(self._rng.random())

    def choice(self, items: Sequence):
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[int(self._rng.integers(len(items)))]


def validate_candidate(candidate: TransactionCandidate) -> None:
    """Rejects candidates the scorer cannot score. Whitespace-only payees are allowed."""
    payee = candidate.payee
    if payee is None or not isinstance(payee, str):
        raise InvalidInput("Payee is required.")
    if payee == "":
        raise InvalidInput("Payee is required.")

    amount = candidate.amount
    if isinstance(amount, bool) or not isinstance(amount, (Number, Decimal)):
        raise InvalidInput(f"Amount must be a number, got {amount!r}.")
    try:
        finite = math.isfinite(amount)
    except (TypeError, ValueError):
        raise InvalidInput(f"Amount must be a real number, got {amount!r}.")
    if not finite:
        raise InvalidInput("Amount must be finite.")
    if amount <= 0:
        raise InvalidInput("Amount must be greater than zero.")


def is_known_payee(payee: str, refs: ReferenceData, registration_id: Optional[str] = None,
                   merchant_code: Optional[str] = None, strict: bool = False) -> bool:
    """Case-insensitive name lookup; strict mode also matches registration id and merchant code."""
    payee_lower = payee.lower()
    reg = (registration_id or "").strip()
    till = (merchant_code or "").strip()
    for known in refs.known_payees:
        if known.name.lower() != payee_lower:
            continue
        if not strict:
            return True
        if known.registration_id == reg and known.merchant_code == till:
            return True
    return False


def verify_business(payee: str, registration_id: str, merchant_code: str,
                    refs: ReferenceData) -> Optional[KnownPayee]:
    """Looks up a business by name, registration number and till number. Returns None if any differ."""
    name = (payee or "").strip().lower()
    reg = (registration_id or "").strip()
    till = (merchant_code or "").strip()
    if not (name and reg and till):
        return None

    for known in refs.known_payees:
        if known.name.lower() == name and known.registration_id == reg and known.merchant_code == till:
            return known
    return None


def get_rule_score(candidate: TransactionCandidate, refs: ReferenceData, rng,
                   high_amount_threshold=HIGH_AMOUNT_THRESHOLD,
                   strict_payee_match: bool = False) -> tuple:
    """Additive point score and reasons. Draws exactly one random number (the jitter roll)."""
    score = 0
    reasons = []

    payee_lower = candidate.payee.lower()

    # --- Rule 1: High amount ---
    if candidate.amount > high_amount_threshold:
        score += HIGH_AMOUNT_POINTS
        reasons.append(f"💰 High Value Transfer (> ${high_amount_threshold:,.0f}) (+{HIGH_AMOUNT_POINTS})")

    # --- Rule 2: Suspicious keyword anywhere in the payee name ---
    matched = sorted(kw for kw in refs.suspicious_keywords if kw in payee_lower)
    if matched:
        score += KEYWORD_POINTS
        reasons.append(f"🎯 Suspicious Payee Keyword ('{matched[0]}') (+{KEYWORD_POINTS})")

    # --- Rule 3: Payee is not a known, verified business ---
    known = is_known_payee(
        candidate.payee, refs,
        registration_id=candidate.registration_id,
        merchant_code=candidate.merchant_code,
        strict=strict_payee_match,
    )
    if not known:
        score += UNKNOWN_PAYEE_POINTS
        reasons.append(f"👤 Unverified Payee (+{UNKNOWN_PAYEE_POINTS})")

    # --- Rule 4: Random review flag ---
    if rng.random() < JITTER_PROBABILITY:
        score += JITTER_POINTS
        reasons.append(f"🎲 Random Review Sample (+{JITTER_POINTS})")

    return score, reasons


def sample_display_metadata(refs: ReferenceData, rng) -> tuple:
    """Picks a location then a device, independently and uniformly."""
    location = rng.choice(refs.suspicious_locations)
    device = rng.choice(refs.suspicious_devices)
    return location, device


def detect_suspicious_activity(candidate: TransactionCandidate, refs: ReferenceData, rng,
                               high_amount_threshold=HIGH_AMOUNT_THRESHOLD,
                               strict_payee_match: bool = False) -> ScoreVerdict:
    """
    Scores a proposed transaction and classifies it.

    Invalid candidates (no payee, non-positive or non-finite amount) raise
    InvalidInput before any random draw. The result depends only on the inputs and the draws taken from `rng`, so a
    deterministic source gives a replayable verdict. Location and device are
    only sampled (and only set) when the transaction is flagged.
    """
    validate_candidate(candidate)

    score, reasons = get_rule_score(
        candidate, refs, rng,
        high_amount_threshold=high_amount_threshold,
        strict_payee_match=strict_payee_match,
    )

    if score < SUSPICIOUS_SCORE_THRESHOLD:
        return ScoreVerdict(is_suspicious=False, score=score, reasons=reasons)

    location, device = sample_display_metadata(refs, rng)
    return ScoreVerdict(
        is_suspicious=True,
        location=location,
        device=device,
        score=score,
        reasons=reasons,
    )
