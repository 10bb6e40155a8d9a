import random
from dataclasses import dataclass, replace
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from reference_data import VALID_BUSINESS_IDS

ACCOUNT_TYPES = ('personal', 'corporate')
PERSONAL_EMAIL_DOMAIN = '@gmail.com'
DEFAULT_PASSWORD = 'password123'


class AuthError(Exception):
    """Login or sign-up rejected. The message is safe to show to the user."""


@dataclass
class User:
    name: str
    account_number: str
    balance: float
    email: str
    account_type: str = 'personal'
    id_number: Optional[str] = None
    business_id: Optional[str] = None


DEMO_USERS = [
    User(
        name='Alex Johnson',
        account_number='**** **** **** 1234',
        balance=25480.50,
        email='alex.j@example.com',
        account_type='personal',
        id_number='12345678',
    ),
    User(
        name='Kenya Coop Inc.',
        account_number='**** **** **** 5678',
        balance=150230.75,
        email='contact@kenyacoop.com',
        account_type='corporate',
        business_id='KRA123456',
    ),
]


def _normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def masked_account_number(last_four: str) -> str:
    return f"**** **** **** {last_four}"


class UserDirectory:
    """In-memory user store for the demo. Nothing is persisted."""

    def __init__(self, seed_demo_users: bool = True):
        self._users = {}
        self._password_hashes = {}
        if seed_demo_users:
            for user in DEMO_USERS:
                self.add_user(replace(user), DEFAULT_PASSWORD)

    def __contains__(self, email) -> bool:
        return _normalize_email(email) in self._users

    def __len__(self) -> int:
        return len(self._users)

    def add_user(self, user: User, password: str) -> User:
        key = _normalize_email(user.email)
        self._users[key] = user
        self._password_hashes[key] = generate_password_hash(password)
        return user

    def login(self, email: str, password: str) -> User:
        key = _normalize_email(email)
        user = self._users.get(key)
        if user is None or not check_password_hash(self._password_hashes[key], password or ''):
            raise AuthError("Invalid email or password.")
        # Hand out a copy so a session's balance changes don't leak into the directory
        return replace(user)

    def signup(self, account_type: str, name: str, email: str, password: str, confirm_password: str,
               id_number: Optional[str] = None, business_id: Optional[str] = None) -> User:
        """Validates and registers a new account. Checks run in the same order the sign-up form shows errors."""
        if account_type not in ACCOUNT_TYPES:
            raise AuthError(f"Unknown account type '{account_type}'.")
        if not (name or '').strip() or not (email or '').strip() or not password:
            raise AuthError("Name, email and password are required.")

        if password != confirm_password:
            raise AuthError("Passwords do not match.")

        email = email.strip()
        if account_type == 'personal' and not email.lower().endswith(PERSONAL_EMAIL_DOMAIN):
            raise AuthError("Personal accounts must use a valid Gmail address.")

        if account_type == 'corporate' and (business_id or '').strip() not in VALID_BUSINESS_IDS:
            raise AuthError("Business ID is not valid or could not be verified.")

        if email in self:
            raise AuthError("An account with this email already exists.")

        user = User(
            name=name.strip(),
            account_number=masked_account_number(f"{random.randint(0, 9999):04d}"),
            balance=0.0,
            email=email,
            account_type=account_type,
        )
        if account_type == 'personal':
            user.id_number = (id_number or '').strip() or None
        else:
            user.business_id = business_id.strip()
        self.add_user(user, password)
        print(f"✅ New user signed up: {account_type} | {user.name} | {user.email}")
        return replace(user)
