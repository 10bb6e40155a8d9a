import os

import pandas as pd

from rules_engine import KnownPayee, ReferenceData

# Known-payee table kept as CSV so it can be edited without touching code
KNOWN_PAYEES_PATH = './data/known_businesses.csv'
KNOWN_PAYEE_COLUMNS = ['name', 'registration_id', 'merchant_code']

SUSPICIOUS_KEYWORDS = ['cash', 'crypto', 'exchange', 'vortex', 'services', 'quickcash']

SUSPICIOUS_LOCATIONS = [
    'Lisbon, Portugal',
    'Remote Server via VPN',
    'Cyberjaya, Malaysia',
    'St. Petersburg, Russia',
    'Lagos, Nigeria',
]

SUSPICIOUS_DEVICES = [
    'Unknown Android Device',
    'Chrome on Linux',
    'Firefox on Windows 10 (Tor Browser)',
    'Safari on Jailbroken iPhone',
    'Postman API Client',
]

KNOWN_BUSINESSES = [
    KnownPayee('Green Energy Corp', 'REG-12345', '555111'),
    KnownPayee('Innovate Solutions Ltd.', 'REG-67890', '555222'),
    KnownPayee('Tech Gadgets Inc.', 'REG-54321', '555333'),
    KnownPayee('The Corner Cafe', 'REG-98765', '555444'),
    KnownPayee('Kenya Coop Inc.', 'KRA123456', '555999'),
]

# Business IDs accepted for corporate sign-up
VALID_BUSINESS_IDS = ["KRA123456", "REG234567", "CO-OP-BIZ-1"]


def build_reference_data(known_payees=None, keywords=None, locations=None, devices=None) -> ReferenceData:
    """Freezes the given lists (or the defaults) into a ReferenceData."""
    return ReferenceData(
        known_payees=tuple(KNOWN_BUSINESSES if known_payees is None else known_payees),
        suspicious_keywords=frozenset(kw.lower() for kw in (SUSPICIOUS_KEYWORDS if keywords is None else keywords)),
        suspicious_locations=tuple(SUSPICIOUS_LOCATIONS if locations is None else locations),
        suspicious_devices=tuple(SUSPICIOUS_DEVICES if devices is None else devices),
    )


def setup_reference_data(path: str = KNOWN_PAYEES_PATH) -> pd.DataFrame:
    """Writes the default known-business table to CSV."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    df = pd.DataFrame(
        [[b.name, b.registration_id, b.merchant_code] for b in KNOWN_BUSINESSES],
        columns=KNOWN_PAYEE_COLUMNS,
    )
    df.to_csv(path, index=False)
    return df


def load_known_payees(path: str = KNOWN_PAYEES_PATH) -> list:
    """Reads known payees from CSV. Falls back to the built-in list if the file is missing or malformed."""
    if not os.path.exists(path):
        return list(KNOWN_BUSINESSES)

    try:
        # Read as strings so till numbers like "555111" keep their exact text
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        missing = [c for c in KNOWN_PAYEE_COLUMNS if c not in df.columns]
        if missing:
            raise KeyError(f"missing columns {missing}")
    except Exception as e:
        print(f"⚠️ Could not read known payees from {path} ({e}). Using built-in list.")
        return list(KNOWN_BUSINESSES)

    df = df[KNOWN_PAYEE_COLUMNS].apply(lambda col: col.str.strip())
    df = df[df['name'] != '']

    return [
        KnownPayee(row['name'], row['registration_id'], row['merchant_code'])
        for _, row in df.iterrows()
    ]


def load_reference_data(path: str = KNOWN_PAYEES_PATH) -> ReferenceData:
    return build_reference_data(known_payees=load_known_payees(path))
