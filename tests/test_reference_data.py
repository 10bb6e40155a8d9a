import pandas as pd

from reference_data import (
    KNOWN_BUSINESSES,
    SUSPICIOUS_DEVICES,
    SUSPICIOUS_LOCATIONS,
    build_reference_data,
    load_known_payees,
    load_reference_data,
    setup_reference_data,
)
from rules_engine import KnownPayee


def test_defaults():
    refs = build_reference_data()
    assert refs.suspicious_keywords == frozenset({'cash', 'crypto', 'exchange', 'vortex', 'services', 'quickcash'})
    assert refs.suspicious_locations == tuple(SUSPICIOUS_LOCATIONS)
    assert refs.suspicious_devices == tuple(SUSPICIOUS_DEVICES)
    assert len(refs.known_payees) == 5


def test_keywords_are_lowercased():
    refs = build_reference_data(keywords=['CASH', 'Crypto'])
    assert refs.suspicious_keywords == frozenset({'cash', 'crypto'})


def test_round_trip_through_csv(tmp_path):
    path = tmp_path / 'data' / 'known_businesses.csv'
    setup_reference_data(str(path))
    assert path.exists()

    payees = load_known_payees(str(path))
    assert payees == KNOWN_BUSINESSES


def test_till_numbers_keep_leading_zeros(tmp_path):
    path = tmp_path / 'known.csv'
    pd.DataFrame(
        [['Zero Till Shop', 'REG-1', '007001']],
        columns=['name', 'registration_id', 'merchant_code'],
    ).to_csv(path, index=False)

    assert load_known_payees(str(path)) == [KnownPayee('Zero Till Shop', 'REG-1', '007001')]


def test_blank_names_dropped_and_fields_stripped(tmp_path):
    path = tmp_path / 'known.csv'
    path.write_text(
        "name,registration_id,merchant_code\n"
        "  Green Energy Corp ,REG-12345, 555111\n"
        ",REG-0,0\n"
    )
    assert load_known_payees(str(path)) == [KnownPayee('Green Energy Corp', 'REG-12345', '555111')]


def test_missing_file_falls_back(tmp_path):
    refs = load_reference_data(str(tmp_path / 'nope.csv'))
    assert list(refs.known_payees) == KNOWN_BUSINESSES


def test_bad_columns_fall_back(tmp_path, capsys):
    path = tmp_path / 'known.csv'
    path.write_text("business,code\nFoo,1\n")
    assert load_known_payees(str(path)) == KNOWN_BUSINESSES
    assert "Using built-in list" in capsys.readouterr().out


def test_empty_file_falls_back(tmp_path):
    path = tmp_path / 'known.csv'
    path.write_text("")
    assert load_known_payees(str(path)) == KNOWN_BUSINESSES


def test_loaded_refs_drive_scoring(tmp_path):
    path = tmp_path / 'known.csv'
    path.write_text("name,registration_id,merchant_code\nAcme,REG-9,999\n")
    refs = load_reference_data(str(path))
    assert [p.name for p in refs.known_payees] == ['Acme']
