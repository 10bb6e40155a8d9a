import pytest

from accounts import DEFAULT_PASSWORD, AuthError, UserDirectory


@pytest.fixture
def directory():
    return UserDirectory()


class TestLogin:
    def test_demo_user(self, directory):
        user = directory.login('alex.j@example.com', DEFAULT_PASSWORD)
        assert user.name == 'Alex Johnson'
        assert user.balance == 25480.50

    def test_email_case_and_whitespace(self, directory):
        user = directory.login('  Contact@KenyaCoop.com ', DEFAULT_PASSWORD)
        assert user.account_type == 'corporate'
        assert user.business_id == 'KRA123456'

    @pytest.mark.parametrize("email, password", [
        ('alex.j@example.com', 'wrong'),
        ('nobody@example.com', DEFAULT_PASSWORD),
        ('', ''),
        (None, None),
    ])
    def test_rejected(self, directory, email, password):
        with pytest.raises(AuthError, match="Invalid email or password."):
            directory.login(email, password)

    def test_session_copy_is_independent(self, directory):
        user = directory.login('alex.j@example.com', DEFAULT_PASSWORD)
        user.balance -= 1000
        again = directory.login('alex.j@example.com', DEFAULT_PASSWORD)
        assert again.balance == 25480.50

    def test_passwords_are_not_stored_in_plain_text(self, directory):
        assert DEFAULT_PASSWORD not in directory._password_hashes.values()


class TestSignup:
    def test_personal(self, directory):
        user = directory.signup('personal', 'Mary Wanjiru', 'mary@gmail.com', 'pw1', 'pw1', id_number='9988')
        assert user.balance == 0.0
        assert user.id_number == '9988'
        assert user.business_id is None
        assert user.account_number.startswith('**** **** **** ')
        assert directory.login('mary@gmail.com', 'pw1').name == 'Mary Wanjiru'

    def test_corporate(self, directory):
        user = directory.signup('corporate', 'Coop Two', 'info@cooptwo.co.ke', 'pw', 'pw', business_id='CO-OP-BIZ-1')
        assert user.account_type == 'corporate'
        assert user.business_id == 'CO-OP-BIZ-1'

    def test_password_mismatch_checked_first(self, directory):
        # Would also fail the Gmail rule, but the password check comes first
        with pytest.raises(AuthError, match="Passwords do not match."):
            directory.signup('personal', 'Mary', 'mary@yahoo.com', 'a', 'b')

    def test_personal_requires_gmail(self, directory):
        with pytest.raises(AuthError, match="Gmail"):
            directory.signup('personal', 'Mary', 'mary@yahoo.com', 'pw', 'pw')

    def test_corporate_requires_valid_business_id(self, directory):
        with pytest.raises(AuthError, match="Business ID is not valid"):
            directory.signup('corporate', 'Shady Ltd', 'x@shady.com', 'pw', 'pw', business_id='FAKE-1')

    def test_missing_fields(self, directory):
        with pytest.raises(AuthError, match="required"):
            directory.signup('personal', '  ', 'mary@gmail.com', 'pw', 'pw')

    def test_unknown_account_type(self, directory):
        with pytest.raises(AuthError):
            directory.signup('joint', 'Mary', 'mary@gmail.com', 'pw', 'pw')

    def test_duplicate_email(self, directory):
        directory.signup('personal', 'Mary', 'mary@gmail.com', 'pw', 'pw')
        with pytest.raises(AuthError, match="already exists"):
            directory.signup('personal', 'Mary Again', 'MARY@gmail.com', 'pw', 'pw')
        assert len(directory) == 3
