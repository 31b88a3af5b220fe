import unittest
from unittest.mock import patch

from catalog_testing import make_session_factory

from bdcinema import crud, models
from bdcinema.exceptions import ConflictError, ValidationError
from bdcinema.services import auth


class TestPasswords(unittest.TestCase):
    def test_hash_round_trip(self):
        hashed = auth.hash_password("secret1")
        self.assertNotEqual(hashed, "secret1")
        self.assertTrue(auth.verify_password("secret1", hashed))
        self.assertFalse(auth.verify_password("secret2", hashed))

    def test_missing_hash_never_verifies(self):
        self.assertFalse(auth.verify_password("secret1", None))
        self.assertFalse(auth.verify_password("", "whatever"))


class TestRegistration(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_register_and_authenticate(self):
        user = auth.register_user(self.db, " Tania ", "tania@example.com", "secret1")
        self.assertEqual(user.name, "Tania")
        self.assertEqual(user.role, models.ROLE_USER)
        self.assertEqual(auth.authenticate(self.db, "tania@example.com", "secret1").id, user.id)
        self.assertIsNone(auth.authenticate(self.db, "tania@example.com", "wrong"))
        self.assertIsNone(auth.authenticate(self.db, "ghost@example.com", "secret1"))

    def test_missing_fields_rejected(self):
        with self.assertRaises(ValidationError):
            auth.register_user(self.db, "", "tania@example.com", "secret1")
        with self.assertRaises(ValidationError):
            auth.register_user(self.db, "Tania", None, "secret1")

    def test_password_over_bcrypt_limit_rejected(self):
        with self.assertRaises(ValidationError):
            auth.register_user(self.db, "Tania", "tania@example.com", "\u0985" * 30)
        auth.register_user(self.db, "Tania", "tania@example.com", "p" * 72)

    def test_short_password_rejected(self):
        with self.assertRaises(ValidationError):
            auth.register_user(self.db, "Tania", "tania@example.com", "12345")
        self.assertIsNone(crud.get_user_by_email(self.db, "tania@example.com"))

    def test_duplicate_email_conflicts(self):
        auth.register_user(self.db, "Tania", "tania@example.com", "secret1")
        with self.assertRaises(ConflictError):
            auth.register_user(self.db, "Other", "tania@example.com", "secret2")

    def test_oauth_account_cannot_password_login(self):
        crud.get_or_create_oauth_user(self.db, "g@example.com", "Google User")
        self.assertIsNone(auth.authenticate(self.db, "g@example.com", "anything"))

    def test_google_login_creates_account(self):
        claims = {"email": "g@example.com", "name": "Google User", "picture": "https://img/p.png"}
        with patch.object(auth, "verify_google_credential", return_value=claims):
            user = auth.google_login(self.db, "id-token")
        self.assertEqual(user.email, "g@example.com")
        self.assertEqual(user.image, "https://img/p.png")
        self.assertIsNone(user.password_hash)

    def test_google_login_requires_email(self):
        with patch.object(auth, "verify_google_credential", return_value={"name": "No Email"}):
            with self.assertRaises(auth.InvalidTokenError):
                auth.google_login(self.db, "id-token")


class TestSessionTokens(unittest.TestCase):
    def setUp(self):
        self.user = models.User(id=7, name="Admin", email="a@example.com", role=models.ROLE_ADMIN)

    def test_token_carries_subject_and_role(self):
        claims = auth.decode_session_token(auth.create_session_token(self.user))
        self.assertEqual(claims["sub"], "7")
        self.assertEqual(claims["role"], models.ROLE_ADMIN)

    def test_expired_token_rejected(self):
        token = auth.create_session_token(self.user, expires_minutes=-5)
        with self.assertRaises(auth.InvalidTokenError):
            auth.decode_session_token(token)

    def test_tampered_token_rejected(self):
        token = auth.create_session_token(self.user)
        with self.assertRaises(auth.InvalidTokenError):
            auth.decode_session_token(token[:-4] + "AAAA")

    def test_empty_token_rejected(self):
        with self.assertRaises(auth.InvalidTokenError):
            auth.decode_session_token("")


if __name__ == "__main__":
    unittest.main()
