import unittest
from unittest.mock import patch

from catalog_testing import make_session_factory

from bdcinema import crud, models
from bdcinema.core.config import settings
from bdcinema.services import auth
from bdcinema.services.seed import SAMPLE_TITLES, seed_defaults


class TestSeed(unittest.TestCase):
    def setUp(self):
        self.engine, Session = make_session_factory()
        self.db = Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_seeds_admin_and_titles_once(self):
        with patch.object(settings, "seed_sample_titles", True):
            self.assertTrue(seed_defaults(self.db))
            self.assertFalse(seed_defaults(self.db))

        admin = crud.get_user_by_email(self.db, settings.admin_email)
        self.assertEqual(admin.role, models.ROLE_ADMIN)
        self.assertIsNotNone(auth.authenticate(self.db, settings.admin_email, settings.admin_password))
        self.assertEqual(crud.count_titles(self.db), len(SAMPLE_TITLES))

    def test_sample_titles_can_be_disabled(self):
        with patch.object(settings, "seed_sample_titles", False):
            seed_defaults(self.db)
        self.assertEqual(crud.count_titles(self.db), 0)
        self.assertEqual(self.db.query(models.User).count(), 1)


if __name__ == "__main__":
    unittest.main()
