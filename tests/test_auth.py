import unittest
from unittest.mock import patch

from craftflow.config import Settings
from craftflow.core.auth import auth_enabled, hash_password, verify_credentials


class AuthTest(unittest.TestCase):
    def _patch_settings(self, **values):
        patcher = patch("craftflow.core.auth.get_settings", return_value=Settings(**values))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_disabled_without_credentials(self):
        self._patch_settings(AUTH_USERNAME=None, AUTH_PASSWORD=None, AUTH_PASSWORD_HASH=None)

        self.assertFalse(auth_enabled())
        self.assertFalse(verify_credentials("admin", "password"))

    def test_plain_password(self):
        self._patch_settings(AUTH_USERNAME="admin", AUTH_PASSWORD="password")

        self.assertTrue(verify_credentials(" ADMIN ", "password"))
        self.assertFalse(verify_credentials("admin", "Password"))
        self.assertFalse(verify_credentials("other", "password"))

    def test_pbkdf2_hash(self):
        digest = hash_password("s3cret", "pepper", 1000)
        self._patch_settings(
            AUTH_USERNAME="owner",
            AUTH_PASSWORD_HASH=digest,
            AUTH_PASSWORD_SALT="pepper",
            AUTH_PBKDF2_ROUNDS=1000,
        )

        self.assertTrue(verify_credentials("owner", "s3cret"))
        self.assertFalse(verify_credentials("owner", "guess"))

    def test_hash_without_salt_is_a_configuration_error(self):
        self._patch_settings(AUTH_USERNAME="owner", AUTH_PASSWORD_HASH="abc")

        with self.assertRaises(ValueError):
            verify_credentials("owner", "anything")


if __name__ == "__main__":
    unittest.main()
