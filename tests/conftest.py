"""Test environment: settings are read at import time, so set them before designfolio loads."""

import os

os.environ["JWT_SECRET"] = "test-secret-key-for-designfolio-tests"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAILS"] = ""
os.environ["APP_ENV"] = "dev"
