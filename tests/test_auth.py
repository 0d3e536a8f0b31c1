from fastapi.security import HTTPBasicCredentials

from image_server.app.services.auth import check_credentials
from image_server.config import Settings


def make_settings(user="uploader", password="hunter2"):
    return Settings(data_dir="data", temp_dir="temp", upload_user=user, upload_pass=password)


def test_valid_credentials():
    credentials = HTTPBasicCredentials(username="uploader", password="hunter2")
    assert check_credentials(credentials, make_settings()).ok


def test_missing_credentials():
    result = check_credentials(None, make_settings())
    assert not result.ok
    assert result.reason == "Missing credentials"


def test_wrong_password():
    credentials = HTTPBasicCredentials(username="uploader", password="wrong")
    result = check_credentials(credentials, make_settings())
    assert not result.ok
    assert result.reason == "Invalid credentials"


def test_unconfigured_account_rejects_everyone():
    credentials = HTTPBasicCredentials(username="", password="")
    result = check_credentials(credentials, make_settings(user="", password=""))
    assert not result.ok
    assert result.reason == "Upload credentials are not configured"
