import base64
import os
import tempfile
from pathlib import Path

import pytest

# Must be set before clinote.config is imported anywhere
_TMP_DIR = Path(tempfile.mkdtemp(prefix="clinote-tests-"))
os.environ["SQLITE_DB_PATH"] = str(_TMP_DIR / "clinote.db")
os.environ["ANALYSIS_ENABLED"] = "false"
os.environ["AUTH_USERNAME"] = "tester"
os.environ["AUTH_PASSWORD"] = "secret"


@pytest.fixture(scope="session", autouse=True)
def _database():
    from clinote.database import init_db
    init_db()
    yield


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def auth_headers():
    token = base64.b64encode(b"tester:secret").decode("ascii")
    return {"Authorization": f"Basic {token}"}
