"""Shared fixtures: key pairs, a project key envelope and a fake remote store."""
import pytest

from navigator_secrets.config import SecretsConfig
from navigator_secrets.crypto import (
    generate_key_pair,
    generate_project_key,
    seal_project_key,
)
from navigator_secrets.models import SecretEntry, Tag
from navigator_secrets.service import SecretsService, SessionContext


class FakeTransport:
    """In-memory remote store recording every batch call."""

    def __init__(self, secrets=None, fail_on=None):
        self.secrets = list(secrets or [])
        self.fail_on = fail_on
        self.calls = []

    def _record(self, name, request):
        self.calls.append((name, request))
        if self.fail_on == name:
            raise ConnectionError(f"{name} refused")

    def fetch_secrets(self, workspace_id, environment):
        self._record("fetch", (workspace_id, environment))
        return [secret.model_copy() for secret in self.secrets]

    def batch_create(self, request):
        self._record("create", request)

    def batch_modify(self, request):
        self._record("modify", request)

    def batch_delete(self, request):
        self._record("delete", request)

    @property
    def call_names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def admin_keys():
    """Key pair of the member who shared the project key."""
    return generate_key_pair()


@pytest.fixture
def user_keys():
    """Key pair of the logged-in user."""
    return generate_key_pair()


@pytest.fixture
def project_key():
    return generate_project_key()


@pytest.fixture
def envelope(project_key, user_keys, admin_keys):
    return seal_project_key(project_key, user_keys.public_key, admin_keys)


@pytest.fixture
def backend_tag():
    return Tag(id="t-1", name="backend", slug="backend")


@pytest.fixture
def remote_secrets(backend_tag):
    """Remote snapshot, already opened to plaintext."""
    return [
        SecretEntry(id="id-db", key="DB_URL", value="postgres://db", tags=[backend_tag]),
        SecretEntry(id="id-api", key="API_KEY", value="abc123"),
        SecretEntry(id="id-debug", key="DEBUG", value="false"),
    ]


@pytest.fixture
def transport(remote_secrets):
    return FakeTransport(remote_secrets)


@pytest.fixture
def config():
    return SecretsConfig(workspace_id="ws-123", environment="dev")


@pytest.fixture
def service(config, user_keys, envelope, transport):
    session = SessionContext(key_pair=user_keys, envelope=envelope)
    return SecretsService(config, session, transport)


@pytest.fixture
def make_service(config, user_keys, envelope):
    """Build a service over a FakeTransport configured by the test."""
    def _make(secrets=(), fail_on=None, **config_overrides):
        transport = FakeTransport(secrets, fail_on=fail_on)
        cfg = config.model_copy(update=config_overrides)
        session = SessionContext(key_pair=user_keys, envelope=envelope)
        return SecretsService(cfg, session, transport), transport
    return _make
