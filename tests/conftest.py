"""pytest configuration and shared fakes for the dispatch collaborators."""

import os

import httpx
import pytest
from hypothesis import HealthCheck, settings as hyp_settings

from tooldispatch.config import DispatchConfig
from tooldispatch.core.dispatcher import ToolDispatcher
from tooldispatch.core.tool_types import SessionContext

# ---------------------------------------------------------------------------
# Hypothesis profiles: dev by default (fast); CI selects the full profile with
# HYPOTHESIS_PROFILE=ci
# ---------------------------------------------------------------------------
hyp_settings.register_profile(
    "dev",
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
hyp_settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
hyp_settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


_ENV_KEYS = (
    "STORAGE_ROOT",
    "DEPLOY_BASE_URL",
    "IMAGE_FETCH_CONCURRENCY",
    "IMAGE_FETCH_TIMEOUT_SECONDS",
    "STRICT_TASK_ASSIGNMENT",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear dispatch configuration variables so tests see the defaults."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class FakeSearchBackend:
    def __init__(self, images=None, error=None):
        self.images = images
        self.error = error
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return {} if self.images is None else {"images": self.images}


class FakeAnalysisBackend:
    def __init__(self, reply="analysis text"):
        self.reply = reply
        self.calls = []

    async def analyze(self, urls, prompt):
        self.calls.append((urls, prompt))
        return self.reply


class MemoryStorage:
    def __init__(self):
        self.files = {}
        self.reads = []

    async def write(self, path, content):
        self.files[path] = content

    async def read(self, path):
        self.reads.append(path)
        if path not in self.files:
            raise FileNotFoundError(f"File not found: {path}")
        return self.files[path]


class FakeCodeGenerator:
    def __init__(self, description="Built the component.", error=None):
        self.description = description
        self.error = error
        self.calls = []

    async def generate(self, query, file_path, client):
        self.calls.append({"query": query, "file_path": file_path, "client": client})
        if self.error is not None:
            raise self.error
        return {"description": self.description}


class RecordingSink:
    def __init__(self):
        self.events = []

    def emit(self, event_kind, payload):
        self.events.append((event_kind, payload))

    @property
    def messages(self):
        return [payload["message"] for _, payload in self.events]


def image_transport(routes):
    """Build an `httpx.MockTransport` from `{url: response-or-exception}`."""

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = routes.get(str(request.url))
        if outcome is None:
            return httpx.Response(404, request=request)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return httpx.MockTransport(handler)


@pytest.fixture
def search_backend():
    return FakeSearchBackend(images=[])


@pytest.fixture
def analysis_backend():
    return FakeAnalysisBackend()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def code_generator():
    return FakeCodeGenerator()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def context(sink):
    return SessionContext(project_folder_name="acme-site", progress_sink=sink, client="client-handle")


@pytest.fixture
def make_dispatcher(search_backend, analysis_backend, storage, code_generator):
    def factory(http_client=None, **config_overrides):
        return ToolDispatcher(
            search_backend=search_backend,
            analysis_backend=analysis_backend,
            storage=storage,
            code_generator=code_generator,
            http_client=http_client,
            config=DispatchConfig(**config_overrides),
        )

    return factory
