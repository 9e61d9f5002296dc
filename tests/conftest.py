"""Shared fixtures for SentimentIQ tests."""

import threading
from typing import Any, Dict, Iterable, Optional

import pytest

from sentimentiq.core.gate import FeatureGate
from sentimentiq.core.history import InMemoryHistoryStore
from sentimentiq.core.models import FeatureKind
from sentimentiq.core.orchestrator import AnalysisOrchestrator
from sentimentiq.monitoring.event_log import EventLog
from sentimentiq.utils.errors import ProviderError


# ---------------------------------------------------------------------------
# Canned provider documents (cloud language service shape)
# ---------------------------------------------------------------------------

CANNED_DOCUMENTS: Dict[FeatureKind, Dict[str, Any]] = {
    FeatureKind.SENTIMENT: {
        "id": "1",
        "sentiment": "positive",
        "confidenceScores": {"positive": 0.92, "negative": 0.03, "neutral": 0.05},
    },
    FeatureKind.KEY_PHRASES: {
        "id": "1",
        "keyPhrases": ["Apple Inc.", "new iPhone"],
    },
    FeatureKind.ENTITIES: {
        "id": "1",
        "entities": [
            {"text": "Apple Inc.", "category": "Organization", "offset": 0,
             "length": 10, "confidenceScore": 0.98},
            {"text": "iPhone", "category": "Product", "offset": 26,
             "length": 6, "confidenceScore": 0.9},
        ],
    },
    FeatureKind.SUMMARY: {
        "id": "1",
        "sentences": [
            {"text": "Apple Inc. released a new iPhone.", "rankScore": 1.0,
             "offset": 0, "length": 33},
        ],
    },
    FeatureKind.LANGUAGE: {
        "id": "1",
        "detectedLanguage": {"name": "English", "iso6391Name": "en", "confidenceScore": 1.0},
    },
}

STANDARD_TEXT = "Apple Inc. released a new iPhone."

LONG_TEXT = (
    "Apple Inc. released a new iPhone today at its headquarters in Cupertino. "
    "The device features a faster processor, a brighter display and a longer "
    "battery life. Analysts expect strong sales during the holiday season, "
    "although some reviewers questioned the higher price."
)


# ---------------------------------------------------------------------------
# Stub provider
# ---------------------------------------------------------------------------


class StubProvider:
    """Provider that returns canned documents without network calls.

    Features listed in fail_features raise ProviderError; calls are counted
    per feature under a lock because the orchestrator calls from worker threads.
    """

    def __init__(
        self,
        fail_features: Iterable[FeatureKind] = (),
        documents: Optional[Dict[FeatureKind, Dict[str, Any]]] = None,
        configured: bool = True,
    ):
        self.fail_features = set(fail_features)
        self.documents = dict(CANNED_DOCUMENTS)
        self.documents.update(documents or {})
        self.configured = configured
        self.calls = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "stub"

    @property
    def is_configured(self) -> bool:
        return self.configured

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def calls_for(self, feature: FeatureKind) -> int:
        with self._lock:
            return sum(1 for f, _ in self.calls if f == feature)

    def analyze(self, feature: FeatureKind, text: str) -> Dict[str, Any]:
        with self._lock:
            self.calls.append((feature, text))
        if feature in self.fail_features:
            raise ProviderError(f"stub failure for {feature.value}", feature=feature.value)
        return self.documents[feature]

    def diagnostics(self) -> Dict[str, Any]:
        return {"provider": "stub", "configured": self.configured}


class FailingHistoryStore:
    """History store whose writes always fail."""

    def __init__(self):
        self.attempts = 0

    def insert_history(self, owner_id, text, features, result):
        self.attempts += 1
        raise RuntimeError("database unavailable")

    def list_history(self, owner_id, limit=50):
        return []

    def delete_history(self, owner_id, record_id):
        return False

    def delete_all(self, owner_id):
        return 0


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def gate():
    """FeatureGate with every feature enabled."""
    return FeatureGate()


@pytest.fixture
def event_log():
    return EventLog(capacity=100)


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def orchestrator(stub_provider, gate, history_store, event_log):
    """Orchestrator wired to the stub provider and in-memory history."""
    orch = AnalysisOrchestrator(
        provider=stub_provider,
        gate=gate,
        history_store=history_store,
        event_log=event_log,
    )
    yield orch
    orch.shutdown()


@pytest.fixture
def make_orchestrator(gate, event_log):
    """Factory for orchestrators with a custom provider or history store."""
    created = []

    def _make(provider=None, history_store=None, **kwargs):
        orch = AnalysisOrchestrator(
            provider=provider or StubProvider(),
            gate=kwargs.pop("gate", gate),
            history_store=history_store,
            event_log=kwargs.pop("event_log", event_log),
            **kwargs,
        )
        created.append(orch)
        return orch

    yield _make
    for orch in created:
        orch.shutdown()
