import pytest

from bundleflow.application.services import ProductionEngine
from bundleflow.core.config import Settings
from bundleflow.domain.production.services import LifecycleStateMachine
from bundleflow.infrastructure.events.event_bus import InMemoryEventBus
from bundleflow.infrastructure.persistence import (
    InMemoryBundleRepository,
    InMemoryComplaintRepository,
    InMemoryEarningsLedger,
    InMemoryOperatorRegistry,
    InMemoryTemplateLibrary,
)

from .domain.production.fixtures import BundleFactory, OperatorFactory, TemplateFactory


@pytest.fixture
def engine_settings() -> Settings:
    return Settings(
        MAX_BUNDLE_SIZE=25,
        ASSIGNMENT_MAX_RETRIES=3,
        ASSIGNMENT_MIN_SCORE=0,
        ASSIGNMENT_REQUIRE_MACHINE_MATCH=True,
        DEFAULT_OPERATOR_CAPACITY=5,
        WRITE_MAX_RETRIES=3,
        EVENT_HISTORY_SIZE=1000,
    )


@pytest.fixture
def state_machine() -> LifecycleStateMachine:
    return LifecycleStateMachine()


@pytest.fixture
def t_shirt_template():
    return TemplateFactory.t_shirt()


@pytest.fixture
def bundle(t_shirt_template):
    """A released 20-piece t-shirt bundle."""
    return BundleFactory.create_bundle(t_shirt_template, quantity=20)


@pytest.fixture
def sewing_line():
    return OperatorFactory.sewing_line()


@pytest.fixture
def bundle_repository() -> InMemoryBundleRepository:
    return InMemoryBundleRepository()


@pytest.fixture
def complaint_repository() -> InMemoryComplaintRepository:
    return InMemoryComplaintRepository()


@pytest.fixture
def earnings_ledger() -> InMemoryEarningsLedger:
    return InMemoryEarningsLedger()


@pytest.fixture
def operator_registry(sewing_line) -> InMemoryOperatorRegistry:
    return InMemoryOperatorRegistry(sewing_line)


@pytest.fixture
def template_library(t_shirt_template) -> InMemoryTemplateLibrary:
    return InMemoryTemplateLibrary(
        [t_shirt_template, TemplateFactory.linear(), TemplateFactory.with_parts()]
    )


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus(max_history_size=1000)


@pytest.fixture
def engine(
    bundle_repository,
    operator_registry,
    complaint_repository,
    earnings_ledger,
    template_library,
    event_bus,
    engine_settings,
) -> ProductionEngine:
    return ProductionEngine(
        bundle_repository,
        operator_registry,
        complaint_repository,
        earnings_ledger,
        template_library,
        event_bus=event_bus,
        config=engine_settings,
    )
