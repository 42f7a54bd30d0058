"""Global test configuration.

Shared fixtures for the image build tests: a placement, a zero-delay wait
policy, an in-memory compute service seeded with a base image and an
in-memory OpenTelemetry metric pipeline.
"""

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from surrogate.domain.value_objects.placement import Placement
from surrogate.domain.value_objects.wait_policy import WaitPolicy
from surrogate.infrastructure.adapters.simulated_compute_adapter import (
    SimulatedComputeAdapter,
)

COMPARTMENT_ID = "ocid1.compartment.oc1..build"
AVAILABILITY_DOMAIN = "aBCD:US-ASHBURN-AD-1"
BASE_IMAGE_NAME = "Oracle-Linux-9"
PUBLIC_KEY = "ssh-rsa AAAAB3NzaC1yc2E build@pipeline"


@pytest.fixture
def placement():
    return Placement(AVAILABILITY_DOMAIN, COMPARTMENT_ID)


@pytest.fixture
def fast_policy():
    return WaitPolicy(max_retries=0, delay_seconds=0)


@pytest.fixture
def simulated():
    """In-memory compute service holding base image img-1."""
    adapter = SimulatedComputeAdapter()
    adapter.add_image(BASE_IMAGE_NAME, COMPARTMENT_ID)
    return adapter


@pytest.fixture
def metric_reader():
    """Meter backed by an in-memory reader, plus a function reading its points.

    The reader function returns ``{(metric name, frozenset(attributes)): value}``.
    """
    reader = InMemoryMetricReader()
    provider = MeterProvider(metric_readers=[reader])

    def points() -> dict:
        data = reader.get_metrics_data()
        if data is None:
            return {}
        return {
            (metric.name, frozenset(point.attributes.items())): point.value
            for resource_metrics in data.resource_metrics
            for scope_metrics in resource_metrics.scope_metrics
            for metric in scope_metrics.metrics
            for point in metric.data.data_points
        }

    yield provider.get_meter("surrogate.tests"), points
    provider.shutdown()
