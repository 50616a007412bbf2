"""Tests for resource pools, provisioners, Pe's and cloudlet bookkeeping."""

import numpy as np
import pytest

from cloud_sim.core.cloudlet import Cloudlet, CloudletStatus
from cloud_sim.core.exceptions import InvalidConfigurationError
from cloud_sim.core.resources import Pe, PeStatus, ResourcePool, ResourceProvisioner
from cloud_sim.core.utilization import (
    UtilizationModelConstant,
    UtilizationModelStochastic,
    create_utilization_model,
)


class TestResourcePool:
    def test_allocate_within_capacity(self):
        pool = ResourcePool(100, name="ram")
        assert pool.allocate(60)
        assert pool.allocated == 60
        assert pool.available == 40

    def test_allocate_beyond_capacity_has_no_effect(self):
        pool = ResourcePool(100, name="ram")
        pool.allocate(60)
        assert not pool.allocate(50)
        assert pool.allocated == 60

    def test_deallocate_never_goes_negative(self):
        pool = ResourcePool(100)
        pool.allocate(10)
        pool.deallocate(50)
        assert pool.allocated == 0

    @pytest.mark.parametrize("capacity", [0, -5])
    def test_non_positive_capacity_is_rejected(self, capacity):
        with pytest.raises(InvalidConfigurationError):
            ResourcePool(capacity)


class TestResourceProvisioner:
    def test_allocation_replaces_previous_amount(self):
        provisioner = ResourceProvisioner(ResourcePool(100))
        assert provisioner.allocate("vm-a", 30)
        assert provisioner.allocate("vm-a", 80)
        assert provisioner.allocated_for("vm-a") == 80
        assert provisioner.total_allocated() == 80

    def test_failed_replacement_restores_previous_amount(self):
        provisioner = ResourceProvisioner(ResourcePool(100))
        provisioner.allocate("vm-a", 30)
        provisioner.allocate("vm-b", 50)

        assert not provisioner.allocate("vm-a", 60)
        assert provisioner.allocated_for("vm-a") == 30
        assert provisioner.available_capacity() == 20

    def test_is_suitable_counts_own_allocation(self):
        provisioner = ResourceProvisioner(ResourcePool(100))
        provisioner.allocate("vm-a", 70)
        assert provisioner.is_suitable("vm-a", 100)
        assert not provisioner.is_suitable("vm-b", 40)

    def test_deallocate_returns_freed_amount(self):
        provisioner = ResourceProvisioner(ResourcePool(100))
        provisioner.allocate("vm-a", 45)
        assert provisioner.deallocate("vm-a") == 45
        assert provisioner.deallocate("vm-a") == 0
        assert provisioner.consumers() == []


def test_pe_starts_free_with_full_capacity():
    pe = Pe(0, 1000)
    assert pe.status == PeStatus.FREE
    assert pe.is_free()
    assert pe.mips == 1000
    assert pe.available_mips == 1000


class TestCloudlet:
    def test_counter_is_clamped_to_length(self):
        cloudlet = Cloudlet(0, 1000)
        assert cloudlet.add_finished_so_far(600) == 600
        assert cloudlet.add_finished_so_far(600) == 400
        assert cloudlet.finished_so_far == 1000
        assert cloudlet.progress == 1.0

    def test_negative_progress_is_rejected(self):
        cloudlet = Cloudlet(0, 1000)
        with pytest.raises(ValueError):
            cloudlet.add_finished_so_far(-1)

    def test_status_only_moves_forward(self):
        cloudlet = Cloudlet(0, 1000)
        cloudlet.set_status(CloudletStatus.EXECUTING)
        cloudlet.set_status(CloudletStatus.FINISHED)
        with pytest.raises(ValueError):
            cloudlet.set_status(CloudletStatus.EXECUTING)
        with pytest.raises(ValueError):
            cloudlet.set_status(CloudletStatus.CANCELED)

    @pytest.mark.parametrize("field, value", [
        ("length", 0),
        ("pes_number", 0),
        ("file_size", -1),
        ("output_size", 0),
    ])
    def test_invalid_attributes_are_rejected(self, field, value):
        kwargs = {"cloudlet_id": 0, "length": 1000}
        kwargs[field] = value
        with pytest.raises(InvalidConfigurationError):
            Cloudlet(**kwargs)

    def test_listener_receives_progress_event(self):
        events = []
        cloudlet = Cloudlet(3, 1000)
        cloudlet.on_update_processing = events.append

        cloudlet.notify_update(12.5)

        assert len(events) == 1
        assert events[0].cloudlet is cloudlet
        assert events[0].time == 12.5


class TestUtilizationModels:
    def test_constant_model_bounds(self):
        assert UtilizationModelConstant(0.25).get_utilization(10) == 0.25
        with pytest.raises(ValueError):
            UtilizationModelConstant(1.5)

    def test_stochastic_model_is_stable_per_time(self):
        model = UtilizationModelStochastic(seed=7)
        first = model.get_utilization(3.0)
        assert model.get_utilization(3.0) == first
        assert 0.0 <= first <= 1.0

    def test_stochastic_model_replays_with_seed(self):
        a = UtilizationModelStochastic(seed=42)
        b = UtilizationModelStochastic(seed=42)
        assert [a.get_utilization(t) for t in range(5)] == [b.get_utilization(t) for t in range(5)]

    def test_unknown_model_is_rejected(self):
        with pytest.raises(ValueError):
            create_utilization_model("bursty")


def test_numpy_scalars_are_accepted():
    cloudlet = Cloudlet(0, np.int64(1000), pes_number=np.int64(1), file_size=np.float32(300))
    pe = Pe(0, np.int64(1000))

    assert cloudlet.length == 1000
    assert pe.mips == 1000
    with pytest.raises(InvalidConfigurationError):
        Cloudlet(1, np.int64(-5))
