import gc

from fieldops.core.locks import ResourceLockRegistry

class TestResourceLockRegistry:
    def test_same_lock_while_in_use(self):
        registry = ResourceLockRegistry()
        lock = registry.get(1)

        assert registry.get(1) is lock
        assert registry.get(2) is not lock

    def test_hold_is_reentrant(self):
        registry = ResourceLockRegistry()

        with registry.hold(1):
            with registry.hold(1):
                assert len(registry) == 1

    def test_released_locks_are_dropped(self):
        registry = ResourceLockRegistry()

        for resource_id in range(100):
            with registry.hold(resource_id):
                pass
        gc.collect()

        assert len(registry) == 0
