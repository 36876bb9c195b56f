import os

import pytest

from pinjected_gcp_autoconfig.core.executor import (
    BackgroundExecutorProvider,
    default_executor_thread_count,
)


def test_default_thread_count():
    assert default_executor_thread_count() == max(4, os.cpu_count() or 1)
    assert BackgroundExecutorProvider().thread_count == default_executor_thread_count()


def test_invalid_thread_count():
    with pytest.raises(ValueError):
        BackgroundExecutorProvider(0)


def test_executor_is_created_once_and_can_be_shut_down():
    provider = BackgroundExecutorProvider(2, thread_name_prefix="test-pool")
    executor = provider.get_executor()
    assert provider.get_executor() is executor
    assert executor.submit(lambda: 21 * 2).result() == 42
    provider.shutdown()
    assert provider.get_executor() is not executor
    provider.shutdown()
