import pytest

from shared.config import KernmapConfig
from shared.logger import KernmapLogger

from kernmap.core.engine import KernmapEngine

from tests.images import legacy_image


@pytest.fixture
def quiet_logger():
    return KernmapLogger("test", console_output=False)


@pytest.fixture
def config():
    return KernmapConfig()


@pytest.fixture
def engine(config, quiet_logger):
    return KernmapEngine(config=config, logger=quiet_logger)


@pytest.fixture
def kernel_file(tmp_path):
    path = tmp_path / "kernel.bin"
    path.write_bytes(legacy_image())
    return path
