import pytest

from fakes import FakeBackend, FakeDevice, build_image, make_context


@pytest.fixture
def spi():
    return FakeDevice("spi", build_image(strings={
        "RO_FRID": "Google_Test.1234.0.0",
        "RW_FWID_A": "Google_Test.1234.5.0",
        "RW_FWID_B": "Google_Test.1234.6.0",
    }))


@pytest.fixture
def ec():
    return FakeDevice("ec", build_image(strings={
        "RO_FRID": "test_v1.0.100-ro",
        "RW_FWID": "test_v1.0.120-rw",
    }, nvram=False))


@pytest.fixture
def backend(spi, ec):
    return FakeBackend({"spi": spi, "ec": ec})


@pytest.fixture
def ctx(backend):
    return make_context(backend=backend)
