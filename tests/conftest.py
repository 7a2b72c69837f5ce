import pytest

from helpers.trade import build_world, make_nft_info


@pytest.fixture
def world():
    return build_world()


@pytest.fixture
def domain(world):
    return world.domain


@pytest.fixture
def nft_info(world):
    return make_nft_info(world.nft.address)
