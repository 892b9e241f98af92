# Shared fixtures: sample icon markup and a store/session wired to a temp dir.

import pytest

from iconstudio.app.bootstrap import create_session
from iconstudio.services.variant_store import VariantStore


TWO_TONE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">\n'
    '  <path fill="#FF0000" d="M0 0h12v12H0z"/>\n'
    "  <path stroke='#0000ff' d=\"M12 12h12v12H12z\"/>\n"
    "</svg>\n"
)


@pytest.fixture
def two_tone_svg():
    return TWO_TONE_SVG


@pytest.fixture
def memory_store():
    return VariantStore()


@pytest.fixture
def engine(tmp_path):
    ctx = create_session(tmp_path)
    yield ctx
    ctx.close()
