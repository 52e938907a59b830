from __future__ import annotations

import pytest

from markersync.geometry import VoxelLayer
from scene import make_voxels


@pytest.fixture
def voxels() -> VoxelLayer:
    return make_voxels()
