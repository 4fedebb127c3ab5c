"""
Tests for globe projection and heading orientation.
"""

import numpy as np
import pytest

from flightglobe.tracking.projection import (
    compose,
    orient,
    project,
    quaternion_from_unit_vectors,
    tangent_frame,
)

FORWARD = np.array([0.0, 0.0, 1.0])


def rotate(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate vector v by unit quaternion q = (x, y, z, w)."""
    u = q[:3]
    w = q[3]
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)


class TestProject:
    """Test spherical-to-Cartesian conversion."""

    def test_equator_at_antimeridian(self):
        # lon -180 -> theta 0
        np.testing.assert_allclose(project(0.0, -180.0), [-1.0, 0.0, 0.0], atol=1e-12)

    def test_greenwich_equator(self):
        np.testing.assert_allclose(project(0.0, 0.0), [1.0, 0.0, 0.0], atol=1e-12)

    def test_north_pole_is_up(self):
        np.testing.assert_allclose(project(90.0, 12.0), [0.0, 1.0, 0.0], atol=1e-12)

    def test_surface_radius_is_one(self):
        assert np.linalg.norm(project(40.0, -74.0)) == pytest.approx(1.0)

    def test_altitude_scales_radius(self):
        assert np.linalg.norm(project(40.0, -74.0, 400000.0)) == pytest.approx(2.0)
        assert np.linalg.norm(project(40.0, -74.0, 10000.0)) == pytest.approx(1.025)

    @pytest.mark.parametrize('altitude', [None, -150.0])
    def test_missing_or_negative_altitude_clamps_to_surface(self, altitude):
        assert np.linalg.norm(project(40.0, -74.0, altitude)) == pytest.approx(1.0)

    def test_is_deterministic(self):
        np.testing.assert_array_equal(project(51.5, -0.12, 3000.0), project(51.5, -0.12, 3000.0))


class TestOrient:
    """Test heading orientation in the local tangent frame."""

    def test_quaternion_is_unit(self):
        q = orient(project(40.0, -74.0, 10000.0), 123.0)
        assert np.linalg.norm(q) == pytest.approx(1.0)

    def test_tangent_frame_at_equator(self):
        east, north, up = tangent_frame(project(0.0, -180.0))
        np.testing.assert_allclose(up, [-1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(east, [0.0, 0.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(north, [0.0, 1.0, 0.0], atol=1e-12)

    def test_heading_zero_points_north(self):
        q = orient(project(0.0, -180.0), 0.0)
        np.testing.assert_allclose(rotate(q, FORWARD), [0.0, 1.0, 0.0], atol=1e-9)

    def test_heading_ninety_points_east(self):
        q = orient(project(0.0, -180.0), 90.0)
        np.testing.assert_allclose(rotate(q, FORWARD), [0.0, 0.0, 1.0], atol=1e-9)

    def test_missing_heading_defaults_to_north(self):
        position = project(0.0, -180.0)
        np.testing.assert_allclose(orient(position, None), orient(position, 0.0))

    def test_opposite_direction(self):
        q = orient(project(0.0, -180.0), 270.0)
        np.testing.assert_allclose(rotate(q, FORWARD), [0.0, 0.0, -1.0], atol=1e-9)

    @pytest.mark.parametrize('lat,lon,heading', [(40.0, -74.0, 90.0), (-33.9, 151.2, 215.0), (64.1, -21.9, 10.0)])
    def test_direction_is_tangent(self, lat, lon, heading):
        position = project(lat, lon)
        direction = rotate(orient(position, heading), FORWARD)
        assert np.dot(direction, position / np.linalg.norm(position)) == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.parametrize('lat', [90.0, -90.0])
    def test_poles_stay_finite(self, lat):
        q = orient(project(lat, 0.0, 11000.0), 45.0)
        assert np.all(np.isfinite(q))
        assert np.linalg.norm(q) == pytest.approx(1.0)

    def test_exact_pole_vector(self):
        q = orient(np.array([0.0, 1.0, 0.0]), 0.0)
        assert np.all(np.isfinite(q))


class TestQuaternion:
    def test_identity_for_same_vector(self):
        np.testing.assert_allclose(quaternion_from_unit_vectors(FORWARD, FORWARD), [0.0, 0.0, 0.0, 1.0])


class TestCompose:
    def test_matrix_carries_translation_and_rotation(self):
        position = project(0.0, -180.0, 4000.0)
        q = orient(position, 0.0)
        matrix = compose(position, q)

        np.testing.assert_allclose(matrix[:3, 3], position)
        np.testing.assert_allclose(matrix[:3, :3] @ FORWARD, [0.0, 1.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(matrix[3], [0.0, 0.0, 0.0, 1.0])
