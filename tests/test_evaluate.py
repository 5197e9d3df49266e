import pytest
import numpy as np
from sdfgen import sphere, box, cylinder, plane, fractured_plane, mesh, union, subtraction, intersection, evaluate
from examples.operations import union_example, subtraction_example, intersection_example, nested_example

def test_union_scenario(union_scene):
    d = evaluate(union_scene, [[0, 0, 0], [2, 0, 0], [10, 0, 0]])
    assert np.allclose(d, [-0.5, -1.0, 7.0])

def test_subtraction_order(subtraction_scene):
    # Sphere carved out of the box: the origin lies in the hole.
    assert evaluate(subtraction_scene, [[0, 0, 0]])[0] == pytest.approx(0.5)
    swapped = subtraction(box(4.0), sphere(0.5))
    assert evaluate(swapped, [[0, 0, 0]])[0] == pytest.approx(2.0)

def test_intersection_of_overlapping_spheres():
    f = intersection_example().to_callable()
    assert f(np.array([[0, 0, 0]]))[0] < 0
    assert f(np.array([[0.9, 0, 0]]))[0] > 0

def test_combinators_match_numpy():
    a, b = sphere(0.5), box(1.0, position=(0.5, 0, 0))
    points = np.random.RandomState(0).uniform(-2, 2, size=(64, 3))
    da = union(sphere(0.5)).to_callable()(points)
    db = union(box(1.0, position=(0.5, 0, 0))).to_callable()(points)
    assert np.allclose(evaluate(union(a, b), points), np.minimum(da, db))

    a, b = sphere(0.5), box(1.0, position=(0.5, 0, 0))
    assert np.allclose(evaluate(intersection(a, b), points), np.maximum(da, db))

    a, b = sphere(0.5), box(1.0, position=(0.5, 0, 0))
    assert np.allclose(evaluate(subtraction(a, b), points), np.maximum(-da, db))

def test_subtraction_folds_over_many_children():
    cutter = sphere(0.5)
    s1, s2 = box(1.0, position=(-1, 0, 0)), box(1.0, position=(1, 0, 0))
    points = np.array([[0, 0, 0], [-1, 0, 0], [1, 0, 0]])
    d = evaluate(subtraction(cutter, s1, s2), points)
    dc = evaluate(union(sphere(0.5)), points)
    d1 = evaluate(union(box(1.0, position=(-1, 0, 0))), points)
    d2 = evaluate(union(box(1.0, position=(1, 0, 0))), points)
    assert np.allclose(d, np.maximum(-np.maximum(-dc, d1), d2))

def test_operation_transform_moves_children():
    moved = union(union(sphere(), position=(3, 0, 0)))
    assert evaluate(moved, [[3, 0, 0]])[0] == pytest.approx(-0.5)

def test_plane_half_space():
    ground = union(plane(offset=-0.5))
    assert np.allclose(evaluate(ground, [[0, 0, 0], [5, -1.5, 2]]), [0.5, -1.0])

def test_tilted_plane():
    wall = union(plane(normal=(1, 0, 0), offset=2.0))
    assert evaluate(wall, [[5, 3, -1]])[0] == pytest.approx(3.0)

def test_fractured_plane_stays_near_plane():
    ground = union(fractured_plane())
    points = np.random.RandomState(1).uniform(-3, 3, size=(32, 3))
    d = evaluate(ground, points)
    assert np.all(np.abs(d - points[:, 1]) <= 0.05 + 1e-9)

def test_cylinder_distance():
    c = union(cylinder(0.5, 2.0))
    assert np.allclose(evaluate(c, [[0, 0, 0], [2, 0, 0], [0, 3, 0]]), [-0.5, 1.5, 2.0])

def test_bias_scales_distance():
    assert evaluate(union(sphere(bias=0.5)), [[2, 0, 0]])[0] == pytest.approx(0.75)

def test_empty_and_meshes_evaluate_to_zero():
    assert np.allclose(evaluate(None, [[1, 2, 3]]), 0)
    assert np.allclose(evaluate(union(mesh()), [[1, 2, 3]]), 0)
    assert np.allclose(evaluate(union(), [[1, 2, 3], [0, 0, 0]]), 0)

def test_nested_example_numerics():
    f = nested_example().to_callable()
    # The ground plane sits below everything.
    assert f(np.array([[0, -2, 0]]))[0] < 0
    # The drilled hole runs through the rotated body.
    assert f(np.array([[0, 0.5, 0]]))[0] > 0
    assert f(np.array([[0.7, 0.5, 0.7]]))[0] < 0

@pytest.mark.parametrize("example", [union_example, subtraction_example, intersection_example, nested_example])
def test_gpu_matches_cpu(gpu_evaluate, example):
    points = np.random.RandomState(2).uniform(-3, 3, size=(256, 3))
    expected = evaluate(example(), points)
    assert np.allclose(gpu_evaluate(example(), points), expected, atol=1e-4)
