import sys
import numpy as np
from sdfgen import sphere, box, cylinder, plane, union, subtraction, intersection, Y, compile_sdf

def union_example():
    return union(sphere(0.5), box(2.0, position=(2, 0, 0)))

def subtraction_example():
    # The sphere is carved out of the cube that follows it.
    return subtraction(sphere(0.5), box(4.0))

def intersection_example():
    return intersection(sphere(0.7, position=(-0.3, 0, 0)), sphere(0.7, position=(0.3, 0, 0)))

def nested_example():
    body = union(box((2.0, 0.5, 2.0)), cylinder(0.3, 2.0, position=(0, 1, 0)))
    hole = cylinder(0.2, 4.0)
    drilled = subtraction(hole, body)
    drilled.rotate(Y, np.pi / 4).translate((0, 0.5, 0))
    return union(plane(offset=-0.5), drilled)

def main():
    print("--- sdfgen Operation Examples ---", file=sys.stderr)
    examples = {
        "union": union_example, "subtraction": subtraction_example,
        "intersection": intersection_example, "nested": nested_example,
    }

    if len(sys.argv) < 2:
        print("Available examples:", ", ".join(examples.keys()))
        return nested_example()

    func = examples.get(sys.argv[1])
    if func:
        print(compile_sdf(func(), verbose=True))
    else: print(f"Example '{sys.argv[1]}' not found.")

if __name__ == "__main__":
    main()
