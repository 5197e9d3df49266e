import sys
from sdfgen import sphere, box, cylinder, union, intersection, Operation, compile_sdf

def repeat_example():
    return union(sphere(0.4), distortion='repeat', repeat_period=(2, 0, 2))

def polar_example():
    spokes = union(box((1.5, 0.2, 0.2), position=(1, 0, 0)), distortion='repeat_polar_y', repeat_period=(0, 6, 0))
    return union(cylinder(0.4, 0.3), spokes)

def mirror_example():
    wing = box((1.0, 0.1, 0.4), position=(0.8, 0, 0))
    return union(union(wing, distortion='mirror_x'))

def discrete_rotation_example():
    arm = box((1.0, 0.2, 0.2), position=(0.6, 0, 0))
    return union(Operation('union', children=[arm], distortion='rotate_discrete_y'))

def flip_example():
    cap = intersection(sphere(1.0), box(1.0, position=(0, 0.5, 0)))
    return union(Operation('union', children=[cap], distortion='flip_y'))

def main():
    examples = {
        "repeat": repeat_example, "polar": polar_example, "mirror": mirror_example,
        "rotate": discrete_rotation_example, "flip": flip_example,
    }
    if len(sys.argv) < 2:
        print("Available examples:", ", ".join(examples.keys()))
        return polar_example()

    func = examples.get(sys.argv[1])
    if func:
        print(compile_sdf(func(), dialect='hlsl', verbose=True))
    else: print(f"Example '{sys.argv[1]}' not found.")

if __name__ == "__main__":
    main()
