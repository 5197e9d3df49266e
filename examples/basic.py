from sdfgen import *

def main():
    """
    Demonstrates the basic concepts of scene compilation.

    This example shows how to:
    - Create shapes like `sphere` and `box`, placed by their local transform.
    - Combine them with union (`|`), intersection (`&`) and subtraction (`-`).
    - Compile the result to a shader distance function.
    """
    # A sphere intersected with a box
    f = sphere(0.5) & box(0.75)

    # Drill a cylinder through it
    f = f - cylinder(0.2, 2.0)

    return f

if __name__ == "__main__":
    scene = main()
    print(Scene(scene, verbose=True).shader())
