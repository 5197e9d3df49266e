from setuptools import setup, find_packages

setup(
    name='sdfgen',
    version='0.1.0',
    author='sdfgen contributors',
    description='Compiles scene trees of SDF shapes and boolean operations into GLSL/HLSL distance functions and flat GPU node buffers.',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples', 'examples.*']),
    package_data={
        'sdfgen': ['glsl/*.glsl', 'hlsl/*.hlsl'],
    },
    include_package_data=True,
    install_requires=[
        'numpy',
        'watchdog',
    ],
    extras_require={
        'gpu': [
            'moderngl',
            'glfw',
        ],
        'test': [
            'pytest',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: Multimedia :: Graphics :: 3D Rendering',
    ],
    python_requires='>=3.8',
)
