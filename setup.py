from setuptools import setup, find_packages

setup(
    name="fracseries",
    version="0.1.0",
    author="DillyDilly",
    author_email="aidend@uoregon.edu",
    description="Per-frame box-counting fractal dimension and lacunarity of 3D+t simulation output",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21.0",
        "numba>=0.56.0",
        "matplotlib>=3.3.0",
        "scipy>=1.6.0",
        "tqdm>=4.50.0",
        "scikit-learn>=0.24.0",
        "pandas>=2.2.0"
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "fracseries=fracseries.cli:main",
        ],
    },
)
