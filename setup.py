"""
Setup script for the climatesim package
Agent-based ocean-current model for procedural planetary climates
"""
from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="climatesim",
    version="0.1.0",
    description="Agent-based ocean-current streamlines from coastline geometry and the ITCZ",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Atmospheric Science",
        "Topic :: Scientific/Engineering :: Physics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    package_dir={"": "src"},
    # src/climatesim uses implicit namespace packages (no __init__.py)
    packages=find_namespace_packages(where="src", include=["climatesim*"]),
    python_requires=">=3.10",
    install_requires=[
        # Core scientific stack
        "numpy>=1.20",
        "pandas>=1.3,<3.0",
        "scipy>=1.7,<2.0",
    ],
    extras_require={
        "dev": [
            "black>=22.0",
            "isort>=5.0",
            "pytest>=7.0",
            "pytest-cov>=3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "climatesim-ocean=climatesim.ocean_abm.simulation:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
