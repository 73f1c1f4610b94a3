"""
Setup script for tsunami_lab
Snapshot persistence and source-raster resampling for a 2D shallow-water tsunami solver
"""
from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="tsunami-lab",
    version="0.1.0",
    description="netCDF snapshot writer and bathymetry/displacement resampling for tsunami simulations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Physics",
        "Topic :: Scientific/Engineering :: Hydrology",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        # Core scientific stack
        "numpy>=1.20",
        # Storage
        "netcdf4>=1.5,<2.0",
        "xarray>=0.19",
        "h5netcdf[h5py]>=0.11,<2.0",
    ],
    extras_require={
        "dev": [
            "black>=22.0",
            "isort>=5.0",
            "pytest>=7.0",
            "pytest-cov>=3.0",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
