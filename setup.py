"""
Setup script for sdlgen

Installs the ``sdlgen`` package together with its Jinja2 templates and the
``sdlgen`` console script.
"""

from pathlib import Path
from setuptools import setup, find_packages


# Read version from sdlgen/__init__.py
def get_version():
    version_file = Path("sdlgen/__init__.py")
    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    readme = Path("README.md")
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="sdlgen",
    version=get_version(),
    description="Generate raw Rust FFI bindings and metadata from SDL3 C headers",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["sdlgen", "sdlgen.*"]),
    package_data={"sdlgen": ["templates/*.j2"]},
    python_requires=">=3.9",
    install_requires=[
        "jinja2>=3.0",
        "tomli>=2.0; python_version<'3.11'",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "sdlgen=sdlgen.cli:main",
        ],
    },
    zip_safe=False,  # Templates are loaded from the package directory
)
