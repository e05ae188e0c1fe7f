"""Setup configuration for reftracer."""

from pathlib import Path
from setuptools import setup, find_packages

readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="reftracer",
    version="0.1.0",
    description="Trace reads, calls and constructions of JavaScript APIs through aliases and imports",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["reftracer", "reftracer.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0.0",
        "pydantic>=2.5.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
        "tree-sitter>=0.23.0",
        "tree-sitter-javascript>=0.23.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "reftracer=reftracer.main:cli",
        ],
    },
    license="MIT",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
