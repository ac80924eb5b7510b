from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="tensorsym",
    version="0.1.0",
    description="Symbolic differentiation of scalar, tensor, and matrix expressions.",
    long_description=Path("README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    keywords="symbolic differentiation tensor matrix derivative",
    license="MIT",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=Path("requirements.txt").read_text(encoding="utf-8").splitlines(),
    extras_require={
        "test": ["pytest", "hypothesis", "coverage"],
        "dev": ["nox", "ruff"],
    },
    entry_points={"console_scripts": ["tensorsym=tensorsym.cli:app"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Mathematics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.10",
)
