import re
from pathlib import Path

from setuptools import find_packages, setup

ROOT_DIR = Path(__file__).parent.resolve() / "app"


def read_version() -> str:
    source = (ROOT_DIR / "pychip8" / "__version__.py").read_text(encoding="utf-8")
    major, minor, patch, stage, build = re.search(
        r"\((\d+), (\d+), (\d+), \"(\w+)\", (\d+)\)", source
    ).groups()
    version = f"{major}.{minor}.{patch}"
    return version if stage == "stable" else f"{version}.{stage}{build}"


setup(
    name="PyChip8",
    version=read_version(),
    description="CHIP-8 interpreter with a pygame frontend",
    packages=find_packages(where="app"),
    package_dir={"": "app"},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "pygame-ce",
        "rich",
        "returns",
        "bitarray",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["pychip8=pychip8.main:main"]},
    zip_safe=False,
)
