from setuptools import setup, find_packages


setup(
    name="vpk",
    version="0.1",
    packages=find_packages(include=["vpk", "vpk.*"]),
    description="Read-only access to Valve split VPK containers (directory + numbered archives).",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "vpk=vpk.cli:main",
        ]
    },
)
