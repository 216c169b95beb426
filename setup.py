"""Setup script for quick installation."""

from setuptools import find_packages, setup

setup(
    name="service-health",
    version="0.1.0",
    description="Health gate for the analytics dashboard service stack",
    author="Analytics Dashboard Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.31.0",
        "urllib3>=2.0.0",
        "click>=8.1.0",
        "rich>=13.5.0",
        "pydantic>=2.3.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "service-health=service_health.cli.health_check:main",
        ],
    },
)
