from __future__ import annotations

from setuptools import find_packages, setup

_PACKAGES = ["domain", "application", "infrastructure", "config", "server"]

setup(
    name="cinelog",
    version="0.1.0",
    description="Movie/TV library persistence service (catalog, activity stores, lists, stats).",
    # Repo convention: backend code lives under `backend/`.
    package_dir={"": "backend"},
    packages=find_packages(
        where="backend",
        include=[*_PACKAGES, *(f"{name}.*" for name in _PACKAGES)],
    ),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.10.6",
        "pyyaml>=6.0",
        "python-dotenv>=1.0",
        # HTTP layer
        "fastapi>=0.115",
        "uvicorn>=0.30",
        # Relational backend (imported lazily on first use).
        "asyncpg>=0.29",
        # Document backend (imported lazily on first use).
        "motor>=3.3",
        "pymongo>=4.5",
    ],
    extras_require={
        # Test tooling: unittest cases collected by pytest; TestClient needs httpx.
        "test": [
            "pytest>=8.0",
            "httpx>=0.27",
        ],
    },
)
