from setuptools import setup, find_packages

setup(
    name="homescore",
    version="0.1.0",
    packages=find_packages(include=["homescore", "homescore.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "psycopg2-binary",
        "redis",
        "celery",
        "pydantic",
        "pydantic-settings",
        "prometheus-client",
        "prometheus-fastapi-instrumentator",
    ],
    entry_points={
        "console_scripts": [
            "homescore-init-db=homescore.db.init_db:main",
        ],
    },
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
