from setuptools import setup, find_packages

def parse_requirements(requirements):
    with open(requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements("requirements.txt")

setup(
    name='estate_backend',
    version='0.1.0',
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.25",
        ],
    },
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["estate_backend", "estate_backend.*"]),
    package_data={"estate_backend": ["alembic/*.py", "alembic/*.mako", "alembic/versions/*.py"]},
    entry_points={
        "console_scripts": [
            "estate=estate_backend.cli.cli:cli",
        ],
    }
)
