from pathlib import Path

from setuptools import setup, find_packages

HERE = Path(__file__).parent


def parse_requirements(requirements):
    with open(HERE / requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]


requirements = parse_requirements("requirements.txt")
test_requirements = parse_requirements("requirements-test.txt")

setup(
    name='trainingdesk',
    version='0.1.0',
    description='Staff dashboard API for training events, rosters and CSV exports',
    python_requires='>=3.10',
    install_requires=requirements,
    extras_require={
        "test": test_requirements,
    },
    package_dir={"": "src"},
    packages=find_packages(where="src", exclude=["tests", "tests.*"]),
    package_data={
        "trainingdesk_backend.exceptions": ["error_registry.yaml"],
    },
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "trainingdesk=trainingdesk_backend.__main__:main",
        ],
    }
)
