[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ewallet"
version = "0.1.0"
description = "A small e-wallet web service: accounts, top-ups, transfers and transaction history over a JSON API backed by SQLite."
requires-python = ">=3.10"
keywords = ["e-wallet", "payments", "flask", "jwt", "rest-api", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Office/Business :: Financial",
]
dependencies = [
    "flask",
    "pyjwt",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "freezegun",
]

[project.scripts]
ewallet = "ewallet.app:main"

[tool.hatch.build.targets.wheel]
packages = ["ewallet"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
