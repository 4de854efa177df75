[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ezai"
version = "0.1.0"
description = "Building blocks for a multi-provider AI chat gateway: request models, configuration, pricing, prompts, response caching, key encryption and access control."
requires-python = ">=3.10"
keywords = [
    "ai",
    "gateway",
    "llm",
    "pricing",
    "prompts",
    "cache",
    "authentication",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pyyaml>=6.0",
    "cryptography>=41.0",
    "bcrypt>=4.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["ezai"]

[tool.hatch.build.targets.sdist]
include = [
    "ezai",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
