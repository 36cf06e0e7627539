[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nezhadash"
version = "0.1.0"
description = "Data models and rule logic for a server monitoring dashboard: hosts, servers, alert rules, services, cron tasks, DDNS profiles, WAF blocking and configuration."
requires-python = ">=3.10"
keywords = ["monitoring", "dashboard", "alerting", "waf", "ddns"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml",
    "idna",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nezhadash"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
